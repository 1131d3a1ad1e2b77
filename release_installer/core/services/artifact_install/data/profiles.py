"""
L0 Data — Built-in artifact profiles.

Plain dicts, validated into ``ArtifactProfile`` by the config loader.
User profiles in installer.yml with the same name are merged over these
key by key.

Each entry::

    "profile_name": {
        "description": str,
        "repo": "owner/name",
        "asset_template": str,          # {version} {tag} {arch} {os_family} {name}
        "binary_name": str,
        "arch_aliases": {token: name},  # optional
        "supported_arches": [token],    # optional, default all
        "account": str | None,          # service user + group
        "service": {...} | None,        # see ServiceProfile
        "config_files": [...],          # written only if absent
        "verify_args": [str],           # used when there is no service
        "usage_hints": [str],
    }
"""

from __future__ import annotations

# Default probe modules shipped with blackbox_exporter installs.
BLACKBOX_DEFAULT_CONFIG = """\
modules:
  http_2xx:
    prober: http
    timeout: 5s
    http:
      valid_http_versions: ["HTTP/1.1", "HTTP/2.0"]
      valid_status_codes: [200]
      method: GET
      preferred_ip_protocol: "ip4"
      ip_protocol_fallback: false

  http_post_2xx:
    prober: http
    timeout: 5s
    http:
      method: POST
      preferred_ip_protocol: "ip4"
      ip_protocol_fallback: false

  tcp_connect:
    prober: tcp
    timeout: 5s
    tcp:
      preferred_ip_protocol: "ip4"
      ip_protocol_fallback: false

  icmp_ping:
    prober: icmp
    timeout: 5s
    icmp:
      preferred_ip_protocol: "ip4"
      ip_protocol_fallback: false

  dns_query:
    prober: dns
    dns:
      preferred_ip_protocol: "ip4"
      query_name: "google.com"
      query_type: "A"
      valid_rcodes:
        - NOERROR
      validate_answer_rrs:
        fail_if_not_matches_regexp:
          - "google.com"
"""


BUILTIN_PROFILES: dict[str, dict] = {
    "node_exporter": {
        "description": "Prometheus exporter for host metrics",
        "repo": "prometheus/node_exporter",
        "asset_template": "node_exporter-{version}.linux-{arch}.tar.gz",
        "binary_name": "node_exporter",
        "account": "node_exporter",
        "service": {
            "description": "Node Exporter for Prometheus",
            "listen_address": "127.0.0.1:9100",
            "args": ["--web.listen-address={listen_address}"],
            "restart_policy": "always",
            "health_path": "/metrics",
            "health_marker": "node_exporter",
        },
    },
    "blackbox_exporter": {
        "description": "Prometheus exporter for HTTP/TCP/ICMP/DNS probing",
        "repo": "prometheus/blackbox_exporter",
        "asset_template": "blackbox_exporter-{version}.linux-{arch}.tar.gz",
        "binary_name": "blackbox_exporter",
        "account": "blackbox_exporter",
        "service": {
            "description": "Blackbox Exporter for Prometheus",
            "listen_address": "127.0.0.1:9115",
            "args": [
                "--config.file={config_dir}/blackbox_exporter/blackbox.yml",
                "--web.listen-address={listen_address}",
            ],
            "restart_policy": "always",
            "health_path": "/metrics",
            "health_marker": "blackbox_exporter",
        },
        "config_files": [
            {
                "path": "blackbox_exporter/blackbox.yml",
                "content": BLACKBOX_DEFAULT_CONFIG,
                "mode": 0o644,
            },
        ],
        "usage_hints": [
            "HTTP probe:  curl 'http://{listen_address}/probe?module=http_2xx&target=https://www.google.com'",
            "TCP probe:   curl 'http://{listen_address}/probe?module=tcp_connect&target=google.com:443'",
            "ICMP probe:  curl 'http://{listen_address}/probe?module=icmp_ping&target=8.8.8.8'",
            "Edit probe modules in {config_dir}/blackbox_exporter/blackbox.yml",
        ],
    },
    "docker_compose": {
        "description": "Docker Compose standalone binary",
        "repo": "docker/compose",
        "asset_template": "docker-compose-linux-{arch}",
        "binary_name": "docker-compose",
        "arch_aliases": {
            "amd64": "x86_64",
            "arm64": "aarch64",
            "armv7": "armv7",
        },
        "account": None,
        "service": None,
        "verify_args": ["--version"],
    },
}
