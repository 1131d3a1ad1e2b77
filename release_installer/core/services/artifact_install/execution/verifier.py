"""
L4 Execution — Post-install verification.

Services are verified by polling their health endpoint for a marker
string; plain binaries by running them once (``--version``).  Polling
is bounded: a fixed number of attempts, each one blocking call with its
own timeout.
"""

from __future__ import annotations

import http.client
import logging
import math
import time
import urllib.error
import urllib.request
from collections.abc import Callable
from pathlib import Path
from typing import Any

from release_installer.core.errors import VerificationFailed
from release_installer.core.services.artifact_install.execution.subprocess_runner import (
    _run_subprocess,
)

logger = logging.getLogger(__name__)

# Only this much of the body is searched for the marker.
_MAX_BODY = 4 * 1024 * 1024


def poll_attempts(max_wait: float, interval: float) -> int:
    """Number of polls that fit in ``max_wait`` (at least one)."""
    if interval <= 0:
        return 1
    return max(1, math.ceil(max_wait / interval))


def verify_endpoint(
    url: str,
    marker: str,
    *,
    max_wait: float = 30.0,
    interval: float = 2.0,
    timeout: float = 5.0,
    initial_delay: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> dict[str, Any]:
    """Poll ``url`` until its body contains ``marker``.

    Args:
        url: Health/metrics endpoint.
        marker: Substring expected in the response body.
        max_wait: Upper bound on polling time, in seconds.
        interval: Pause between attempts.
        timeout: Per-request timeout.
        initial_delay: Pause before the first attempt (service start-up).
        sleep: Injectable sleep.

    Returns:
        ``{"ok": True, "url": ..., "attempts": N}``

    Raises:
        VerificationFailed: Every attempt failed or lacked the marker.
    """
    attempts = poll_attempts(max_wait, interval)
    if initial_delay > 0:
        sleep(initial_delay)

    last_problem = "no response"
    for attempt in range(1, attempts + 1):
        try:
            with urllib.request.urlopen(url, timeout=timeout) as resp:
                body = resp.read(_MAX_BODY).decode("utf-8", errors="replace")
            if not marker or marker in body:
                logger.info("Verified %s (attempt %d/%d)", url, attempt, attempts)
                return {"ok": True, "url": url, "attempts": attempt}
            last_problem = f"marker '{marker}' not found in response"
        except urllib.error.HTTPError as exc:
            last_problem = f"HTTP {exc.code}"
        except (urllib.error.URLError, TimeoutError, OSError) as exc:
            last_problem = str(getattr(exc, "reason", exc))
        except (http.client.HTTPException, ValueError) as exc:
            last_problem = f"{type(exc).__name__}: {exc}"

        logger.debug("Verify %s attempt %d/%d: %s", url, attempt, attempts, last_problem)
        if attempt < attempts:
            sleep(interval)

    raise VerificationFailed(
        f"{url} did not report '{marker}' after {attempts} attempts ({last_problem})"
    )


def verify_binary(binary: Path, args: list[str], *, timeout: int = 30) -> dict[str, Any]:
    """Run ``binary args`` once; success means exit code 0.

    Returns:
        ``{"ok": True, "output": "<first line of stdout>"}``

    Raises:
        VerificationFailed: The command could not run or exited non-zero.
    """
    result = _run_subprocess([str(binary), *args], timeout=timeout)
    if not result["ok"]:
        detail = (result.get("stderr") or "").strip() or result["error"]
        raise VerificationFailed(f"{binary} {' '.join(args)} failed: {detail}")
    first_line = (result.get("stdout") or "").strip().splitlines()[:1]
    output = first_line[0] if first_line else ""
    logger.info("Verified %s: %s", binary, output)
    return {"ok": True, "output": output}
