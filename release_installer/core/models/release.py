"""
Release artifact model — what the resolver found and the fetcher downloads.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict


class ReleaseArtifact(BaseModel):
    """A concrete, downloadable release asset for one platform.

    ``version`` is the release tag with a single leading ``v`` removed;
    ``tag`` keeps the tag exactly as published, since download URLs use it.
    ``local_temp_path`` is empty until the fetcher has downloaded the asset
    and lives inside the run's scoped temp directory.
    """

    model_config = ConfigDict(frozen=True)

    version: str
    tag: str
    download_url: str
    asset_name: str = ""
    local_temp_path: Path | None = None
    expected_non_empty: bool = True
