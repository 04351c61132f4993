"""
Sync options - where anchors come from and how often to refresh them.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Union

from ..exceptions import AnchorFormatError, ConfigurationError
from ..models import Anchor, parse_anchor_list
from .defaults import (
    ENV_CHECK_INTERVAL_MS,
    ENV_HTTP_TIMEOUT,
    ENV_LOCAL_PATH,
    ENV_REMOTE_URLS,
    ENV_RETRY_DELAY_MS,
    HTTP_TIMEOUT_SECONDS,
    REFRESH_CHECK_INTERVAL_MS,
    RETRY_DELAY_MS,
)

# Option keys accepted in camelCase form as well
_CAMEL_KEYS = {
    "localPath": "local_path",
    "remoteUrls": "remote_urls",
    "staticAnchors": "static_anchors",
    "checkIntervalMs": "check_interval_ms",
    "retryDelayMs": "retry_delay_ms",
    "httpTimeout": "http_timeout",
}


class SourceKind(str, Enum):
    """Which origin anchors are loaded from."""
    LOCAL = "local"
    REMOTE = "remote"
    STATIC = "static"


@dataclass
class SyncOptions:
    """Configuration for an AnchorSync service.

    Exactly one of local_path, remote_urls or static_anchors must be set.
    check_interval_ms is ignored for static anchors.
    """

    local_path: Optional[Path] = None
    remote_urls: Optional[List[str]] = None
    static_anchors: Optional[List[Anchor]] = None
    check_interval_ms: int = REFRESH_CHECK_INTERVAL_MS
    retry_delay_ms: int = RETRY_DELAY_MS
    http_timeout: float = HTTP_TIMEOUT_SECONDS

    def __post_init__(self):
        if self.local_path is not None and not isinstance(self.local_path, Path):
            self.local_path = Path(self.local_path)
        if self.static_anchors is not None:
            try:
                self.static_anchors = [
                    a if isinstance(a, Anchor) else Anchor.from_dict(a)
                    for a in self.static_anchors
                ]
            except AnchorFormatError as e:
                raise ConfigurationError(f"Invalid static anchors: {e}") from e

    @property
    def source_kind(self) -> SourceKind:
        """Return the configured source, validating the options first."""
        self.validate()
        if self.local_path is not None:
            return SourceKind.LOCAL
        if self.remote_urls is not None:
            return SourceKind.REMOTE
        return SourceKind.STATIC

    def validate(self) -> None:
        """Raise ConfigurationError unless the options are usable."""
        configured = [
            self.local_path is not None,
            self.remote_urls is not None,
            self.static_anchors is not None,
        ]
        if sum(configured) != 1:
            raise ConfigurationError(
                "Must specify exactly one of local, remote, or static anchors."
            )
        if self.remote_urls is not None:
            if isinstance(self.remote_urls, str) or not self.remote_urls:
                raise ConfigurationError("remote_urls must be a non-empty list of URLs")
        if self.check_interval_ms <= 0:
            raise ConfigurationError(
                f"check_interval_ms must be positive, got {self.check_interval_ms}"
            )
        if self.retry_delay_ms < 0:
            raise ConfigurationError(
                f"retry_delay_ms must not be negative, got {self.retry_delay_ms}"
            )

    @classmethod
    def from_dict(cls, data: dict) -> "SyncOptions":
        """Create options from a dict with snake_case or camelCase keys."""
        normalized = {_CAMEL_KEYS.get(k, k): v for k, v in data.items()}
        known = {k: v for k, v in normalized.items() if k in cls.__dataclass_fields__}
        return cls(**known)

    @classmethod
    def from_env(cls) -> "SyncOptions":
        """Create options from environment variables."""
        local_path = os.environ.get(ENV_LOCAL_PATH) or None
        remote = os.environ.get(ENV_REMOTE_URLS, "")
        remote_urls = [u.strip() for u in remote.split(",") if u.strip()] or None
        try:
            return cls(
                local_path=Path(local_path) if local_path else None,
                remote_urls=remote_urls,
                check_interval_ms=int(os.environ.get(
                    ENV_CHECK_INTERVAL_MS, str(REFRESH_CHECK_INTERVAL_MS))),
                retry_delay_ms=int(os.environ.get(
                    ENV_RETRY_DELAY_MS, str(RETRY_DELAY_MS))),
                http_timeout=float(os.environ.get(
                    ENV_HTTP_TIMEOUT, str(HTTP_TIMEOUT_SECONDS))),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid anchorsync environment setting: {e}") from e

    def to_dict(self) -> dict:
        """Convert options to dict."""
        return {
            "local_path": str(self.local_path) if self.local_path else None,
            "remote_urls": list(self.remote_urls) if self.remote_urls else None,
            "static_anchors": (
                [a.to_dict() for a in self.static_anchors]
                if self.static_anchors is not None else None
            ),
            "check_interval_ms": self.check_interval_ms,
            "retry_delay_ms": self.retry_delay_ms,
            "http_timeout": self.http_timeout,
        }


def load_options(path: Union[str, Path]) -> SyncOptions:
    """Load options from the `anchors:` section of a YAML file.

    A `static_anchors` entry may be given inline as a list, or as a path
    to a JSON anchor file via `static_anchors_file`.
    """
    import yaml

    config_path = Path(path)
    try:
        with open(config_path) as f:
            data: Any = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read config {config_path}: {e}") from e

    section = data.get("anchors", data) if isinstance(data, dict) else None
    if not isinstance(section, dict):
        raise ConfigurationError(f"Config {config_path} has no anchors section")

    section = dict(section)
    static_file = section.pop("static_anchors_file", None)
    if static_file:
        static_path = (config_path.parent / static_file).resolve()
        try:
            with open(static_path) as f:
                section["static_anchors"] = parse_anchor_list(json.load(f))
        except (OSError, ValueError, AnchorFormatError) as e:
            raise ConfigurationError(f"Cannot load static anchors {static_path}: {e}") from e

    return SyncOptions.from_dict(section)


__all__ = ["SourceKind", "SyncOptions", "load_options"]
