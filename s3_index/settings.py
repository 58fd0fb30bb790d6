from __future__ import annotations
"""Process-wide configuration and the JSON file it can be read from."""

from dataclasses import dataclass, field
import json
from pathlib import Path
from typing import Any, Optional

DEFAULT_LINK_TTL = 60 * 60 * 24
# SigV4 presigned URLs cannot outlive seven days.
MAX_LINK_TTL = 60 * 60 * 24 * 7
DEFAULT_MAX_PAGES = 1000
DEFAULT_PAGE_SIZE = 1000
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3030


@dataclass(frozen=True)
class SigningConfig:
    """Immutable settings shared by every request."""

    bucket: str
    endpoint_url: Optional[str] = None
    region: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = field(default=None, repr=False)
    link_ttl: int = DEFAULT_LINK_TTL
    max_pages: int = DEFAULT_MAX_PAGES
    page_size: int = DEFAULT_PAGE_SIZE
    delimiter: str = "/"
    strict_prefixes: bool = False
    request_deadline: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.bucket or not self.bucket.strip():
            raise ValueError("bucket must not be empty")
        if not 0 < self.link_ttl <= MAX_LINK_TTL:
            raise ValueError(f"link_ttl must be between 1 and {MAX_LINK_TTL} seconds")
        if self.max_pages <= 0:
            raise ValueError("max_pages must be greater than zero")
        if not 0 < self.page_size <= 1000:
            raise ValueError("page_size must be between 1 and 1000")
        if not self.delimiter:
            raise ValueError("delimiter must not be empty")
        if self.request_deadline is not None and self.request_deadline <= 0:
            raise ValueError("request_deadline must be greater than zero")


@dataclass(frozen=True)
class ServerSettings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "info"


_STRING_KEYS = ("bucket", "endpoint_url", "region", "access_key", "delimiter", "host", "log_level")
_POSITIVE_INT_KEYS = ("link_ttl", "max_pages", "page_size", "port")


class SettingsStorage:
    """Lenient reader for the optional JSON configuration file.

    Values that have the wrong type or are out of range are dropped so the
    caller falls back to its defaults. Secrets are never read from the file.
    """

    def __init__(self, storage_path: str | Path | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".s3_index.json"
        self._path = Path(storage_path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return {}
        if not isinstance(data, dict):
            return {}

        values: dict[str, Any] = {}
        for key in _STRING_KEYS:
            value = data.get(key)
            if isinstance(value, str) and value:
                values[key] = value
        for key in _POSITIVE_INT_KEYS:
            number = _positive_int(data.get(key))
            if number is not None:
                values[key] = number
        strict = data.get("strict_prefixes")
        if isinstance(strict, bool):
            values["strict_prefixes"] = strict
        deadline = data.get("request_deadline")
        if isinstance(deadline, (int, float)) and not isinstance(deadline, bool) and deadline > 0:
            values["request_deadline"] = float(deadline)
        return values


def _positive_int(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def build_signing_config(file_values: dict[str, Any], **overrides: Any) -> SigningConfig:
    """Merge file values with explicit overrides; ``None`` overrides are ignored."""

    merged = {key: value for key, value in file_values.items() if key in _SIGNING_FIELDS}
    merged.update({key: value for key, value in overrides.items() if value is not None})
    merged.setdefault("bucket", "")
    return SigningConfig(**merged)


def build_server_settings(file_values: dict[str, Any], **overrides: Any) -> ServerSettings:
    merged = {key: value for key, value in file_values.items() if key in _SERVER_FIELDS}
    merged.update({key: value for key, value in overrides.items() if value is not None})
    return ServerSettings(**merged)


_SIGNING_FIELDS = frozenset(SigningConfig.__dataclass_fields__)
_SERVER_FIELDS = frozenset(ServerSettings.__dataclass_fields__)
