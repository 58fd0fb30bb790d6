from __future__ import annotations
"""Renderer-agnostic helpers for formatting listing values."""
from dataclasses import dataclass
from datetime import datetime
from importlib.metadata import PackageNotFoundError, metadata, version
from typing import Any

from .models import DirectoryListing, ListingEntry, ObjectLink
from .resolver import display

DIST_NAME = "s3-index"


@dataclass(frozen=True)
class PackageInfo:
    name: str
    version: str
    summary: str
    homepage: str | None


def load_package_info(dist_name: str = DIST_NAME) -> PackageInfo:
    try:
        distribution_metadata = metadata(dist_name)
        package_version = version(dist_name)
    except PackageNotFoundError:
        return PackageInfo(
            name="s3-index",
            version="",
            summary="Browse an S3 bucket over HTTP with presigned download links.",
            homepage=None,
        )
    homepage = distribution_metadata.get("Home-page")
    for entry in distribution_metadata.get_all("Project-URL") or []:
        label, _, link = entry.partition(",")
        if label.strip().lower() == "homepage" and not homepage:
            homepage = link.strip()
    return PackageInfo(
        name=distribution_metadata.get("Name"),
        version=package_version,
        summary=distribution_metadata.get("Summary") or "",
        homepage=homepage or None,
    )


def format_size(size: int | None) -> str:
    if size is None:
        return "-"
    suffixes = ["B", "KB", "MB", "GB", "TB"]
    value = float(max(size, 0))
    for suffix in suffixes:
        if value < 1024 or suffix == suffixes[-1]:
            return f"{value:.1f} {suffix}" if suffix != "B" else f"{int(value)} {suffix}"
        value /= 1024
    return f"{size} B"


def format_last_modified(last_modified: object) -> str:
    if not last_modified:
        return "-"
    try:
        return last_modified.strftime("%Y-%m-%d %H:%M:%S %Z").strip() or str(last_modified)
    except AttributeError:
        return str(last_modified)


def directory_url(prefix: str | None) -> str:
    """Server-relative link for a prefix, percent-encoded."""

    if prefix is None:
        return ""
    return display(prefix)


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def entry_to_dict(entry: ListingEntry) -> dict[str, Any]:
    if isinstance(entry, ObjectLink):
        return {
            "kind": entry.kind,
            "name": entry.name,
            "key": entry.key,
            "url": entry.url,
            "expires_at": _isoformat(entry.expires_at),
            "size": entry.size,
            "last_modified": _isoformat(entry.last_modified),
        }
    return {
        "kind": entry.kind,
        "name": entry.name,
        "prefix": entry.prefix,
        "url": directory_url(entry.prefix),
    }


def listing_to_dict(listing: DirectoryListing) -> dict[str, Any]:
    return {
        "prefix": listing.prefix,
        "parent": listing.parent,
        "entries": [entry_to_dict(entry) for entry in listing.entries],
    }


def listing_rows(listing: DirectoryListing, delimiter: str = "/") -> list[dict[str, str]]:
    """Rows for the HTML template: directories link back here, objects to the store."""

    rows = []
    for entry in listing.entries:
        if isinstance(entry, ObjectLink):
            rows.append(
                {
                    "name": entry.name,
                    "url": entry.url,
                    "size": format_size(entry.size),
                    "mtime": format_last_modified(entry.last_modified),
                }
            )
        else:
            rows.append(
                {
                    "name": f"{entry.name}{delimiter}",
                    "url": directory_url(entry.prefix),
                    "size": "",
                    "mtime": "",
                }
            )
    return rows
