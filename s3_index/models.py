from __future__ import annotations
"""Data models representing bucket listings and signed links."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union


@dataclass(frozen=True)
class ObjectSummary:
    """A single object as reported by a store listing call."""

    key: str
    size: Optional[int] = None
    last_modified: Optional[datetime] = None


@dataclass(frozen=True)
class StorePage:
    """Raw result of one delimited listing call against the store."""

    common_prefixes: list[str] = field(default_factory=list)
    objects: list[ObjectSummary] = field(default_factory=list)
    next_token: Optional[str] = None


@dataclass(frozen=True)
class SignedUrl:
    url: str
    expires_at: datetime


@dataclass(frozen=True)
class SubDirectory:
    """A common prefix, shown as one level of nesting."""

    name: str
    prefix: str
    kind: str = field(default="directory", init=False)


@dataclass(frozen=True)
class ObjectLink:
    """A leaf object together with its presigned retrieval URL."""

    name: str
    key: str
    url: str
    expires_at: datetime
    size: Optional[int] = None
    last_modified: Optional[datetime] = None
    kind: str = field(default="object", init=False)


ListingEntry = Union[SubDirectory, ObjectLink]


@dataclass(frozen=True)
class ListingPage:
    entries: list[ListingEntry] = field(default_factory=list)
    continuation_token: Optional[str] = None


@dataclass(frozen=True)
class DirectoryListing:
    """Everything a renderer needs to show one directory."""

    prefix: str
    parent: Optional[str]
    entries: list[ListingEntry] = field(default_factory=list)

    @property
    def path(self) -> str:
        return f"/{self.prefix}"


@dataclass(frozen=True)
class ObjectRedirect:
    key: str
    url: str
    expires_at: datetime
