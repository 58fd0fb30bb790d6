from __future__ import annotations
"""Request coordination between path resolution, listing and signing."""

from typing import Callable, Optional, Union

from .listing import ListingBuilder, StoreUnavailableError
from .models import DirectoryListing, ObjectRedirect
from .resolver import is_directory_path, parent_prefix, resolve, resolve_key
from .services import Boto3ObjectStore, ObjectStore, StoreError
from .settings import SigningConfig

BrowseResult = Union[DirectoryListing, ObjectRedirect]


class IndexController:
    """Turns a raw request path into a listing or a signed redirect."""

    def __init__(
        self,
        config: SigningConfig,
        store: ObjectStore | None = None,
        lister: ListingBuilder | None = None,
    ):
        self._config = config
        self._store = store or Boto3ObjectStore(config)
        self._lister = lister or ListingBuilder(self._store, config)

    @property
    def config(self) -> SigningConfig:
        return self._config

    def browse(
        self,
        request_path: str,
        *,
        cancel_requested: Optional[Callable[[], bool]] = None,
    ) -> BrowseResult:
        if is_directory_path(request_path, delimiter=self._config.delimiter):
            return self.list_directory(request_path, cancel_requested=cancel_requested)
        return self.sign_object(request_path)

    def list_directory(
        self,
        request_path: str,
        *,
        cancel_requested: Optional[Callable[[], bool]] = None,
    ) -> DirectoryListing:
        delimiter = self._config.delimiter
        prefix = resolve(request_path, delimiter=delimiter)
        entries = self._lister.list(prefix, cancel_requested=cancel_requested)
        return DirectoryListing(
            prefix=prefix,
            parent=parent_prefix(prefix, delimiter=delimiter),
            entries=entries,
        )

    def sign_object(self, request_path: str) -> ObjectRedirect:
        key = resolve_key(request_path, delimiter=self._config.delimiter)
        try:
            signed = self._store.sign_get(self._config.bucket, key, self._config.link_ttl)
        except StoreError as exc:
            raise StoreUnavailableError(str(exc), cause=exc) from exc
        return ObjectRedirect(key=key, url=signed.url, expires_at=signed.expires_at)
