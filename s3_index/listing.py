from __future__ import annotations
"""Directory listings assembled from paginated store responses."""
import logging
import time
from typing import Callable, Optional

from .models import ListingEntry, ListingPage, ObjectLink, SubDirectory
from .services import ObjectStore, StoreError
from .settings import SigningConfig

LOGGER = logging.getLogger(__name__)


class ListError(RuntimeError):
    """Base class for failures while building a listing."""


class PrefixNotFoundError(ListError):
    """Raised in strict mode when a non-root prefix has nothing under it."""


class TooManyPagesError(ListError):
    """Raised when the store keeps paginating past the configured cap."""


class StoreUnavailableError(ListError):
    """Raised when the store fails; the original error is kept on ``cause``."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class DeadlineExceededError(ListError):
    """Raised when pagination runs past the per-request deadline."""


class ListingCancelledError(ListError):
    """Raised when the caller asks to stop between two pages."""


class ListingBuilder:
    """Enumerates one level of a prefix and signs every object found."""

    def __init__(
        self,
        store: ObjectStore,
        config: SigningConfig,
        *,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self._store = store
        self._config = config
        self._monotonic = monotonic

    def list(
        self,
        prefix: str,
        *,
        cancel_requested: Optional[Callable[[], bool]] = None,
    ) -> list[ListingEntry]:
        """Return every child of ``prefix`` in the order the store reports them.

        Raises:
            TooManyPagesError: more than ``max_pages`` pages would be needed.
            StoreUnavailableError: a list or sign call failed.
            DeadlineExceededError: ``request_deadline`` elapsed between pages.
            ListingCancelledError: ``cancel_requested`` returned true.
            PrefixNotFoundError: strict mode only, see ``strict_prefixes``.
        """

        entries: list[ListingEntry] = []
        token: str | None = None
        pages = 0
        saw_marker = False
        started = self._monotonic()

        while True:
            page, had_marker = self._fetch_page(prefix, token)
            pages += 1
            entries.extend(page.entries)
            saw_marker = saw_marker or had_marker
            token = page.continuation_token
            if not token:
                break
            if pages >= self._config.max_pages:
                raise TooManyPagesError(
                    f"Listing {prefix!r} needs more than {self._config.max_pages} pages"
                )
            if cancel_requested and cancel_requested():
                raise ListingCancelledError(f"Listing {prefix!r} cancelled after {pages} pages")
            deadline = self._config.request_deadline
            if deadline is not None and self._monotonic() - started > deadline:
                raise DeadlineExceededError(
                    f"Listing {prefix!r} exceeded {deadline}s after {pages} pages"
                )

        if prefix and not entries and not saw_marker and self._config.strict_prefixes:
            raise PrefixNotFoundError(f"No objects under {prefix!r}")
        LOGGER.debug("listed %r: %d entries in %d pages", prefix, len(entries), pages)
        return entries

    def list_page(self, prefix: str, continuation_token: str | None = None) -> ListingPage:
        """Fetch and convert a single page of children under ``prefix``."""

        page, _ = self._fetch_page(prefix, continuation_token)
        return page

    def _fetch_page(self, prefix: str, continuation_token: str | None) -> tuple[ListingPage, bool]:
        config = self._config
        try:
            raw = self._store.list_one_page(config.bucket, prefix, config.delimiter, continuation_token)
        except StoreError as exc:
            LOGGER.error("store listing failed for %r: %s", prefix, exc)
            raise StoreUnavailableError(str(exc), cause=exc) from exc

        entries: list[ListingEntry] = []
        for common in raw.common_prefixes:
            directory = self._to_directory(prefix, common)
            if directory is not None:
                entries.append(directory)

        had_marker = False
        for summary in raw.objects:
            if summary.key == prefix:
                had_marker = True
                continue
            name = self._child_name(prefix, summary.key)
            if name is None:
                continue
            if name.endswith(config.delimiter):
                LOGGER.warning("key ending with %r found (%s)", config.delimiter, summary.key)
                continue
            try:
                signed = self._store.sign_get(config.bucket, summary.key, config.link_ttl)
            except StoreError as exc:
                LOGGER.error("signing failed for %r: %s", summary.key, exc)
                raise StoreUnavailableError(str(exc), cause=exc) from exc
            entries.append(
                ObjectLink(
                    name=name,
                    key=summary.key,
                    url=signed.url,
                    expires_at=signed.expires_at,
                    size=summary.size,
                    last_modified=summary.last_modified,
                )
            )
        return ListingPage(entries=entries, continuation_token=raw.next_token), had_marker

    def _to_directory(self, prefix: str, common: str) -> SubDirectory | None:
        name = self._child_name(prefix, common)
        if name is None:
            return None
        delimiter = self._config.delimiter
        if name.endswith(delimiter):
            name = name[: -len(delimiter)]
        if not name:
            LOGGER.warning("empty common prefix segment found (%s)", common)
            return None
        return SubDirectory(name=name, prefix=common)

    @staticmethod
    def _child_name(prefix: str, value: str) -> str | None:
        if not value.startswith(prefix):
            LOGGER.warning("entry without expected prefix %r found (%s)", prefix, value)
            return None
        return value[len(prefix):]
