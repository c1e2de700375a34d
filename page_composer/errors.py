"""Error taxonomy shared by the store client, coordinator, and session."""

from __future__ import annotations

import enum


class SaveStep(enum.StrEnum):
    """Named protocol steps used to report where an operation failed."""

    VALIDATE = "Validate"
    UPSERT_PAGE = "UpsertPage"
    CLEAR_STALE_LINKS = "ClearStaleLinks"
    CREATE_LINKS = "CreateLinks"
    FETCH_PAGE = "FetchPage"
    FETCH_LINKS = "FetchLinks"
    DELETE_LINKS = "DeleteLinks"
    DELETE_PAGE = "DeletePage"
    SAVE_SECTION = "SaveSection"
    FETCH_SECTIONS = "FetchSections"
    FETCH_PAGES = "FetchPages"


class ComposerError(RuntimeError):
    """Base class for every error surfaced by page_composer operations."""


class ValidationError(ComposerError):
    """Raised when metadata or the composition is incomplete before a save."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("; ".join(self.problems) or "Validation failed")


class StoreRequestError(ComposerError):
    """Raised by :class:`~page_composer.store.RemoteStore` for failed requests.

    Attributes
    ----------
    method : str
        HTTP verb of the failed request.
    url : str
        Fully qualified request URL.
    status_code : int | None
        Response status, or ``None`` when the request never got a response.
    body : str
        Response text (truncated by the caller when building messages).
    """

    def __init__(
        self,
        message: str,
        *,
        method: str,
        url: str,
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.method = method
        self.url = url
        self.status_code = status_code
        self.body = body


class NotFoundError(StoreRequestError):
    """Raised when the store answers HTTP 404 for a record lookup."""


class BackendInconsistency(StoreRequestError):
    """Server error carrying the defect marker; the write may have committed."""


class TransportError(ComposerError):
    """Raised when a protocol step fails on the network or with a bad status."""

    def __init__(self, step: SaveStep, detail: str) -> None:
        self.step = step
        self.detail = detail
        super().__init__(f"{step} failed: {detail}")


class PartialSaveError(ComposerError):
    """Raised when only some join records were written during a save."""

    def __init__(self, *, page_id: int | str, succeeded: int, total: int) -> None:
        self.page_id = page_id
        self.succeeded = succeeded
        self.total = total
        super().__init__(
            f"Saved {succeeded} of {total} sections for page {page_id}; "
            "the stored layout is incomplete"
        )


class ConfigError(ValueError):
    """Raised when the composer configuration is invalid or incomplete."""


__all__ = [
    "BackendInconsistency",
    "ComposerError",
    "ConfigError",
    "NotFoundError",
    "PartialSaveError",
    "SaveStep",
    "StoreRequestError",
    "TransportError",
    "ValidationError",
]
