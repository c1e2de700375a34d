r"""HTTP client for the remote section/page store.

This module wraps the REST resources the composer consumes: ``sections``,
``pages``, and the ``page_sections`` join table. It centralises timeouts,
JSON encoding, and error handling, and normalises responses into the
dataclasses from :mod:`page_composer.models`.

The create endpoint for join records has a known defect: it may answer with a
server error whose body carries a diagnostic marker even though the row was
committed. Only that endpoint raises
:class:`~page_composer.errors.BackendInconsistency`; every other failure is a
plain :class:`~page_composer.errors.StoreRequestError`.

Example
-------
>>> from page_composer.store import RemoteStore
>>> store = RemoteStore(api_base="http://127.0.0.1:3000/api/v1")  # doctest: +SKIP
>>> [section.component_key for section in store.list_sections()]  # doctest: +SKIP
['hero-banner', 'pricing-grid']
"""

from __future__ import annotations

import json
import logging
import typing as typ
from http import HTTPStatus

import requests

from ._constants import (
    DEFAULT_API_BASE,
    DEFAULT_DEFECT_MARKER,
    DEFAULT_TIMEOUT,
    PAGE_SECTIONS_RESOURCE,
    PAGES_RESOURCE,
    SECTIONS_RESOURCE,
)
from .errors import BackendInconsistency, NotFoundError, StoreRequestError
from .models import PageRecord, PageSectionLink, Section

if typ.TYPE_CHECKING:
    from .models import RecordId, SectionDraft

logger = logging.getLogger(__name__)

_JSON_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
    "User-Agent": "page-composer/0.1",
}
_SNIPPET_LENGTH = 200

_RecordT = typ.TypeVar("_RecordT")


class RemoteStore:
    """Thin wrapper around the store's JSON endpoints.

    The client does not retry failed requests; the persistence coordinator
    decides how each failure is handled.
    """

    default_api_base = DEFAULT_API_BASE

    def __init__(
        self,
        *,
        api_base: str = DEFAULT_API_BASE,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        defect_marker: str | None = DEFAULT_DEFECT_MARKER,
    ) -> None:
        """Initialise the client with its base URL and transport.

        Parameters
        ----------
        api_base : str, optional
            Root URL of the store API, for example
            ``http://127.0.0.1:3000/api/v1``.
        session : requests.Session, optional
            Preconfigured session to reuse connections. Defaults to a new
            session per client.
        timeout : float, optional
            Per-request timeout in seconds.
        defect_marker : str or None, optional
            Body text identifying the create-link defect. ``None`` or an empty
            string disables detection so every server error is fatal.
        """
        self._api_base = api_base.rstrip("/") or DEFAULT_API_BASE
        self._session = session or requests.Session()
        self.timeout = timeout
        self.defect_marker = defect_marker or None

    @property
    def api_base(self) -> str:
        return self._api_base

    # sections

    def list_sections(self) -> list[Section]:
        payload = self._request("GET", SECTIONS_RESOURCE)
        return self._parse_list(payload, "sections", Section.from_payload)

    def get_section(self, section_id: RecordId) -> Section:
        path = f"{SECTIONS_RESOURCE}/{section_id}"
        payload = self._request("GET", path)
        return self._parse_record(
            Section.from_payload, _as_record(payload, "section"), "GET", path
        )

    def create_section(self, draft: SectionDraft) -> Section:
        payload = self._request(
            "POST", SECTIONS_RESOURCE, body={"section": draft.to_payload()}
        )
        return self._parse_record(
            Section.from_payload,
            _as_record(payload, "section"),
            "POST",
            SECTIONS_RESOURCE,
        )

    def update_section(self, section_id: RecordId, draft: SectionDraft) -> Section:
        payload = self._request(
            "PUT",
            f"{SECTIONS_RESOURCE}/{section_id}",
            body={"section": draft.to_payload()},
        )
        record = _as_record(payload, "section")
        if "id" not in record:
            record = {**draft.to_payload(), **record, "id": section_id}
        return self._parse_record(
            Section.from_payload, record, "PUT", f"{SECTIONS_RESOURCE}/{section_id}"
        )

    def delete_section(self, section_id: RecordId) -> None:
        self._request("DELETE", f"{SECTIONS_RESOURCE}/{section_id}")

    # pages

    def list_pages(self) -> list[PageRecord]:
        payload = self._request("GET", PAGES_RESOURCE)
        return self._parse_list(payload, "pages", PageRecord.from_payload)

    def get_page(self, page_id: RecordId) -> PageRecord:
        path = f"{PAGES_RESOURCE}/{page_id}"
        payload = self._request("GET", path)
        return self._parse_record(
            PageRecord.from_payload, _as_record(payload, "page"), "GET", path
        )

    def create_page(self, fields: typ.Mapping[str, typ.Any]) -> PageRecord:
        payload = self._request("POST", PAGES_RESOURCE, body={"page": dict(fields)})
        return self._parse_record(
            PageRecord.from_payload, _as_record(payload, "page"), "POST", PAGES_RESOURCE
        )

    def update_page(
        self, page_id: RecordId, fields: typ.Mapping[str, typ.Any]
    ) -> PageRecord:
        payload = self._request(
            "PUT", f"{PAGES_RESOURCE}/{page_id}", body={"page": dict(fields)}
        )
        record = _as_record(payload, "page")
        if "id" not in record:
            record = {**fields, **record, "id": page_id}
        return self._parse_record(
            PageRecord.from_payload, record, "PUT", f"{PAGES_RESOURCE}/{page_id}"
        )

    def delete_page(self, page_id: RecordId) -> None:
        self._request("DELETE", f"{PAGES_RESOURCE}/{page_id}")

    # page/section join records

    def list_page_sections(self) -> list[PageSectionLink]:
        payload = self._request("GET", PAGE_SECTIONS_RESOURCE)
        return self._parse_list(payload, "page_sections", PageSectionLink.from_payload)

    def create_page_section(
        self, *, page_id: RecordId, section_id: RecordId, sort_order: int
    ) -> PageSectionLink | None:
        """Create a join record.

        Returns the created link, or ``None`` when the store acknowledged the
        write without echoing the record.

        Raises
        ------
        BackendInconsistency
            When the store answers with a server error carrying the defect
            marker; the row may nevertheless exist.
        StoreRequestError
            For every other failure.
        """
        body = {
            "page_section": {
                "page_id": page_id,
                "section_id": section_id,
                "sort_order": sort_order,
            }
        }
        payload = self._request(
            "POST", PAGE_SECTIONS_RESOURCE, body=body, defect_eligible=True
        )
        record = _as_record(payload, "page_section")
        if "id" not in record:
            return None
        return self._parse_record(
            PageSectionLink.from_payload, record, "POST", PAGE_SECTIONS_RESOURCE
        )

    def delete_page_section(self, link_id: RecordId) -> None:
        self._request("DELETE", f"{PAGE_SECTIONS_RESOURCE}/{link_id}")

    # payload parsing

    def _parse_list(
        self,
        payload: typ.Any,
        key: str,
        parser: typ.Callable[[typ.Mapping[str, typ.Any]], _RecordT],
    ) -> list[_RecordT]:
        """Parse every record in a list response.

        Malformed rows, such as a record without an ``id``, are logged and
        left out of the result.
        """
        records: list[_RecordT] = []
        for item in _as_list(payload, key):
            try:
                records.append(parser(item))
            except ValueError as exc:
                logger.warning("Skipping malformed %s record: %s", key, exc)
        return records

    def _parse_record(
        self,
        parser: typ.Callable[[typ.Mapping[str, typ.Any]], _RecordT],
        record: typ.Mapping[str, typ.Any],
        method: str,
        path: str,
    ) -> _RecordT:
        try:
            return parser(record)
        except ValueError as exc:
            url = self._url(path)
            msg = f"{method} {url} returned a malformed record: {exc}"
            raise StoreRequestError(msg, method=method, url=url) from exc

    # transport

    def _url(self, path: str) -> str:
        return f"{self._api_base}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        body: typ.Mapping[str, typ.Any] | None = None,
        defect_eligible: bool = False,
    ) -> typ.Any:
        """Issue a request and return the decoded JSON body (or None)."""
        url = self._url(path)
        logger.debug("%s %s", method, url)
        try:
            response = self._session.request(
                method,
                url,
                json=body,
                headers=_JSON_HEADERS,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            msg = f"{method} {url} failed to reach the store: {exc}"
            raise StoreRequestError(msg, method=method, url=url) from exc

        status = response.status_code
        if status >= HTTPStatus.BAD_REQUEST:
            text = response.text or ""
            snippet = text[:_SNIPPET_LENGTH]
            msg = f"{method} {url} failed with status {status}: {snippet}"
            error_type: type[StoreRequestError] = StoreRequestError
            if status == HTTPStatus.NOT_FOUND:
                error_type = NotFoundError
            elif defect_eligible and self._is_defect(status, text):
                error_type = BackendInconsistency
            raise error_type(msg, method=method, url=url, status_code=status, body=text)

        if status == HTTPStatus.NO_CONTENT or not response.content:
            return None
        try:
            return response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            msg = f"{method} {url} returned a body that was not valid JSON"
            raise StoreRequestError(
                msg, method=method, url=url, status_code=status, body=response.text
            ) from exc

    def _is_defect(self, status: int, text: str) -> bool:
        return (
            self.defect_marker is not None
            and status >= HTTPStatus.INTERNAL_SERVER_ERROR
            and self.defect_marker in text
        )


def _as_list(payload: typ.Any, key: str) -> list[typ.Mapping[str, typ.Any]]:
    """Accept a bare JSON array or an object wrapping one under ``key``."""
    if isinstance(payload, dict):
        payload = payload.get(key, [])
    if not isinstance(payload, list):
        return []
    return [item for item in payload if isinstance(item, dict)]


def _as_record(payload: typ.Any, key: str) -> dict[str, typ.Any]:
    """Accept a bare JSON object or one wrapped under ``key``."""
    if not isinstance(payload, dict):
        return {}
    inner = payload.get(key)
    if isinstance(inner, dict):
        return dict(inner)
    return dict(payload)


__all__ = ["RemoteStore"]
