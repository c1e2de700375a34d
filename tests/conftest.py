"""Shared fixtures: an in-memory stand-in for the remote store's HTTP API.

``FakeStoreSession`` implements the ``requests.Session.request`` call used by
:class:`page_composer.store.RemoteStore` and answers with real
``requests.Response`` objects, so the client's status handling and JSON
decoding run unmodified. Faults can be injected per method/resource/call
number, optionally committing the write before the error is returned to model
the store's create-link defect.
"""

from __future__ import annotations

import dataclasses as dc
import json
import typing as typ
from urllib.parse import urlsplit

import pytest
import requests

from page_composer.store import RemoteStore

API_BASE = "https://store.invalid/api/v1"
DEFECT_BODY = (
    '{"status":500,"error":"Internal Server Error",'
    '"exception":"#<NoMethodError: undefined method `page_section_url\'>"}'
)


@dc.dataclass(slots=True)
class Call:
    method: str
    resource: str
    record_id: str | None
    body: dict[str, typ.Any] | None


@dc.dataclass(slots=True)
class Fault:
    method: str
    resource: str
    nth: int
    status: int
    body: str
    commit: bool = False
    seen: int = 0


def _response(
    status: int, payload: object = None, *, text: str | None = None
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    if payload is not None:
        response._content = json.dumps(payload).encode("utf-8")
    elif text is not None:
        response._content = text.encode("utf-8")
    else:
        response._content = b""
    response.headers["Content-Type"] = "application/json"
    response.encoding = "utf-8"
    return response


class FakeStoreSession:
    """In-memory store speaking the sections/pages/page_sections API."""

    def __init__(self) -> None:
        self.tables: dict[str, dict[int, dict[str, typ.Any]]] = {
            "sections": {},
            "pages": {},
            "page_sections": {},
        }
        self._next_ids = {name: 1 for name in self.tables}
        self.calls: list[Call] = []
        self.faults: list[Fault] = []

    # seeding helpers

    def add(self, resource: str, **fields: typ.Any) -> dict[str, typ.Any]:
        record_id = self._next_ids[resource]
        self._next_ids[resource] += 1
        record = {"id": record_id, **fields}
        self.tables[resource][record_id] = record
        return record

    def add_section(self, key: str, *, css: str = "", html: str | None = None) -> dict:
        return self.add(
            "sections",
            name=key.replace("-", " ").title(),
            component_key=key,
            template_html=html if html is not None else f"<section>{key}</section>",
            template_css=css,
            thumbnail_url=None,
        )

    def inject(
        self,
        method: str,
        resource: str,
        *,
        nth: int = 1,
        status: int = 500,
        body: str = DEFECT_BODY,
        commit: bool = False,
    ) -> None:
        self.faults.append(Fault(method, resource, nth, status, body, commit))

    def count(self, method: str, resource: str) -> int:
        return sum(
            1
            for call in self.calls
            if call.method == method and call.resource == resource
        )

    def bodies(self, method: str, resource: str) -> list[dict[str, typ.Any]]:
        return [
            call.body or {}
            for call in self.calls
            if call.method == method and call.resource == resource
        ]

    def links_for(self, page_id: int) -> list[dict[str, typ.Any]]:
        return sorted(
            (
                link
                for link in self.tables["page_sections"].values()
                if link["page_id"] == page_id
            ),
            key=lambda link: link["sort_order"],
        )

    # requests.Session surface

    def request(
        self,
        method: str,
        url: str,
        *,
        json: dict[str, typ.Any] | None = None,  # noqa: A002 - mirrors requests
        headers: dict[str, str] | None = None,  # noqa: ARG002
        timeout: float | None = None,  # noqa: ARG002
    ) -> requests.Response:
        path = urlsplit(url).path
        prefix = urlsplit(API_BASE).path
        segments = path[len(prefix) :].strip("/").split("/")
        resource = segments[0]
        record_id = segments[1] if len(segments) > 1 else None
        self.calls.append(Call(method, resource, record_id, json))

        fault = self._match_fault(method, resource)
        if fault is not None:
            if fault.commit:
                self._dispatch(method, resource, record_id, json)
            return _response(fault.status, text=fault.body)
        return self._dispatch(method, resource, record_id, json)

    def _match_fault(self, method: str, resource: str) -> Fault | None:
        for fault in self.faults:
            if fault.method == method and fault.resource == resource:
                fault.seen += 1
                if fault.seen == fault.nth:
                    return fault
        return None

    def _dispatch(
        self,
        method: str,
        resource: str,
        record_id: str | None,
        body: dict[str, typ.Any] | None,
    ) -> requests.Response:
        table = self.tables.get(resource)
        if table is None:
            return _response(404, {"error": "Not Found"})
        key = int(record_id) if record_id is not None else None
        fields = next(iter((body or {}).values()), {}) if body else {}

        if method == "GET" and key is None:
            return _response(200, list(table.values()))
        if method == "POST" and key is None:
            record = self.add(resource, **fields)
            return _response(201, record)
        if key not in table:
            return _response(404, {"error": "Not Found"})
        if method == "GET":
            return _response(200, table[key])
        if method == "PUT":
            table[key].update(fields)
            return _response(200, table[key])
        if method == "DELETE":
            del table[key]
            return _response(204)
        return _response(405, {"error": "Method Not Allowed"})


@pytest.fixture
def fake_session() -> FakeStoreSession:
    return FakeStoreSession()


@pytest.fixture
def store(fake_session: FakeStoreSession) -> RemoteStore:
    return RemoteStore(
        api_base=API_BASE,
        session=typ.cast("requests.Session", fake_session),
        timeout=2.0,
    )
