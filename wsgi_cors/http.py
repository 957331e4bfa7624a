# Licensed under the Apache License, Version 2.0 (the "License"); you may
# not use this file except in compliance with the License. You may obtain
# a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS, WITHOUT
# WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the
# License for the specific language governing permissions and limitations
# under the License.

"""Read-only request views and immutable response values.

The CORS policy functions never touch webob objects directly. Requests are
wrapped in a :class:`RequestSnapshot` and responses are threaded through a
chain of :class:`ResponseDraft` values, each header change producing a new
draft. Conversion to and from webob happens only at the middleware edge.
"""

from __future__ import annotations

import typing as ty

from wsgi_cors import base

if ty.TYPE_CHECKING:
    import webob.request
    import webob.response

HeaderEntry = tuple[str, tuple[str, ...]]


def _lookup(entries: tuple[HeaderEntry, ...], name: str) -> tuple[str, ...]:
    name = name.lower()
    values: list[str] = []
    for key, entry_values in entries:
        if key.lower() == name:
            values.extend(entry_values)
    return tuple(values)


class RequestSnapshot:
    """A read-only view of the parts of a request CORS decisions use."""

    __slots__ = ('_method', '_headers')

    def __init__(
        self,
        method: str,
        headers: ty.Iterable[tuple[str, str]] = (),
    ) -> None:
        self._method = method
        self._headers: tuple[HeaderEntry, ...] = tuple(
            (name, (value,)) for name, value in headers
        )

    @classmethod
    def from_webob(cls, request: webob.request.Request) -> RequestSnapshot:
        return cls(request.method, request.headers.items())

    @property
    def method(self) -> str:
        return self._method

    def has_header(self, name: str) -> bool:
        name = name.lower()
        return any(key.lower() == name for key, _ in self._headers)

    def header(self, name: str) -> tuple[str, ...]:
        return _lookup(self._headers, name)

    def header_line(self, name: str) -> str:
        return ', '.join(self.header(name))

    def __repr__(self) -> str:
        return f'<RequestSnapshot {self._method} {self._headers!r}>'


class ResponseDraft:
    """An immutable response value.

    Every header line is kept as one entry holding one or more values. Lines
    inherited from a downstream response are preserved untouched unless a
    CORS decision replaces them; values set through :meth:`with_header` are
    rendered as a single ``", "`` joined line.
    """

    __slots__ = ('_status', '_headers', '_app_iter')

    def __init__(
        self,
        status: int | str = 200,
        headers: ty.Iterable[HeaderEntry] = (),
        app_iter: ty.Iterable[bytes] | None = None,
    ) -> None:
        self._status = status
        self._headers: tuple[HeaderEntry, ...] = tuple(
            (name, tuple(values)) for name, values in headers
        )
        self._app_iter = app_iter

    @classmethod
    def from_webob(cls, response: webob.response.Response) -> ResponseDraft:
        return cls(
            status=response.status,
            headers=[(name, (value,)) for name, value in response.headerlist],
            app_iter=response.app_iter,
        )

    def to_webob(self) -> webob.response.Response:
        headerlist = [
            (name, ', '.join(values)) for name, values in self._headers
        ]
        return base.NoContentTypeResponse(
            status=self._status,
            headerlist=headerlist,
            app_iter=self._app_iter,
        )

    @property
    def status(self) -> int | str:
        return self._status

    @property
    def status_code(self) -> int:
        return int(str(self._status).split(' ', 1)[0])

    @property
    def headers(self) -> tuple[HeaderEntry, ...]:
        return self._headers

    def with_status(self, code: int) -> ResponseDraft:
        return ResponseDraft(code, self._headers, self._app_iter)

    def with_header(
        self,
        name: str,
        value: str | ty.Sequence[str],
    ) -> ResponseDraft:
        """Return a copy with every ``name`` line replaced by ``value``.

        The header keeps the position of its first existing line, or is
        appended when the draft does not carry it yet.
        """
        values = (value,) if isinstance(value, str) else tuple(value)
        lowered = name.lower()
        headers: list[HeaderEntry] = []
        replaced = False
        for key, entry_values in self._headers:
            if key.lower() != lowered:
                headers.append((key, entry_values))
            elif not replaced:
                headers.append((name, values))
                replaced = True
        if not replaced:
            headers.append((name, values))
        return ResponseDraft(self._status, headers, self._app_iter)

    def has_header(self, name: str) -> bool:
        name = name.lower()
        return any(key.lower() == name for key, _ in self._headers)

    def header(self, name: str) -> tuple[str, ...]:
        return _lookup(self._headers, name)

    def header_line(self, name: str) -> str:
        return ', '.join(self.header(name))

    def __repr__(self) -> str:
        return f'<ResponseDraft {self._status} {self._headers!r}>'
