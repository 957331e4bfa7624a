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

"""CORS header decisions.

Stateless functions deciding which CORS headers a response gets, given a
:class:`~wsgi_cors.http.RequestSnapshot` and an immutable
:class:`CorsConfig`. Nothing here performs I/O or mutates its arguments;
every step returns a new :class:`~wsgi_cors.http.ResponseDraft`.

For more information, see http://www.w3.org/TR/cors/
"""

from __future__ import annotations

import enum
import logging
import re
import string
import typing as ty

if ty.TYPE_CHECKING:
    from wsgi_cors import http

LOG = logging.getLogger(__name__)

ORIGIN = 'Origin'
VARY = 'Vary'
REQUEST_METHOD = 'Access-Control-Request-Method'
REQUEST_HEADERS = 'Access-Control-Request-Headers'
ALLOW_ORIGIN = 'Access-Control-Allow-Origin'
ALLOW_CREDENTIALS = 'Access-Control-Allow-Credentials'
ALLOW_METHODS = 'Access-Control-Allow-Methods'
ALLOW_HEADERS = 'Access-Control-Allow-Headers'
MAX_AGE = 'Access-Control-Max-Age'
EXPOSE_HEADERS = 'Access-Control-Expose-Headers'

# /body/flags, as used by PCRE style origin patterns.
_PATTERN_SHAPE = re.compile(r'/.+/[a-z]*', re.IGNORECASE)

# A slash preceded by an even number of backslashes ends the pattern.
_UNESCAPED_SLASH = re.compile(r'(?:^|[^\\])(?:\\\\)*/')

# Header values are latin-1, only ASCII letters change case.
_ASCII_UPPER = str.maketrans(string.ascii_lowercase, string.ascii_uppercase)

_PATTERN_FLAGS = {
    'i': re.IGNORECASE,
    'm': re.MULTILINE,
    's': re.DOTALL,
    'x': re.VERBOSE,
    'u': 0,
}


class Wildcard(enum.Enum):
    """Marker for an allow list that permits anything."""

    WILDCARD = '*'

    def __repr__(self) -> str:
        return 'WILDCARD'


WILDCARD = Wildcard.WILDCARD

AllowList = ty.Union[Wildcard, tuple[str, ...]]


class LiteralOrigin:
    """An allowed origin compared as a case-sensitive string."""

    __slots__ = ('value',)

    def __init__(self, value: str) -> None:
        self.value = value

    def matches(self, origin: str) -> bool:
        return origin == self.value

    def __eq__(self, other: object) -> bool:
        return isinstance(other, LiteralOrigin) and other.value == self.value

    def __hash__(self) -> int:
        return hash((LiteralOrigin, self.value))

    def __repr__(self) -> str:
        return f'LiteralOrigin({self.value!r})'


class PatternOrigin:
    """An allowed origin written as ``/pattern/flags``.

    ``regex`` is None when the entry could not be compiled, in which case
    the rule never matches.
    """

    __slots__ = ('source', 'regex')

    def __init__(self, source: str, regex: re.Pattern[str] | None) -> None:
        self.source = source
        self.regex = regex

    def matches(self, origin: str) -> bool:
        if self.regex is None:
            return False
        return self.regex.search(origin) is not None

    def __eq__(self, other: object) -> bool:
        return isinstance(other, PatternOrigin) and other.source == self.source

    def __hash__(self) -> int:
        return hash((PatternOrigin, self.source))

    def __repr__(self) -> str:
        return f'PatternOrigin({self.source!r})'


OriginRule = ty.Union[LiteralOrigin, PatternOrigin]


class CorsConfig(ty.NamedTuple):
    allowed_origins: Wildcard | tuple[OriginRule, ...]
    allowed_methods: AllowList
    allowed_headers: AllowList
    supports_credentials: bool = False
    max_age: int | None = None
    exposed_headers: tuple[str, ...] = ()


def classify_origin_rule(entry: str) -> OriginRule:
    """Decide whether an allowed origin entry is a literal or a pattern.

    An entry is a pattern if and only if it is wrapped in slashes, optionally
    followed by flag letters, e.g. ``/example\\.(com|org)$/i``. Supported
    flags are ``i``, ``m``, ``s``, ``x`` and ``u``. Slashes inside the
    pattern must be escaped as ``\\/``.
    """
    if not _PATTERN_SHAPE.fullmatch(entry):
        return LiteralOrigin(entry)

    body, _, modifiers = entry[1:].rpartition('/')
    if _UNESCAPED_SLASH.search(body):
        LOG.warning(
            'Allowed origin pattern %s contains an unescaped "/", '
            'it will never match',
            entry,
        )
        return PatternOrigin(entry, None)

    flags = 0
    for modifier in modifiers:
        if modifier not in _PATTERN_FLAGS:
            LOG.warning(
                'Unsupported flag %r in allowed origin pattern %s, '
                'it will never match',
                modifier,
                entry,
            )
            return PatternOrigin(entry, None)
        flags |= _PATTERN_FLAGS[modifier]

    try:
        regex = re.compile(body, flags)
    except re.error as exc:
        LOG.warning(
            'Allowed origin pattern %s is invalid (%s), it will never match',
            entry,
            exc,
        )
        return PatternOrigin(entry, None)
    return PatternOrigin(entry, regex)


def is_preflight_request(request: http.RequestSnapshot) -> bool:
    return request.method == 'OPTIONS' and request.has_header(REQUEST_METHOD)


def vary_header(
    response: http.ResponseDraft,
    name: str,
) -> http.ResponseDraft:
    """Add ``name`` to the response's Vary header unless already listed."""
    if not response.has_header(VARY):
        return response.with_header(VARY, name)

    values = response.header(VARY)
    if name in values:
        return response
    return response.with_header(VARY, values + (name,))


def is_origin_allowed(
    request: http.RequestSnapshot,
    allowed_origins: Wildcard | tuple[OriginRule, ...],
) -> bool:
    if allowed_origins is WILDCARD:
        return True

    if not request.has_header(ORIGIN):
        return False

    origin = request.header_line(ORIGIN)

    for rule in allowed_origins:
        if isinstance(rule, LiteralOrigin) and rule.matches(origin):
            return True

    for rule in allowed_origins:
        if isinstance(rule, PatternOrigin) and rule.matches(origin):
            return True

    LOG.debug('CORS request from origin \'%s\' not permitted.', origin)
    return False


def configure_allowed_origin(
    response: http.ResponseDraft,
    request: http.RequestSnapshot,
    allowed_origins: Wildcard | tuple[OriginRule, ...],
    supports_credentials: bool,
) -> http.ResponseDraft:
    """Set Access-Control-Allow-Origin when the origin is permitted.

    A wildcard without credentials, or a single literal origin, yields a
    static value that does not depend on the request. Every other
    configuration echoes the request's Origin when it is allowed and marks
    the response as varying on Origin, matched or not.
    """
    if allowed_origins is WILDCARD and not supports_credentials:
        return response.with_header(ALLOW_ORIGIN, '*')

    if (
        allowed_origins is not WILDCARD
        and len(allowed_origins) == 1
        and isinstance(allowed_origins[0], LiteralOrigin)
    ):
        return response.with_header(ALLOW_ORIGIN, allowed_origins[0].value)

    if request.has_header(ORIGIN) and is_origin_allowed(
        request, allowed_origins
    ):
        response = response.with_header(ALLOW_ORIGIN, request.header(ORIGIN))

    return vary_header(response, ORIGIN)


def handle_preflight(
    response: http.ResponseDraft,
    request: http.RequestSnapshot,
    config: CorsConfig,
) -> http.ResponseDraft:
    """Build the answer to a preflight request (Section 6.2).

    :param response: An empty response to build upon.
    :param request: The preflight request.
    :param config: The CORS configuration.
    :returns: A 204 response carrying the preflight headers.
    """
    response = response.with_status(204)

    response = configure_allowed_origin(
        response,
        request,
        config.allowed_origins,
        config.supports_credentials,
    )

    if response.has_header(ALLOW_ORIGIN):
        if config.supports_credentials:
            response = response.with_header(ALLOW_CREDENTIALS, 'true')

        # A wildcard reflects whatever the browser asked for.
        if config.allowed_methods is WILDCARD:
            method = request.header_line(REQUEST_METHOD)
            response = vary_header(response, REQUEST_METHOD).with_header(
                ALLOW_METHODS, method.translate(_ASCII_UPPER)
            )
        elif config.allowed_methods:
            response = response.with_header(
                ALLOW_METHODS, config.allowed_methods
            )

        if config.allowed_headers is WILDCARD:
            response = vary_header(response, REQUEST_HEADERS).with_header(
                ALLOW_HEADERS, request.header_line(REQUEST_HEADERS)
            )
        elif config.allowed_headers:
            response = response.with_header(
                ALLOW_HEADERS, config.allowed_headers
            )

        if config.max_age is not None:
            response = response.with_header(MAX_AGE, str(config.max_age))

    return vary_header(response, REQUEST_METHOD)


def handle_postflight(
    response: http.ResponseDraft,
    request: http.RequestSnapshot,
    config: CorsConfig,
) -> http.ResponseDraft:
    """Decorate the response to an actual request (Section 6.1)."""

    # An OPTIONS request without Access-Control-Request-Method lands here;
    # a genuine preflight to the same resource gets a different answer.
    if request.method == 'OPTIONS':
        response = vary_header(response, REQUEST_METHOD)

    response = configure_allowed_origin(
        response,
        request,
        config.allowed_origins,
        config.supports_credentials,
    )

    if response.has_header(ALLOW_ORIGIN):
        if config.supports_credentials:
            response = response.with_header(ALLOW_CREDENTIALS, 'true')
        if config.exposed_headers:
            response = response.with_header(
                EXPOSE_HEADERS, config.exposed_headers
            )

    return response
