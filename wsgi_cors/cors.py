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

from __future__ import annotations

import logging
import typing as ty

from oslo_config import cfg

from wsgi_cors import base
from wsgi_cors import exceptions
from wsgi_cors import http
from wsgi_cors import policy

if ty.TYPE_CHECKING:
    from _typeshed.wsgi import WSGIApplication
    import webob.request
    import webob.response

LOG = logging.getLogger(__name__)

OPTS = [
    cfg.ListOpt(
        'allowed_origin',
        default=['*'],
        help='Origins this resource may be shared with. Each entry is either '
        'a literal origin ("<protocol>://<host>[:<port>]", no trailing '
        'slash), a pattern wrapped in slashes with optional flags such as '
        '"/\\.example\\.com$/i", or "*" to allow any origin. Entries are '
        'separated by commas, so a pattern containing a comma (such as '
        '"/a{1,3}\\.test/") cannot be set here; pass it to build_config() '
        'instead. Slashes inside a pattern must be escaped.',
    ),
    cfg.ListOpt(
        'allow_methods',
        default=['*'],
        help='Methods that can be used during the actual request. "*" echoes '
        'the method requested by the preflight.',
    ),
    cfg.ListOpt(
        'allow_headers',
        default=['*'],
        help='Header field names that may be used during the actual '
        'request. "*" echoes the headers requested by the preflight.',
    ),
    cfg.BoolOpt(
        'allow_credentials',
        default=False,
        help='Indicate that the actual request can include user credentials',
    ),
    cfg.IntOpt(
        'max_age',
        min=0,
        help='Maximum cache age of CORS preflight requests, in seconds. '
        'Unset means no Access-Control-Max-Age header is sent.',
    ),
    cfg.ListOpt(
        'expose_headers',
        default=[],
        help='Indicate which headers are safe to expose to the API.',
    ),
]


def set_defaults(**kwargs: ty.Any) -> None:
    """Override the default values for configuration options.

    This method permits a project to override the default CORS option values.
    For example, it may wish to offer a set of sane default headers which
    allow it to function with only minimal additional configuration.

    :param allow_credentials: Whether to permit credentials.
    :type allow_credentials: bool
    :param expose_headers: A list of headers to expose.
    :type expose_headers: List of Strings
    :param max_age: Maximum cache duration in seconds.
    :type max_age: Int
    :param allow_methods: List of HTTP methods to permit.
    :type allow_methods: List of Strings
    :param allow_headers: List of HTTP headers to permit from the client.
    :type allow_headers: List of Strings
    """
    valid_params = {k.name for k in OPTS if k.name != 'allowed_origin'}
    passed_params = set(kwargs)

    wrong_params = passed_params - valid_params
    if wrong_params:
        raise AttributeError(
            f'Parameter(s) [{wrong_params}] invalid, please only use '
            f'[{valid_params}]'
        )

    cfg.set_defaults(OPTS, **kwargs)


def _origin_rules(
    origins: ty.Literal[True] | ty.Sequence[str],
) -> policy.Wildcard | tuple[policy.OriginRule, ...]:
    if origins is True:
        return policy.WILDCARD

    if not origins:
        raise exceptions.ConfigurationError('At least one origin is required')

    if '*' in origins:
        return policy.WILDCARD

    # Duplicates stay, the entry count selects the static single origin case.
    rules: list[policy.OriginRule] = []
    for origin in origins:
        rule = policy.classify_origin_rule(origin)
        if rule in rules:
            LOG.warning('Allowed origin [%s] is listed more than once', origin)
        rules.append(rule)
    return tuple(rules)


def _allow_list(
    values: ty.Literal[True] | ty.Sequence[str],
    kind: str,
) -> policy.AllowList:
    if values is True:
        return policy.WILDCARD

    if not values:
        raise exceptions.ConfigurationError(f'At least one {kind} is required')

    if list(values) == ['*']:
        return policy.WILDCARD
    return tuple(values)


def build_config(
    allowed_origins: ty.Literal[True] | ty.Sequence[str] = True,
    allowed_methods: ty.Literal[True] | ty.Sequence[str] = True,
    allowed_headers: ty.Literal[True] | ty.Sequence[str] = True,
    supports_credentials: bool = False,
    max_age: int | None = None,
    exposed_headers: ty.Sequence[str] | None = None,
) -> policy.CorsConfig:
    """Validate CORS settings and freeze them into a configuration.

    ``True`` stands for "allow anything" in the three allow lists, as does
    ``['*']``. An origin list containing ``'*'`` anywhere is reduced to the
    wildcard.

    :raises: ConfigurationError if an allow list is empty or max_age is
        negative.
    """
    if max_age is not None and max_age < 0:
        raise exceptions.ConfigurationError(
            f'max_age must not be negative, got {max_age}'
        )

    return policy.CorsConfig(
        allowed_origins=_origin_rules(allowed_origins),
        allowed_methods=_allow_list(allowed_methods, 'method'),
        allowed_headers=_allow_list(allowed_headers, 'header'),
        supports_credentials=bool(supports_credentials),
        max_age=max_age,
        exposed_headers=tuple(exposed_headers or ()),
    )


class CORS(base.ConfigurableMiddleware):
    """CORS Middleware.

    This middleware allows a WSGI app to serve CORS headers. Preflight
    requests are answered directly with a ``204 No Content`` and never reach
    the wrapped application; every other response is decorated on its way
    out.

    For more information, see http://www.w3.org/TR/cors/
    """

    def __init__(
        self,
        application: WSGIApplication | None,
        conf: dict[str, ty.Any] | cfg.ConfigOpts | None = None,
    ) -> None:
        super().__init__(application, conf)
        self.config = self._init_conf()

    def _init_conf(self) -> policy.CorsConfig:
        """Build the CORS configuration from oslo.config."""
        self.oslo_conf.register_opts(OPTS, 'cors')

        return build_config(
            allowed_origins=self._conf_get('allowed_origin', 'cors'),
            allowed_methods=self._conf_get('allow_methods', 'cors'),
            allowed_headers=self._conf_get('allow_headers', 'cors'),
            supports_credentials=self._conf_get('allow_credentials', 'cors'),
            max_age=self._conf_get('max_age', 'cors'),
            exposed_headers=self._conf_get('expose_headers', 'cors'),
        )

    def process_request(
        self,
        req: webob.request.Request,
    ) -> webob.response.Response | None:
        """Answer preflight requests without calling the application."""
        request = http.RequestSnapshot.from_webob(req)
        if not policy.is_preflight_request(request):
            return None

        response = policy.handle_preflight(
            http.ResponseDraft(), request, self.config
        )
        return response.to_webob()

    def process_response(
        self,
        response: webob.response.Response,
        request: webob.request.Request,
    ) -> webob.response.Response:
        """Apply CORS headers to the application's response."""
        draft = policy.handle_postflight(
            http.ResponseDraft.from_webob(response),
            http.RequestSnapshot.from_webob(request),
            self.config,
        )
        return draft.to_webob()


filter_factory = CORS.factory
