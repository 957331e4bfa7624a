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

"""Base class for configurable WSGI middleware."""

from __future__ import annotations

import typing as ty

from oslo_config import cfg
import webob.dec
import webob.request
import webob.response

if ty.TYPE_CHECKING:
    from _typeshed.wsgi import WSGIApplication

MiddlewareType = ty.TypeVar('MiddlewareType', bound='ConfigurableMiddleware')


class NoContentTypeResponse(webob.response.Response):
    default_content_type = ''  # prevents webob assigning content type


class NoContentTypeRequest(webob.request.Request):
    ResponseClass = NoContentTypeResponse


class ConfigurableMiddleware:
    """Base WSGI middleware wrapper.

    Subclasses get a chance to answer a request on their own through
    :meth:`process_request`, and to decorate whatever the wrapped
    application returned through :meth:`process_response`.

    Options come either from a dict (typically the paste.deploy section of
    the filter) layered on top of oslo.config, or from a ``cfg.ConfigOpts``
    object handed over directly.
    """

    @classmethod
    def factory(
        cls: type[MiddlewareType],
        global_conf: dict[str, ty.Any] | None,
        **local_conf: ty.Any,
    ) -> ty.Callable[[WSGIApplication], MiddlewareType]:
        """Factory method for paste.deploy.

        :param global_conf: dict of options for all middlewares (usually the
            ``[DEFAULT]`` section of the paste deploy configuration file)
        :param local_conf: options dedicated to this middleware (usually the
            option defined in the middleware's section of the paste deploy
            configuration file)
        """
        conf = global_conf.copy() if global_conf else {}
        conf.update(local_conf)

        def _factory(app: WSGIApplication) -> MiddlewareType:
            return cls(app, conf)

        return _factory

    def __init__(
        self,
        application: WSGIApplication | None,
        conf: dict[str, ty.Any] | cfg.ConfigOpts | None = None,
    ) -> None:
        """Base middleware constructor

        :param conf: a dict of options or a cfg.ConfigOpts object
        """
        self.application = application
        self.conf: dict[str, ty.Any]
        self.oslo_conf: cfg.ConfigOpts

        if isinstance(conf, cfg.ConfigOpts):
            self.conf = {}
            self.oslo_conf = conf
            return

        self.conf = conf or {}
        if 'oslo_config_project' not in self.conf:
            # Fallback to global object
            self.oslo_conf = cfg.CONF
            return

        default_config_files = None
        if 'oslo_config_file' in self.conf:
            default_config_files = [self.conf['oslo_config_file']]

        self.oslo_conf = cfg.ConfigOpts()
        self.oslo_conf(
            [],
            project=self.conf['oslo_config_project'],
            prog=self.conf.get('oslo_config_program'),
            default_config_files=default_config_files,
            validate_default_values=True,
        )

    def _conf_get(self, key: str, group: str) -> ty.Any:
        if key in self.conf:
            # Validate value type
            self.oslo_conf.set_override(key, self.conf[key], group=group)
        return getattr(getattr(self.oslo_conf, group), key)

    def process_request(
        self,
        req: webob.request.Request,
    ) -> webob.response.Response | None:
        """Called on each request.

        If this returns None, the next application down the stack will be
        executed. If it returns a response then that response will be returned
        and the wrapped application is never called.
        """
        return None

    def process_response(
        self,
        response: webob.response.Response,
        request: webob.request.Request,
    ) -> webob.response.Response:
        """Do whatever you'd like to the response."""
        return response

    @webob.dec.wsgify(RequestClass=NoContentTypeRequest)  # type: ignore
    def __call__(
        self,
        req: webob.request.Request,
    ) -> webob.response.Response:
        response = self.process_request(req)
        if response is not None:
            return response
        response = req.get_response(self.application)
        return self.process_response(response, request=req)
