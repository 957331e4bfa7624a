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


class ConfigurationError(ValueError):
    """Exception raised when the CORS middleware is misconfigured.

    Only ever raised while the middleware is being built, never while a
    request is being handled.
    """

    def __init__(self, error_msg: str) -> None:
        self.error_msg = error_msg
        super().__init__(f'Invalid CORS configuration: {error_msg}')
