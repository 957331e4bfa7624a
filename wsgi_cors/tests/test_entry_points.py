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

from oslotest import base
import stevedore
from testtools import matchers

from wsgi_cors import cors


class TestPasteDeploymentEntryPoints(base.BaseTestCase):

    def test_entry_points(self):
        em = stevedore.ExtensionManager('paste.filter_factory')

        # Ensure the factory is registered under its name
        factory_names = [extension.name for extension in em]
        self.assertThat(factory_names, matchers.Contains('cors'))

        plugins = [extension.plugin for extension in em
                   if extension.name == 'cors']
        self.assertIn(cors.filter_factory, plugins)
