# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""License attribution for Go dependency graphs.

Loads the packages a Go project depends on, finds the license file
governing each one and groups them into :class:`Library` objects, one
per license file, ready for a compliance report.

Usage::

    from golicenses import ScanConfig, SourceResolver, libraries

    libs = libraries('./...', config=ScanConfig(include_tests=True))
    with SourceResolver() as resolver:
        for lib in libs:
            if lib.license_path:
                print(lib.name, lib.file_url(lib.license_path, resolver=resolver))
"""

from golicenses.config import ScanConfig, load_config
from golicenses.errors import (
    FileURLError,
    GoLicensesError,
    GraphLoadError,
    MissingModuleInfoError,
    PackagesLoadError,
)
from golicenses.find import Classifier, find_license
from golicenses.library import Library, Module, common_ancestor, libraries
from golicenses.source import RemoteSource, SourceResolver

__all__ = [
    'Classifier',
    'FileURLError',
    'GoLicensesError',
    'GraphLoadError',
    'Library',
    'MissingModuleInfoError',
    'Module',
    'PackagesLoadError',
    'RemoteSource',
    'ScanConfig',
    'SourceResolver',
    'common_ancestor',
    'find_license',
    'libraries',
    'load_config',
]
