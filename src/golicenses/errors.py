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

"""Exception hierarchy for golicenses.

Two families:

- **Fatal**: :class:`GraphLoadError`, :class:`PackagesLoadError` and
  :class:`MissingModuleInfoError` abort a scan. License coverage of a
  broken graph cannot be trusted, so no partial result is returned.
- **Degraded**: :class:`LicenseLookupError`,
  :class:`SourceResolutionError` and :class:`FileURLError` affect a
  single package or library. Callers log them and report the item as
  unknown.
"""

from __future__ import annotations

from collections.abc import Sequence

__all__ = [
    'ConfigError',
    'FileURLError',
    'GoLicensesError',
    'GraphLoadError',
    'LicenseLookupError',
    'MissingModuleInfoError',
    'PackagesLoadError',
    'SourceResolutionError',
]


def _bullets(items: Sequence[str]) -> str:
    return '\n'.join(f'  - {item}' for item in items)


class GoLicensesError(Exception):
    """Base class for all golicenses errors."""


class ConfigError(GoLicensesError):
    """Raised when a ``[tool.golicenses]`` table is malformed."""


class GraphLoadError(GoLicensesError):
    """Raised when the package graph cannot be loaded at all."""


class PackagesLoadError(GoLicensesError):
    """Raised when any package in the graph carries load errors.

    Attributes:
        errors: ``(import_path, message)`` pairs, one per load error.
    """

    def __init__(self, errors: Sequence[tuple[str, str]]) -> None:
        self.errors = list(errors)
        lines = [f'{path}: {message}' for path, message in self.errors]
        super().__init__(f'errors loading {len(lines)} package(s):\n{_bullets(lines)}')


class MissingModuleInfoError(GoLicensesError):
    """Raised when packages accepted for analysis have no module info.

    Non-module (GOPATH) projects are not supported.

    Attributes:
        packages: Import paths of every package lacking module info.
    """

    def __init__(self, packages: Sequence[str]) -> None:
        self.packages = list(packages)
        super().__init__(
            f'{len(self.packages)} package(s) do not have module info, '
            f'non-module projects are not supported:\n{_bullets(self.packages)}'
        )


class LicenseLookupError(GoLicensesError):
    """Raised by a license locator that cannot search a package directory."""


class SourceResolutionError(GoLicensesError):
    """Raised when a module's source repository cannot be determined."""


class FileURLError(GoLicensesError):
    """Raised when a remote URL cannot be derived for a file in a library."""
