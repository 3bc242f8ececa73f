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

"""Scan configuration.

Settings are an explicit :class:`ScanConfig` value passed into every
scan; nothing is read from process-wide state at scan time. A config
can be loaded from the ``[tool.golicenses]`` table of a TOML file::

    [tool.golicenses]
    include_tests = true
    ignore = ["github.com/myorg/myproject"]
    goroot = "/usr/local/go"
    http_timeout = 20.0

Usage::

    from golicenses.config import load_config

    cfg = load_config(Path('pyproject.toml'))
    cfg = cfg.with_overrides(include_tests=False)
"""

from __future__ import annotations

import dataclasses
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from golicenses.errors import ConfigError

__all__ = [
    'DEFAULT_HTTP_TIMEOUT',
    'ScanConfig',
    'load_config',
    'parse_config',
]

#: Timeout in seconds for source-host metadata requests.
DEFAULT_HTTP_TIMEOUT = 20.0

_TABLE = ('tool', 'golicenses')


@dataclass(frozen=True)
class ScanConfig:
    """Options controlling a dependency license scan.

    Attributes:
        include_tests: Also load test packages. Test binaries themselves
            are skipped since they only import the standard library.
        ignore: Import path prefixes excluded from license analysis.
        goroot: Root of the Go standard library. Packages whose sources
            live under it are never reported. Empty disables the check
            (``unsafe`` is still excluded).
        http_timeout: Timeout in seconds for each source-host request.
    """

    include_tests: bool = False
    ignore: tuple[str, ...] = ()
    goroot: str = ''
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    def with_overrides(self, **overrides: Any) -> ScanConfig:  # noqa: ANN401
        """Return a copy with the non-``None`` *overrides* applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        if 'ignore' in values:
            values['ignore'] = tuple(values['ignore'])
        return dataclasses.replace(self, **values)


def parse_config(raw: dict[str, Any]) -> ScanConfig:
    """Validate a ``[tool.golicenses]`` table and build a :class:`ScanConfig`.

    Raises:
        ConfigError: On unknown keys or values of the wrong type.
    """
    known = {f.name for f in dataclasses.fields(ScanConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f'Unknown key(s) in [tool.golicenses]: {", ".join(unknown)}')

    values: dict[str, Any] = {}
    if 'include_tests' in raw:
        if not isinstance(raw['include_tests'], bool):
            raise ConfigError('include_tests must be a boolean')
        values['include_tests'] = raw['include_tests']
    if 'ignore' in raw:
        ignore = raw['ignore']
        if not isinstance(ignore, list):
            raise ConfigError('ignore must be a list of import path prefixes')
        for i, prefix in enumerate(ignore):
            if not isinstance(prefix, str) or not prefix:
                raise ConfigError(f'ignore[{i}] must be a non-empty string')
        values['ignore'] = tuple(ignore)
    if 'goroot' in raw:
        if not isinstance(raw['goroot'], str):
            raise ConfigError('goroot must be a string')
        values['goroot'] = raw['goroot']
    if 'http_timeout' in raw:
        timeout = raw['http_timeout']
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
            raise ConfigError('http_timeout must be a number')
        if timeout <= 0:
            raise ConfigError('http_timeout must be positive')
        values['http_timeout'] = float(timeout)
    return ScanConfig(**values)


def load_config(path: Path) -> ScanConfig:
    """Load a :class:`ScanConfig` from *path*.

    A missing file, or a file without a ``[tool.golicenses]`` table,
    yields the defaults.

    Raises:
        ConfigError: If the file is not valid TOML or the table is
            malformed.
    """
    if not path.is_file():
        return ScanConfig()
    try:
        with path.open('rb') as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f'{path}: invalid TOML: {exc}') from exc

    table: Any = data
    for key in _TABLE:
        table = table.get(key, {}) if isinstance(table, dict) else {}
    if not isinstance(table, dict):
        raise ConfigError(f'{path}: [tool.golicenses] must be a table')
    return parse_config(table)
