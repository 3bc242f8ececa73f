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

r"""Go package graph model and loader.

The loader shells out to ``go list -e -deps -json`` and turns its
concatenated JSON stream into an immutable :class:`PackageGraph`.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ Plain-English                                  │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Package             │ One directory of Go code, named by its import  │
    │                     │ path (``github.com/foo/bar/baz``).             │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Module              │ A versioned set of packages released together  │
    │                     │ (``github.com/foo/bar@v1.2.3``).               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Root package        │ A package named on the command line, not one   │
    │                     │ pulled in as a dependency.                     │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Test variant        │ With ``-test``, ``go list`` also reports       │
    │                     │ ``p [p.test]`` copies and a ``p.test`` binary. │
    └─────────────────────┴────────────────────────────────────────────────┘

Usage::

    from golicenses.packages import load_packages

    graph = load_packages(['./...'], dir=Path('myproject'))
    for pkg in graph.roots:
        print(pkg.path, [dep.path for dep in graph.imports_of(pkg)])
"""

from __future__ import annotations

import json
import os
import shutil
import subprocess  # noqa: S404 - the go toolchain is the package loader
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from golicenses.errors import GraphLoadError
from golicenses.logging import get_logger

__all__ = [
    'GoModule',
    'Package',
    'PackageGraph',
    'go_root',
    'load_packages',
    'parse_go_list',
]

log = get_logger('golicenses.packages')

#: Seconds to wait for ``go list`` on a large module graph.
GO_LIST_TIMEOUT = 600

# ``go list`` fields holding non-Go sources, in the order the Go package
# loader concatenates them into OtherFiles.
_OTHER_FILE_FIELDS = (
    'CFiles',
    'CXXFiles',
    'MFiles',
    'HFiles',
    'FFiles',
    'SFiles',
    'SwigFiles',
    'SwigCXXFiles',
    'SysoFiles',
)


@dataclass(frozen=True)
class GoModule:
    """Module metadata as reported by the Go toolchain.

    Attributes:
        path: Module path (``github.com/foo/bar``).
        version: Module version, empty for the main module.
        dir: Directory holding the module's files. Empty when the
            toolchain lost it, e.g. for modules vendored into another.
        main: Whether this is the main module.
        replace: Target of a ``replace`` directive, if any.
    """

    path: str
    version: str = ''
    dir: str = ''
    main: bool = False
    replace: GoModule | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> GoModule:
        """Build a module from a ``go list`` ``Module`` object."""
        replace = data.get('Replace')
        return cls(
            path=data.get('Path', ''),
            version=data.get('Version', ''),
            dir=data.get('Dir', ''),
            main=bool(data.get('Main', False)),
            replace=cls.from_json(replace) if replace else None,
        )


@dataclass(frozen=True)
class Package:
    """A loaded Go package.

    Attributes:
        id: Unique id within the graph. Equal to :attr:`path` except for
            test variants (``example.com/p [example.com/p.test]``).
        path: Import path.
        name: Package clause name (``main``, ``unsafe``, ...).
        module: Owning module, ``None`` outside module mode.
        go_files: Absolute paths of the Go source files, cgo files included.
        compiled_go_files: Absolute paths of the files handed to the
            compiler (including cgo output).
        other_files: Absolute paths of non-Go sources (C, assembly, ...).
        errors: Load error messages.
        imports: Ids of directly imported packages.
    """

    id: str
    path: str
    name: str = ''
    module: GoModule | None = None
    go_files: tuple[str, ...] = ()
    compiled_go_files: tuple[str, ...] = ()
    other_files: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()
    imports: tuple[str, ...] = ()


@dataclass
class PackageGraph:
    """Packages keyed by id, plus the root packages requested by the caller."""

    packages: dict[str, Package] = field(default_factory=dict)
    root_ids: list[str] = field(default_factory=list)

    @property
    def roots(self) -> list[Package]:
        """Root packages in load order."""
        return [self.packages[i] for i in self.root_ids]

    def imports_of(self, pkg: Package) -> list[Package]:
        """Direct imports of *pkg*, sorted by id.

        Imports missing from the graph are skipped.
        """
        return [self.packages[i] for i in sorted(pkg.imports) if i in self.packages]

    def __iter__(self) -> Iterator[Package]:
        return iter(self.packages.values())

    def __len__(self) -> int:
        return len(self.packages)


def _strip_variant(import_path: str) -> str:
    """``example.com/p [example.com/p.test]`` → ``example.com/p``."""
    return import_path.split(' ', 1)[0]


def _abs_files(pkg_dir: str, names: Sequence[str]) -> tuple[str, ...]:
    return tuple(n if os.path.isabs(n) or not pkg_dir else os.path.join(pkg_dir, n) for n in names)


def _package_from_json(data: dict[str, Any]) -> Package:
    pkg_id = data.get('ImportPath', '')
    pkg_dir = data.get('Dir', '')
    other: list[str] = []
    for key in _OTHER_FILE_FIELDS:
        other.extend(data.get(key) or [])

    errors: list[str] = []
    err = data.get('Error')
    if err:
        errors.append(err.get('Err', '') or 'unknown error')

    module = data.get('Module')
    return Package(
        id=pkg_id,
        path=_strip_variant(pkg_id),
        name=data.get('Name', ''),
        module=GoModule.from_json(module) if module else None,
        go_files=_abs_files(pkg_dir, [*(data.get('GoFiles') or []), *(data.get('CgoFiles') or [])]),
        compiled_go_files=_abs_files(pkg_dir, data.get('CompiledGoFiles') or []),
        other_files=_abs_files(pkg_dir, other),
        errors=tuple(errors),
        imports=tuple(data.get('Imports') or []),
    )


def parse_go_list(output: str) -> PackageGraph:
    """Parse the concatenated JSON objects printed by ``go list -json``.

    Packages without ``DepOnly`` are the roots.

    Raises:
        GraphLoadError: If the output is not a stream of JSON objects.
    """
    graph = PackageGraph()
    decoder = json.JSONDecoder()
    pos = 0
    while True:
        while pos < len(output) and output[pos].isspace():
            pos += 1
        if pos >= len(output):
            break
        try:
            data, pos = decoder.raw_decode(output, pos)
        except json.JSONDecodeError as exc:
            raise GraphLoadError(f'cannot decode go list output: {exc}') from exc
        if not isinstance(data, dict):
            raise GraphLoadError(f'unexpected go list output at offset {pos}')
        pkg = _package_from_json(data)
        graph.packages[pkg.id] = pkg
        if not data.get('DepOnly', False):
            graph.root_ids.append(pkg.id)
    return graph


def _go_binary(go: str) -> str:
    binary = shutil.which(go)
    if binary is None:
        raise GraphLoadError(f'{go!r} not found on PATH, a Go toolchain is required to load packages')
    return binary


def load_packages(
    import_paths: Sequence[str],
    *,
    include_tests: bool = False,
    dir: Path | None = None,  # noqa: A002
    go: str = 'go',
    timeout: int = GO_LIST_TIMEOUT,
) -> PackageGraph:
    """Load *import_paths* and all their transitive dependencies.

    Args:
        import_paths: Package patterns understood by ``go list``.
        include_tests: Also load test variants and test binaries.
        dir: Directory to run ``go list`` in (the module to scan).
        go: Name or path of the ``go`` binary.
        timeout: Seconds before ``go list`` is abandoned.

    Returns:
        The loaded :class:`PackageGraph`. Per-package load errors are
        recorded on the packages, not raised.

    Raises:
        GraphLoadError: If ``go list`` cannot run or its output cannot be
            parsed.
    """
    cmd = [_go_binary(go), 'list', '-e', '-deps', '-json']
    if include_tests:
        cmd.append('-test')
    cmd.extend(['--', *import_paths])
    log.debug('go_list', cmd=cmd, cwd=str(dir) if dir else None)
    try:
        proc = subprocess.run(  # noqa: S603
            cmd,
            cwd=dir,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise GraphLoadError(f'go list timed out after {timeout} seconds') from exc
    except OSError as exc:
        raise GraphLoadError(f'failed to run go list: {exc}') from exc
    if proc.returncode != 0:
        raise GraphLoadError(f'go list exited with status {proc.returncode}: {proc.stderr.strip()}')

    graph = parse_go_list(proc.stdout)
    log.debug('packages_loaded', count=len(graph), roots=len(graph.root_ids))
    return graph


def go_root(go: str = 'go') -> str:
    """Return ``go env GOROOT``, or the ``GOROOT`` env var if go is unavailable."""
    binary = shutil.which(go)
    if binary is None:
        return os.environ.get('GOROOT', '')
    try:
        proc = subprocess.run(  # noqa: S603
            [binary, 'env', 'GOROOT'],
            capture_output=True,
            text=True,
            timeout=60,
            check=False,
        )
    except (subprocess.TimeoutExpired, OSError) as exc:
        log.warning('go_env_failed', error=str(exc))
        return os.environ.get('GOROOT', '')
    if proc.returncode != 0:
        log.warning('go_env_failed', error=proc.stderr.strip())
        return os.environ.get('GOROOT', '')
    return proc.stdout.strip()
