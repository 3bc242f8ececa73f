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

"""Select the packages of a graph that need license review.

Each package is classified once into a :class:`NodeKind`; the
traversal driver decides from that alone whether to record the
package and whether to descend into its imports::

    kind          record as        descend
    ───────────   ──────────────   ───────
    ERRORED       load error       no
    STDLIB        —                no
    TEST_BINARY   —                no
    IGNORED       ignored          yes
    NORMAL        accepted/empty   yes

Failures are gathered in a :class:`FilterResult` during the walk and
raised once it completes, so every offending package is reported.
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field

from golicenses.config import ScanConfig
from golicenses.errors import MissingModuleInfoError, PackagesLoadError
from golicenses.logging import get_logger
from golicenses.packages import Package, PackageGraph

__all__ = [
    'FilterResult',
    'NodeKind',
    'classify',
    'filter_packages',
    'is_std_lib',
    'is_test_binary',
    'package_dir',
]

log = get_logger('golicenses.filter')

_UNSAFE = 'unsafe'
_TEST_BINARY_SUFFIX = '.test'


class NodeKind(enum.Enum):
    """Classification of a package node in the graph."""

    ERRORED = 'errored'
    STDLIB = 'stdlib'
    TEST_BINARY = 'test_binary'
    IGNORED = 'ignored'
    NORMAL = 'normal'


def is_std_lib(pkg: Package, goroot: str) -> bool:
    """Return ``True`` if *pkg* is part of the Go standard library."""
    # unsafe has no Go files to locate.
    if pkg.name == _UNSAFE:
        return True
    if not pkg.go_files or not goroot:
        return False
    prefix = goroot if goroot.endswith(os.sep) else goroot + os.sep
    return pkg.go_files[0].startswith(prefix)


def is_test_binary(pkg: Package) -> bool:
    """Return ``True`` iff *pkg* is a test binary (``example.com/p.test``)."""
    return pkg.path.endswith(_TEST_BINARY_SUFFIX)


def classify(pkg: Package, config: ScanConfig) -> NodeKind:
    """Classify *pkg* for traversal."""
    if pkg.errors:
        return NodeKind.ERRORED
    if is_std_lib(pkg, config.goroot):
        return NodeKind.STDLIB
    # A test binary only imports the standard library, and it lives
    # under GOCACHE rather than its module dir.
    if config.include_tests and is_test_binary(pkg):
        return NodeKind.TEST_BINARY
    if any(pkg.path.startswith(prefix) for prefix in config.ignore):
        return NodeKind.IGNORED
    return NodeKind.NORMAL


def package_dir(pkg: Package) -> str:
    """Return the source directory of *pkg*, or ``''`` for an empty package.

    Go files are preferred, then compiled Go files, then other files.
    """
    for files in (pkg.go_files, pkg.compiled_go_files, pkg.other_files):
        if files:
            return os.path.dirname(files[0])
    return ''


@dataclass
class FilterResult:
    """Outcome of walking the package graph.

    Attributes:
        accepted: ``(package, package_dir)`` pairs needing license
            review, in traversal order.
        ignored: Import paths matching an ignore prefix.
        empty: Import paths of packages without any files.
        load_errors: ``(import_path, message)`` for every load error.
        missing_module: Import paths of accepted packages lacking
            module info.
    """

    accepted: list[tuple[Package, str]] = field(default_factory=list)
    ignored: list[str] = field(default_factory=list)
    empty: list[str] = field(default_factory=list)
    load_errors: list[tuple[str, str]] = field(default_factory=list)
    missing_module: list[str] = field(default_factory=list)

    def raise_for_errors(self) -> None:
        """Raise the aggregate error for any fatal failure collected.

        Raises:
            PackagesLoadError: If any package failed to load.
            MissingModuleInfoError: If any accepted package has no module.
        """
        if self.load_errors:
            raise PackagesLoadError(self.load_errors)
        if self.missing_module:
            raise MissingModuleInfoError(self.missing_module)


def _visit(pkg: Package, kind: NodeKind, result: FilterResult) -> bool:
    """Record *pkg* according to *kind*; return whether to descend."""
    if kind is NodeKind.ERRORED:
        result.load_errors.extend((pkg.path, err) for err in pkg.errors)
        return False
    if kind in (NodeKind.STDLIB, NodeKind.TEST_BINARY):
        return False
    if kind is NodeKind.IGNORED:
        result.ignored.append(pkg.path)
        return True

    if pkg.other_files:
        log.warning(
            'non_go_code',
            package=pkg.path,
            files=list(pkg.other_files),
            detail="contains non-Go code that can't be inspected for further dependencies",
        )
    pkg_dir = package_dir(pkg)
    if not pkg_dir:
        result.empty.append(pkg.path)
        return True
    if pkg.module is None:
        log.error('missing_module_info', package=pkg.path)
        result.missing_module.append(pkg.path)
        return False
    # A test variant shares its import path with the package it tests.
    if all(prev.path != pkg.path for prev, _ in result.accepted):
        result.accepted.append((pkg, pkg_dir))
    return True


def filter_packages(graph: PackageGraph, config: ScanConfig) -> FilterResult:
    """Walk *graph* from its roots and select packages for license review.

    Each package is visited once, in pre-order with imports sorted by
    id.

    Raises:
        PackagesLoadError: If any visited package has load errors.
        MissingModuleInfoError: If accepted packages lack module info.
    """
    result = FilterResult()
    seen: set[str] = set()
    stack = list(reversed(graph.roots))
    while stack:
        pkg = stack.pop()
        if pkg.id in seen:
            continue
        seen.add(pkg.id)
        if _visit(pkg, classify(pkg, config), result):
            stack.extend(dep for dep in reversed(graph.imports_of(pkg)) if dep.id not in seen)
    result.raise_for_errors()
    return result
