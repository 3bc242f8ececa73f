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

r"""Group Go packages into libraries that share one license file.

A *library* is a collection of packages covered by the same license
file, named after the longest common path of its members::

    example.com/m/x ─┐
                     ├── /src/m/LICENSE ──→ Library 'example.com/m'
    example.com/m/y ─┘
    example.com/n   ───  (no license)   ──→ Library 'example.com/n'

Packages not covered by any license are returned as individual
libraries. Standard library packages are never returned.

Usage::

    from pathlib import Path

    from golicenses.config import load_config
    from golicenses.library import libraries
    from golicenses.source import SourceResolver

    config = load_config(Path('pyproject.toml'))
    libs = libraries('./...', config=config)
    with SourceResolver(timeout=config.http_timeout) as resolver:
        for lib in libs:
            if lib.license_path:
                print(lib.name, lib.version, lib.file_url(lib.license_path, resolver=resolver))
"""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import PurePath

from golicenses.config import DEFAULT_HTTP_TIMEOUT, ScanConfig
from golicenses.errors import FileURLError, GoLicensesError
from golicenses.filter import filter_packages
from golicenses.find import Classifier, LicenseLocator, make_locator
from golicenses.logging import get_logger
from golicenses.packages import GoModule, Package, PackageGraph, go_root, load_packages
from golicenses.source import HEAD, SourceResolver

__all__ = [
    'Library',
    'Module',
    'common_ancestor',
    'group_libraries',
    'libraries',
    'resolve_file_url',
    'resolve_vendored_module',
]

log = get_logger('golicenses.library')

_VENDOR = '/vendor/'
_INCOMPATIBLE = '+incompatible'

#: ``loader(import_paths, include_tests=...) -> PackageGraph``
PackageLoader = Callable[..., PackageGraph]


@dataclass(frozen=True)
class Module:
    """Identity of the Go module a library belongs to.

    Attributes:
        path: Module path.
        version: Module version, empty for a module in development.
        dir: Local directory of the module. Empty when the loader lost
            it, which happens for vendored modules.
    """

    path: str
    version: str = ''
    dir: str = ''

    @classmethod
    def from_go_module(cls, mod: GoModule | None) -> Module | None:
        """Normalize loader metadata.

        A ``replace`` directive substitutes the whole record, and the
        ``+incompatible`` suffix does not affect the module version.
        """
        if mod is None:
            return None
        effective = mod.replace if mod.replace is not None else mod
        return cls(
            path=effective.path,
            version=effective.version.removesuffix(_INCOMPATIBLE),
            dir=effective.dir,
        )


def common_ancestor(paths: Sequence[str]) -> str:
    """Return the longest common ``/``-separated prefix of *paths*.

    >>> common_ancestor(['a/b/c', 'a/b/d'])
    'a/b'
    >>> common_ancestor(['a/bc', 'a/bd'])
    'a'
    >>> common_ancestor(['a/b/c'])
    'a/b/c'
    """
    if not paths:
        return ''
    if len(paths) == 1:
        return paths[0]
    ordered = sorted(paths)
    lo, hi = ordered[0], ordered[-1]
    last_slash = 0
    for i, (a, b) in enumerate(zip(lo, hi)):
        if a != b:
            return lo[:last_slash]
        if a == '/':
            last_slash = i
    return lo


@dataclass
class Library:
    """A collection of packages covered by the same license file.

    Attributes:
        license_path: Path of the file holding the license, ``''`` if
            none was found.
        packages: Import paths of the member packages. It may not be
            every package of the library, only the ones in use.
        module: Module the library is attributed to.
    """

    license_path: str = ''
    packages: list[str] = field(default_factory=list)
    module: Module | None = None

    @property
    def name(self) -> str:
        """Common prefix of the member import paths."""
        return common_ancestor(self.packages)

    @property
    def version(self) -> str:
        """Version of the library's module, ``''`` if unknown."""
        return self.module.version if self.module is not None else ''

    def file_url(
        self,
        file_path: str,
        *,
        resolver: SourceResolver | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> str:
        """Return the URL of *file_path* (a local file of this library) at its source host.

        Args:
            file_path: Absolute path of a file inside the module dir.
            resolver: Source resolver to reuse. A temporary one is
                created when not given.
            timeout: HTTP timeout of the temporary resolver.

        Raises:
            FileURLError: If the URL cannot be determined.
        """
        try:
            if resolver is not None:
                return resolve_file_url(self.module, file_path, resolver=resolver)
            with SourceResolver(timeout=timeout) as owned:
                return resolve_file_url(self.module, file_path, resolver=owned)
        except GoLicensesError as exc:
            raise FileURLError(f'getting file URL in library {self.name}: {exc}') from exc

    def __str__(self) -> str:
        return self.name


def resolve_file_url(module: Module | None, file_path: str, *, resolver: SourceResolver) -> str:
    """Derive the remote URL of *file_path* inside *module*.

    Raises:
        FileURLError: If *module* lacks a dir or the file is not under it.
        SourceResolutionError: If the module's repository is unknown.
    """
    if module is None:
        raise FileURLError('empty go module info')
    if not module.dir:
        raise FileURLError('empty go module dir')

    remote = resolver.module_info(module.path, module.version)
    if not module.version:
        # A tag cannot be derived for the module in development. HEAD
        # follows the default branch regardless of its name.
        remote.set_commit(HEAD)
        log.warning(
            'empty_module_version',
            module=module.path,
            detail='defaults to HEAD, the license URL may be incorrect, please verify',
        )

    try:
        relative = os.path.relpath(file_path, module.dir)
    except ValueError as exc:
        raise FileURLError(f'{file_path!r} is not under module dir {module.dir!r}') from exc
    if relative == os.pardir or relative.startswith(os.pardir + os.sep) or os.path.isabs(relative):
        raise FileURLError(f'{file_path!r} is not under module dir {module.dir!r}')
    # TODO: nested modules whose layout differs from the repository
    # layout still produce wrong URLs.
    return remote.file_url(PurePath(relative).as_posix())


def group_libraries(accepted: Sequence[tuple[Package, str]]) -> list[Library]:
    """Partition packages into libraries by license path.

    Args:
        accepted: ``(package, license_path)`` pairs; ``''`` means no
            license was found.

    Returns:
        Libraries sorted by name.
    """
    by_license: dict[str, list[Package]] = {}
    for pkg, license_path in accepted:
        by_license.setdefault(license_path, []).append(pkg)

    libs: list[Library] = []
    for license_path, pkgs in by_license.items():
        if not license_path:
            # Unlicensed packages share nothing, so each stands alone.
            libs.extend(Library(packages=[p.path], module=Module.from_go_module(p.module)) for p in pkgs)
            continue
        lib = Library(license_path=license_path)
        for pkg in pkgs:
            lib.packages.append(pkg.path)
            # Packages under one license file are assumed to share a module.
            if lib.module is None and pkg.module is not None:
                lib.module = Module.from_go_module(pkg.module)
        libs.append(lib)

    libs.sort(key=lambda lib: lib.name)
    return libs


def resolve_vendored_module(lib: Library, roots: Sequence[Package]) -> None:
    """Attribute a vendored library to the module it is vendored into.

    Only libraries whose module has a path but no dir are considered.
    The license path must contain a ``/vendor/`` segment, and the part
    before it must be the dir of one of the *roots*' modules. This is a
    heuristic: both conditions rarely hold for non-vendored code.
    Ambiguous cases are logged and leave the library unchanged.
    """
    mod = lib.module
    if mod is None or not mod.path or mod.dir:
        return

    parts = lib.license_path.split(_VENDOR, 1)
    if len(parts) != 2:
        log.warning(
            'module_dir_missing',
            module=mod.path,
            detail='module has no dir and is not vendored, cannot discover the license URL',
        )
        return

    parent_dir = parts[0]
    for root in roots:
        if root.module is not None and root.module.dir == parent_dir:
            # Vendored code is committed in the parent module.
            lib.module = Module.from_go_module(root.module)
            log.debug('vendored_module_resolved', module=mod.path, parent=lib.module.path)
            return
    log.warning('vendored_parent_not_found', module=mod.path, parent_dir=parent_dir)


def _locate(locator: LicenseLocator, pkg: Package, pkg_dir: str) -> str:
    module_dir = pkg.module.dir if pkg.module is not None else ''
    try:
        return locator(pkg_dir, module_dir)
    except Exception as exc:  # noqa: BLE001
        log.error('license_find_failed', package=pkg.path, error=str(exc))
        return ''


def libraries(
    *import_paths: str,
    config: ScanConfig | None = None,
    classifier: Classifier | None = None,
    loader: PackageLoader = load_packages,
    locator: LicenseLocator | None = None,
) -> list[Library]:
    """Return the libraries used by *import_paths*, directly or transitively.

    Args:
        import_paths: Package patterns to scan.
        config: Scan options.
        classifier: Confirms candidate license files when *locator* is
            not given.
        loader: Loads the package graph.
        locator: Finds the license file of a package dir. Defaults to
            :func:`golicenses.find.find_license` with *classifier*.

    Returns:
        Libraries sorted by name.

    Raises:
        GraphLoadError: If the graph cannot be loaded.
        PackagesLoadError: If any package has load errors.
        MissingModuleInfoError: If packages lack module info.
    """
    config = config or ScanConfig()
    if not config.goroot and loader is load_packages:
        config = config.with_overrides(goroot=go_root())
    locate = locator or make_locator(classifier)

    graph = loader(list(import_paths), include_tests=config.include_tests)
    selected = filter_packages(graph, config)
    accepted = [(pkg, _locate(locate, pkg, pkg_dir)) for pkg, pkg_dir in selected.accepted]

    libs = group_libraries(accepted)
    roots = graph.roots
    for lib in libs:
        if lib.license_path:
            resolve_vendored_module(lib, roots)
    log.info('libraries_found', count=len(libs), packages=len(accepted), ignored=len(selected.ignored))
    return libs
