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

"""Tests for package classification and graph filtering."""

from __future__ import annotations

import pytest
from golicenses.config import ScanConfig
from golicenses.errors import MissingModuleInfoError, PackagesLoadError
from golicenses.filter import (
    NodeKind,
    classify,
    filter_packages,
    is_std_lib,
    is_test_binary,
    package_dir,
)
from golicenses.packages import GoModule, Package, PackageGraph, parse_go_list

_GOROOT = '/usr/local/go'
_MOD = GoModule(path='example.com/m', version='v1.0.0', dir='/src/m')
_CFG = ScanConfig(goroot=_GOROOT)


def _pkg(path: str, *imports: str, module: GoModule | None = _MOD, **kwargs: object) -> Package:
    """Create a package whose single Go file sits in ``/src/<path>``."""
    kwargs.setdefault('go_files', (f'/src/{path}/a.go',))
    return Package(id=path, path=path, module=module, imports=imports, **kwargs)  # type: ignore[arg-type]


def _std(path: str, *imports: str) -> Package:
    return Package(
        id=path,
        path=path,
        name=path.rsplit('/', 1)[-1],
        go_files=(f'{_GOROOT}/src/{path}/x.go',),
        imports=imports,
    )


def _graph(*pkgs: Package, roots: tuple[str, ...] = ()) -> PackageGraph:
    return PackageGraph(packages={p.id: p for p in pkgs}, root_ids=list(roots or (pkgs[0].id,)))


def _accepted(graph: PackageGraph, config: ScanConfig = _CFG) -> list[str]:
    return [p.path for p, _ in filter_packages(graph, config).accepted]


# ── Classification ───────────────────────────────────────────────────


class TestIsStdLib:
    """Tests for is_std_lib()."""

    def test_under_goroot(self) -> None:
        """Test under goroot."""
        assert is_std_lib(_std('fmt'), _GOROOT)

    def test_goroot_with_trailing_separator(self) -> None:
        """Test goroot with trailing separator."""
        assert is_std_lib(_std('fmt'), _GOROOT + '/')

    def test_sibling_dir_is_not_stdlib(self) -> None:
        """A dir sharing the goroot prefix without a separator is not stdlib."""
        pkg = _pkg('gopher', go_files=('/usr/local/gopher/x.go',))
        assert not is_std_lib(pkg, _GOROOT)

    def test_unsafe_without_files(self) -> None:
        """Test unsafe without files."""
        assert is_std_lib(Package(id='unsafe', path='unsafe', name='unsafe'), _GOROOT)

    def test_unsafe_without_goroot(self) -> None:
        """Test unsafe without goroot."""
        assert is_std_lib(Package(id='unsafe', path='unsafe', name='unsafe'), '')

    def test_no_go_files(self) -> None:
        """Test no go files."""
        assert not is_std_lib(Package(id='x', path='x', name='x'), _GOROOT)

    def test_module_package(self) -> None:
        """Test module package."""
        assert not is_std_lib(_pkg('example.com/m/x'), _GOROOT)


class TestIsTestBinary:
    """Tests for is_test_binary()."""

    def test_suffix(self) -> None:
        """Test suffix."""
        assert is_test_binary(_pkg('example.com/m.test'))

    def test_plain(self) -> None:
        """Test plain."""
        assert not is_test_binary(_pkg('example.com/m/testing'))


class TestClassify:
    """Tests for classify()."""

    def test_errored_first(self) -> None:
        """Load errors win over every other classification."""
        pkg = Package(id='unsafe', path='unsafe', name='unsafe', errors=('boom',))
        assert classify(pkg, _CFG) is NodeKind.ERRORED

    def test_stdlib(self) -> None:
        """Test stdlib."""
        assert classify(_std('net/http'), _CFG) is NodeKind.STDLIB

    def test_test_binary_only_with_tests(self) -> None:
        """Test test binary only with tests."""
        pkg = _pkg('example.com/m.test')
        assert classify(pkg, ScanConfig(goroot=_GOROOT, include_tests=True)) is NodeKind.TEST_BINARY
        assert classify(pkg, _CFG) is NodeKind.NORMAL

    def test_ignored_prefix(self) -> None:
        """Test ignored prefix."""
        cfg = ScanConfig(goroot=_GOROOT, ignore=('example.com/m',))
        assert classify(_pkg('example.com/m/x'), cfg) is NodeKind.IGNORED
        assert classify(_pkg('example.com/n'), cfg) is NodeKind.NORMAL


class TestPackageDir:
    """Tests for package_dir()."""

    def test_go_files_preferred(self) -> None:
        """Test go files preferred."""
        pkg = _pkg('p', go_files=('/a/x.go',), compiled_go_files=('/b/x.go',), other_files=('/c/x.c',))
        assert package_dir(pkg) == '/a'

    def test_compiled_go_files(self) -> None:
        """Test compiled go files."""
        pkg = _pkg('p', go_files=(), compiled_go_files=('/b/x.go',), other_files=('/c/x.c',))
        assert package_dir(pkg) == '/b'

    def test_other_files(self) -> None:
        """Test other files."""
        assert package_dir(_pkg('p', go_files=(), other_files=('/c/x.s',))) == '/c'

    def test_empty(self) -> None:
        """Test empty."""
        assert package_dir(_pkg('p', go_files=())) == ''


# ── Traversal ────────────────────────────────────────────────────────


class TestFilterPackages:
    """Tests for filter_packages()."""

    def test_preorder_sorted_imports(self) -> None:
        """Test preorder sorted imports."""
        graph = _graph(
            _pkg('app', 'z', 'b'),
            _pkg('b', 'c'),
            _pkg('c'),
            _pkg('z'),
        )
        assert _accepted(graph) == ['app', 'b', 'c', 'z']

    def test_each_package_visited_once(self) -> None:
        """A diamond dependency is accepted once."""
        graph = _graph(
            _pkg('app', 'left', 'right'),
            _pkg('left', 'shared'),
            _pkg('right', 'shared'),
            _pkg('shared'),
        )
        assert _accepted(graph) == ['app', 'left', 'shared', 'right']

    def test_shared_root(self) -> None:
        """Test a package that is both a root and a dependency."""
        graph = _graph(_pkg('a', 'b'), _pkg('b'), roots=('a', 'b'))
        assert _accepted(graph) == ['a', 'b']

    def test_stdlib_not_descended(self) -> None:
        """Test stdlib not descended."""
        graph = _graph(
            _pkg('app', 'fmt', 'unsafe'),
            _std('fmt', 'internal/fmtsort'),
            _std('internal/fmtsort'),
            Package(id='unsafe', path='unsafe', name='unsafe'),
        )
        result = filter_packages(graph, _CFG)
        assert [p.path for p, _ in result.accepted] == ['app']

    def test_test_binary_skipped(self) -> None:
        """Test test binary skipped."""
        graph = _graph(
            _pkg('example.com/m.test', 'example.com/m', go_files=('/cache/_testmain.go',)),
            _pkg('example.com/m'),
        )
        cfg = ScanConfig(goroot=_GOROOT, include_tests=True)
        assert _accepted(graph, cfg) == []

    def test_test_variant_accepted_once(self) -> None:
        """A test variant sharing an import path is not accepted twice."""
        variant = Package(
            id='example.com/m/p [example.com/m/p.test]',
            path='example.com/m/p',
            module=_MOD,
            go_files=('/src/example.com/m/p/a.go', '/src/example.com/m/p/a_test.go'),
            imports=('github.com/dep',),
        )
        graph = _graph(_pkg('example.com/m/p'), variant, _pkg('github.com/dep'), roots=('example.com/m/p', variant.id))
        cfg = ScanConfig(goroot=_GOROOT, include_tests=True)
        result = filter_packages(graph, cfg)
        assert [(p.id, d) for p, d in result.accepted] == [
            ('example.com/m/p', '/src/example.com/m/p'),
            ('github.com/dep', '/src/github.com/dep'),
        ]

    def test_cgo_only_package_accepted(self) -> None:
        """Test cgo only package accepted."""
        graph = parse_go_list(
            '{"ImportPath": "example.com/m/c", "Dir": "/src/m/c", "CgoFiles": ["c.go"],'
            ' "Module": {"Path": "example.com/m", "Version": "v1.0.0", "Dir": "/src/m"}}'
        )
        result = filter_packages(graph, _CFG)
        assert result.empty == []
        assert [(p.path, d) for p, d in result.accepted] == [('example.com/m/c', '/src/m/c')]

    def test_ignored_recorded_and_descended(self) -> None:
        """Test ignored recorded and descended."""
        graph = _graph(_pkg('example.com/m/cmd', 'github.com/dep'), _pkg('github.com/dep'))
        cfg = ScanConfig(goroot=_GOROOT, ignore=('example.com/m',))
        result = filter_packages(graph, cfg)
        assert result.ignored == ['example.com/m/cmd']
        assert [p.path for p, _ in result.accepted] == ['github.com/dep']

    def test_empty_package_descended(self) -> None:
        """Test empty package descended."""
        graph = _graph(_pkg('empty', 'dep', go_files=(), module=None), _pkg('dep'))
        result = filter_packages(graph, _CFG)
        assert result.empty == ['empty']
        assert [p.path for p, _ in result.accepted] == ['dep']

    def test_accepted_carries_dir(self) -> None:
        """Test accepted carries dir."""
        result = filter_packages(_graph(_pkg('example.com/m/x')), _CFG)
        assert [d for _, d in result.accepted] == ['/src/example.com/m/x']

    def test_load_errors_aggregated(self) -> None:
        """Every errored package is reported."""
        graph = _graph(
            _pkg('app', 'bad1', 'bad2'),
            _pkg('bad1', errors=('cannot find package',)),
            _pkg('bad2', errors=('syntax error', 'missing go.sum entry')),
        )
        with pytest.raises(PackagesLoadError) as excinfo:
            filter_packages(graph, _CFG)
        assert excinfo.value.errors == [
            ('bad1', 'cannot find package'),
            ('bad2', 'syntax error'),
            ('bad2', 'missing go.sum entry'),
        ]
        assert 'missing go.sum entry' in str(excinfo.value)

    def test_missing_module_aggregated(self) -> None:
        """Every package without module info is reported."""
        graph = _graph(
            _pkg('app', 'gopath1', 'gopath2'),
            _pkg('gopath1', module=None),
            _pkg('gopath2', module=None),
        )
        with pytest.raises(MissingModuleInfoError) as excinfo:
            filter_packages(graph, _CFG)
        assert excinfo.value.packages == ['gopath1', 'gopath2']

    def test_load_errors_take_precedence(self) -> None:
        """Test load errors take precedence."""
        graph = _graph(
            _pkg('app', 'bad', 'gopath'),
            _pkg('bad', errors=('boom',)),
            _pkg('gopath', module=None),
        )
        with pytest.raises(PackagesLoadError):
            filter_packages(graph, _CFG)

    def test_errored_package_imports_not_visited(self) -> None:
        """Test errored package imports not visited."""
        graph = _graph(_pkg('bad', 'gopath', errors=('boom',)), _pkg('gopath', module=None))
        with pytest.raises(PackagesLoadError) as excinfo:
            filter_packages(graph, _CFG)
        assert [path for path, _ in excinfo.value.errors] == ['bad']

    def test_missing_import_skipped(self) -> None:
        """Imports absent from the graph are ignored."""
        assert _accepted(_graph(_pkg('app', 'ghost'))) == ['app']
