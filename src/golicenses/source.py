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

r"""Map a Go module version to browsable URLs at its source host.

Data Flow::

    ┌────────────────────┐     ┌──────────────────────┐     ┌──────────────────────────┐
    │ module path + vers │────→│ repo URL + module dir│────→│ {repo}/blob/{commit}/... │
    │ github.com/a/b/c   │     │ + commit (tag / sha) │     │ (host-specific template) │
    └────────────────────┘     └──────────────────────┘     └──────────────────────────┘

Repositories are found by (tried in order):

1. **Known hosts**: module paths on GitHub, GitLab, Bitbucket and
   googlesource, plus a few well-known vanity paths (``golang.org/x``,
   ``gopkg.in``, ``k8s.io``, ``cloud.google.com/go``) are mapped
   without any network access.
2. **go-get meta tag**: ``GET https://{path}?go-get=1`` and read the
   ``<meta name="go-import">`` tag, then match its repo URL against the
   known hosts.

Commits are derived from the version:

- pseudo-version ``v0.0.0-20210101000000-abcdef123456`` → ``abcdef123456``;
- tag ``v1.2.3`` of a module nested at ``sub/`` → ``sub/v1.2.3``;
- ``+incompatible`` is dropped.

Usage::

    from golicenses.source import SourceResolver

    with SourceResolver() as resolver:
        remote = resolver.module_info('github.com/google/go-cmp', 'v0.5.8')
        remote.file_url('LICENSE')
        # 'https://github.com/google/go-cmp/blob/v0.5.8/LICENSE'
"""

from __future__ import annotations

import html
import posixpath
import re
from dataclasses import dataclass
from types import TracebackType
from typing import Final

import httpx

from golicenses.config import DEFAULT_HTTP_TIMEOUT
from golicenses.errors import SourceResolutionError
from golicenses.logging import get_logger

__all__ = [
    'HEAD',
    'RemoteSource',
    'SourceResolver',
    'commit_from_version',
    'is_pseudo_version',
    'parse_go_import',
]

log = get_logger('golicenses.source')

#: Symbolic ref for the default branch, whatever it is named.
HEAD: Final[str] = 'HEAD'

_GITHUB_URL: Final[str] = '{repo}/blob/{commit}/{file}'
_GITLAB_URL: Final[str] = '{repo}/-/blob/{commit}/{file}'
_BITBUCKET_URL: Final[str] = '{repo}/src/{commit}/{file}'
_GOOGLESOURCE_URL: Final[str] = '{repo}/+/{commit}/{file}'

# (module path pattern, repo URL template, file URL template).
# The pattern's ``repo`` group is the import path prefix that maps to the
# repository root.
_PATTERNS: Final[tuple[tuple[re.Pattern[str], str, str], ...]] = (
    (
        re.compile(r'^(?P<repo>github\.com/(?P<owner>[a-zA-Z0-9_.\-]+)/(?P<name>[a-zA-Z0-9_.\-]+))'),
        'https://github.com/{owner}/{name}',
        _GITHUB_URL,
    ),
    (
        re.compile(r'^(?P<repo>gitlab\.com/(?P<owner>[a-zA-Z0-9_.\-]+)/(?P<name>[a-zA-Z0-9_.\-]+))'),
        'https://gitlab.com/{owner}/{name}',
        _GITLAB_URL,
    ),
    (
        re.compile(r'^(?P<repo>bitbucket\.org/(?P<owner>[a-zA-Z0-9_.\-]+)/(?P<name>[a-zA-Z0-9_.\-]+))'),
        'https://bitbucket.org/{owner}/{name}',
        _BITBUCKET_URL,
    ),
    (
        re.compile(r'^(?P<repo>go\.googlesource\.com/(?P<name>[a-z0-9A-Z_.\-]+))'),
        'https://go.googlesource.com/{name}',
        _GOOGLESOURCE_URL,
    ),
    (
        re.compile(r'^(?P<repo>golang\.org/x/(?P<name>[a-z0-9A-Z_.\-]+))'),
        'https://go.googlesource.com/{name}',
        _GOOGLESOURCE_URL,
    ),
    (
        re.compile(r'^(?P<repo>cloud\.google\.com/go)'),
        'https://github.com/googleapis/google-cloud-go',
        _GITHUB_URL,
    ),
    (
        re.compile(r'^(?P<repo>k8s\.io/(?P<name>[a-z0-9A-Z_.\-]+))'),
        'https://github.com/kubernetes/{name}',
        _GITHUB_URL,
    ),
    # gopkg.in/yaml.v3 → github.com/go-yaml/yaml
    (
        re.compile(r'^(?P<repo>gopkg\.in/(?P<name>[a-z0-9A-Z_\-]+)\.v\d+)(?=/|$)'),
        'https://github.com/go-{name}/{name}',
        _GITHUB_URL,
    ),
    # gopkg.in/user/pkg.v1 → github.com/user/pkg
    (
        re.compile(r'^(?P<repo>gopkg\.in/(?P<owner>[a-z0-9A-Z_\-]+)/(?P<name>[a-z0-9A-Z_\-]+)\.v\d+)'),
        'https://github.com/{owner}/{name}',
        _GITHUB_URL,
    ),
)

# Repo URLs found in go-import meta tags, mapped back onto known hosts.
_REPO_URL_RE: Final[re.Pattern[str]] = re.compile(
    r'^https?://(?P<host>github\.com|gitlab\.com|bitbucket\.org|[a-z0-9\-]+\.googlesource\.com)'
    r'/(?P<rest>[^?#]+?)(?:\.git)?/?$',
)

_HOST_TEMPLATES: Final[dict[str, str]] = {
    'github.com': _GITHUB_URL,
    'gitlab.com': _GITLAB_URL,
    'bitbucket.org': _BITBUCKET_URL,
}

_META_RE: Final[re.Pattern[str]] = re.compile(r'<meta\s+[^>]*>', re.IGNORECASE)
_ATTR_RE: Final[re.Pattern[str]] = re.compile(r'(\w[\w-]*)\s*=\s*(?:"([^"]*)"|\'([^\']*)\')')

_PSEUDO_VERSION_RE: Final[re.Pattern[str]] = re.compile(
    r'^v[0-9]+\.(0\.0-|\d+\.\d+-([^+]*\.)?0\.)\d{14}-[A-Za-z0-9]+(\+[0-9A-Za-z\-]+(\.[0-9A-Za-z\-]+)*)?$',
)

_MAJOR_SUFFIX_RE: Final[re.Pattern[str]] = re.compile(r'(^|/)v[2-9][0-9]*$')

_INCOMPATIBLE: Final[str] = '+incompatible'


def is_pseudo_version(version: str) -> bool:
    """Return ``True`` for pseudo-versions such as ``v0.0.0-20210722185704-3043a050f148``."""
    return bool(_PSEUDO_VERSION_RE.match(version))


def _remove_major_suffix(path: str) -> str:
    """``sub/v2`` → ``sub``; ``v3`` → ``''``."""
    return _MAJOR_SUFFIX_RE.sub('', path)


def commit_from_version(version: str, module_dir: str) -> str:
    """Return the commit-ish for *version* of a module nested at *module_dir*.

    Args:
        version: Module version (tag or pseudo-version).
        module_dir: Module location relative to the repository root,
            ``''`` for a module at the root.
    """
    v = version.removesuffix(_INCOMPATIBLE)
    if is_pseudo_version(v):
        return v[v.rindex('-') + 1 :]
    prefix = _remove_major_suffix(module_dir)
    return f'{prefix}/{v}' if prefix else v


@dataclass
class RemoteSource:
    """Where a module version lives at its source host.

    Attributes:
        repo_url: Repository URL, e.g. ``https://github.com/foo/bar``.
        module_dir: Module location relative to the repository root.
        commit: Tag, commit hash or symbolic ref files are served at.
        file_template: Host-specific URL template with ``{repo}``,
            ``{commit}`` and ``{file}`` fields.
    """

    repo_url: str
    module_dir: str
    commit: str
    file_template: str

    def set_commit(self, ref: str) -> None:
        """Serve files at *ref* instead of the version-derived commit."""
        self.commit = ref

    def file_url(self, path: str) -> str:
        """Return the browsable URL of *path*, relative to the module root."""
        file = posixpath.join(self.module_dir, path) if self.module_dir else path
        return self.file_template.format(repo=self.repo_url, commit=self.commit, file=file)


def _match_known(module_path: str) -> tuple[str, str, str] | None:
    """Return ``(repo_url, module_dir, template)`` for a known host path."""
    for pattern, repo_template, file_template in _PATTERNS:
        m = pattern.match(module_path)
        if m is None:
            continue
        module_dir = module_path[len(m.group('repo')) :].lstrip('/')
        return repo_template.format(**m.groupdict()), module_dir, file_template
    return None


def _repo_from_url(repo_url: str) -> tuple[str, str] | None:
    """Normalize a go-import repo URL; return ``(repo_url, template)``."""
    m = _REPO_URL_RE.match(repo_url)
    if m is None:
        return None
    host = m.group('host')
    template = _HOST_TEMPLATES.get(host, _GOOGLESOURCE_URL)
    return f'https://{host}/{m.group("rest")}', template


def parse_go_import(page: str, module_path: str) -> tuple[str, str] | None:
    """Find the go-import meta tag in *page* covering *module_path*.

    Returns:
        ``(import_prefix, repo_url)`` for a git repository, or ``None``.
    """
    for tag in _META_RE.findall(page):
        attrs = {k.lower(): html.unescape(a if a else b) for k, a, b in _ATTR_RE.findall(tag)}
        if attrs.get('name') != 'go-import':
            continue
        fields = attrs.get('content', '').split()
        if len(fields) != 3:
            continue
        prefix, vcs, repo = fields
        if vcs != 'git':
            continue
        if module_path == prefix or module_path.startswith(prefix + '/'):
            return prefix, repo
    return None


class SourceResolver:
    """Resolve module versions to :class:`RemoteSource` descriptors.

    Paths on known hosts are mapped locally; anything else costs one
    blocking go-get request through *client* (no retry).

    Args:
        client: HTTP client for go-get lookups. A client with
            ``timeout`` is created, and closed by :meth:`close`, when
            not given.
        timeout: Request timeout in seconds.
    """

    def __init__(self, client: httpx.Client | None = None, *, timeout: float = DEFAULT_HTTP_TIMEOUT) -> None:
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout, follow_redirects=True)

    def close(self) -> None:
        """Close the HTTP client if this resolver created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> SourceResolver:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _lookup_go_import(self, module_path: str) -> tuple[str, str, str]:
        url = f'https://{module_path}?go-get=1'
        try:
            resp = self._client.get(url)
        except httpx.HTTPError as exc:
            raise SourceResolutionError(f'go-get lookup for {module_path} failed: {exc}') from exc
        if resp.status_code != 200:
            raise SourceResolutionError(f'go-get lookup for {module_path}: HTTP {resp.status_code}')

        found = parse_go_import(resp.text, module_path)
        if found is None:
            raise SourceResolutionError(f'no go-import meta tag for {module_path} at {url}')
        prefix, repo = found
        known = _repo_from_url(repo)
        if known is None:
            raise SourceResolutionError(f'unsupported source host {repo!r} for {module_path}')
        repo_url, template = known
        return repo_url, module_path[len(prefix) :].lstrip('/'), template

    def module_info(self, module_path: str, version: str) -> RemoteSource:
        """Return the :class:`RemoteSource` of *module_path* at *version*.

        Raises:
            SourceResolutionError: If the repository cannot be
                determined.
        """
        if not module_path:
            raise SourceResolutionError('empty module path')
        known = _match_known(module_path)
        if known is None:
            known = self._lookup_go_import(module_path)
            log.debug('go_import_resolved', module=module_path, repo=known[0])
        repo_url, module_dir, template = known
        module_dir = _remove_major_suffix(module_dir)
        return RemoteSource(
            repo_url=repo_url,
            module_dir=module_dir,
            commit=commit_from_version(version, module_dir) if version else HEAD,
            file_template=template,
        )
