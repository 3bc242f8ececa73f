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

"""Locate the license file governing a package directory.

The search starts in the package directory and walks up, one parent at
a time, until the module root. The first file whose name looks like a
license (``LICENSE``, ``COPYING``, ``NOTICE``, ...) wins, optionally
confirmed by a :class:`Classifier`.

Usage::

    from golicenses.find import find_license

    path = find_license('/src/m/x', '/src/m')
    # '/src/m/LICENSE', or '' if nothing was found
"""

from __future__ import annotations

import os
import re
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from golicenses.errors import LicenseLookupError
from golicenses.logging import get_logger

__all__ = [
    'Classifier',
    'LicenseLocator',
    'find_license',
    'make_locator',
]

log = get_logger('golicenses.find')

#: ``locator(package_dir, module_dir) -> license_path`` (``''`` if none).
LicenseLocator = Callable[[str, str], str]

_LICENSE_NAME_RE = re.compile(r'^((UN)?LICEN(S|C)E|COPYING|README|NOTICE).*$', re.IGNORECASE)


@runtime_checkable
class Classifier(Protocol):
    """Identifies the license in a file.

    The classification algorithm is supplied by the caller.
    """

    def identify(self, path: str) -> tuple[str, str]:
        """Return ``(license_name, license_type)`` for the file at *path*.

        Raises:
            Exception: If the file does not contain a recognizable
                license.
        """
        ...


def _is_license(path: str, classifier: Classifier | None) -> bool:
    if classifier is None:
        return True
    try:
        classifier.identify(path)
    except Exception as exc:  # noqa: BLE001
        log.debug('not_a_license', path=path, error=str(exc))
        return False
    return True


def find_license(dir: str, root_dir: str, classifier: Classifier | None = None) -> str:  # noqa: A002
    """Return the path of the license file governing *dir*.

    Args:
        dir: Package directory to start from.
        root_dir: Module root; the search never leaves it.
        classifier: If given, candidates it cannot identify are skipped.

    Returns:
        Path of the license file, or ``''`` if none was found.

    Raises:
        LicenseLookupError: If *dir* is not under *root_dir* or cannot
            be listed.
    """
    cur = os.path.abspath(dir)
    root = os.path.abspath(root_dir)
    if cur != root and not cur.startswith(root.rstrip(os.sep) + os.sep):
        raise LicenseLookupError(f'package path {cur!r} is not under module root {root!r}')

    while True:
        try:
            names = sorted(os.listdir(cur))
        except OSError as exc:
            raise LicenseLookupError(f'cannot list {cur!r}: {exc}') from exc
        for name in names:
            if not _LICENSE_NAME_RE.match(name):
                continue
            path = os.path.join(cur, name)
            if os.path.isfile(path) and _is_license(path, classifier):
                return path
        if cur == root:
            return ''
        parent = os.path.dirname(cur)
        if parent == cur:
            return ''
        cur = parent


def make_locator(classifier: Classifier | None = None) -> LicenseLocator:
    """Bind *classifier* into a :data:`LicenseLocator`."""

    def locate(package_dir: str, module_dir: str) -> str:
        return find_license(package_dir, module_dir, classifier)

    return locate
