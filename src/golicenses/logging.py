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

"""Structured logging for golicenses.

Diagnostics (skipped vendored modules, unresolvable license URLs,
packages with non-Go code) are emitted through
`structlog <https://www.structlog.org/>`_ to stderr, either as
colored console lines or as one JSON object per line (``json_log``).
Report data produced by callers is expected on stdout, so the two
never mix.

Usage::

    from golicenses.logging import configure_logging, get_logger

    configure_logging(verbose=True)
    log = get_logger('golicenses.library')
    log.warning('vendored_parent_not_found', module='example.com/dep')
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    json_log: bool = False,
    redact_secrets: bool = True,
) -> None:
    """Configure structlog for golicenses.

    Call once at startup, before the first scan.

    Args:
        verbose: Enable debug-level output.
        quiet: Only emit warnings and errors.
        json_log: Render events as JSON instead of console lines.
        redact_secrets: Scrub credential values (GitHub tokens, a
            ``GOPROXY`` URL with embedded auth, ...) from log events.
            The ``GOLICENSES_REDACT_SECRETS=0`` env var also disables
            scrubbing.
    """
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        format='%(message)s',
        stream=sys.stderr,
        level=level,
        force=True,
    )

    global _secret_values  # noqa: PLW0603
    enabled = redact_secrets and os.environ.get('GOLICENSES_REDACT_SECRETS', '1') != '0'
    _secret_values = _collect_secret_values() if enabled else frozenset()

    shared_processors: list[structlog.types.Processor] = [  # type: ignore[assignment]
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        redact_sensitive_values,
    ]

    if json_log:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


def get_logger(name: str = 'golicenses') -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger named *name*."""
    return structlog.get_logger(name)


# Env vars that may hold credentials used while resolving module sources.
_SENSITIVE_ENV_VARS: tuple[str, ...] = (
    'GITHUB_TOKEN',
    'GH_TOKEN',
    'GITLAB_TOKEN',
    'BITBUCKET_TOKEN',
    'GOPROXY',
    'GOLICENSES_HTTP_TOKEN',
)

_REDACTED = '[REDACTED]'

# Values shorter than this are too likely to collide with ordinary text.
_MIN_SECRET_LEN = 8

_secret_values: frozenset[str] = frozenset()


def _collect_secret_values() -> frozenset[str]:
    """Return the non-empty current values of :data:`_SENSITIVE_ENV_VARS`."""
    return frozenset(v for v in (os.environ.get(name, '') for name in _SENSITIVE_ENV_VARS) if v)


def _scrub(value: object) -> object:
    if not isinstance(value, str) or not _secret_values:
        return value
    for secret in _secret_values:
        if len(secret) >= _MIN_SECRET_LEN and secret in value:
            value = value.replace(secret, _REDACTED)
    return value


def redact_sensitive_values(
    logger: Any,  # noqa: ANN401
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Structlog processor: replace secret env var values with ``[REDACTED]``."""
    if not _secret_values:
        return event_dict
    return {k: _scrub(v) for k, v in event_dict.items()}


__all__ = [
    'configure_logging',
    'get_logger',
    'redact_sensitive_values',
]
