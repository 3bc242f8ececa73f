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

"""Tests for golicenses.logging module."""

from __future__ import annotations

import logging

import pytest
from golicenses.logging import (
    _REDACTED,
    configure_logging,
    get_logger,
    redact_sensitive_values,
)

_TOKEN = 'ghp_abcdefghijklmnop1234'


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_default_level_is_info(self) -> None:
        """Default logging level should be INFO."""
        configure_logging()
        assert logging.root.level == logging.INFO

    def test_verbose_sets_debug(self) -> None:
        """Verbose flag should set DEBUG level."""
        configure_logging(verbose=True)
        assert logging.root.level == logging.DEBUG

    def test_quiet_sets_warning(self) -> None:
        """Quiet wins over verbose."""
        configure_logging(quiet=True, verbose=True)
        assert logging.root.level == logging.WARNING

    def test_json_log_emits(self) -> None:
        """JSON log mode should configure without errors."""
        configure_logging(json_log=True)
        get_logger('golicenses.test').warning('module_dir_missing', module='example.com/m')


class TestRedaction:
    """Tests for secret redaction."""

    def test_token_scrubbed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test token scrubbed."""
        monkeypatch.setenv('GITHUB_TOKEN', _TOKEN)
        configure_logging()
        event = redact_sensitive_values(None, 'info', {'event': 'x', 'url': f'https://{_TOKEN}@github.com'})
        assert event['url'] == f'https://{_REDACTED}@github.com'

    def test_non_strings_untouched(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test non strings untouched."""
        monkeypatch.setenv('GITHUB_TOKEN', _TOKEN)
        configure_logging()
        event = redact_sensitive_values(None, 'info', {'count': 3})
        assert event == {'count': 3}

    def test_disabled_by_argument(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test disabled by argument."""
        monkeypatch.setenv('GITHUB_TOKEN', _TOKEN)
        configure_logging(redact_secrets=False)
        event = redact_sensitive_values(None, 'info', {'token': _TOKEN})
        assert event['token'] == _TOKEN

    def test_disabled_by_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test disabled by env."""
        monkeypatch.setenv('GITHUB_TOKEN', _TOKEN)
        monkeypatch.setenv('GOLICENSES_REDACT_SECRETS', '0')
        configure_logging()
        assert redact_sensitive_values(None, 'info', {'token': _TOKEN})['token'] == _TOKEN

    def test_short_values_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test short values ignored."""
        monkeypatch.setenv('GOPROXY', 'off')
        configure_logging()
        assert redact_sensitive_values(None, 'info', {'detail': 'turn it off'})['detail'] == 'turn it off'
