"""Tests for script_sentinel.utils.serialization — aliases and timestamps."""

from __future__ import annotations

from datetime import datetime

import pytest

from script_sentinel.utils.serialization import epoch_ms, snake_to_camel, utc_now_iso


class TestSnakeToCamel:
    """Tests for snake_to_camel()."""

    @pytest.mark.parametrize(
        ("input_str", "expected"),
        [
            ("script_name", "scriptName"),
            ("single", "single"),
            ("third_party_script_count", "thirdPartyScriptCount"),
            ("user_friendly_explanation", "userFriendlyExplanation"),
            ("last_active_at", "lastActiveAt"),
        ],
    )
    def test_conversion(self, input_str: str, expected: str) -> None:
        assert snake_to_camel(input_str) == expected


class TestTimestamps:
    def test_iso_is_timezone_aware(self) -> None:
        parsed = datetime.fromisoformat(utc_now_iso())
        assert parsed.utcoffset() is not None
        assert parsed.utcoffset().total_seconds() == 0

    def test_epoch_ms_is_milliseconds(self) -> None:
        now = epoch_ms()
        assert isinstance(now, int)
        # after 2020-01-01 and well before the microsecond range
        assert 1_577_836_800_000 < now < 10**14
