"""
tests/test_config.py — Configuration Loader Tests
==================================================
"""

from __future__ import annotations

from datetime import time
from pathlib import Path

import pytest
import yaml

from kuu.config import load_config, parse_config

MINIMAL = {
    "guild_id": 100,
    "role_ids": {
        "intro": 1, "freshie": 2, "member": 3, "birthday": 4, "it_manager": 5, "admin": 6,
    },
    "channel_ids": {"intro": 11, "verification": 12, "birthday": 13, "event": 14},
}


def _raw(**overrides) -> dict:
    raw = dict(MINIMAL)
    raw.update(overrides)
    return raw


class TestParseConfig:

    def test_defaults(self):
        cfg = parse_config(_raw())

        assert cfg.guild_id == 100
        assert cfg.role_ids.it_manager == 5
        assert cfg.channel_ids.event == 14
        assert cfg.emoji_ids.irys_heart is None
        assert cfg.kick_timeout_seconds == 60.0
        assert cfg.timezone == "Asia/Kuala_Lumpur"
        assert cfg.birthday_announce_time == time(0, 0, 59)
        assert cfg.upcoming_limit == 10
        assert cfg.leap_day_rule == "feb28"
        assert cfg.messages_dir == Path("messages")
        assert cfg.registration_csv_url is None
        assert cfg.treasurer_answer_timeout is None

    def test_announce_time_is_timezone_aware(self):
        cfg = parse_config(_raw(timezone="Europe/London", birthday_announce_time="09:30"))
        assert cfg.announce_time == time(9, 30, tzinfo=cfg.tz)
        assert cfg.announce_time.tzinfo is not None

    def test_unquoted_yaml_time(self):
        raw = yaml.safe_load("birthday_announce_time: 7:15:00")
        assert isinstance(raw["birthday_announce_time"], int)
        cfg = parse_config(_raw(**raw))
        assert cfg.birthday_announce_time == time(7, 15)

    def test_quoted_yaml_time(self):
        raw = yaml.safe_load('birthday_announce_time: "07:15:00"')
        assert parse_config(_raw(**raw)).birthday_announce_time == time(7, 15)

    def test_bad_time_rejected(self):
        with pytest.raises(ValueError):
            parse_config(_raw(birthday_announce_time="noon"))

    def test_bad_timezone_rejected(self):
        with pytest.raises(ValueError):
            parse_config(_raw(timezone="Mars/Olympus_Mons"))

    def test_bad_leap_rule_rejected(self):
        with pytest.raises(ValueError):
            parse_config(_raw(leap_day_rule="skip"))

    def test_missing_role_is_key_error(self):
        raw = _raw(role_ids={"intro": 1})
        with pytest.raises(KeyError):
            parse_config(raw)

    def test_optional_values(self):
        cfg = parse_config(_raw(
            emoji_ids={"satania_thumbs_up": "999"},
            treasurer_answer_timeout=300,
            registration_csv_url="https://example.com/form.csv",
        ))
        assert cfg.emoji_ids.satania_thumbs_up == 999
        assert cfg.treasurer_answer_timeout == 300.0
        assert cfg.registration_csv_url == "https://example.com/form.csv"


class TestLoadConfig:

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_reads_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump(_raw(upcoming_limit=5)), encoding="utf-8")
        assert load_config(path).upcoming_limit == 5

    def test_example_config_parses(self):
        example = Path(__file__).resolve().parent.parent / "config.yaml.example"
        cfg = load_config(example)
        assert cfg.birthday_announce_time == time(0, 0, 59)
