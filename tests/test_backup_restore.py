"""Tests for the backup and restore workflows."""

import json

import pytest

from kaleidoscope_focus.core import Snapshot, backup, load_fallback_commands, restore


class TestBackup:
    """Capturing settings."""

    def test_empty_values_are_dropped(self, make_keyboard, make_session):
        keyboard = make_keyboard(settings={"keymap.custom": "0 1 2", "led.brightness": ""})
        snapshot = backup(make_session(keyboard))

        assert snapshot.restore == ["keymap.custom"]
        assert snapshot.commands == {"keymap.custom": "0 1 2"}

    def test_flushes_then_asks_for_the_listing(self, keyboard, make_session):
        backup(make_session(keyboard))

        assert [command for command, _ in keyboard.requests[:2]] == ["", "backup"]
        assert [command for command, _ in keyboard.requests[2:]] == [
            "keymap.custom",
            "led.brightness",
            "hostos.type",
        ]

    def test_follows_listing_order(self, make_keyboard, make_session):
        keyboard = make_keyboard(settings={"b": "2", "a": "1", "c": "3"})
        snapshot = backup(make_session(keyboard))

        assert snapshot.restore == ["b", "a", "c"]

    def test_listing_splits_on_newlines_only(self, make_keyboard, make_session):
        keyboard = make_keyboard(settings={"odd\x0ckey": "1"})
        snapshot = backup(make_session(keyboard))

        assert snapshot.restore == ["odd\x0ckey"]
        assert [command for command, _ in keyboard.requests] == ["", "backup", "odd\x0ckey"]

    def test_fallback_when_listing_unsupported(self, make_keyboard, make_session):
        keyboard = make_keyboard(
            settings={"palette": "0 0 0", "keymap.custom": "1 2", "led.brightness": ""},
            supports_backup=False,
        )
        snapshot = backup(make_session(keyboard), fallback_commands=["led.brightness", "palette", "keymap.custom"])

        assert snapshot.restore == ["palette", "keymap.custom"]
        assert snapshot.commands == {"palette": "0 0 0", "keymap.custom": "1 2"}

    def test_bundled_fallback_list_is_default(self, make_keyboard, make_session):
        keyboard = make_keyboard(settings={"led.brightness": "90"}, supports_backup=False)
        snapshot = backup(make_session(keyboard))

        sent = [command for command, _ in keyboard.requests[2:]]
        assert sent == load_fallback_commands()
        assert snapshot.restore == ["led.brightness"]

    def test_progress_callback(self, keyboard, make_session):
        seen = []
        backup(make_session(keyboard), progress_cb=lambda *args: seen.append(args))

        assert seen == [
            ("keymap.custom", 1, 3),
            ("led.brightness", 2, 3),
            ("hostos.type", 3, 3),
        ]


class TestRestore:
    """Replaying settings."""

    def test_sends_values_in_restore_order(self, keyboard, make_session):
        snapshot = Snapshot(
            restore=["led.brightness", "keymap.custom"],
            commands={"keymap.custom": "9 9 9 9", "led.brightness": "10"},
        )
        restore(make_session(keyboard), snapshot)

        assert keyboard.requests == [("led.brightness", "10"), ("keymap.custom", "9 9 9 9")]
        assert keyboard.settings["keymap.custom"] == "9 9 9 9"

    def test_missing_value_is_skipped(self, keyboard, make_session):
        snapshot = Snapshot(restore=["hostos.type", "led.brightness"], commands={"led.brightness": "5"})
        restore(make_session(keyboard), snapshot)

        assert keyboard.requests == [("led.brightness", "5")]

    def test_commands_outside_restore_are_not_replayed(self, keyboard, make_session):
        snapshot = Snapshot(restore=[], commands={"led.brightness": "5"})
        restore(make_session(keyboard), snapshot)

        assert keyboard.requests == []
        assert keyboard.settings["led.brightness"] == "128"

    def test_round_trip(self, make_keyboard, make_session):
        source = make_keyboard(
            settings={"keymap.custom": "0 1 2 3", "led.brightness": "200", "palette": ""}
        )
        target = make_keyboard(
            settings={"keymap.custom": "3 2 1 0", "led.brightness": "10", "palette": "7"}
        )

        snapshot = backup(make_session(source))
        snapshot = Snapshot.from_json(snapshot.to_json())
        restore(make_session(target, chunk_size=4), snapshot)

        assert target.requests == [
            ("keymap.custom", "0 1 2 3"),
            ("led.brightness", "200"),
        ]
        assert target.settings["keymap.custom"] == "0 1 2 3"
        assert target.settings["led.brightness"] == "200"


class TestFallbackCommands:
    """The bundled and user supplied fallback lists."""

    def test_bundled_list(self):
        commands = load_fallback_commands()
        assert len(commands) == 35
        assert commands[0] == "autoshift.categories"
        assert "keymap.custom" in commands
        assert len(set(commands)) == len(commands)

    def test_custom_file(self, tmp_path):
        path = tmp_path / "commands.json"
        path.write_text(json.dumps({"version": "test", "commands": ["led.brightness"]}))
        assert load_fallback_commands(path) == ["led.brightness"]

    @pytest.mark.parametrize(
        "content",
        ["not json", "[]", '{"commands": "keymap.custom"}', '{"commands": [1, 2]}'],
    )
    def test_malformed_file(self, tmp_path, content):
        path = tmp_path / "commands.json"
        path.write_text(content)
        with pytest.raises(ValueError):
            load_fallback_commands(path)
