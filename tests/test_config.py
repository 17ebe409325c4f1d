import configparser

import pytest

from nightswitch_core.config import (
    DEFAULT_CONFIG,
    IniSettingsStore,
    SettingsStore,
    Subscription,
    SubscriptionGroup,
    flatten_defaults,
    format_value,
)
from nightswitch_core.exceptions import ConfigError, ValidationError


@pytest.fixture
def config_file(tmp_path):
    return tmp_path / "nightswitch" / "config.ini"


class TestSubscription:
    def test_release_is_idempotent(self):
        calls = []
        subscription = Subscription(lambda: calls.append(1))
        subscription.release()
        subscription.release()

        assert calls == [1]
        assert not subscription.active

    def test_context_manager_releases(self, settings):
        changes = []
        with settings.connect_changed("day-theme", changes.append):
            settings.set_string("day-theme", "A")
        settings.set_string("day-theme", "B")

        assert changes == ["day-theme"]

    def test_group_releases_newest_first(self):
        order = []
        group = SubscriptionGroup()
        group.add(Subscription(lambda: order.append("first")))
        group.add(Subscription(lambda: order.append("second")))
        assert len(group) == 2

        group.release_all()
        assert order == ["second", "first"]
        assert len(group) == 0


class TestSettingsStore:
    def test_defaults(self, settings):
        assert settings.get_string("day-theme") == "Adwaita"
        assert settings.get_uint("nighttime-begin") == 1200
        assert settings.get_uint("nighttime-end") == 420
        assert settings.get_uint("time-check-period") == 1000
        assert settings.get_boolean("first-time-user") is True
        assert settings.get_boolean("shell-enabled") is False

    def test_unknown_key(self, settings):
        with pytest.raises(ConfigError):
            settings.get_string("no-such-key")

    def test_change_notifies_only_on_new_value(self, settings):
        changes = []
        settings.connect_changed("night-theme", changes.append)
        settings.set_string("night-theme", "Adwaita-dark")
        settings.set_string("night-theme", "Yaru-dark")

        assert changes == ["night-theme"]

    def test_other_keys_do_not_notify(self, settings):
        changes = []
        settings.connect_changed("night-theme", changes.append)
        settings.set_string("day-theme", "Yaru")

        assert changes == []

    def test_uint_range_checked_on_write(self, settings):
        with pytest.raises(ValidationError):
            settings.set_uint("nighttime-begin", 1440)
        with pytest.raises(ValidationError):
            settings.set_uint("time-check-period", -5)

    def test_invalid_stored_values_fall_back(self, settings):
        settings.set_string("shell-enabled", "perhaps")
        settings.set_string("nighttime-begin", "late")

        assert settings.get_boolean("shell-enabled") is False
        assert settings.get_uint("nighttime-begin") == 1200

    def test_out_of_range_values_are_clamped(self, settings):
        settings.set_string("time-check-period", "1")
        assert settings.get_uint("time-check-period") == 10

    def test_custom_defaults(self):
        settings = SettingsStore({**flatten_defaults(), "day-theme": "Yaru"})
        assert settings.get_default("day-theme") == "Yaru"
        assert settings.get_default("no-such-key") is None

    def test_double(self):
        settings = SettingsStore({"night-light-schedule-from": "20.5"})
        assert settings.get_double("night-light-schedule-from") == 20.5
        settings.set_double("night-light-schedule-from", 21)
        assert settings.get_double("night-light-schedule-from") == 21.0


class TestFormatValue:
    @pytest.mark.parametrize("text, expected", [("yes", "true"), ("Off", "false"), ("1", "true")])
    def test_booleans(self, text, expected):
        assert format_value("shell-enabled", text) == expected

    def test_invalid_boolean(self):
        with pytest.raises(ValidationError):
            format_value("shell-enabled", "sometimes")

    def test_uint(self):
        assert format_value("time-check-period", "250") == "250"
        with pytest.raises(ValidationError):
            format_value("time-check-period", "fast")
        with pytest.raises(ValidationError):
            format_value("nighttime-end", 2000)

    def test_strings_pass_through(self):
        assert format_value("day-command", "echo hi") == "echo hi"


class TestIniSettingsStore:
    def test_missing_file_uses_defaults(self, config_file):
        store = IniSettingsStore(config_file)

        assert store.get_string("night-theme") == "Adwaita-dark"
        assert not config_file.exists()

    def test_writes_are_persisted_in_sections(self, config_file):
        store = IniSettingsStore(config_file)
        store.set_string("day-theme", "Yaru")
        store.set_uint("nighttime-begin", 1290)

        parser = configparser.ConfigParser()
        parser.read(config_file)
        assert parser.get("Appearance", "day-theme") == "Yaru"
        assert parser.get("Nighttime", "nighttime-begin") == "1290"
        assert parser.get("General", "first-time-user") == "true"

        reopened = IniSettingsStore(config_file)
        assert reopened.get_string("day-theme") == "Yaru"
        assert reopened.get_uint("nighttime-begin") == 1290

    def test_partial_file_keeps_other_defaults(self, config_file):
        config_file.parent.mkdir(parents=True)
        config_file.write_text("[Commands]\ncommands-enabled = true\n")
        store = IniSettingsStore(config_file)

        assert store.get_boolean("commands-enabled") is True
        assert store.get_string("day-theme") == DEFAULT_CONFIG["Appearance"]["day-theme"]

    def test_unparsable_file(self, config_file):
        config_file.parent.mkdir(parents=True)
        config_file.write_text("this is not ini\n")

        with pytest.raises(ConfigError):
            IniSettingsStore(config_file)

    def test_reload_notifies_changed_keys(self, config_file):
        store = IniSettingsStore(config_file)
        store.set_string("day-theme", "Yaru")
        changes = []
        store.connect_changed("day-theme", changes.append)
        store.connect_changed("night-theme", changes.append)

        # Another process edits the file
        other = IniSettingsStore(config_file)
        other.set_string("night-theme", "Yaru-dark")

        assert store.reload() == ["night-theme"]
        assert changes == ["night-theme"]
        assert store.get_string("night-theme") == "Yaru-dark"
        assert store.reload() == []

    def test_percent_signs_in_commands(self, config_file):
        store = IniSettingsStore(config_file)
        store.set_string("night-command", "notify-send \"$(date +%H:%M)\"")

        reopened = IniSettingsStore(config_file)
        assert reopened.get_string("night-command") == "notify-send \"$(date +%H:%M)\""

    def test_failed_write_keeps_old_value(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        store = IniSettingsStore(blocker / "config.ini")
        changes = []
        store.connect_changed("day-theme", changes.append)

        with pytest.raises(ConfigError):
            store.set_string("day-theme", "Yaru")

        assert store.get_string("day-theme") == "Adwaita"
        assert changes == []
        # The same value is tried again rather than treated as already stored
        with pytest.raises(ConfigError):
            store.set_string("day-theme", "Yaru")
