from unittest import mock

from nightswitch_core.gsettings import GioSettingsStore


def test_write_reports_unwritable_key():
    gio_settings = mock.Mock()
    gio_settings.set_string.return_value = False
    store = GioSettingsStore(gio_settings)

    assert store.set_string("gtk-theme", "Yaru") is False
    gio_settings.set_string.assert_called_once_with("gtk-theme", "Yaru")


def test_connect_changed_passes_key_and_disconnects():
    gio_settings = mock.Mock()
    gio_settings.connect.return_value = 42
    store = GioSettingsStore(gio_settings)
    changes = []

    subscription = store.connect_changed("gtk-theme", changes.append)
    signal, handler = gio_settings.connect.call_args.args
    handler(gio_settings, "gtk-theme")
    subscription.release()
    subscription.release()

    assert signal == "changed::gtk-theme"
    assert changes == ["gtk-theme"]
    gio_settings.disconnect.assert_called_once_with(42)
