from datetime import datetime

import pytest

from nightswitch_core.exceptions import NightSwitchError
from nightswitch_core.window import (
    ManualWindowProvider,
    NightLightWindowProvider,
    TimeWindow,
    create_provider,
    hours_to_minutes,
)
from tests.conftest import FakeDesktop


def at(hour, minute=0):
    return datetime(2024, 1, 1, hour, minute)


class TestTimeWindow:
    @pytest.mark.parametrize("begin, end", [(0, 1), (360, 1320), (0, 1439), (1200, 1201)])
    def test_window_within_a_day(self, begin, end):
        window = TimeWindow(begin, end)
        assert not window.crosses_midnight
        for minutes in range(1440):
            assert window.contains(minutes) == (begin <= minutes < end)

    @pytest.mark.parametrize("begin, end", [(1320, 60), (1439, 0), (1, 0), (720, 360)])
    def test_window_crossing_midnight(self, begin, end):
        window = TimeWindow(begin, end)
        assert window.crosses_midnight
        for minutes in range(1440):
            assert window.contains(minutes) == (minutes < end or begin <= minutes)

    @pytest.mark.parametrize("edge", [0, 600, 1439])
    def test_equal_begin_and_end_is_always_night(self, edge):
        # begin == end takes the wraparound branch, which covers every minute
        window = TimeWindow(edge, edge)
        assert all(window.contains(minutes) for minutes in range(1440))

    def test_late_night_window(self):
        window = TimeWindow(1320, 60)
        assert window.contains(1410)  # 23:30
        assert not window.contains(120)  # 02:00

    def test_window_spanning_daytime_hours(self):
        window = TimeWindow(360, 1320)
        assert window.contains(720)  # 12:00
        assert not window.contains(1380)  # 23:00

    def test_minutes_until_change(self):
        window = TimeWindow(1200, 420)
        assert window.minutes_until_change(720) == 480  # 12:00 -> 20:00
        assert window.minutes_until_change(1380) == 480  # 23:00 -> 07:00
        assert window.minutes_until_change(1200) == 660  # 20:00 -> 07:00
        assert window.minutes_until_change(419) == 1
        assert TimeWindow(600, 600).minutes_until_change(0) is None


class TestManualWindowProvider:
    def test_reads_window_from_settings(self, settings):
        settings.set_uint("nighttime-begin", 1320)
        settings.set_uint("nighttime-end", 60)
        provider = ManualWindowProvider(settings)
        provider.enable()

        assert provider.current_window() == TimeWindow(1320, 60)
        assert provider.is_nighttime(at(23, 30))
        assert not provider.is_nighttime(at(2, 0))

    def test_follows_setting_changes(self, settings):
        provider = ManualWindowProvider(settings)
        provider.enable()

        settings.set_uint("nighttime-begin", 360)
        settings.set_uint("nighttime-end", 1320)

        # begin < end: night is the stretch between them
        assert provider.current_window() == TimeWindow(360, 1320)
        assert provider.is_nighttime(at(12))
        assert not provider.is_nighttime(at(23))

    def test_disable_stops_following_changes(self, settings):
        provider = ManualWindowProvider(settings)
        provider.enable()
        provider.disable()
        settings.set_uint("nighttime-begin", 100)

        assert not provider.enabled
        with pytest.raises(NightSwitchError):
            provider.current_window()


class TestNightLightWindowProvider:
    def test_converts_hours_to_minutes(self, desktop):
        desktop.night_light.set_double("night-light-schedule-from", 21.5)
        desktop.night_light.set_double("night-light-schedule-to", 6.25)
        provider = NightLightWindowProvider(desktop.night_light)
        provider.enable()

        assert provider.current_window() == TimeWindow(1290, 375)

    def test_follows_schedule_changes(self, desktop):
        provider = NightLightWindowProvider(desktop.night_light)
        provider.enable()
        desktop.night_light.set_double("night-light-schedule-from", 22.0)

        assert provider.current_window().begin == 1320

    def test_hours_to_minutes_wraps_at_midnight(self):
        assert hours_to_minutes(24.0) == 0
        assert hours_to_minutes(23.99) == 1439


class TestCreateProvider:
    def test_manual_by_default(self, settings, desktop):
        assert isinstance(create_provider(settings, desktop), ManualWindowProvider)

    def test_night_light_when_selected(self, settings, desktop):
        settings.set_boolean("nighttime-from-night-light", True)
        assert isinstance(create_provider(settings, desktop), NightLightWindowProvider)

    def test_falls_back_to_manual_without_night_light(self, settings):
        settings.set_boolean("nighttime-from-night-light", True)
        provider = create_provider(settings, FakeDesktop(night_light=False))
        assert isinstance(provider, ManualWindowProvider)
