"""
Unit tests for the ffmpeg progress monitor.
"""

import pytest

from domain.models import MonitorState
from domain.exceptions import ErrorKind, ProgressParseError
from infrastructure.media.progress import ProgressMonitor, parse_timestamp


def duration_line(ts):
    return f"  Duration: {ts}, start: 0.000000, bitrate: 1205 kb/s"


def stats_line(ts, speed=None):
    line = f"frame=  123 fps= 30 q=-1.0 size=     512kB time={ts} bitrate=1023.2kbits/s"
    if speed is not None:
        line += f" speed={speed}x"
    return line


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class TestParseTimestamp:
    """Test parse_timestamp()."""

    @pytest.mark.parametrize("text, expected", [
        ("00:00:00.00", 0.0),
        ("00:01:40.00", 100.0),
        ("01:02:03.5", 3723.5),
        ("00:00:07", 7.0),
        ("-00:00:00.02", -0.02),
    ])
    def test_valid(self, text, expected):
        assert parse_timestamp(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text", ["N/A", "", "1:2", "aa:bb:cc", "00:00:xx.5", "00:-1:00"])
    def test_invalid(self, text):
        with pytest.raises(ProgressParseError):
            parse_timestamp(text)


class TestProgressMonitor:
    """Test ProgressMonitor state machine."""

    def test_initial_state(self):
        monitor = ProgressMonitor()
        assert monitor.state is MonitorState.AWAITING_DURATION
        assert monitor.total_duration is None

    def test_percent_sequence(self):
        """Duration 100s with ticks at 10/50/100s -> 10, 50, 100."""
        monitor = ProgressMonitor()
        lines = [
            "ffmpeg version 6.1",
            duration_line("00:01:40.00"),
            stats_line("00:00:10.00"),
            stats_line("00:00:50.00"),
            stats_line("00:01:40.00"),
        ]

        events = list(monitor.events(lines))

        assert [e.percent_complete for e in events] == [10.0, 50.0, 100.0]
        assert [e.elapsed_media_time for e in events] == [10.0, 50.0, 100.0]
        assert all(e.total_duration == 100.0 for e in events)
        assert monitor.state is MonitorState.STREAMING
        assert monitor.finish(0) is MonitorState.SUCCESS

    def test_events_is_lazy(self):
        monitor = ProgressMonitor()

        def lines():
            yield duration_line("00:00:10.00")
            yield stats_line("00:00:05.00")
            raise AssertionError("read past the first event")

        gen = monitor.events(lines())
        assert next(gen).percent_complete == 50.0

    def test_time_lines_before_duration_are_ignored(self):
        monitor = ProgressMonitor()
        events = list(monitor.events([stats_line("00:00:05.00"), duration_line("00:00:10.00")]))
        assert events == []
        assert monitor.state is MonitorState.STREAMING

    def test_percent_clamped_to_100(self):
        monitor = ProgressMonitor()
        events = list(monitor.events([duration_line("00:00:10.00"), stats_line("00:00:12.00")]))
        assert events[0].percent_complete == 100.0

    def test_regressing_time_is_dropped(self):
        monitor = ProgressMonitor()
        lines = [
            duration_line("00:00:10.00"),
            stats_line("00:00:05.00"),
            stats_line("00:00:04.00"),
            stats_line("00:00:06.00"),
        ]
        percents = [e.percent_complete for e in monitor.events(lines)]
        assert percents == [50.0, 60.0]

    def test_negative_time_clamped_to_zero(self):
        monitor = ProgressMonitor()
        events = list(monitor.events([duration_line("00:00:10.00"), stats_line("-00:00:00.02")]))
        assert events[0].percent_complete == 0.0
        assert events[0].elapsed_media_time == 0.0

    def test_malformed_lines_skipped(self):
        monitor = ProgressMonitor()
        lines = [
            duration_line("00:00:10.00"),
            stats_line("N/A"),
            "time=garbage",
            "frame=1 time=00:xx:01.00",
            "\x00\xff binary noise",
            stats_line("00:00:01.00"),
        ]
        events = list(monitor.events(lines))
        assert [e.percent_complete for e in events] == [10.0]

    def test_duration_not_available(self):
        monitor = ProgressMonitor()
        monitor.feed("  Duration: N/A, bitrate: N/A")
        assert monitor.state is MonitorState.AWAITING_DURATION

    def test_no_duration_exit_zero_is_success(self):
        monitor = ProgressMonitor()
        events = list(monitor.events(["ffmpeg version 6.1", stats_line("00:00:01.00")]))

        assert events == []
        assert monitor.finish(0) is MonitorState.SUCCESS
        assert monitor.failure_kind is None

    def test_no_duration_nonzero_exit(self):
        monitor = ProgressMonitor()
        monitor.feed("in.mkv: No such file or directory")

        assert monitor.finish(1) is MonitorState.FAILURE
        assert monitor.failure_kind is ErrorKind.NO_DURATION
        assert "No duration detected" in monitor.failure_message
        assert "No such file or directory" in monitor.failure_message

    def test_streaming_nonzero_exit(self):
        monitor = ProgressMonitor()
        list(monitor.events([
            duration_line("00:00:10.00"),
            stats_line("00:00:02.00"),
            "Error while decoding stream #0:0: Invalid data found when processing input",
            stats_line("00:00:03.00"),
        ]))

        assert monitor.finish(69) is MonitorState.FAILURE
        assert monitor.failure_kind is ErrorKind.ENGINE_EXIT
        assert monitor.exit_code == 69
        assert "status 69" in monitor.failure_message
        assert "Invalid data found" in monitor.failure_message

    def test_zero_duration_suppresses_percent(self):
        monitor = ProgressMonitor()
        events = list(monitor.events([duration_line("00:00:00.00"), stats_line("00:00:01.00")]))

        assert events == []
        assert monitor.total_duration == 0.0
        assert monitor.finish(1) is MonitorState.FAILURE
        assert monitor.failure_kind is ErrorKind.ENGINE_EXIT

    def test_tail_is_bounded(self):
        monitor = ProgressMonitor(tail_lines=3)
        for i in range(100):
            monitor.feed(f"line {i}\n")
        assert monitor.tail == ["line 97", "line 98", "line 99"]

    def test_blank_lines_not_kept_in_tail(self):
        monitor = ProgressMonitor()
        monitor.feed("\r\n")
        monitor.feed("   ")
        assert monitor.tail == []

    def test_feed_after_terminal_is_ignored(self):
        monitor = ProgressMonitor()
        monitor.feed(duration_line("00:00:10.00"))
        monitor.finish(0)

        assert monitor.feed(stats_line("00:00:05.00")) is None
        assert monitor.finish(1) is MonitorState.SUCCESS

    def test_eta_from_speed(self):
        monitor = ProgressMonitor()
        events = list(monitor.events([duration_line("00:01:40.00"), stats_line("00:00:20.00", speed="2.00")]))
        assert events[0].estimated_time_remaining == pytest.approx(40.0)

    def test_eta_from_wall_clock(self):
        clock = FakeClock(100.0)
        monitor = ProgressMonitor(clock=clock)
        monitor.feed(duration_line("00:01:40.00"))
        clock.now = 110.0

        event = monitor.feed(stats_line("00:00:25.00"))

        # 10s wall for 25% -> 30s left
        assert event.estimated_time_remaining == pytest.approx(30.0)

    def test_eta_unknown_below_one_percent(self):
        clock = FakeClock(0.0)
        monitor = ProgressMonitor(clock=clock)
        monitor.feed(duration_line("01:00:00.00"))
        clock.now = 5.0

        event = monitor.feed(stats_line("00:00:01.00"))

        assert event.estimated_time_remaining is None

    def test_eta_unknown_when_over_an_hour(self):
        clock = FakeClock(0.0)
        monitor = ProgressMonitor(clock=clock)
        monitor.feed(duration_line("00:01:40.00"))
        clock.now = 1000.0

        event = monitor.feed(stats_line("00:00:10.00"))

        assert event.estimated_time_remaining is None
