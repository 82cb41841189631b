import pytest
from datetime import datetime, timezone, timedelta

from mptv.errors import MalformedDataError
from mptv.models import (
    Channel, ChannelGroup, DayOfWeek, Program, Recording, Schedule, ScheduleType,
    SeriesTimerInfo, ServiceDescription, ActiveTunerCard, ValidationResult,
    parse_datetime, parse_int, to_url_date,
)


class TestParsing:
    def test_wcf_date(self):
        """WCF dates are milliseconds since the epoch in UTC."""
        assert parse_datetime("/Date(1389726000000+0100)/") == datetime(2014, 1, 14, 19, 0, tzinfo=timezone.utc)
        assert parse_datetime("/Date(0)/") == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_iso_date_with_offset(self):
        result = parse_datetime("2024-05-15T20:15:00+02:00")
        assert result == datetime(2024, 5, 15, 18, 15, tzinfo=timezone.utc)
        assert result.tzinfo == timezone.utc

    def test_naive_iso_date_is_local(self):
        result = parse_datetime("2024-05-15T20:15:00")
        assert result.tzinfo == timezone.utc
        assert result.astimezone().replace(tzinfo=None) == datetime(2024, 5, 15, 20, 15)

    def test_empty_date(self):
        assert parse_datetime(None) is None
        assert parse_datetime("") is None

    def test_garbage_date(self):
        with pytest.raises(MalformedDataError):
            parse_datetime("tomorrow", "StartTime")
        with pytest.raises(MalformedDataError):
            parse_datetime(12345, "StartTime")

    def test_parse_int(self):
        assert parse_int("42", "Id") == 42
        assert parse_int(None, "Id") == 0
        assert parse_int("", "ParentScheduleId", default=-1) == -1
        with pytest.raises(MalformedDataError) as exc_info:
            parse_int("4x", "Id")
        assert exc_info.value.field == "Id"

    def test_to_url_date_is_local_time(self):
        value = datetime(2024, 5, 15, 18, 15, tzinfo=timezone.utc)
        expected = value.astimezone().strftime("%Y-%m-%dT%H:%M:%S")
        assert to_url_date(value) == expected

    def test_to_url_date_naive_is_utc(self):
        naive = datetime(2024, 5, 15, 18, 15)
        assert to_url_date(naive) == to_url_date(naive.replace(tzinfo=timezone.utc))


class TestBackendEntities:
    def test_channel(self):
        channel = Channel.from_dict({
            "Id": 12, "Title": "BBC One", "IsTv": True, "VisibleInGuide": False,
            "GroupNames": ["All Channels", "HD"],
        })
        assert channel.id == 12
        assert channel.title == "BBC One"
        assert channel.visible_in_guide is False
        assert channel.group_names == ("All Channels", "HD")

    def test_program_optional_fields(self):
        program = Program.from_dict({
            "Id": 5, "ChannelId": 12, "Title": "News",
            "StartTime": "/Date(1389726000000)/", "EndTime": "/Date(1389729600000)/",
            "EpisodeNum": None, "Genre": None,
        })
        assert program.episode_num == ""
        assert program.genre == ""
        assert program.end_time - program.start_time == timedelta(hours=1)

    def test_recording(self):
        recording = Recording.from_dict({
            "Id": 3, "ChannelId": 12, "ScheduleId": 8, "Title": "Film",
            "StartTime": "2024-05-15T20:00:00Z", "EndTime": "2024-05-15T22:00:00Z",
            "FileName": "C:\\Recordings\\film.ts", "IsRecording": True,
        })
        assert recording.schedule_id == 8
        assert recording.is_recording is True
        assert recording.file_name == "C:\\Recordings\\film.ts"

    def test_schedule(self):
        schedule = Schedule.from_dict({
            "Id": 5, "ChannelId": 12, "Title": "Soap", "ScheduleType": 6,
            "StartTime": "2024-05-15T18:00:00Z", "EndTime": "2024-05-15T18:30:00Z",
            "ParentScheduleId": -1, "Series": False,
            "PreRecordInterval": 5, "PostRecordInterval": 10,
        })
        assert schedule.schedule_type == ScheduleType.WORKING_DAYS
        assert schedule.is_recurring
        assert schedule.pre_record_interval == 5
        assert schedule.parent_schedule_id == -1

    def test_missing_times_are_malformed(self):
        with pytest.raises(MalformedDataError) as exc_info:
            Schedule.from_dict({"Id": 1, "ChannelId": 2, "Title": "x", "ScheduleType": 2})
        assert exc_info.value.field == "StartTime"

        with pytest.raises(MalformedDataError) as exc_info:
            Program.from_dict({"Id": 1, "ChannelId": 2, "StartTime": "/Date(0)/", "EndTime": ""})
        assert exc_info.value.field == "EndTime"

        with pytest.raises(MalformedDataError):
            Recording.from_dict({"Id": 1, "ChannelId": 2, "StartTime": None, "EndTime": "/Date(0)/"})

    def test_schedule_unknown_type(self):
        with pytest.raises(MalformedDataError):
            Schedule.from_dict({"Id": 1, "ScheduleType": 9})

    def test_channel_group_and_status(self):
        group = ChannelGroup.from_dict({"Id": 2, "GroupName": "Favourites", "SortOrder": 1})
        assert group.group_name == "Favourites"
        status = ServiceDescription.from_dict({"ServiceVersion": "0.5.4", "ApiVersion": 4, "HasConnectionToTVServer": True})
        assert status.has_connection_to_tv_server

    def test_active_card_user(self):
        card = ActiveTunerCard.from_dict({"Id": 1, "ChannelId": 12, "User": {"Name": "mptv"}, "IsTimeShifting": True})
        assert card.user_name == "mptv"
        assert card.is_time_shifting


class TestHostEntities:
    def test_series_timer_recurrence(self):
        start = datetime(2024, 5, 15, 20, 15, tzinfo=timezone.utc)
        timer = SeriesTimerInfo(
            channel_id="12", program_id="5", name="Soap",
            start_date=start, end_date=start + timedelta(minutes=30),
            days=[DayOfWeek.SATURDAY, DayOfWeek.SUNDAY],
            record_any_time=False,
        )
        recurrence = timer.recurrence
        assert recurrence.days == {DayOfWeek.SATURDAY, DayOfWeek.SUNDAY}
        assert recurrence.start_date == start.date()
        assert recurrence.start_time == start.time()
        assert str(recurrence) == "days=Sat,Sun"


def test_validation_result():
    result = ValidationResult()
    assert result.passed
    result.add("config_port", "error", "bad port")
    result.add("config_auth", "warning", "no user")
    assert result.failed
    assert result.errors == {"config_port": ["bad port"]}
    assert result.warnings == {"config_auth": ["no user"]}
