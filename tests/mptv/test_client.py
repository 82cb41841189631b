import time
import threading
import pytest
import requests
from datetime import datetime, timezone
from unittest.mock import Mock

from mptv.client import TvServiceClient
from mptv.config import PluginConfiguration
from mptv.errors import MalformedDataError, OperationCancelledError, TransportError
from mptv.models import ScheduleType, to_url_date

BASE = "http://tvserver:4322/MPExtended/TVAccessService/json/"


def make_response(payload=None, status=200, text=None):
    response = Mock()
    response.status_code = status
    response.text = text if text is not None else str(payload)
    if status >= 400:
        error = requests.HTTPError(f"{status} Error")
        error.response = response
        response.raise_for_status.side_effect = error
    if text is not None:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def client(session):
    return TvServiceClient(PluginConfiguration(host="tvserver", timeout=5), session=session)


@pytest.fixture
def new_york(monkeypatch):
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


class TestTransport:
    def test_url_params_and_timeout(self, client, session):
        session.get.return_value = make_response({"Result": True})
        assert client.delete_schedule("5") is True
        session.get.assert_called_once_with(BASE + "DeleteSchedule", params={"scheduleId": "5"}, timeout=5)

    def test_basic_auth(self, session):
        TvServiceClient(PluginConfiguration(username="admin", password="secret"), session=session)
        assert session.auth == ("admin", "secret")

    def test_http_error(self, client, session):
        session.get.return_value = make_response(status=404)
        with pytest.raises(TransportError) as exc_info:
            client.get_recordings()
        assert exc_info.value.status_code == 404
        assert exc_info.value.is_not_found

    def test_connection_error(self, client, session):
        session.get.side_effect = requests.ConnectionError("refused")
        with pytest.raises(TransportError) as exc_info:
            client.get_cards()
        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    def test_non_json_body(self, client, session):
        session.get.return_value = make_response(text="<html>oops</html>")
        with pytest.raises(MalformedDataError):
            client.get_schedules()

    def test_missing_result_field(self, client, session):
        session.get.return_value = make_response({"Something": 1})
        with pytest.raises(MalformedDataError):
            client.add_schedule({"title": "x"})

    def test_cancelled_before_request(self, client, session):
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(OperationCancelledError):
            client.get_channels(cancel=cancel)
        session.get.assert_not_called()

    def test_no_retries(self, client, session):
        session.get.side_effect = requests.Timeout("slow")
        with pytest.raises(TransportError):
            client.add_schedule({"title": "x"})
        assert session.get.call_count == 1


class TestCalls:
    def test_get_channels_with_group(self, client, session):
        session.get.return_value = make_response([{"Id": 1, "Title": "One"}, {"Id": 2, "Title": "Two"}])
        channels = client.get_channels(group_id=3)
        assert [c.title for c in channels] == ["One", "Two"]
        assert session.get.call_args.kwargs["params"] == {"groupId": 3}

    def test_get_channels_without_group(self, client, session):
        session.get.return_value = make_response([])
        assert client.get_channels() == []
        assert session.get.call_args.kwargs["params"] is None

    def test_groups_sorted(self, client, session):
        session.get.return_value = make_response([
            {"Id": 1, "GroupName": "B", "SortOrder": 2},
            {"Id": 2, "GroupName": "A", "SortOrder": 1},
        ])
        assert [g.group_name for g in client.get_groups()] == ["A", "B"]

    def test_get_programs_sends_local_times(self, client, session):
        session.get.return_value = make_response([])
        start = datetime(2024, 5, 15, 18, 0, tzinfo=timezone.utc)
        end = datetime(2024, 5, 15, 22, 0, tzinfo=timezone.utc)
        client.get_programs("12", start, end)
        assert session.get.call_args.kwargs["params"] == {
            "channelId": "12",
            "starttime": to_url_date(start),
            "endtime": to_url_date(end),
        }

    def test_get_programs_naive_range_is_utc(self, client, session, new_york):
        session.get.return_value = make_response([])
        client.get_programs("12", datetime(2024, 5, 15, 12, 0), datetime(2024, 5, 15, 14, 0))
        params = session.get.call_args.kwargs["params"]
        assert params["starttime"] == "2024-05-15T08:00:00"
        assert params["endtime"] == "2024-05-15T10:00:00"

    def test_get_program_not_found(self, client, session):
        session.get.return_value = make_response(None)
        assert client.get_program("99") is None

    def test_get_schedule(self, client, session):
        session.get.return_value = make_response({
            "Id": 5, "ChannelId": 1, "Title": "Soap", "ScheduleType": 5,
            "StartTime": "/Date(1389726000000)/", "EndTime": "/Date(1389727800000)/",
        })
        schedule = client.get_schedule("5")
        assert schedule.schedule_type == ScheduleType.WEEKENDS

    def test_stream_url(self, client, session):
        session.get.return_value = make_response("rtsp://tvserver/stream1")
        assert client.switch_channel_and_stream(12, "mptv") == "rtsp://tvserver/stream1"
        assert session.get.call_args.kwargs["params"] == {"userName": "mptv", "channelId": 12}

    def test_read_setting(self, client, session):
        session.get.return_value = make_response({"Result": "5"})
        assert client.read_setting("preRecordInterval") == "5"

    def test_channel_logo_url(self, client):
        assert client.channel_logo_url(7).startswith("http://tvserver:4322/MPExtended/StreamingService/")
        assert "id=7" in client.channel_logo_url(7)
