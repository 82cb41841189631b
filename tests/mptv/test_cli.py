import pytest
from datetime import datetime
from unittest.mock import Mock
from typer.testing import CliRunner

from mptv.cli import app as cli
from mptv.errors import ConfigurationError, ScheduleConflictError
from mptv.models import ChannelInfo, ChannelType, DayOfWeek, SeriesTimerInfo
from mptv.service import LiveTvService

runner = CliRunner()


@pytest.fixture
def service(monkeypatch):
    service = Mock(spec=LiveTvService)
    monkeypatch.setattr(cli, "get_app_state", lambda verbose: {"service": service, "config_manager": Mock()})
    return service


def test_channels(service):
    service.get_channels.return_value = [ChannelInfo(id="3", name="Alpha", channel_type=ChannelType.TV)]
    result = runner.invoke(cli.app, ["channels"])
    assert result.exit_code == 0
    assert "Alpha" in result.output


def test_series_shows_recurrence(service):
    start = datetime(2024, 5, 18, 20, 0).astimezone()
    service.get_series_timers.return_value = [SeriesTimerInfo(
        id="5", channel_id="12", program_id="5", name="Soap", start_date=start, end_date=start,
        days=[DayOfWeek.SATURDAY, DayOfWeek.SUNDAY],
    )]
    result = runner.invoke(cli.app, ["series"])
    assert result.exit_code == 0
    assert "Weekends" in result.output


def test_backend_error_exits_non_zero(service):
    service.delete_recording.side_effect = ScheduleConflictError("refused")
    result = runner.invoke(cli.app, ["delete-recording", "3"])
    assert result.exit_code == 1
    assert "refused" in result.output


def test_bad_configuration_exits_non_zero(service):
    service.get_channels.side_effect = ConfigurationError("sort_order", "title")
    result = runner.invoke(cli.app, ["channels"])
    assert result.exit_code == 1
    assert "sort_order" in result.output
