# service.py
"""
Live TV operations offered to the host, built from one or more sequential
backend calls.

Each public method reads the configuration once, checks the optional
``cancel`` event between backend calls, and performs at most one attempt per
write. Validation (recurrence encoding, reference lookups) happens before
the first mutating call.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from mptv import recurrence
from mptv.client import TvServiceClient
from mptv.config import PluginConfiguration
from mptv.errors import ReferenceNotFoundError, ScheduleConflictError, TransportError
from mptv.mapper import EntityMapper
from mptv.models import (
    ActiveTunerCard, ChannelGroup, ChannelInfo, ProgramInfo, RecordingInfo,
    ScheduleDefaults, ScheduleType, SeriesTimerInfo, ServiceDescription,
    TimerInfo, TunerCard,
)

Cancel = Optional[threading.Event]


class LiveTvService:
    """Host-facing Live TV provider backed by the TV access service"""

    def __init__(
        self,
        configuration: Callable[[], PluginConfiguration],
        client_factory: Callable[[PluginConfiguration], TvServiceClient] = TvServiceClient,
    ):
        """
        Args:
            configuration: returns the current configuration snapshot
            client_factory: builds a backend client for a snapshot
        """
        self.logger = logging.getLogger(__name__)
        self._configuration = configuration
        self._client_factory = client_factory

    def _begin(self):
        """Takes the per-operation configuration snapshot"""
        configuration = self._configuration()
        client = self._client_factory(configuration)
        mapper = EntityMapper(configuration, logo_url=client.channel_logo_url)
        return configuration, client, mapper

    # Status
    def get_status_info(self, cancel: Cancel = None) -> ServiceDescription:
        _, client, _ = self._begin()
        return client.get_service_description(cancel)

    def get_tuner_cards(self, cancel: Cancel = None) -> List[TunerCard]:
        _, client, _ = self._begin()
        return client.get_cards(cancel)

    def get_active_cards(self, cancel: Cancel = None) -> List[ActiveTunerCard]:
        _, client, _ = self._begin()
        return client.get_active_cards(cancel)

    # Channels and guide
    def get_channel_groups(self, cancel: Cancel = None) -> List[ChannelGroup]:
        _, client, _ = self._begin()
        return client.get_groups(cancel)

    def get_channels(self, cancel: Cancel = None) -> List[ChannelInfo]:
        configuration, client, mapper = self._begin()
        channels = client.get_channels(configuration.default_channel_group, cancel)
        return mapper.channels(channels)

    def get_programs(self, channel_id: str, start: datetime, end: datetime, cancel: Cancel = None) -> List[ProgramInfo]:
        _, client, mapper = self._begin()
        programs = client.get_programs(channel_id, start, end, cancel)
        return [mapper.program(p, channel_id) for p in programs]

    def get_channel_stream(self, channel_id: str, cancel: Cancel = None) -> str:
        """Switches a tuner to the channel and returns the backend's stream URL"""
        configuration, client, _ = self._begin()
        url = client.switch_channel_and_stream(int(channel_id), configuration.streaming_user_name, cancel)
        self.logger.info(f"Streaming channel {channel_id} from {url}")
        return url

    # Recordings
    def get_recordings(self, cancel: Cancel = None) -> List[RecordingInfo]:
        _, client, mapper = self._begin()
        return [self._map_recording(client, mapper, r, cancel) for r in client.get_recordings(cancel)]

    def get_recording(self, recording_id: str, cancel: Cancel = None) -> RecordingInfo:
        _, client, mapper = self._begin()
        recording = client.get_recording(recording_id, cancel)
        if recording is None:
            raise ReferenceNotFoundError("recording_id", recording_id, "recording")
        return self._map_recording(client, mapper, recording, cancel)

    def _map_recording(self, client, mapper, recording, cancel):
        schedule = None
        if recording.is_recording:
            # In-progress recordings may belong to a series
            schedule = client.get_schedule(str(recording.schedule_id), cancel)
        return mapper.recording(recording, schedule)

    def delete_recording(self, recording_id: str, cancel: Cancel = None) -> None:
        """Deletes a recording; one that is already gone is not an error"""
        _, client, _ = self._begin()
        try:
            deleted = client.delete_recording(recording_id, cancel)
        except TransportError as e:
            if e.is_not_found:
                self.logger.debug(f"Recording {recording_id} was already deleted")
                return
            raise

        if not deleted:
            raise ScheduleConflictError(f"The backend refused to delete recording {recording_id}")

    # Timers
    def get_timers(self, cancel: Cancel = None) -> List[TimerInfo]:
        _, client, mapper = self._begin()
        return [mapper.timer(s) for s in client.get_schedules(cancel) if not s.is_recurring]

    def get_series_timers(self, cancel: Cancel = None) -> List[SeriesTimerInfo]:
        _, client, mapper = self._begin()
        return [mapper.series_timer(s) for s in client.get_schedules(cancel) if s.is_recurring]

    def get_schedule_defaults(self, cancel: Cancel = None) -> ScheduleDefaults:
        _, client, _ = self._begin()
        return self._read_schedule_defaults(client, cancel)

    def _read_schedule_defaults(self, client: TvServiceClient, cancel: Cancel) -> ScheduleDefaults:
        intervals = {}
        for name in ("preRecordInterval", "postRecordInterval"):
            value = client.read_setting(name, cancel)
            try:
                intervals[name] = int(value)
            except (TypeError, ValueError):
                self.logger.warning(f"Unable to read the setting '{name}' from the backend")
                intervals[name] = 0

        return ScheduleDefaults(
            pre_record_interval=timedelta(minutes=intervals["preRecordInterval"]),
            post_record_interval=timedelta(minutes=intervals["postRecordInterval"]),
        )

    def get_new_timer_defaults(self, cancel: Cancel = None) -> SeriesTimerInfo:
        """Template for a new timer, padded with the backend's default intervals"""
        _, client, _ = self._begin()
        defaults = self._read_schedule_defaults(client, cancel)
        pre = int(defaults.pre_record_interval.total_seconds())
        post = int(defaults.post_record_interval.total_seconds())
        now = datetime.now().astimezone()

        return SeriesTimerInfo(
            channel_id="",
            program_id="",
            name="",
            start_date=now,
            end_date=now,
            is_pre_padding_required=pre > 0,
            is_post_padding_required=post > 0,
            pre_padding_seconds=pre,
            post_padding_seconds=post,
        )

    def create_timer(self, timer: TimerInfo, cancel: Cancel = None) -> None:
        _, client, mapper = self._begin()

        program = client.get_program(timer.program_id, cancel)
        if program is None:
            raise ReferenceNotFoundError("timer.program_id", timer.program_id, "program")

        params = mapper.schedule_params(program, ScheduleType.ONCE, timer)
        self.logger.info(f"Creating schedule with StartTime: {timer.start_date}, EndTime: {timer.end_date}, params: {params}")
        self._add_schedule(client, params, cancel)

    def create_series_timer(self, timer: SeriesTimerInfo, cancel: Cancel = None) -> None:
        _, client, mapper = self._begin()
        schedule_type = recurrence.encode(timer.recurrence)

        program = client.get_program(timer.program_id, cancel)
        if program is None:
            raise ReferenceNotFoundError("timer.program_id", timer.program_id, "program")

        params = mapper.schedule_params(program, schedule_type, timer)
        self.logger.info(
            f"Creating series schedule ({recurrence.describe(schedule_type)}) with "
            f"StartTime: {timer.start_date}, EndTime: {timer.end_date}, params: {params}"
        )
        self._add_schedule(client, params, cancel)

    def change_series_timer(self, timer: SeriesTimerInfo, cancel: Cancel = None) -> None:
        """Replaces a series schedule by deleting it and creating a new one.

        The two writes are not atomic. When the create fails after the delete
        went through, the old schedule is gone and the error is re-raised.
        """
        _, client, mapper = self._begin()
        schedule_type = recurrence.encode(timer.recurrence)

        existing = client.get_schedule(timer.id, cancel)
        if existing is None:
            raise ReferenceNotFoundError("timer.id", timer.id, "schedule")

        params = mapper.schedule_params(existing, schedule_type, timer)
        self.logger.info(
            f"Changing series schedule {timer.id} to {recurrence.describe(schedule_type)} with "
            f"StartTime: {timer.start_date}, EndTime: {timer.end_date}, params: {params}"
        )

        self._delete_schedule(client, timer.id, cancel)
        try:
            self._add_schedule(client, params, cancel)
        except Exception:
            self.logger.error(f"Schedule {timer.id} was deleted but its replacement could not be created")
            raise

    def cancel_timer(self, timer_id: str, cancel: Cancel = None) -> None:
        _, client, _ = self._begin()
        self._delete_schedule(client, timer_id, cancel)

    def cancel_series_timer(self, timer_id: str, cancel: Cancel = None) -> None:
        _, client, _ = self._begin()
        self._delete_schedule(client, timer_id, cancel)

    def _add_schedule(self, client: TvServiceClient, params: dict, cancel: Cancel) -> None:
        if not client.add_schedule(params, cancel):
            raise ScheduleConflictError()

    def _delete_schedule(self, client: TvServiceClient, schedule_id: str, cancel: Cancel) -> None:
        if not client.delete_schedule(schedule_id, cancel):
            raise ScheduleConflictError(f"The backend refused to delete schedule {schedule_id}")
