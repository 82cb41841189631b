# mapper.py
import math
import logging
from typing import Callable, Dict, Iterable, List, Optional, Union

from mptv import recurrence
from mptv.config import PluginConfiguration
from mptv.errors import MalformedDataError
from mptv.genres import GenreMapper
from mptv.paths import RecordingPathMapper
from mptv.models import (
    Channel, ChannelInfo, ChannelSorting, ChannelType, Program, ProgramInfo,
    Recording, RecordingInfo, RecordingStatus, Schedule, ScheduleType,
    SeriesTimerInfo, TimerInfo, to_url_date,
)


def round_up_minutes(seconds: int) -> int:
    """Converts a padding in seconds to whole minutes, rounding up"""
    return math.ceil(seconds / 60)


def parse_number(value: str, field_name: str) -> Optional[int]:
    """Parses an optional numeric string; empty means absent"""
    if not value:
        return None
    try:
        return int(value)
    except ValueError as e:
        raise MalformedDataError(field_name, value) from e


class EntityMapper:
    """Converts backend entities into host entities and back.

    Holds one configuration snapshot, so build a new mapper per operation.
    """

    def __init__(self, configuration: PluginConfiguration, logo_url: Optional[Callable[[int], str]] = None):
        self.logger = logging.getLogger(__name__)
        self.configuration = configuration
        self.logo_url = logo_url
        self.genre_mapper = GenreMapper(configuration)
        self.path_mapper = RecordingPathMapper(configuration)

    # Channels
    def channels(self, channels: Iterable[Channel]) -> List[ChannelInfo]:
        """Sorts by the configured order, then drops channels hidden from the guide"""
        ordered = list(channels)
        sort_order = self.configuration.channel_sort_order
        if sort_order == ChannelSorting.NAME:
            ordered.sort(key=lambda c: c.title.casefold())
        elif sort_order == ChannelSorting.NUMBER:
            ordered.sort(key=lambda c: c.id)

        visible = [self.channel(c) for c in ordered if c.visible_in_guide]
        self.logger.debug(f"{len(visible)} of {len(ordered)} channels visible in guide")
        return visible

    def channel(self, channel: Channel) -> ChannelInfo:
        return ChannelInfo(
            id=str(channel.id),
            name=channel.title,
            channel_type=ChannelType.TV if channel.is_tv else ChannelType.RADIO,
            # the backend has no stable external channel number
            number=" ",
            image_url=self.logo_url(channel.id) if self.logo_url else None,
        )

    # Programs
    def program(self, program: Program, channel_id: Union[str, int]) -> ProgramInfo:
        info = ProgramInfo(
            id=str(program.id),
            channel_id=str(channel_id),
            name=program.title,
            start_date=program.start_time,
            end_date=program.end_time,
            overview=program.description,
            episode_title=program.episode_name,
            episode_number=parse_number(program.episode_num, "EpisodeNum"),
            season_number=parse_number(program.series_num, "SeriesNum"),
        )

        if program.genre:
            info.genres.append(program.genre)
            self.genre_mapper.populate_program_genres(info)

        return info

    # Recordings
    def recording(self, recording: Recording, schedule: Optional[Schedule] = None) -> RecordingInfo:
        """Maps a recording.

        ``schedule`` is the originating schedule, looked up by the caller for
        recordings still in progress.
        """
        info = RecordingInfo(
            id=str(recording.id),
            channel_id=str(recording.channel_id),
            program_id=str(recording.schedule_id),
            name=recording.title,
            start_date=recording.start_time,
            end_date=recording.end_time,
            overview=recording.description,
            episode_title=recording.episode_name,
            is_series=bool(recording.episode_num),
            path=self.path_mapper.map_path(recording.file_name),
        )

        if schedule is not None and schedule.series:
            info.series_timer_id = str(schedule.parent_schedule_id)

        if recording.genre:
            info.genres.append(recording.genre)

        return info

    # Schedules
    def series_timer(self, schedule: Schedule) -> SeriesTimerInfo:
        info = SeriesTimerInfo(
            id=str(schedule.id),
            series_id=str(schedule.id),
            program_id=str(schedule.id),
            channel_id=str(schedule.channel_id),
            name=schedule.title,
            start_date=schedule.start_time,
            end_date=schedule.end_time,
            is_pre_padding_required=schedule.pre_record_interval > 0,
            is_post_padding_required=schedule.post_record_interval > 0,
            pre_padding_seconds=schedule.pre_record_interval * 60,
            post_padding_seconds=schedule.post_record_interval * 60,
        )

        # The backend's day of week is in its own local time
        decoded = recurrence.decode(schedule.schedule_type, schedule.start_time.astimezone())
        info.days = sorted(decoded.days)
        info.record_any_time = decoded.any_time
        info.record_any_channel = decoded.any_channel
        info.record_new_only = False

        return info

    def timer(self, schedule: Schedule) -> TimerInfo:
        return TimerInfo(
            id=str(schedule.id),
            program_id=str(schedule.id),
            channel_id=str(schedule.channel_id),
            series_timer_id=str(schedule.parent_schedule_id) if schedule.parent_schedule_id > 0 else None,
            name=schedule.title,
            start_date=schedule.start_time,
            end_date=schedule.end_time,
            status=RecordingStatus.NEW,
            is_pre_padding_required=schedule.pre_record_interval > 0,
            is_post_padding_required=schedule.post_record_interval > 0,
            pre_padding_seconds=schedule.pre_record_interval * 60,
            post_padding_seconds=schedule.post_record_interval * 60,
        )

    def schedule_params(
        self,
        source: Union[Program, Schedule],
        schedule_type: ScheduleType,
        timer: Union[TimerInfo, SeriesTimerInfo],
    ) -> Dict[str, Union[str, int]]:
        """Builds the query parameters for AddScheduleDetailed.

        ``source`` is the program (new timers) or existing schedule (changed
        series timers) providing the channel, title and times.
        """
        params = {
            "channelid": source.channel_id,
            "title": source.title,
            "starttime": to_url_date(source.start_time),
            "endtime": to_url_date(source.end_time),
            "scheduletype": int(schedule_type),
        }

        if timer.is_pre_padding_required and timer.pre_padding_seconds > 0:
            params["preRecordInterval"] = round_up_minutes(timer.pre_padding_seconds)

        if timer.is_post_padding_required and timer.post_padding_seconds > 0:
            params["postRecordInterval"] = round_up_minutes(timer.post_padding_seconds)

        return params
