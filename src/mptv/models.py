# models.py
import re
from enum import Enum, IntEnum
from dataclasses import dataclass, field
from collections import defaultdict
from datetime import datetime, date, time, timedelta, timezone
from typing import Optional, List, Dict, Any, FrozenSet

from mptv.errors import MalformedDataError


# WCF style dates, e.g. "/Date(1389726000000+0100)/"
WCF_DATE_REGEX = re.compile(r"^/Date\((?P<ms>-?\d+)(?P<offset>[+-]\d{4})?\)/$")


def parse_datetime(value: Any, field_name: str = "date") -> Optional[datetime]:
    """Parse a backend timestamp into an aware UTC datetime.

    Accepts WCF "/Date(ms)/" strings and ISO 8601 strings. Naive ISO values are
    taken as backend local time.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        match = WCF_DATE_REGEX.match(value)
        if match:
            # The millisecond count is already UTC, the offset is informational
            return datetime.fromtimestamp(int(match.group("ms")) / 1000, tz=timezone.utc)
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise MalformedDataError(field_name, value) from e
    else:
        raise MalformedDataError(field_name, value)

    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt.astimezone(timezone.utc)


def parse_int(value: Any, field_name: str, default: int = 0) -> int:
    """Parse an integer field, raising MalformedDataError on garbage"""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise MalformedDataError(field_name, value)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise MalformedDataError(field_name, value) from e


def require_datetime(value: Any, field_name: str) -> datetime:
    """Like parse_datetime, but a missing value is malformed too"""
    dt = parse_datetime(value, field_name)
    if dt is None:
        raise MalformedDataError(field_name, value)
    return dt


def to_url_date(value: datetime) -> str:
    """Formats a datetime as backend local time for query strings.

    Naive values are taken as UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone().strftime("%Y-%m-%dT%H:%M:%S")


# Enumerations
class ScheduleType(IntEnum):
    """Recurrence patterns understood by the backend (wire values)"""
    ONCE = 0
    DAILY = 1
    WEEKLY = 2
    EVERY_TIME_ON_THIS_CHANNEL = 3
    EVERY_TIME_ON_EVERY_CHANNEL = 4
    WEEKENDS = 5
    WORKING_DAYS = 6
    WEEKLY_EVERY_TIME_ON_THIS_CHANNEL = 7


class DayOfWeek(IntEnum):
    """Day of week, numbered like datetime.weekday()"""
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def of(cls, value: datetime) -> "DayOfWeek":
        return cls(value.weekday())


class ChannelSorting(Enum):
    """How the channel list is ordered"""
    DEFAULT = "default"  # order returned by the backend (group order)
    NAME = "name"
    NUMBER = "number"


class ChannelType(Enum):
    TV = "tv"
    RADIO = "radio"


class RecordingStatus(Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    CONFLICTED_OK = "conflicted_ok"
    CONFLICTED_NOT_OK = "conflicted_not_ok"
    ERROR = "error"


# Backend entities
@dataclass(frozen=True)
class ServiceDescription:
    """Backend service status"""
    service_version: str
    api_version: int
    has_connection_to_tv_server: bool

    @classmethod
    def from_dict(cls, data: dict) -> "ServiceDescription":
        return cls(
            service_version=data.get("ServiceVersion", ""),
            api_version=parse_int(data.get("ApiVersion"), "ApiVersion"),
            has_connection_to_tv_server=bool(data.get("HasConnectionToTVServer", False)),
        )


@dataclass(frozen=True)
class TunerCard:
    id: int
    name: str
    device_path: str = ""
    enabled: bool = True
    priority: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "TunerCard":
        return cls(
            id=parse_int(data.get("Id"), "Id"),
            name=data.get("Name", ""),
            device_path=data.get("DevicePath", ""),
            enabled=bool(data.get("Enabled", True)),
            priority=parse_int(data.get("Priority"), "Priority"),
        )


@dataclass(frozen=True)
class ActiveTunerCard:
    id: int
    channel_id: int
    channel_name: str = ""
    user_name: str = ""
    is_recording: bool = False
    is_time_shifting: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "ActiveTunerCard":
        user = data.get("User") or {}
        return cls(
            id=parse_int(data.get("Id"), "Id"),
            channel_id=parse_int(data.get("ChannelId"), "ChannelId"),
            channel_name=data.get("ChannelName", ""),
            user_name=user.get("Name", "") if isinstance(user, dict) else str(user),
            is_recording=bool(data.get("IsRecording", False)),
            is_time_shifting=bool(data.get("IsTimeShifting", False)),
        )


@dataclass(frozen=True)
class ChannelGroup:
    id: int
    group_name: str
    sort_order: int = 0
    is_tv: bool = True
    is_radio: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "ChannelGroup":
        return cls(
            id=parse_int(data.get("Id"), "Id"),
            group_name=data.get("GroupName", ""),
            sort_order=parse_int(data.get("SortOrder"), "SortOrder"),
            is_tv=bool(data.get("IsTv", True)),
            is_radio=bool(data.get("IsRadio", False)),
        )


@dataclass(frozen=True)
class Channel:
    """A backend channel"""
    id: int
    title: str
    is_tv: bool = True
    visible_in_guide: bool = True
    group_names: tuple = ()
    sort_order: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "Channel":
        return cls(
            id=parse_int(data.get("Id"), "Id"),
            title=data.get("Title", ""),
            is_tv=bool(data.get("IsTv", True)),
            visible_in_guide=bool(data.get("VisibleInGuide", True)),
            group_names=tuple(data.get("GroupNames") or ()),
            sort_order=parse_int(data.get("SortOrder"), "SortOrder"),
        )


@dataclass(frozen=True)
class Program:
    """A guide entry on a single channel, covering [start_time, end_time)"""
    id: int
    channel_id: int
    title: str
    start_time: datetime
    end_time: datetime
    description: str = ""
    episode_name: str = ""
    episode_num: str = ""
    series_num: str = ""
    genre: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Program":
        return cls(
            id=parse_int(data.get("Id"), "Id"),
            channel_id=parse_int(data.get("ChannelId"), "ChannelId"),
            title=data.get("Title", ""),
            start_time=require_datetime(data.get("StartTime"), "StartTime"),
            end_time=require_datetime(data.get("EndTime"), "EndTime"),
            description=data.get("Description") or "",
            episode_name=data.get("EpisodeName") or "",
            episode_num=data.get("EpisodeNum") or "",
            series_num=data.get("SeriesNum") or "",
            genre=data.get("Genre") or "",
        )


@dataclass(frozen=True)
class Recording:
    """A recording produced by an executed schedule"""
    id: int
    channel_id: int
    schedule_id: int
    title: str
    start_time: datetime
    end_time: datetime
    file_name: str = ""
    is_recording: bool = False
    description: str = ""
    episode_name: str = ""
    episode_num: str = ""
    genre: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Recording":
        return cls(
            id=parse_int(data.get("Id"), "Id"),
            channel_id=parse_int(data.get("ChannelId"), "ChannelId"),
            schedule_id=parse_int(data.get("ScheduleId"), "ScheduleId"),
            title=data.get("Title", ""),
            start_time=require_datetime(data.get("StartTime"), "StartTime"),
            end_time=require_datetime(data.get("EndTime"), "EndTime"),
            file_name=data.get("FileName") or "",
            is_recording=bool(data.get("IsRecording", False)),
            description=data.get("Description") or "",
            episode_name=data.get("EpisodeName") or "",
            episode_num=data.get("EpisodeNum") or "",
            genre=data.get("Genre") or "",
        )


@dataclass(frozen=True)
class Schedule:
    """The backend's persisted timer, one-off or a series template"""
    id: int
    channel_id: int
    title: str
    start_time: datetime
    end_time: datetime
    schedule_type: ScheduleType = ScheduleType.ONCE
    parent_schedule_id: int = -1
    series: bool = False
    pre_record_interval: int = 0   # minutes
    post_record_interval: int = 0  # minutes

    @property
    def is_recurring(self) -> bool:
        return self.schedule_type != ScheduleType.ONCE

    @classmethod
    def from_dict(cls, data: dict) -> "Schedule":
        raw_type = parse_int(data.get("ScheduleType"), "ScheduleType")
        try:
            schedule_type = ScheduleType(raw_type)
        except ValueError as e:
            raise MalformedDataError("ScheduleType", raw_type) from e

        return cls(
            id=parse_int(data.get("Id"), "Id"),
            channel_id=parse_int(data.get("ChannelId"), "ChannelId"),
            title=data.get("Title", ""),
            start_time=require_datetime(data.get("StartTime"), "StartTime"),
            end_time=require_datetime(data.get("EndTime"), "EndTime"),
            schedule_type=schedule_type,
            parent_schedule_id=parse_int(data.get("ParentScheduleId"), "ParentScheduleId", default=-1),
            series=bool(data.get("Series", False)),
            pre_record_interval=parse_int(data.get("PreRecordInterval"), "PreRecordInterval"),
            post_record_interval=parse_int(data.get("PostRecordInterval"), "PostRecordInterval"),
        )


# Host entities
@dataclass(frozen=True)
class Recurrence:
    """Generic recurring schedule: explicit day set plus any-time/any-channel flags"""
    days: FrozenSet[DayOfWeek] = frozenset()
    any_time: bool = False
    any_channel: bool = False
    start_time: Optional[time] = None
    start_date: Optional[date] = None

    def __str__(self) -> str:
        days = ",".join(d.name[:3].title() for d in sorted(self.days)) or "-"
        flags = [name for name, on in (("any time", self.any_time), ("any channel", self.any_channel)) if on]
        return f"days={days}" + (f" ({', '.join(flags)})" if flags else "")


@dataclass
class ChannelInfo:
    id: str
    name: str
    channel_type: ChannelType
    number: str = " "
    image_url: Optional[str] = None


@dataclass
class ProgramInfo:
    id: str
    channel_id: str
    name: str
    start_date: datetime
    end_date: datetime
    overview: str = ""
    episode_title: str = ""
    episode_number: Optional[int] = None
    season_number: Optional[int] = None
    genres: List[str] = field(default_factory=list)
    is_movie: bool = False
    is_sports: bool = False
    is_news: bool = False
    is_kids: bool = False
    is_series: bool = False


@dataclass
class RecordingInfo:
    id: str
    channel_id: str
    program_id: str
    name: str
    start_date: datetime
    end_date: datetime
    overview: str = ""
    episode_title: str = ""
    is_series: bool = False
    path: Optional[str] = None
    series_timer_id: Optional[str] = None
    genres: List[str] = field(default_factory=list)


@dataclass
class TimerInfo:
    """A one-off timer as seen by the host"""
    channel_id: str
    program_id: str
    name: str
    start_date: datetime
    end_date: datetime
    id: Optional[str] = None
    series_timer_id: Optional[str] = None
    status: RecordingStatus = RecordingStatus.NEW
    is_pre_padding_required: bool = False
    is_post_padding_required: bool = False
    pre_padding_seconds: int = 0
    post_padding_seconds: int = 0


@dataclass
class SeriesTimerInfo:
    """A recurring timer as seen by the host"""
    channel_id: str
    program_id: str
    name: str
    start_date: datetime
    end_date: datetime
    id: Optional[str] = None
    series_id: Optional[str] = None
    days: List[DayOfWeek] = field(default_factory=list)
    record_any_time: bool = False
    record_any_channel: bool = False
    record_new_only: bool = False
    is_pre_padding_required: bool = False
    is_post_padding_required: bool = False
    pre_padding_seconds: int = 0
    post_padding_seconds: int = 0

    @property
    def recurrence(self) -> Recurrence:
        return Recurrence(
            days=frozenset(self.days),
            any_time=self.record_any_time,
            any_channel=self.record_any_channel,
            start_time=self.start_date.time() if self.start_date else None,
            start_date=self.start_date.date() if self.start_date else None,
        )


@dataclass(frozen=True)
class ScheduleDefaults:
    pre_record_interval: timedelta = timedelta()
    post_record_interval: timedelta = timedelta()


class ValidationResult:
    """Checks that failed during configuration validation, by level"""

    def __init__(self):
        self.errors: Dict[str, List[str]] = defaultdict(list)
        self.warnings: Dict[str, List[str]] = defaultdict(list)

    def add(self, check: str, level: str, message: str):
        target = self.errors if level == "error" else self.warnings
        target[check].append(message)

    @property
    def passed(self) -> bool:
        return not self.errors

    @property
    def failed(self) -> bool:
        return bool(self.errors)
