# client.py
"""HTTP client for the backend's TV access service (JSON over GET)"""

import logging
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from mptv.config import PluginConfiguration
from mptv.errors import MalformedDataError, OperationCancelledError, TransportError
from mptv.models import (
    ActiveTunerCard, Channel, ChannelGroup, Program, Recording, Schedule,
    ServiceDescription, TunerCard, to_url_date,
)


class TvServiceClient:
    """Client for the TVAccessService JSON endpoint.

    One GET per call and no retries. Every call takes an optional
    ``cancel`` event that is checked before the request goes out.
    """

    END_POINT = "TVAccessService/json/"

    def __init__(self, configuration: PluginConfiguration, session: Optional[requests.Session] = None):
        self.logger = logging.getLogger(__name__)
        self.configuration = configuration
        self.session = session or requests.Session()
        if configuration.username:
            self.session.auth = (configuration.username, configuration.password)

    @property
    def base_url(self) -> str:
        return self.configuration.base_url + self.END_POINT

    def _get(self, method: str, params: Optional[Dict[str, Any]] = None, cancel: Optional[threading.Event] = None) -> Any:
        """Calls a service method and returns the decoded JSON body"""
        if cancel is not None and cancel.is_set():
            raise OperationCancelledError(f"Cancelled before calling {method}")

        url = self.base_url + method
        self.logger.debug(f"GET {method} {params or ''}")

        try:
            response = self.session.get(url, params=params, timeout=self.configuration.timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise TransportError(f"{method} failed with HTTP {status}", status_code=status) from e
        except requests.RequestException as e:
            raise TransportError(f"{method} failed: {type(e).__name__} - {str(e)}") from e

        try:
            return response.json()
        except ValueError as e:
            self.logger.error(f"Non-JSON response for {method}: {response.text[:300]}")
            raise MalformedDataError(method, response.text[:300]) from e

    def _get_list(self, method: str, params: Optional[Dict[str, Any]] = None, cancel: Optional[threading.Event] = None) -> List[dict]:
        data = self._get(method, params, cancel)
        if data is None:
            return []
        if not isinstance(data, list):
            raise MalformedDataError(method, data)
        return data

    def _get_result(self, method: str, params: Dict[str, Any], cancel: Optional[threading.Event] = None) -> Any:
        """Calls a method answering with a {"Result": ...} wrapper"""
        data = self._get(method, params, cancel)
        if not isinstance(data, dict) or "Result" not in data:
            raise MalformedDataError(method, data)
        return data["Result"]

    # Status
    def get_service_description(self, cancel: Optional[threading.Event] = None) -> ServiceDescription:
        return ServiceDescription.from_dict(self._get("GetServiceDescription", cancel=cancel))

    def get_cards(self, cancel: Optional[threading.Event] = None) -> List[TunerCard]:
        return [TunerCard.from_dict(c) for c in self._get_list("GetCards", cancel=cancel)]

    def get_active_cards(self, cancel: Optional[threading.Event] = None) -> List[ActiveTunerCard]:
        return [ActiveTunerCard.from_dict(c) for c in self._get_list("GetActiveCards", cancel=cancel)]

    # Channels and guide
    def get_groups(self, cancel: Optional[threading.Event] = None) -> List[ChannelGroup]:
        groups = [ChannelGroup.from_dict(g) for g in self._get_list("GetGroups", cancel=cancel)]
        return sorted(groups, key=lambda g: g.sort_order)

    def get_channels(self, group_id: int = 0, cancel: Optional[threading.Event] = None) -> List[Channel]:
        # Filtering by group is the only way to get channels in the backend's display order
        params = {"groupId": group_id} if group_id > 0 else None
        return [Channel.from_dict(c) for c in self._get_list("GetChannelsDetailed", params, cancel)]

    def get_program(self, program_id: str, cancel: Optional[threading.Event] = None) -> Optional[Program]:
        data = self._get("GetProgramDetailedById", {"programId": program_id}, cancel)
        return Program.from_dict(data) if data else None

    def get_programs(self, channel_id: str, start: datetime, end: datetime, cancel: Optional[threading.Event] = None) -> List[Program]:
        params = {
            "channelId": channel_id,
            "starttime": to_url_date(start),
            "endtime": to_url_date(end),
        }
        return [Program.from_dict(p) for p in self._get_list("GetProgramsDetailedForChannel", params, cancel)]

    # Recordings
    def get_recordings(self, cancel: Optional[threading.Event] = None) -> List[Recording]:
        return [Recording.from_dict(r) for r in self._get_list("GetRecordings", cancel=cancel)]

    def get_recording(self, recording_id: str, cancel: Optional[threading.Event] = None) -> Optional[Recording]:
        data = self._get("GetRecordingById", {"id": recording_id}, cancel)
        return Recording.from_dict(data) if data else None

    def delete_recording(self, recording_id: str, cancel: Optional[threading.Event] = None) -> bool:
        return bool(self._get_result("DeleteRecording", {"id": recording_id}, cancel))

    # Schedules
    def get_schedules(self, cancel: Optional[threading.Event] = None) -> List[Schedule]:
        return [Schedule.from_dict(s) for s in self._get_list("GetSchedules", cancel=cancel)]

    def get_schedule(self, schedule_id: str, cancel: Optional[threading.Event] = None) -> Optional[Schedule]:
        data = self._get("GetScheduleById", {"scheduleId": schedule_id}, cancel)
        return Schedule.from_dict(data) if data else None

    def add_schedule(self, params: Dict[str, Any], cancel: Optional[threading.Event] = None) -> bool:
        return bool(self._get_result("AddScheduleDetailed", params, cancel))

    def delete_schedule(self, schedule_id: str, cancel: Optional[threading.Event] = None) -> bool:
        return bool(self._get_result("DeleteSchedule", {"scheduleId": schedule_id}, cancel))

    # Streaming and settings
    def switch_channel_and_stream(self, channel_id: int, user_name: str = "", cancel: Optional[threading.Event] = None) -> str:
        params = {"userName": user_name, "channelId": channel_id}
        url = self._get("SwitchTVServerToChannelAndGetStreamingUrl", params, cancel)
        if not isinstance(url, str):
            raise MalformedDataError("SwitchTVServerToChannelAndGetStreamingUrl", url)
        return url

    def read_setting(self, name: str, cancel: Optional[threading.Event] = None) -> Optional[str]:
        return self._get_result("ReadSettingFromDatabase", {"tagName": name}, cancel)

    def channel_logo_url(self, channel_id: int) -> str:
        return (
            f"{self.configuration.base_url}StreamingService/stream/GetArtworkResized"
            f"?id={channel_id}&artworktype=5&offset=0&mediatype=12&maxWidth=160&maxHeight=160"
        )
