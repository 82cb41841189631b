# errors.py
from typing import Any, Optional


class TvServiceError(Exception):
    """Base class for errors raised by the TV service bridge"""


class ReferenceNotFoundError(TvServiceError, LookupError):
    """A referenced program or schedule id does not resolve"""

    def __init__(self, field: str, value: Any, kind: str = "entity"):
        self.field = field
        self.value = value
        super().__init__(f"{field}: the {kind} id {value} could not be found")


class ScheduleConflictError(TvServiceError):
    """The backend refused a schedule create or delete"""

    def __init__(self, message: str = "The backend reported a scheduling conflict"):
        super().__init__(message)


class UnsupportedRecurrenceError(TvServiceError, ValueError):
    """The requested recurrence has no matching backend schedule type"""


class TransportError(TvServiceError):
    """HTTP or network failure talking to the backend"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class MalformedDataError(TvServiceError, ValueError):
    """The backend returned a value that cannot be parsed"""

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"Malformed value for '{field}': {value!r}")


class OperationCancelledError(TvServiceError):
    """The caller cancelled the operation before the next backend call"""


class ConfigurationError(TvServiceError, ValueError):
    """The configuration file holds a value that cannot be used"""

    def __init__(self, key: str, value: Any):
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration value for '{key}': {value!r}")
