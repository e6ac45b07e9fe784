from enum import Enum


class AttendanceMode(Enum):
    IN_PERSON = "in_person"
    ONLINE = "online"


class EventFormat(Enum):
    IN_PERSON = "in_person"
    ONLINE = "online"
    HYBRID = "hybrid"


class ParticipantType(Enum):
    PARTICIPANT = "participant"
    GUEST = "guest"
    SPEAKER = "speaker"
    AUTHORITY = "authority"
    MARKETING = "marketing"
    SPONSOR = "sponsor"
    BOARD = "board"


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class ActionStatus(Enum):
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


ADMIN_ROLE = "admin"
DEFAULT_PARTICIPANT_TYPE = ParticipantType.PARTICIPANT
