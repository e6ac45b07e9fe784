from portal.models.company import Company
from portal.models.role import Role, Permission
from portal.models.user import User
from portal.models.event import Event
from portal.models.attendance import Attendance
from portal.models.otp_code import OtpCode
from portal.models.app_log import AppLog
from portal.models.enums import (
    AttendanceMode,
    EventFormat,
    ParticipantType,
    LogLevel,
    ActionStatus,
)
