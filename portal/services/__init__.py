from portal.services.auth_service import AuthService, AuthContext
from portal.services.log_service import LogService
from portal.services.registration_service import RegistrationService
from portal.services.attendance_service import AttendanceService
from portal.services.event_service import EventService
from portal.services.otp_service import OtpService
from portal.services.user_service import UserService
