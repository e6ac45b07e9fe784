from portal.repositories.event_repository import EventRepository
from portal.repositories.attendance_repository import AttendanceRepository
from portal.repositories.company_repository import CompanyRepository
from portal.repositories.user_repository import UserRepository
from portal.repositories.otp_repository import OtpRepository
from portal.repositories.log_repository import LogRepository
