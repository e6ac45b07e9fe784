import secrets
import logging
from datetime import timedelta
from flask import current_app
from portal.repositories import OtpRepository
from portal.utils.dates import ensure_utc, utcnow

logger = logging.getLogger(__name__)

OTP_LENGTH = 6


class OtpService:
    @staticmethod
    def generate_code() -> str:
        return str(secrets.randbelow(9 * 10 ** (OTP_LENGTH - 1)) + 10 ** (OTP_LENGTH - 1))

    @staticmethod
    def create_otp(identifier, purpose, user_id=None, expiry_minutes=None, now=None):
        """Issue a fresh code; earlier live codes for identifier+purpose stop working."""
        now = now or utcnow()
        if expiry_minutes is None:
            expiry_minutes = current_app.config.get("OTP_EXPIRY_MINUTES", 10)

        OtpRepository.invalidate_active(identifier, purpose, now)
        code = OtpService.generate_code()
        otp = OtpRepository.create(
            {
                "code": code,
                "identifier": identifier,
                "purpose": purpose,
                "user_id": user_id,
                "expires_at": now + timedelta(minutes=expiry_minutes),
            }
        )
        logger.info(f"OTP issued for {identifier} ({purpose}), expires in {expiry_minutes} min")
        return otp

    @staticmethod
    def verify_otp(identifier, purpose, code, now=None):
        """Returns ``(valid, message)``. A code is consumed by any verification attempt that finds it."""
        now = now or utcnow()
        otp = OtpRepository.find_unused(identifier, purpose, code)
        if not otp:
            return False, "Invalid code"

        OtpRepository.mark_used(otp)
        if now > ensure_utc(otp.expires_at):
            return False, "Code expired"
        return True, "Code verified successfully"

    @staticmethod
    def has_valid_otp(identifier, purpose, now=None) -> bool:
        return OtpRepository.count_valid(identifier, purpose, now or utcnow()) > 0

    @staticmethod
    def cleanup_expired(now=None) -> int:
        deleted = OtpRepository.delete_expired_or_used(now or utcnow())
        logger.info(f"Removed {deleted} expired or used OTP codes")
        return deleted
