from typing import Optional
from sqlalchemy import or_
from portal.extensions import db
from portal.models import OtpCode


class OtpRepository:
    @staticmethod
    def invalidate_active(identifier: str, purpose: str, now) -> int:
        """Mark every unused, unexpired code for identifier+purpose as used."""
        updated = OtpCode.query.filter(
            OtpCode.identifier == identifier,
            OtpCode.purpose == purpose,
            OtpCode.used.is_(False),
            OtpCode.expires_at > now,
        ).update({OtpCode.used: True}, synchronize_session=False)
        db.session.commit()
        return updated

    @staticmethod
    def create(attrs) -> OtpCode:
        otp = OtpCode(**attrs)
        db.session.add(otp)
        db.session.commit()
        return otp

    @staticmethod
    def find_unused(identifier: str, purpose: str, code: str) -> Optional[OtpCode]:
        return OtpCode.query.filter_by(
            identifier=identifier, purpose=purpose, code=code, used=False
        ).first()

    @staticmethod
    def mark_used(otp: OtpCode) -> OtpCode:
        otp.used = True
        db.session.commit()
        return otp

    @staticmethod
    def count_valid(identifier: str, purpose: str, now) -> int:
        return OtpCode.query.filter(
            OtpCode.identifier == identifier,
            OtpCode.purpose == purpose,
            OtpCode.used.is_(False),
            OtpCode.expires_at > now,
        ).count()

    @staticmethod
    def delete_expired_or_used(now) -> int:
        deleted = OtpCode.query.filter(
            or_(OtpCode.expires_at < now, OtpCode.used.is_(True))
        ).delete(synchronize_session=False)
        db.session.commit()
        return deleted
