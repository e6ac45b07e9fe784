from datetime import timedelta

from portal.models import OtpCode
from portal.services import OtpService
from portal.utils.dates import ensure_utc, utcnow

PURPOSE = "email_verification"


class TestOtpService:
    def test_code_is_six_digits(self, app):
        otp = OtpService.create_otp("someone@example.com", PURPOSE)

        assert len(otp.code) == 6
        assert otp.code.isdigit()
        assert OtpService.has_valid_otp("someone@example.com", PURPOSE)

    def test_expiry_comes_from_config(self, app):
        app.config["OTP_EXPIRY_MINUTES"] = 3
        now = utcnow()

        otp = OtpService.create_otp("someone@example.com", PURPOSE, now=now)

        assert ensure_utc(otp.expires_at) == now + timedelta(minutes=3)

    def test_valid_code_is_consumed(self, app):
        otp = OtpService.create_otp("someone@example.com", PURPOSE)

        assert OtpService.verify_otp("someone@example.com", PURPOSE, otp.code) == (
            True,
            "Code verified successfully",
        )
        assert OtpService.verify_otp("someone@example.com", PURPOSE, otp.code)[0] is False

    def test_wrong_code(self, app):
        otp = OtpService.create_otp("someone@example.com", PURPOSE)
        wrong = "000000" if otp.code != "000000" else "111111"

        assert OtpService.verify_otp("someone@example.com", PURPOSE, wrong) == (
            False,
            "Invalid code",
        )

    def test_code_is_bound_to_purpose(self, app):
        otp = OtpService.create_otp("someone@example.com", PURPOSE)

        assert OtpService.verify_otp("someone@example.com", "password_reset", otp.code)[0] is False

    def test_expired_code_is_refused_and_used(self, app):
        otp = OtpService.create_otp("someone@example.com", PURPOSE, expiry_minutes=5)

        valid, message = OtpService.verify_otp(
            "someone@example.com", PURPOSE, otp.code, now=utcnow() + timedelta(minutes=6)
        )

        assert valid is False
        assert message == "Code expired"
        assert OtpCode.query.filter_by(id=otp.id).one().used is True

    def test_new_code_invalidates_previous(self, app):
        first = OtpService.create_otp("someone@example.com", PURPOSE)
        first_code = first.code
        second = OtpService.create_otp("someone@example.com", PURPOSE)

        assert OtpCode.query.filter_by(id=first.id).one().used is True
        if first_code != second.code:
            assert OtpService.verify_otp("someone@example.com", PURPOSE, first_code)[0] is False
        assert OtpService.verify_otp("someone@example.com", PURPOSE, second.code)[0] is True

    def test_cleanup_removes_used_and_expired(self, app):
        used = OtpService.create_otp("a@example.com", PURPOSE)
        OtpService.verify_otp("a@example.com", PURPOSE, used.code)
        OtpService.create_otp("b@example.com", PURPOSE, expiry_minutes=1, now=utcnow() - timedelta(minutes=5))
        OtpService.create_otp("c@example.com", PURPOSE)

        assert OtpService.cleanup_expired() == 2
        assert [otp.identifier for otp in OtpCode.query.all()] == ["c@example.com"]
