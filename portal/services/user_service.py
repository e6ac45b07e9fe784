from portal.models import User
from werkzeug.security import check_password_hash, generate_password_hash
from sqlalchemy.exc import IntegrityError
from flask_jwt_extended import create_access_token
from flask import current_app
from portal.exceptions import MissingFieldsError, NotFoundError, ValidationError
from portal.extensions import db
from portal.repositories import CompanyRepository, UserRepository
from portal.services.auth_service import AuthService
from portal.services.log_service import LogService
from portal.services.otp_service import OtpService
from portal.utils.action_state import error, success
from portal.utils.email import send_otp_email
from datetime import timedelta
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

EMAIL_VERIFICATION = "email_verification"
PASSWORD_RESET = "password_reset"
MIN_PASSWORD_LENGTH = 6
RESET_REQUESTED_MESSAGE = "If an account with that email exists, a reset code has been sent."


class UserService:
    @staticmethod
    def sign_up(user_data):
        required_fields = ["email", "password", "name", "cpf", "company_id"]
        missing = [f for f in required_fields if not user_data.get(f)]
        if missing:
            raise MissingFieldsError(missing)

        existing_user = UserRepository.find_by_email(user_data["email"])
        if existing_user:
            logger.warning(f"Signup attempt with existing email: {user_data['email']}")
            raise ValidationError("User already exists")

        company = CompanyRepository.find_by_cnpj(user_data["company_id"])
        if not company:
            logger.warning(f"Signup attempt with unknown company: {user_data['company_id']}")
            raise ValidationError("Company not found")

        cpf = "".join(ch for ch in str(user_data["cpf"]) if ch.isdigit())
        if len(cpf) != 11:
            raise ValidationError("CPF must have 11 digits")

        user = User(
            email=user_data["email"],
            password=generate_password_hash(user_data["password"]),
            name=user_data["name"],
            position=user_data.get("position"),
            rg=user_data.get("rg"),
            cpf=cpf,
            mobile_phone=user_data.get("mobile_phone"),
            company_id=company.cnpj,
        )
        try:
            created_user = UserRepository.sign_up(user)
        except IntegrityError:
            db.session.rollback()
            logger.warning(f"Concurrent signup with existing email: {user_data['email']}")
            raise ValidationError("User already exists")

        access_token = create_access_token(
            identity=str(created_user.id), expires_delta=timedelta(days=1)
        )
        logger.info(f"User created successfully: {created_user.email}")
        return {"token": access_token, "user": created_user.to_dict()}

    @staticmethod
    def sign_in(email, password):
        return AuthService.sign_in(email, password)

    @staticmethod
    def get_profile(auth):
        profile = auth.user.to_dict()
        profile["permissions"] = sorted(auth.permissions)
        profile["is_admin"] = auth.is_admin
        return profile

    @staticmethod
    def send_email_verification(auth):
        user = auth.user
        if user.email_verified:
            return success("Email already verified", email_verified=True), 200

        otp = OtpService.create_otp(user.email, EMAIL_VERIFICATION, user.id)
        try:
            send_otp_email(
                user.email,
                otp.code,
                current_app.config.get("OTP_EXPIRY_MINUTES", 10),
                subject="Confirm your email",
            )
        except Exception as e:
            current_app.logger.error(f"Failed to send OTP email to {user.email}: {str(e)}")
            LogService.log_error(
                "Users.sendEmailVerification", "Error sending verification code",
                user.id, {"error": str(e)},
            )
            return error("Error sending verification code"), 502
        return success("Code sent successfully", email_verified=False), 200

    @staticmethod
    def verify_email(auth, code):
        user = auth.user
        if user.email_verified:
            return success("Email already verified", verified=True), 200

        valid, message = OtpService.verify_otp(user.email, EMAIL_VERIFICATION, str(code))
        if not valid:
            LogService.log_warn(
                "Users.verifyEmail", f"Email verification failed: {message}", user.id
            )
            return error(message), 400

        UserRepository.mark_email_verified(user)
        LogService.log_info("Users.verifyEmail", "Email verified", user.id)
        return success("Email verified successfully!", verified=True), 200

    @staticmethod
    def request_password_reset(email):
        """Mail a one-time reset code. The answer never reveals whether the account exists."""
        user = UserRepository.find_by_email(email)
        if not user:
            logger.warning(f"Password reset attempted for non-existent email: {email}")
            return success(RESET_REQUESTED_MESSAGE), 200

        otp = OtpService.create_otp(user.email, PASSWORD_RESET, user.id)
        try:
            send_otp_email(
                user.email,
                otp.code,
                current_app.config.get("OTP_EXPIRY_MINUTES", 10),
                subject="Password reset",
            )
        except Exception as e:
            current_app.logger.error(f"Failed to send reset code to {user.email}: {str(e)}")
            LogService.log_error(
                "Users.requestPasswordReset", "Error sending password reset code",
                user.id, {"error": str(e)},
            )
            return error("Error sending password reset code"), 502

        LogService.log_info("Users.requestPasswordReset", "Password reset code sent", user.id)
        return success(RESET_REQUESTED_MESSAGE), 200

    @staticmethod
    def reset_password_with_otp(email, code, new_password):
        UserService._validate_new_password(new_password)
        user = UserRepository.find_by_email(email)
        if not user:
            return error("Invalid or expired code"), 400

        valid, message = OtpService.verify_otp(user.email, PASSWORD_RESET, str(code))
        if not valid:
            LogService.log_warn(
                "Users.resetPassword", f"Password reset failed: {message}", user.id
            )
            return error(message), 400

        UserRepository.update_password(user, generate_password_hash(new_password))
        LogService.log_info("Users.resetPassword", "Password reset with code", user.id)
        logger.info(f"Password reset successfully for user: {user.email}")
        return success("Your password has been reset successfully."), 200

    @staticmethod
    def change_password(auth, current_password, new_password):
        user = auth.user
        if not check_password_hash(user.password, current_password or ""):
            LogService.log_warn(
                "Users.changePassword", "Current password did not match", user.id
            )
            return error("Current password is incorrect"), 400

        UserService._validate_new_password(new_password)
        UserRepository.update_password(user, generate_password_hash(new_password))
        LogService.log_info("Users.changePassword", "Password changed", user.id)
        return success("Password changed successfully"), 200

    @staticmethod
    def _validate_new_password(password):
        if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must have at least {MIN_PASSWORD_LENGTH} characters"
            )

    @staticmethod
    def get_all_users(auth):
        AuthService.require_permission(auth, "users.view")
        return [user.to_dict() for user in UserRepository.get_users()]

    @staticmethod
    def assign_roles(auth, user_id, role_names):
        AuthService.require_permission(auth, "roles.assign")
        if not isinstance(role_names, list):
            raise ValidationError("roles must be a list of role names")

        user = UserRepository.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        roles = UserRepository.find_roles_by_names(role_names)
        unknown = sorted(set(role_names) - {role.name for role in roles})
        if unknown:
            raise ValidationError(f"Unknown roles: {', '.join(unknown)}")

        UserRepository.set_roles(user, roles)
        LogService.log_info(
            "Roles.assign", f"Roles of user {user.email} set to {sorted(role_names)}",
            auth.user_id, {"user_id": user_id, "roles": sorted(role_names)},
        )
        return user

    @staticmethod
    def set_company_status(auth, cnpj, active=None):
        """Set or toggle a company's membership, which gates member-only events."""
        AuthService.require_permission(auth, "companies.update")
        company = CompanyRepository.find_by_cnpj(cnpj)
        if not company:
            raise NotFoundError("Company not found")

        target = (not company.active) if active is None else bool(active)
        CompanyRepository.set_active(company, target)
        LogService.log_info(
            "Companies.toggleStatus",
            f"Company {company.name} is now {'active' if target else 'inactive'}",
            auth.user_id,
            {"cnpj": cnpj, "active": target},
        )
        return company
