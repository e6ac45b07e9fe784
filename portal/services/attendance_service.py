from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from portal.exceptions import MissingFieldsError, ValidationError
from portal.extensions import db
from portal.models import Attendance
from portal.models.enums import AttendanceMode, ParticipantType, DEFAULT_PARTICIPANT_TYPE
from portal.repositories import (
    AttendanceRepository,
    CompanyRepository,
    EventRepository,
    UserRepository,
)
from portal.services.auth_service import AuthService
from portal.services.log_service import LogService
from portal.services.registration_service import (
    DenialReason,
    Outcome,
    RegistrationCheck,
    RegistrationService,
)
from portal.utils.action_state import error, success
from portal.utils.dates import ensure_utc, utcnow
from portal.utils.email import send_cancellation_email

SNAPSHOT_FIELDS = [
    "company_id",
    "company_segment",
    "attendee_full_name",
    "attendee_email",
    "attendee_position",
    "attendee_rg",
    "attendee_cpf",
    "mobile_phone",
]

# Company fields are never taken from the form
FORM_FIELDS = [key for key in SNAPSHOT_FIELDS if not key.startswith("company_")]

_STATUS_BY_OUTCOME = {
    Outcome.NOT_FOUND: 404,
    Outcome.UNAUTHENTICATED: 401,
    Outcome.DENIED: 409,
    Outcome.ALREADY_REGISTERED: 409,
}


def _parse_mode(value):
    try:
        return AttendanceMode(value)
    except ValueError:
        raise ValidationError(
            f"Invalid attendance mode '{value}'. Must be one of: "
            + ", ".join(mode.value for mode in AttendanceMode)
        )


def _parse_participant_type(value):
    try:
        return ParticipantType(value)
    except ValueError:
        raise ValidationError(
            f"Invalid participant type '{value}'. Must be one of: "
            + ", ".join(kind.value for kind in ParticipantType)
        )


def _snapshot_from_profile(user):
    company = CompanyRepository.find_by_cnpj(user.company_id)
    return {
        "company_id": user.company_id,
        "company_segment": company.segment if company else None,
        "attendee_full_name": user.name,
        "attendee_email": user.email,
        "attendee_position": user.position,
        "attendee_rg": user.rg,
        "attendee_cpf": user.cpf,
        "mobile_phone": user.mobile_phone,
    }


def _denial_response(check: RegistrationCheck):
    body = error(
        check.message,
        reason=check.reason.value,
        attendance_id=check.attendance_id,
    )
    return body, _STATUS_BY_OUTCOME[check.outcome]


class AttendanceService:
    @staticmethod
    def build_snapshot(user, data):
        """Profile snapshot copied onto the attendance row.

        Attendee values submitted with the form override the profile (the form
        is prefilled from it and may be corrected); the company fields never
        do. Every snapshot field must end up non-empty.
        """
        snapshot = _snapshot_from_profile(user)
        for key in FORM_FIELDS:
            value = data.get(key)
            if isinstance(value, str):
                value = value.strip()
            if value:
                snapshot[key] = value

        missing = [key for key in SNAPSHOT_FIELDS if not snapshot.get(key)]
        if missing:
            raise MissingFieldsError(missing)

        cpf = "".join(ch for ch in snapshot["attendee_cpf"] if ch.isdigit())
        if len(cpf) != 11:
            raise ValidationError("CPF must have 11 digits")
        snapshot["attendee_cpf"] = cpf
        return snapshot

    @staticmethod
    def register(auth, event_id: int, data: dict, now=None):
        """Register the caller on the event's attendance list.

        The event row is locked, eligibility re-evaluated on counts read in
        the same transaction, and the insert committed before the lock is
        released. A uniqueness violation on (event, user) maps to
        ALREADY_REGISTERED.
        """
        action = "AttendanceList.register"
        if auth is None:
            return error("User not authenticated", reason=DenialReason.LOGIN_REQUIRED.value), 401

        mode_value = data.get("attendance_mode")
        if not mode_value:
            raise MissingFieldsError(["attendance_mode"])
        mode = _parse_mode(mode_value)
        snapshot = AttendanceService.build_snapshot(auth.user, data)

        try:
            check = RegistrationService.can_user_register(event_id, auth, now=now, lock=True)
            if not check.can_register or not check.eligibility.allows(mode):
                db.session.rollback()
                if check.can_register:
                    reason = AttendanceService.mode_denial_reason(check, mode)
                    check = RegistrationCheck(
                        outcome=Outcome.DENIED, reason=reason, event=check.event
                    )
                LogService.log_warn(
                    action,
                    f"Registration refused: {check.reason.value}",
                    auth.user_id,
                    {"event_id": event_id, "attendance_mode": mode.value},
                )
                return _denial_response(check)

            duplicate = AttendanceRepository.find_snapshot_duplicate(
                event_id,
                snapshot["attendee_email"],
                snapshot["attendee_cpf"],
                snapshot["attendee_rg"],
            )
            if duplicate:
                db.session.rollback()
                if duplicate.attendee_email == snapshot["attendee_email"]:
                    duplicated = "email"
                elif duplicate.attendee_cpf == snapshot["attendee_cpf"]:
                    duplicated = "CPF"
                else:
                    duplicated = "RG"
                LogService.log_warn(
                    action,
                    "Registration with duplicated attendee data",
                    auth.user_id,
                    {"event_id": event_id, "duplicated": duplicated},
                )
                return (
                    error(
                        f"There is already a registration for this event with this {duplicated}",
                        reason="duplicate_attendee",
                    ),
                    409,
                )

            attendance = AttendanceRepository.register_for_event(
                Attendance(
                    event_id=event_id,
                    user_id=auth.user_id,
                    attendance_mode=mode,
                    participant_type=DEFAULT_PARTICIPANT_TYPE.value,
                    checked_in=False,
                    **snapshot,
                )
            )
        except IntegrityError:
            db.session.rollback()
            existing = AttendanceRepository.find_by_event_and_user(event_id, auth.user_id)
            LogService.log_warn(
                action,
                "Concurrent duplicate registration rejected by constraint",
                auth.user_id,
                {"event_id": event_id},
            )
            return (
                error(
                    "You are already registered for this event",
                    reason=DenialReason.ALREADY_REGISTERED.value,
                    attendance_id=existing.id if existing else None,
                ),
                409,
            )
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(
                f"Failed to register user {auth.user_id} for event {event_id}: {str(e)}",
                exc_info=True,
            )
            LogService.log_error(
                action, "Error processing registration", auth.user_id,
                {"event_id": event_id, "error": str(e)},
            )
            return error("Registration failed. Please try again."), 500

        LogService.log_info(
            action,
            f"New registration for event {check.event.title}",
            auth.user_id,
            {
                "event_id": event_id,
                "attendance_id": attendance.id,
                "attendance_mode": mode.value,
                "company_id": attendance.company_id,
            },
        )
        return (
            success("Registration completed successfully", attendance=attendance.to_dict()),
            201,
        )

    @staticmethod
    def mode_denial_reason(check: RegistrationCheck, mode: AttendanceMode) -> DenialReason:
        """Why the requested mode is closed while the other one is still open."""
        eligibility = check.eligibility
        remaining = (
            eligibility.remaining_presential
            if mode == AttendanceMode.IN_PERSON
            else eligibility.remaining_online
        )
        if remaining == 0:
            return DenialReason.NO_VACANCIES_NOW
        return DenialReason.BRAND_LIMIT_REACHED

    @staticmethod
    def cancel_registration(auth, attendance_id: int, now=None):
        """Owner cancellation; refused once the event date has passed."""
        action = "AttendanceList.cancel"
        if auth is None:
            return error("User not authenticated"), 401
        now = now or utcnow()

        try:
            attendance = AttendanceRepository.find_by_id(attendance_id)
            if not attendance:
                LogService.log_warn(
                    action, f"Attempt to cancel missing registration #{attendance_id}",
                    auth.user_id, {"attendance_id": attendance_id},
                )
                return error("Registration not found"), 404

            event = attendance.event
            if attendance.user_id != auth.user_id:
                LogService.log_warn(
                    action, "User without permission tried to cancel a registration",
                    auth.user_id, {"attendance_id": attendance_id, "event_id": event.id},
                )
                return error("You do not have permission to cancel this registration"), 403

            if now > ensure_utc(event.date):
                LogService.log_warn(
                    action, "Attempt to cancel registration after the event",
                    auth.user_id, {"attendance_id": attendance_id, "event_id": event.id},
                )
                return error("Registrations cannot be cancelled after the event"), 409

            meta = {
                "attendance_id": attendance_id,
                "event_id": event.id,
                "event_title": event.title,
                "attendee_name": attendance.attendee_full_name,
                "attendee_email": attendance.attendee_email,
            }
            AttendanceRepository.delete(attendance)
        except SQLAlchemyError as e:
            db.session.rollback()
            LogService.log_error(
                action, f"Error cancelling registration #{attendance_id}",
                auth.user_id, {"attendance_id": attendance_id, "error": str(e)},
            )
            return error("An error occurred while cancelling the registration"), 500

        # Best effort: a failed email never undoes the cancellation
        try:
            send_cancellation_email(meta["attendee_name"], meta["attendee_email"], event)
            LogService.log_info(
                action, f"Cancellation email sent to {meta['attendee_email']}",
                auth.user_id, meta,
            )
        except Exception as e:
            LogService.log_error(
                action, "Error sending cancellation email",
                auth.user_id, {"attendance_id": attendance_id, "error": str(e)},
            )

        LogService.log_info(
            action,
            f"Registration #{attendance_id} cancelled for event {meta['event_title']}",
            auth.user_id,
            meta,
        )
        return (
            success(
                "Registration cancelled successfully. You will receive a confirmation email."
            ),
            200,
        )

    @staticmethod
    def delete_attendee(auth, attendance_id: int, now=None):
        """Remove a registration as its owner (before the event) or as an admin (any time)."""
        action = "AttendanceList.delete"
        if auth is None:
            return error("User not authenticated"), 401
        now = now or utcnow()

        try:
            attendance = AttendanceRepository.find_by_id(attendance_id)
            if not attendance:
                LogService.log_warn(
                    action, f"Attempt to delete missing registration #{attendance_id}",
                    auth.user_id, {"attendance_id": attendance_id},
                )
                return error("Registration not found"), 404

            event = attendance.event
            is_owner = attendance.user_id == auth.user_id
            if not is_owner and not auth.is_admin:
                LogService.log_warn(
                    action, "User without permission tried to delete a registration",
                    auth.user_id, {"attendance_id": attendance_id, "event_id": event.id},
                )
                return error("You do not have permission to cancel this registration"), 403

            if now > ensure_utc(event.date) and not auth.is_admin:
                LogService.log_warn(
                    action, "Attempt to delete registration after the event",
                    auth.user_id, {"attendance_id": attendance_id, "event_id": event.id},
                )
                return error("Registrations cannot be cancelled after the event"), 409

            meta = {
                "attendance_id": attendance_id,
                "event_id": event.id,
                "event_title": event.title,
                "attendee_name": attendance.attendee_full_name,
                "attendee_email": attendance.attendee_email,
            }
            AttendanceRepository.delete(attendance)
        except SQLAlchemyError as e:
            db.session.rollback()
            LogService.log_error(
                action, f"Error deleting registration #{attendance_id}",
                auth.user_id, {"attendance_id": attendance_id, "error": str(e)},
            )
            return error("An error occurred while cancelling the registration"), 500

        LogService.log_info(
            action,
            f"Registration #{attendance_id} removed from event {meta['event_title']}",
            auth.user_id,
            meta,
        )
        return success("Registration cancelled successfully"), 200

    @staticmethod
    def add_attendee(auth, event_id: int, user_id: int, participant_type=None, attendance_mode=None):
        """Staff shortcut: put a user on the list without the vacancy rules."""
        action = "Events.Admin.addAttendee"
        AuthService.require_permission(auth, "attendance.manage")
        kind = _parse_participant_type(participant_type or DEFAULT_PARTICIPANT_TYPE.value)
        mode = _parse_mode(attendance_mode or AttendanceMode.IN_PERSON.value)

        event = EventRepository.get_event(event_id)
        if not event:
            LogService.log_warn(
                action, f"Event not found: {event_id}", auth.user_id,
                {"event_id": event_id, "user_id": user_id},
            )
            return error("Event not found"), 404

        user = UserRepository.find_by_id(user_id)
        if not user:
            LogService.log_warn(
                action, f"User not found: {user_id}", auth.user_id,
                {"event_id": event_id, "user_id": user_id},
            )
            return error("User not found"), 404

        existing = AttendanceRepository.find_by_event_and_user(event_id, user_id)
        if existing:
            LogService.log_warn(
                action, "User already registered for the event", auth.user_id,
                {"event_id": event_id, "user_id": user_id, "attendance_id": existing.id},
            )
            return (
                error(
                    "This user is already registered for the event",
                    reason=DenialReason.ALREADY_REGISTERED.value,
                    attendance_id=existing.id,
                ),
                409,
            )

        snapshot = _snapshot_from_profile(user)
        try:
            attendance = AttendanceRepository.register_for_event(
                Attendance(
                    event_id=event_id,
                    user_id=user_id,
                    attendance_mode=mode,
                    participant_type=kind.value,
                    checked_in=False,
                    **snapshot,
                )
            )
        except IntegrityError:
            db.session.rollback()
            return (
                error(
                    "This user is already registered for the event",
                    reason=DenialReason.ALREADY_REGISTERED.value,
                ),
                409,
            )
        except SQLAlchemyError as e:
            db.session.rollback()
            LogService.log_error(
                action, "Error adding attendee", auth.user_id,
                {"event_id": event_id, "user_id": user_id, "error": str(e)},
            )
            return error("Error adding attendee. Please try again."), 500

        LogService.log_info(
            action,
            f"Attendee added to event: {user.name}",
            auth.user_id,
            {
                "attendance_id": attendance.id,
                "user_id": user_id,
                "event_id": event_id,
                "participant_type": kind.value,
                "added_by": "admin",
            },
        )
        return success("Attendee added to the event", attendance=attendance.to_dict()), 201

    @staticmethod
    def set_check_in(auth, attendance_id: int, checked_in=None, now=None):
        """Set or, with ``checked_in=None``, toggle an attendee's check-in."""
        action = "AttendanceList.updateCheckin"
        AuthService.require_permission(auth, "attendance.checkin")

        attendance = AttendanceRepository.find_by_id(attendance_id)
        if not attendance:
            LogService.log_warn(
                action, f"Attempt to update check-in of missing registration #{attendance_id}",
                auth.user_id, {"attendance_id": attendance_id, "target": checked_in},
            )
            return error("Registration not found"), 404

        target = (not attendance.checked_in) if checked_in is None else bool(checked_in)
        if attendance.checked_in == target:
            state = "checked in" if target else "not checked in"
            return success(f"Attendee is already {state}", attendance=attendance.to_dict()), 200

        previous = attendance.checked_in
        try:
            AttendanceRepository.update_check_in(attendance, target, now or utcnow())
        except SQLAlchemyError as e:
            db.session.rollback()
            LogService.log_error(
                action, f"Error updating check-in of registration #{attendance_id}",
                auth.user_id, {"attendance_id": attendance_id, "error": str(e)},
            )
            return error("An error occurred while updating the check-in"), 500

        LogService.log_info(
            action,
            f"Check-in of registration #{attendance_id} updated: {previous} -> {target}",
            auth.user_id,
            {
                "attendance_id": attendance_id,
                "event_id": attendance.event_id,
                "attendee_name": attendance.attendee_full_name,
                "old_checkin_status": previous,
                "new_checkin_status": target,
            },
        )
        verb = "confirmed" if target else "removed"
        return (
            success(
                f"Check-in {verb} for {attendance.attendee_full_name}",
                attendance=attendance.to_dict(),
            ),
            200,
        )

    @staticmethod
    def update_participant_type(auth, attendance_id: int, participant_type):
        action = "AttendanceList.updateParticipantType"
        AuthService.require_permission(auth, "attendance.manage")
        kind = _parse_participant_type(participant_type)

        attendance = AttendanceRepository.find_by_id(attendance_id)
        if not attendance:
            LogService.log_warn(
                action, f"Attempt to update participant type of missing registration #{attendance_id}",
                auth.user_id, {"attendance_id": attendance_id},
            )
            return error("Registration not found"), 404

        previous = attendance.participant_type
        try:
            AttendanceRepository.update_participant_type(attendance, kind.value)
        except SQLAlchemyError as e:
            db.session.rollback()
            LogService.log_error(
                action, f"Error updating participant type of registration #{attendance_id}",
                auth.user_id, {"attendance_id": attendance_id, "error": str(e)},
            )
            return error("An error occurred while updating the participant type"), 500

        LogService.log_info(
            action,
            f"Participant type of registration #{attendance_id} set to {kind.value}",
            auth.user_id,
            {"attendance_id": attendance_id, "old": previous, "new": kind.value},
        )
        return success(f"Participant type updated to {kind.value}", attendance=attendance.to_dict()), 200

    @staticmethod
    def get_event_attendees(auth, event_id: int):
        AuthService.require_permission(auth, "attendance.view")
        event = EventRepository.get_event(event_id)
        if not event:
            return {"error": "Event not found"}, 404

        attendees = AttendanceRepository.find_by_event_id(event_id)
        counts = AttendanceRepository.count_by_event_and_mode(event_id)
        return {
            "event": event.to_dict(),
            "attendees": [attendance.to_dict() for attendance in attendees],
            "stats": {
                "total": len(attendees),
                "in_person": counts[AttendanceMode.IN_PERSON],
                "online": counts[AttendanceMode.ONLINE],
                "checked_in": AttendanceRepository.count_checked_in(event_id),
            },
        }, 200

    @staticmethod
    def get_user_events(auth, past: bool = False, page: int = 1, limit: int = 10, now=None):
        """The caller's registrations with their events, upcoming or past."""
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive integers")
        now = now or utcnow()
        items, total = AttendanceRepository.find_for_user(auth.user_id, now, past, page, limit)
        return {
            "attendances": [
                {**attendance.to_dict(), "event": attendance.event.to_dict()}
                for attendance in items
            ],
            "metadata": {
                "total_count": total,
                "page": page,
                "limit": limit,
                "total_pages": (total + limit - 1) // limit,
            },
        }
