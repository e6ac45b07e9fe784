from flask import Blueprint, jsonify, request
from portal.services import AttendanceService, AuthService, RegistrationService
from portal.services.registration_service import Outcome

attendance_bp = Blueprint("attendance", __name__)


@attendance_bp.route("/events/<int:event_id>/eligibility", methods=["GET"])
def check_eligibility(event_id):
    """Whether the caller may register; anonymous callers get a reason, not an error."""
    auth = AuthService.current_auth(optional=True)
    check = RegistrationService.can_user_register(event_id, auth)
    if check.outcome == Outcome.NOT_FOUND:
        return jsonify(check.to_dict()), 404
    if check.outcome == Outcome.UNAUTHENTICATED:
        return jsonify(check.to_dict()), 401
    return jsonify(check.to_dict()), 200


@attendance_bp.route("/events/<int:event_id>/register", methods=["POST"])
def register(event_id):
    auth = AuthService.current_auth(optional=True)
    data = request.get_json(silent=True) or {}
    body, status = AttendanceService.register(auth, event_id, data)
    return jsonify(body), status


@attendance_bp.route("/attendances/<int:attendance_id>", methods=["DELETE"])
def cancel_registration(attendance_id):
    auth = AuthService.current_auth()
    body, status = AttendanceService.cancel_registration(auth, attendance_id)
    return jsonify(body), status


@attendance_bp.route("/admin/attendances/<int:attendance_id>", methods=["DELETE"])
def delete_attendee(attendance_id):
    auth = AuthService.current_auth()
    body, status = AttendanceService.delete_attendee(auth, attendance_id)
    return jsonify(body), status


@attendance_bp.route("/admin/events/<int:event_id>/attendees", methods=["GET"])
def get_event_attendees(event_id):
    auth = AuthService.current_auth()
    body, status = AttendanceService.get_event_attendees(auth, event_id)
    return jsonify(body), status


@attendance_bp.route("/admin/events/<int:event_id>/attendees", methods=["POST"])
def add_attendee(event_id):
    auth = AuthService.current_auth()
    data = request.get_json(silent=True) or {}
    if not data.get("user_id"):
        return jsonify({"error": "Missing required fields", "missing_fields": ["user_id"]}), 400

    body, status = AttendanceService.add_attendee(
        auth,
        event_id,
        data["user_id"],
        participant_type=data.get("participant_type"),
        attendance_mode=data.get("attendance_mode"),
    )
    return jsonify(body), status


@attendance_bp.route("/admin/attendances/<int:attendance_id>/checkin", methods=["PATCH"])
def update_check_in(attendance_id):
    auth = AuthService.current_auth()
    data = request.get_json(silent=True) or {}
    body, status = AttendanceService.set_check_in(
        auth, attendance_id, checked_in=data.get("checked_in")
    )
    return jsonify(body), status


@attendance_bp.route(
    "/admin/attendances/<int:attendance_id>/participant-type", methods=["PATCH"]
)
def update_participant_type(attendance_id):
    auth = AuthService.current_auth()
    data = request.get_json(silent=True) or {}
    if not data.get("participant_type"):
        return (
            jsonify({"error": "Missing required fields", "missing_fields": ["participant_type"]}),
            400,
        )

    body, status = AttendanceService.update_participant_type(
        auth, attendance_id, data["participant_type"]
    )
    return jsonify(body), status
