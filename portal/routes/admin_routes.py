from flask import Blueprint, jsonify, request
from portal.models.enums import LogLevel
from portal.exceptions import ValidationError
from portal.services import AuthService, LogService, UserService

admin_bp = Blueprint("admin", __name__)


@admin_bp.route("/admin/check", methods=["GET"])
def check_admin():
    """Check if current user is an admin"""
    auth = AuthService.current_auth()
    if not auth.is_admin:
        return jsonify({"is_admin": False}), 403
    return jsonify({"is_admin": True})


@admin_bp.route("/admin/users", methods=["GET"])
def get_all_users():
    auth = AuthService.current_auth()
    return jsonify(UserService.get_all_users(auth))


@admin_bp.route("/admin/users/<int:user_id>/roles", methods=["PUT"])
def update_user_roles(user_id):
    auth = AuthService.current_auth()
    data = request.get_json(silent=True) or {}
    if "roles" not in data:
        return jsonify({"error": "Missing required fields", "missing_fields": ["roles"]}), 400

    user = UserService.assign_roles(auth, user_id, data["roles"])
    return jsonify({"message": "User roles updated successfully", "user": user.to_dict()})


@admin_bp.route("/admin/companies/<cnpj>/status", methods=["PATCH"])
def update_company_status(cnpj):
    auth = AuthService.current_auth()
    data = request.get_json(silent=True) or {}
    company = UserService.set_company_status(auth, cnpj, data.get("active"))
    return jsonify({"message": "Company status updated", "company": company.to_dict()})


@admin_bp.route("/admin/logs", methods=["GET"])
def get_logs():
    auth = AuthService.current_auth()
    AuthService.require_permission(auth, "logs.view")

    level = request.args.get("level")
    if level:
        try:
            level = LogLevel(level).value
        except ValueError:
            raise ValidationError(f"Invalid log level '{level}'")
    try:
        page = int(request.args.get("page", 1))
        limit = int(request.args.get("limit", 50))
    except ValueError:
        raise ValidationError("page and limit must be integers")
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be positive integers")

    return jsonify(LogService.get_logs(level, request.args.get("action"), page, limit))
