from flask import Blueprint, request, jsonify, make_response, current_app
from portal.services import AttendanceService, AuthService, UserService

user_bp = Blueprint("user", __name__)


def _int_arg(name, default):
    value = request.args.get(name, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@user_bp.route("/signup", methods=["POST"])
def sign_up():
    user_data = request.get_json(silent=True)
    if not user_data:
        return jsonify({"error": "No data provided"}), 400

    result = UserService.sign_up(user_data)
    return make_response(jsonify(result), 201)


@user_bp.route("/signin", methods=["POST", "OPTIONS"])
def sign_in():
    if request.method == "OPTIONS":
        response = make_response()
        response.headers["Access-Control-Allow-Methods"] = "POST, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    user_data = request.get_json(silent=True)
    if not user_data:
        return jsonify({"error": "No data provided"}), 400

    required_fields = ["email", "password"]
    missing_fields = [field for field in required_fields if field not in user_data]
    if missing_fields:
        return (
            jsonify(
                {
                    "error": "Missing required fields",
                    "missing_fields": missing_fields,
                }
            ),
            400,
        )

    try:
        result = UserService.sign_in(user_data["email"], user_data["password"])
    except ValueError as e:
        return jsonify({"error": str(e)}), 401
    return make_response(jsonify(result), 200)


@user_bp.route("/me", methods=["GET"])
def me():
    auth = AuthService.current_auth()
    return jsonify(UserService.get_profile(auth)), 200


@user_bp.route("/verify-email/send", methods=["POST"])
def send_email_verification():
    auth = AuthService.current_auth()
    body, status = UserService.send_email_verification(auth)
    return jsonify(body), status


@user_bp.route("/verify-email", methods=["POST"])
def verify_email():
    auth = AuthService.current_auth()
    data = request.get_json(silent=True) or {}
    code = data.get("code")
    if not code:
        return jsonify({"error": "Missing required fields", "missing_fields": ["code"]}), 400

    body, status = UserService.verify_email(auth, code)
    return jsonify(body), status


@user_bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    if not email:
        return jsonify({"error": "Missing required fields", "missing_fields": ["email"]}), 400

    body, status = UserService.request_password_reset(email)
    return jsonify(body), status


@user_bp.route("/reset-password", methods=["POST"])
def reset_password():
    data = request.get_json(silent=True) or {}
    required_fields = ["email", "code", "password"]
    missing_fields = [field for field in required_fields if not data.get(field)]
    if missing_fields:
        return jsonify({"error": "Missing required fields", "missing_fields": missing_fields}), 400

    body, status = UserService.reset_password_with_otp(
        data["email"], data["code"], data["password"]
    )
    return jsonify(body), status


@user_bp.route("/change-password", methods=["POST"])
def change_password():
    auth = AuthService.current_auth()
    data = request.get_json(silent=True) or {}
    required_fields = ["current_password", "new_password"]
    missing_fields = [field for field in required_fields if not data.get(field)]
    if missing_fields:
        return jsonify({"error": "Missing required fields", "missing_fields": missing_fields}), 400

    body, status = UserService.change_password(
        auth, data["current_password"], data["new_password"]
    )
    return jsonify(body), status


@user_bp.route("/events", methods=["GET"])
def get_user_events():
    """Registrations of the signed-in user, ``?past=true`` for events already held."""
    auth = AuthService.current_auth()
    past = request.args.get("past", "false").lower() in ["true", "1", "t"]
    page = _int_arg("page", 1)
    limit = _int_arg("limit", 10)

    result = AttendanceService.get_user_events(auth, past=past, page=page, limit=limit)
    current_app.logger.debug(
        f"User {auth.user_id} events (past={past}): {result['metadata']['total_count']}"
    )
    return jsonify(result), 200
