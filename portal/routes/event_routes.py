from flask import Blueprint, jsonify, request
from portal.services import AuthService, EventService

event_bp = Blueprint("event", __name__)


@event_bp.route("/events", methods=["GET"])
def get_all_events():
    """Published events; staff with ``events.view`` also see drafts."""
    auth = AuthService.current_auth(optional=True)
    if auth and auth.has_permission("events.view"):
        events = EventService.get_all_events(auth)
    else:
        events = EventService.get_public_events()
    return jsonify({"events": [event.to_dict() for event in events]}), 200


@event_bp.route("/events/<int:event_id>", methods=["GET"])
def get_event(event_id):
    auth = AuthService.current_auth(optional=True)
    event = EventService.get_event(event_id)
    if not event.is_published and not (auth and auth.has_permission("events.view")):
        return jsonify({"error": f"Event with ID {event_id} not found"}), 404
    return jsonify(event.to_dict()), 200


@event_bp.route("/events", methods=["POST"])
def create_event():
    auth = AuthService.current_auth()
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "No data provided"}), 400

    event = EventService.create_event(auth, data)
    return jsonify(event.to_dict()), 201


@event_bp.route("/events/<int:event_id>", methods=["PUT"])
def update_event(event_id):
    auth = AuthService.current_auth()
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "No data provided"}), 400

    event = EventService.update_event(auth, event_id, data)
    return jsonify(event.to_dict()), 200


@event_bp.route("/events/<int:event_id>/publish", methods=["PATCH"])
def publish_event(event_id):
    auth = AuthService.current_auth()
    data = request.get_json(silent=True) or {}
    event = EventService.set_published(auth, event_id, data.get("is_published", True))
    return jsonify(event.to_dict()), 200


@event_bp.route("/events/<int:event_id>/highlight", methods=["PATCH"])
def highlight_event(event_id):
    auth = AuthService.current_auth()
    data = request.get_json(silent=True) or {}
    event = EventService.set_highlighted(auth, event_id, data.get("is_highlighted", True))
    return jsonify(event.to_dict()), 200
