from flask import current_app
from portal.exceptions import MissingFieldsError, NotFoundError, ValidationError
from portal.models import Event
from portal.models.enums import EventFormat
from portal.repositories.event_repository import EventRepository
from portal.services.auth_service import AuthService
from portal.services.log_service import LogService
from portal.utils.dates import parse_datetime
from typing import List

CAPACITY_FIELDS = ["vacancy_total", "vacancy_online", "vacancies_per_brand"]
FLAG_FIELDS = ["is_published", "is_highlighted", "exclusive_for_members", "free_online"]
TEXT_FIELDS = ["title", "description", "address"]


def _event_attrs(data):
    """Validated model attributes from a create/update payload."""
    attrs = {}
    for key in TEXT_FIELDS:
        if key in data:
            attrs[key] = data[key]

    if "date" in data:
        try:
            attrs["date"] = parse_datetime(data["date"])
        except (TypeError, ValueError):
            raise ValidationError("Invalid event date, expected ISO-8601")

    if "format" in data:
        try:
            attrs["format"] = EventFormat(data["format"])
        except ValueError:
            raise ValidationError(f"Invalid event format '{data['format']}'")

    for key in CAPACITY_FIELDS:
        if key in data:
            value = data[key]
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValidationError(f"{key} must be a non-negative integer")
            attrs[key] = value
    if "vacancy_total" in attrs and attrs["vacancy_total"] < 1:
        raise ValidationError("vacancy_total must be greater than 0")

    for key in FLAG_FIELDS:
        if key in data:
            attrs[key] = bool(data[key])
    return attrs


class EventService:
    @staticmethod
    def get_public_events() -> List[Event]:
        return EventRepository.get_published_events().all()

    @staticmethod
    def get_all_events(auth) -> List[Event]:
        AuthService.require_permission(auth, "events.view")
        return EventRepository.get_events().order_by(Event.date.desc()).all()

    @staticmethod
    def get_event(event_id: int) -> Event:
        event = EventRepository.get_event(event_id)
        if not event:
            raise NotFoundError(f"Event with ID {event_id} not found")
        return event

    @staticmethod
    def create_event(auth, data):
        AuthService.require_permission(auth, "events.create")

        required_fields = ["title", "date", "vacancy_total", "vacancies_per_brand"]
        missing = [f for f in required_fields if f not in data]
        if missing:
            raise MissingFieldsError(missing)

        attrs = _event_attrs(data)
        attrs["creator_id"] = auth.user_id
        event = EventRepository.create_event(attrs)

        LogService.log_info(
            "Events.create", f"Event created: {event.title}", auth.user_id,
            {"event_id": event.id},
        )
        return event

    @staticmethod
    def update_event(auth, event_id: int, data):
        AuthService.require_permission(auth, "events.update")
        event = EventService.get_event(event_id)

        attrs = _event_attrs(data)
        if "is_published" in attrs:
            AuthService.require_permission(auth, "events.publish")
        event = EventRepository.update_event(event, attrs)

        current_app.logger.info(f"Event {event_id} updated by user {auth.user_id}: {sorted(attrs)}")
        LogService.log_info(
            "Events.update", f"Event updated: {event.title}", auth.user_id,
            {"event_id": event.id, "fields": sorted(attrs)},
        )
        return event

    @staticmethod
    def set_published(auth, event_id: int, published: bool):
        AuthService.require_permission(auth, "events.publish")
        event = EventService.get_event(event_id)
        event = EventRepository.update_event(event, {"is_published": bool(published)})
        LogService.log_info(
            "Events.updateStatus",
            f"Event {'published' if event.is_published else 'unpublished'}: {event.title}",
            auth.user_id,
            {"event_id": event.id},
        )
        return event

    @staticmethod
    def set_highlighted(auth, event_id: int, highlighted: bool):
        AuthService.require_permission(auth, "events.update")
        event = EventService.get_event(event_id)
        event = EventRepository.update_event(event, {"is_highlighted": bool(highlighted)})
        LogService.log_info(
            "Events.updateHighlight",
            f"Event {'highlighted' if event.is_highlighted else 'no longer highlighted'}: {event.title}",
            auth.user_id,
            {"event_id": event.id},
        )
        return event
