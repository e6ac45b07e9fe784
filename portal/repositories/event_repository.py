from portal.extensions import db
from portal.models import Event


class EventRepository:
    @staticmethod
    def get_events():
        return Event.query

    @staticmethod
    def get_published_events():
        return Event.query.filter(Event.is_published.is_(True)).order_by(
            Event.date.asc()
        )

    @staticmethod
    def get_event(event_id: int) -> Event:
        return Event.query.filter_by(id=event_id).first()

    @staticmethod
    def get_event_for_update(event_id: int) -> Event:
        """Load the event holding a row lock until the current transaction ends."""
        return Event.query.filter_by(id=event_id).with_for_update().first()

    @staticmethod
    def create_event(attrs):
        event = Event(**attrs)
        db.session.add(event)
        db.session.commit()
        return event

    @staticmethod
    def update_event(event: Event, attrs: dict):
        for key, value in attrs.items():
            if hasattr(event, key):
                setattr(event, key, value)
        db.session.commit()
        return event
