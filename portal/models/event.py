from portal.extensions import db
from .enums import EventFormat


class Event(db.Model):
    __tablename__ = "events"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    creator_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    date = db.Column(db.TIMESTAMP(timezone=True), nullable=False)
    address = db.Column(db.String(255), nullable=True)
    format = db.Column(
        db.Enum(EventFormat), nullable=False, default=EventFormat.IN_PERSON
    )
    is_published = db.Column(db.Boolean, nullable=False, default=False)
    is_highlighted = db.Column(db.Boolean, nullable=False, default=False)
    exclusive_for_members = db.Column(db.Boolean, nullable=False, default=False)
    vacancy_total = db.Column(db.Integer, nullable=False, default=0)
    vacancy_online = db.Column(db.Integer, nullable=False, default=0)
    vacancies_per_brand = db.Column(db.Integer, nullable=False, default=0)
    # Online registrations skip the per-brand cap
    free_online = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )
    updated_at = db.Column(
        db.TIMESTAMP(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __table_args__ = (
        db.CheckConstraint("vacancy_total >= 0", name="ck_events_vacancy_total"),
        db.CheckConstraint("vacancy_online >= 0", name="ck_events_vacancy_online"),
        db.CheckConstraint(
            "vacancies_per_brand >= 0", name="ck_events_vacancies_per_brand"
        ),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "creator_id": self.creator_id,
            "date": self.date.isoformat() if self.date else None,
            "address": self.address,
            "format": self.format.value if self.format else None,
            "is_published": self.is_published,
            "is_highlighted": self.is_highlighted,
            "exclusive_for_members": self.exclusive_for_members,
            "vacancy_total": self.vacancy_total,
            "vacancy_online": self.vacancy_online,
            "vacancies_per_brand": self.vacancies_per_brand,
            "free_online": self.free_online,
        }

    def __repr__(self):
        return f"<Event id={self.id} title={self.title!r} date={self.date}>"
