"""Registration eligibility for a single event's attendance list.

The checks run in a fixed order and the first failing one decides the
result: existence, publication, member exclusivity, event date, identity,
existing registration, then vacancy accounting per attendance mode.

Business-rule refusals are returned as ``RegistrationCheck`` values; nothing
in here raises for a denial and nothing in here writes.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional
import logging
from portal.models import Event
from portal.models.enums import AttendanceMode
from portal.repositories import AttendanceRepository, CompanyRepository, EventRepository
from portal.utils.dates import ensure_utc, utcnow

logger = logging.getLogger(__name__)


class Outcome(Enum):
    ALLOWED = "allowed"
    NOT_FOUND = "not_found"
    UNAUTHENTICATED = "unauthenticated"
    DENIED = "denied"
    ALREADY_REGISTERED = "already_registered"


class DenialReason(Enum):
    EVENT_NOT_FOUND = "event_not_found"
    NOT_PUBLISHED = "not_published"
    LOGIN_REQUIRED = "login_required"
    MEMBERS_LOGIN_REQUIRED = "members_login_required"
    NOT_A_MEMBER = "not_a_member"
    EVENT_PASSED = "event_passed"
    ALREADY_REGISTERED = "already_registered"
    NO_VACANCIES = "no_vacancies"
    BRAND_LIMIT_REACHED = "brand_limit_reached"
    NO_VACANCIES_NOW = "no_vacancies_now"


DENIAL_MESSAGES = {
    DenialReason.EVENT_NOT_FOUND: "Event not found",
    DenialReason.NOT_PUBLISHED: "Event not available for registration",
    DenialReason.LOGIN_REQUIRED: "You must be logged in to register",
    DenialReason.MEMBERS_LOGIN_REQUIRED: (
        "This event is exclusive to members. Please log in to register."
    ),
    DenialReason.NOT_A_MEMBER: (
        "This event is exclusive to member companies. "
        "Your company does not hold an active membership."
    ),
    DenialReason.EVENT_PASSED: "This event has already happened",
    DenialReason.ALREADY_REGISTERED: "You are already registered for this event",
    DenialReason.NO_VACANCIES: "There are no more vacancies for this event",
    DenialReason.BRAND_LIMIT_REACHED: (
        "Your company has reached the limit of {vacancies_per_brand} "
        "registrations for this event"
    ),
    DenialReason.NO_VACANCIES_NOW: "No vacancies available at the moment",
}

ALLOWED_MESSAGE = "You can register for this event"


@dataclass(frozen=True)
class VacancyCounts:
    presential: int = 0
    online: int = 0
    company_presential: int = 0
    company_online: int = 0


@dataclass(frozen=True)
class Eligibility:
    presential: bool
    online: bool
    remaining_presential: int
    remaining_online: int
    company_remaining_presential: int
    company_remaining_online: Optional[int]
    reason: Optional[DenialReason] = None

    @property
    def any_mode(self) -> bool:
        return self.presential or self.online

    def allows(self, mode: AttendanceMode) -> bool:
        if mode == AttendanceMode.IN_PERSON:
            return self.presential
        return self.online


def evaluate_eligibility(event: Event, counts: VacancyCounts) -> Eligibility:
    """Per-mode eligibility from already-loaded counts.

    In-person is always gated by the per-brand cap; online only when the
    event is not ``free_online``. Remaining figures never go below zero.
    """
    cap = event.vacancies_per_brand
    remaining_presential = max(event.vacancy_total - counts.presential, 0)
    remaining_online = max(event.vacancy_online - counts.online, 0)

    presential = remaining_presential > 0 and counts.company_presential < cap
    online = remaining_online > 0 and (
        event.free_online or counts.company_online < cap
    )

    reason = None
    if not presential and not online:
        brand_limited = counts.company_presential >= cap or (
            not event.free_online and counts.company_online >= cap
        )
        if remaining_presential == 0 and remaining_online == 0:
            reason = DenialReason.NO_VACANCIES
        elif brand_limited:
            reason = DenialReason.BRAND_LIMIT_REACHED
        else:
            reason = DenialReason.NO_VACANCIES_NOW

    return Eligibility(
        presential=presential,
        online=online,
        remaining_presential=remaining_presential,
        remaining_online=remaining_online,
        company_remaining_presential=max(cap - counts.company_presential, 0),
        company_remaining_online=None
        if event.free_online
        else max(cap - counts.company_online, 0),
        reason=reason,
    )


@dataclass(frozen=True)
class RegistrationCheck:
    outcome: Outcome
    reason: Optional[DenialReason] = None
    event: Optional[Event] = None
    eligibility: Optional[Eligibility] = None
    attendance_id: Optional[int] = None
    user_info: Dict = field(default_factory=dict)
    company_info: Dict = field(default_factory=dict)

    @property
    def can_register(self) -> bool:
        return self.outcome == Outcome.ALLOWED

    @property
    def message(self) -> str:
        if self.reason is None:
            return ALLOWED_MESSAGE
        template = DENIAL_MESSAGES[self.reason]
        if self.reason == DenialReason.BRAND_LIMIT_REACHED and self.event is not None:
            return template.format(vacancies_per_brand=self.event.vacancies_per_brand)
        return template

    def to_dict(self) -> Dict:
        if self.outcome == Outcome.ALREADY_REGISTERED:
            return {
                "can_register": False,
                "is_registered": True,
                "attendance_id": self.attendance_id,
                "reason": self.reason.value,
                "message": self.message,
            }
        if self.outcome != Outcome.ALLOWED:
            return {
                "can_register": False,
                "reason": self.reason.value,
                "message": self.message,
            }

        event = self.event
        eligibility = self.eligibility
        return {
            "can_register": True,
            "can_register_presential": eligibility.presential,
            "can_register_online": eligibility.online,
            "message": self.message,
            "event": {
                "id": event.id,
                "title": event.title,
                "date": ensure_utc(event.date).isoformat(),
                "total_vacancies": event.vacancy_total,
                "online_vacancies": event.vacancy_online,
                "remaining_vacancies": eligibility.remaining_presential,
                "remaining_online_vacancies": eligibility.remaining_online,
                "vacancies_per_brand": event.vacancies_per_brand,
                "company_remaining_vacancies": eligibility.company_remaining_presential,
                "company_remaining_online_vacancies": eligibility.company_remaining_online,
                "free_online": event.free_online,
            },
            "user_info": self.user_info,
            "company_info": self.company_info,
        }


def _denied(reason: DenialReason, event=None, outcome=Outcome.DENIED) -> RegistrationCheck:
    return RegistrationCheck(outcome=outcome, reason=reason, event=event)


class RegistrationService:
    @staticmethod
    def load_counts(event_id: int, company_id: Optional[str]) -> VacancyCounts:
        totals = AttendanceRepository.count_by_event_and_mode(event_id)
        if company_id:
            company = AttendanceRepository.count_by_event_and_mode(event_id, company_id)
        else:
            company = {mode: 0 for mode in AttendanceMode}
        return VacancyCounts(
            presential=totals[AttendanceMode.IN_PERSON],
            online=totals[AttendanceMode.ONLINE],
            company_presential=company[AttendanceMode.IN_PERSON],
            company_online=company[AttendanceMode.ONLINE],
        )

    @staticmethod
    def can_user_register(event_id: int, auth=None, now=None, lock: bool = False) -> RegistrationCheck:
        """Decide whether the caller may register for the event right now.

        ``lock=True`` reads the event with a row lock so the caller can run
        the decision and the insert inside one transaction.
        """
        now = now or utcnow()

        if lock:
            event = EventRepository.get_event_for_update(event_id)
        else:
            event = EventRepository.get_event(event_id)
        if not event:
            return _denied(DenialReason.EVENT_NOT_FOUND, outcome=Outcome.NOT_FOUND)

        if not event.is_published:
            return _denied(DenialReason.NOT_PUBLISHED, event)

        company = CompanyRepository.find_by_cnpj(auth.company_id) if auth else None

        if event.exclusive_for_members:
            if auth is None:
                return _denied(
                    DenialReason.MEMBERS_LOGIN_REQUIRED, event, Outcome.UNAUTHENTICATED
                )
            if not company or not company.active:
                return _denied(DenialReason.NOT_A_MEMBER, event)

        if now > ensure_utc(event.date):
            return _denied(DenialReason.EVENT_PASSED, event)

        if auth is None:
            return _denied(DenialReason.LOGIN_REQUIRED, event, Outcome.UNAUTHENTICATED)

        existing = AttendanceRepository.find_by_event_and_user(event.id, auth.user_id)
        if existing:
            return RegistrationCheck(
                outcome=Outcome.ALREADY_REGISTERED,
                reason=DenialReason.ALREADY_REGISTERED,
                event=event,
                attendance_id=existing.id,
            )

        counts = RegistrationService.load_counts(event.id, auth.company_id)
        eligibility = evaluate_eligibility(event, counts)
        logger.debug(
            f"Eligibility for user {auth.user_id}, event {event.id}: counts={counts}, result={eligibility}"
        )
        if not eligibility.any_mode:
            return RegistrationCheck(
                outcome=Outcome.DENIED,
                reason=eligibility.reason,
                event=event,
                eligibility=eligibility,
            )

        user = auth.user
        return RegistrationCheck(
            outcome=Outcome.ALLOWED,
            event=event,
            eligibility=eligibility,
            user_info={
                "id": user.id,
                "name": user.name,
                "email": user.email,
                "position": user.position,
                "rg": user.rg,
                "cpf": user.cpf,
                "mobile_phone": user.mobile_phone,
            },
            company_info={
                "cnpj": auth.company_id,
                "name": company.name if company else "",
                "segment": (company.segment or "") if company else "",
            },
        )
