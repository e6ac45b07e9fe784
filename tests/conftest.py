from datetime import timedelta
from itertools import count

import pytest
from flask_jwt_extended import create_access_token
from werkzeug.security import generate_password_hash

from portal import create_app
from portal.extensions import db
from portal.models import Attendance, Company, Event, User
from portal.models.enums import AttendanceMode
from portal.repositories import UserRepository
from portal.seed import seed_roles
from portal.services import AuthService
from portal.utils.dates import utcnow

TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite://",
    "RATELIMIT_ENABLED": False,
    "JWT_SECRET_KEY": "test-secret-key-with-enough-length-for-hs256",
    "MAIL_DEFAULT_SENDER": "noreply@example.com",
}

_sequence = count(1)


@pytest.fixture
def app():
    app = create_app(TEST_CONFIG)
    with app.app_context():
        db.create_all()
        seed_roles()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_company(app):
    def _make_company(name="Acme", active=True, segment="Retail"):
        n = next(_sequence)
        company = Company(
            cnpj=f"{n:014d}", name=f"{name} {n}", segment=segment, active=active
        )
        db.session.add(company)
        db.session.commit()
        return company

    return _make_company


@pytest.fixture
def make_user(app):
    def _make_user(company=None, roles=(), password="secret123", **fields):
        n = next(_sequence)
        attrs = {
            "email": f"user{n}@example.com",
            "password": generate_password_hash(password),
            "name": f"User {n}",
            "position": "Manager",
            "rg": f"RG{n:06d}",
            "cpf": f"{n:011d}",
            "mobile_phone": "11999990000",
            "company_id": company.cnpj if company else None,
        }
        attrs.update(fields)
        user = User(**attrs)
        db.session.add(user)
        db.session.commit()
        if roles:
            UserRepository.set_roles(user, UserRepository.find_roles_by_names(list(roles)))
        return user

    return _make_user


@pytest.fixture
def make_event(app):
    def _make_event(**fields):
        attrs = {
            "title": f"Event {next(_sequence)}",
            "date": utcnow() + timedelta(days=10),
            "is_published": True,
            "exclusive_for_members": False,
            "vacancy_total": 10,
            "vacancy_online": 10,
            "vacancies_per_brand": 5,
            "free_online": False,
        }
        attrs.update(fields)
        event = Event(**attrs)
        db.session.add(event)
        db.session.commit()
        return event

    return _make_event


@pytest.fixture
def make_attendance(app):
    """Insert an attendance row directly, bypassing the registration rules."""

    def _make_attendance(event, user=None, mode=AttendanceMode.IN_PERSON, company=None):
        n = next(_sequence)
        company_id = company.cnpj if company else (user.company_id if user else None)
        if user is None:
            user = User(
                email=f"seat{n}@example.com",
                password="x",
                name=f"Seat {n}",
                company_id=company_id,
            )
            db.session.add(user)
            db.session.flush()
        attendance = Attendance(
            event_id=event.id,
            user_id=user.id,
            company_id=company_id,
            company_segment="Retail",
            attendee_full_name=user.name,
            attendee_email=user.email,
            attendee_position="Manager",
            attendee_rg=f"SEAT{n:06d}",
            attendee_cpf=f"{n + 50000000000:011d}",
            mobile_phone="11999990000",
            attendance_mode=mode,
            checked_in=False,
        )
        db.session.add(attendance)
        db.session.commit()
        return attendance

    return _make_attendance


@pytest.fixture
def member_company(make_company):
    return make_company("Member Co", active=True)


@pytest.fixture
def member_user(make_user, member_company):
    return make_user(company=member_company)


@pytest.fixture
def admin_user(make_user, make_company):
    return make_user(company=make_company("Staff"), roles=["admin"])


@pytest.fixture
def auth_for(app):
    def _auth_for(user):
        return AuthService.build_context(user)

    return _auth_for


@pytest.fixture
def auth_headers(app):
    def _auth_headers(user):
        token = create_access_token(identity=str(user.id))
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
