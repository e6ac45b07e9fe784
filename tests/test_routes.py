from datetime import timedelta

from portal.extensions import db
from portal.models import Attendance, Company, OtpCode, User
from portal.utils.dates import utcnow


class TestUserRoutes:
    def test_signup_and_signin(self, client, member_company):
        payload = {
            "email": "new@example.com",
            "password": "s3cret!",
            "name": "New Person",
            "cpf": "987.654.321-00",
            "company_id": member_company.cnpj,
        }

        response = client.post("/api/user/signup", json=payload)
        assert response.status_code == 201
        assert response.json["user"]["cpf"] == "98765432100"
        assert response.json["token"]

        response = client.post(
            "/api/user/signin", json={"email": "new@example.com", "password": "s3cret!"}
        )
        assert response.status_code == 200

        response = client.post(
            "/api/user/signin", json={"email": "new@example.com", "password": "wrong"}
        )
        assert response.status_code == 401

    def test_signup_missing_fields(self, client):
        response = client.post("/api/user/signup", json={"email": "x@example.com"})

        assert response.status_code == 400
        assert set(response.json["missing_fields"]) == {"password", "name", "cpf", "company_id"}

    def test_signup_unknown_company(self, client):
        response = client.post(
            "/api/user/signup",
            json={
                "email": "x@example.com",
                "password": "pw",
                "name": "X",
                "cpf": "12345678901",
                "company_id": "99999999999999",
            },
        )

        assert response.status_code == 400
        assert response.json["error"] == "Company not found"

    def test_signup_duplicate_email(self, client, member_user, member_company):
        response = client.post(
            "/api/user/signup",
            json={
                "email": member_user.email,
                "password": "pw",
                "name": "Again",
                "cpf": "12345678901",
                "company_id": member_company.cnpj,
            },
        )

        assert response.status_code == 400

    def test_me(self, client, make_user, auth_headers):
        user = make_user(roles=["reception"])

        response = client.get("/api/user/me", headers=auth_headers(user))

        assert response.status_code == 200
        assert response.json["roles"] == ["reception"]
        assert "attendance.checkin" in response.json["permissions"]

    def test_me_requires_token(self, client):
        assert client.get("/api/user/me").status_code == 401

    def test_email_verification_flow(self, client, member_user, auth_headers):
        headers = auth_headers(member_user)

        response = client.post("/api/user/verify-email/send", headers=headers)
        assert response.status_code == 200
        assert response.json["status"] == "SUCCESS"

        response = client.post("/api/user/verify-email", json={"code": "not-it"}, headers=headers)
        assert response.status_code == 400

        # a wrong code leaves the live one unused
        otp = OtpCode.query.filter_by(identifier=member_user.email, used=False).one()
        response = client.post("/api/user/verify-email", json={"code": otp.code}, headers=headers)
        assert response.status_code == 200
        assert response.json["verified"] is True
        assert db.session.get(User, member_user.id).email_verified is True

    def test_password_reset_flow(self, client, member_user):
        response = client.post("/api/user/forgot-password", json={})
        assert response.status_code == 400
        assert response.json["missing_fields"] == ["email"]

        response = client.post("/api/user/forgot-password", json={"email": member_user.email})
        assert response.status_code == 200

        otp = OtpCode.query.filter_by(identifier=member_user.email, purpose="password_reset").one()
        response = client.post(
            "/api/user/reset-password",
            json={"email": member_user.email, "code": otp.code, "password": "brand-new"},
        )
        assert response.status_code == 200

        response = client.post(
            "/api/user/signin", json={"email": member_user.email, "password": "brand-new"}
        )
        assert response.status_code == 200

    def test_reset_password_missing_fields(self, client):
        response = client.post("/api/user/reset-password", json={"email": "a@example.com"})

        assert response.status_code == 400
        assert response.json["missing_fields"] == ["code", "password"]

    def test_change_password(self, client, member_user, auth_headers):
        headers = auth_headers(member_user)

        response = client.post(
            "/api/user/change-password",
            json={"current_password": "secret123", "new_password": "x"},
            headers=headers,
        )
        assert response.status_code == 400
        assert "at least" in response.json["error"]

        response = client.post(
            "/api/user/change-password",
            json={"current_password": "secret123", "new_password": "brand-new"},
            headers=headers,
        )
        assert response.status_code == 200

        response = client.post(
            "/api/user/signin", json={"email": member_user.email, "password": "secret123"}
        )
        assert response.status_code == 401

    def test_change_password_requires_token(self, client):
        response = client.post(
            "/api/user/change-password",
            json={"current_password": "secret123", "new_password": "brand-new"},
        )

        assert response.status_code == 401

    def test_user_events(self, client, make_event, member_user, make_attendance, auth_headers):
        make_attendance(make_event(), member_user)

        response = client.get("/api/user/events?limit=5", headers=auth_headers(member_user))

        assert response.status_code == 200
        assert response.json["metadata"]["total_count"] == 1
        assert response.json["metadata"]["limit"] == 5


class TestEventRoutes:
    def test_public_listing_hides_drafts(self, client, make_event):
        make_event(title="Live")
        make_event(title="Draft", is_published=False)

        response = client.get("/api/events")

        assert [event["title"] for event in response.json["events"]] == ["Live"]

    def test_staff_listing_includes_drafts(self, client, make_event, admin_user, auth_headers):
        make_event(title="Live")
        make_event(title="Draft", is_published=False)

        response = client.get("/api/events", headers=auth_headers(admin_user))

        assert {event["title"] for event in response.json["events"]} == {"Live", "Draft"}

    def test_draft_is_hidden_from_public(self, client, make_event):
        event = make_event(is_published=False)

        assert client.get(f"/api/events/{event.id}").status_code == 404

    def test_create_and_publish(self, client, admin_user, auth_headers):
        headers = auth_headers(admin_user)
        payload = {
            "title": "Launch",
            "date": (utcnow() + timedelta(days=5)).isoformat(),
            "vacancy_total": 50,
            "vacancy_online": 20,
            "vacancies_per_brand": 3,
            "format": "hybrid",
        }

        response = client.post("/api/events", json=payload, headers=headers)
        assert response.status_code == 201
        event_id = response.json["id"]
        assert response.json["is_published"] is False
        assert response.json["creator_id"] == admin_user.id

        response = client.patch(f"/api/events/{event_id}/publish", json={}, headers=headers)
        assert response.status_code == 200
        assert response.json["is_published"] is True

    def test_create_validates_capacities(self, client, admin_user, auth_headers):
        payload = {
            "title": "Broken",
            "date": (utcnow() + timedelta(days=5)).isoformat(),
            "vacancy_total": -1,
            "vacancies_per_brand": 3,
        }

        response = client.post("/api/events", json=payload, headers=auth_headers(admin_user))

        assert response.status_code == 400

    def test_create_requires_permission(self, client, member_user, auth_headers):
        response = client.post(
            "/api/events",
            json={"title": "Nope", "date": "2030-01-01T10:00:00Z", "vacancy_total": 1, "vacancies_per_brand": 1},
            headers=auth_headers(member_user),
        )

        assert response.status_code == 403

    def test_marketing_can_highlight_but_not_publish(
        self, client, make_event, make_user, auth_headers
    ):
        event = make_event(is_published=False)
        headers = auth_headers(make_user(roles=["marketing"]))

        response = client.patch(f"/api/events/{event.id}/highlight", json={}, headers=headers)
        assert response.status_code == 200
        assert response.json["is_highlighted"] is True

        response = client.put(f"/api/events/{event.id}", json={"is_published": True}, headers=headers)
        assert response.status_code == 403


class TestAttendanceRoutes:
    def test_eligibility_status_codes(self, client, make_event, member_user, auth_headers):
        event = make_event()

        assert client.get("/api/events/9999/eligibility").status_code == 404

        response = client.get(f"/api/events/{event.id}/eligibility")
        assert response.status_code == 401
        assert response.json["reason"] == "login_required"

        response = client.get(
            f"/api/events/{event.id}/eligibility", headers=auth_headers(member_user)
        )
        assert response.status_code == 200
        assert response.json["can_register"] is True
        assert response.json["event"]["remaining_vacancies"] == 10

    def test_denial_is_a_200_with_reason(self, client, make_event, member_user, auth_headers):
        event = make_event(date=utcnow() - timedelta(days=1))

        response = client.get(
            f"/api/events/{event.id}/eligibility", headers=auth_headers(member_user)
        )

        assert response.status_code == 200
        assert response.json == {
            "can_register": False,
            "reason": "event_passed",
            "message": "This event has already happened",
        }

    def test_register_then_cancel(self, client, make_event, member_user, auth_headers):
        event = make_event()
        headers = auth_headers(member_user)

        response = client.post(
            f"/api/events/{event.id}/register", json={"attendance_mode": "online"}, headers=headers
        )
        assert response.status_code == 201
        attendance_id = response.json["attendance"]["id"]

        response = client.get(f"/api/events/{event.id}/eligibility", headers=headers)
        assert response.json["is_registered"] is True

        response = client.delete(f"/api/attendances/{attendance_id}", headers=headers)
        assert response.status_code == 200
        assert Attendance.query.filter_by(event_id=event.id).count() == 0

    def test_register_anonymous(self, client, make_event):
        event = make_event()

        response = client.post(f"/api/events/{event.id}/register", json={"attendance_mode": "online"})

        assert response.status_code == 401

    def test_register_missing_mode(self, client, make_event, member_user, auth_headers):
        event = make_event()

        response = client.post(
            f"/api/events/{event.id}/register", json={}, headers=auth_headers(member_user)
        )

        assert response.status_code == 400
        assert response.json["missing_fields"] == ["attendance_mode"]

    def test_staff_endpoints(
        self, client, make_event, member_user, admin_user, make_attendance, auth_headers
    ):
        event = make_event()
        headers = auth_headers(admin_user)

        response = client.post(
            f"/api/admin/events/{event.id}/attendees",
            json={"user_id": member_user.id, "participant_type": "guest"},
            headers=headers,
        )
        assert response.status_code == 201
        attendance_id = response.json["attendance"]["id"]

        response = client.patch(
            f"/api/admin/attendances/{attendance_id}/checkin", json={"checked_in": True}, headers=headers
        )
        assert response.json["attendance"]["checked_in"] is True

        response = client.patch(
            f"/api/admin/attendances/{attendance_id}/participant-type",
            json={"participant_type": "sponsor"},
            headers=headers,
        )
        assert response.json["attendance"]["participant_type"] == "sponsor"

        response = client.get(f"/api/admin/events/{event.id}/attendees", headers=headers)
        assert response.json["stats"]["checked_in"] == 1

        response = client.delete(f"/api/admin/attendances/{attendance_id}", headers=headers)
        assert response.status_code == 200

    def test_staff_endpoints_forbidden_for_participants(
        self, client, make_event, member_user, auth_headers
    ):
        event = make_event()

        response = client.get(
            f"/api/admin/events/{event.id}/attendees", headers=auth_headers(member_user)
        )

        assert response.status_code == 403


class TestAdminRoutes:
    def test_check(self, client, admin_user, member_user, auth_headers):
        assert client.get("/api/admin/check", headers=auth_headers(admin_user)).json == {"is_admin": True}
        assert client.get("/api/admin/check", headers=auth_headers(member_user)).status_code == 403

    def test_assign_roles(self, client, admin_user, member_user, auth_headers):
        response = client.put(
            f"/api/admin/users/{member_user.id}/roles",
            json={"roles": ["reception", "viewer"]},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 200
        assert response.json["user"]["roles"] == ["reception", "viewer"]

    def test_assign_unknown_role(self, client, admin_user, member_user, auth_headers):
        response = client.put(
            f"/api/admin/users/{member_user.id}/roles",
            json={"roles": ["wizard"]},
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 400

    def test_company_status_drives_exclusive_events(
        self, client, make_event, member_user, member_company, admin_user, auth_headers
    ):
        event = make_event(exclusive_for_members=True)

        response = client.patch(
            f"/api/admin/companies/{member_company.cnpj}/status", json={}, headers=auth_headers(admin_user)
        )
        assert response.json["company"]["active"] is False

        response = client.get(
            f"/api/events/{event.id}/eligibility", headers=auth_headers(member_user)
        )
        assert response.json["reason"] == "not_a_member"
        assert db.session.get(Company, member_company.cnpj).active is False

    def test_logs(self, client, make_event, member_user, admin_user, auth_headers):
        event = make_event(is_published=False)
        client.post(
            f"/api/events/{event.id}/register",
            json={"attendance_mode": "online"},
            headers=auth_headers(member_user),
        )

        response = client.get(
            "/api/admin/logs?level=WARN&action=AttendanceList.register",
            headers=auth_headers(admin_user),
        )

        assert response.status_code == 200
        assert response.json["metadata"]["total_count"] == 1
        assert response.json["logs"][0]["user_id"] == member_user.id

        assert client.get("/api/admin/logs", headers=auth_headers(member_user)).status_code == 403
