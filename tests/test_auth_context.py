import pytest

from portal.exceptions import ForbiddenError, UnauthorizedError
from portal.services import AuthService


class TestAuthContext:
    def test_permissions_come_from_roles(self, make_user, auth_for):
        user = make_user(roles=["reception"])

        auth = auth_for(user)

        assert auth.roles == frozenset({"reception"})
        assert auth.has_permission("attendance.checkin")
        assert not auth.has_permission("attendance.manage")
        assert auth.is_admin is False

    def test_admin_has_every_permission(self, admin_user, auth_for):
        auth = auth_for(admin_user)

        assert auth.is_admin is True
        assert auth.has_permission("anything.at.all")

    def test_user_without_roles(self, member_user, member_company, auth_for):
        auth = auth_for(member_user)

        assert auth.permissions == frozenset()
        assert auth.company_id == member_company.cnpj
        assert auth.user_id == member_user.id

    def test_require_permission(self, make_user, auth_for):
        auth = auth_for(make_user(roles=["viewer"]))

        assert AuthService.require_permission(auth, "attendance.view") is auth
        with pytest.raises(ForbiddenError):
            AuthService.require_permission(auth, "events.publish")
        with pytest.raises(UnauthorizedError):
            AuthService.require_permission(None, "attendance.view")


class TestCurrentAuth:
    def test_resolves_bearer_token(self, app, member_user, auth_headers):
        with app.test_request_context(headers=auth_headers(member_user)):
            auth = AuthService.current_auth()

        assert auth.user_id == member_user.id

    def test_optional_without_token(self, app):
        with app.test_request_context():
            assert AuthService.current_auth(optional=True) is None

    def test_required_without_token(self, app):
        with app.test_request_context():
            with pytest.raises(UnauthorizedError):
                AuthService.current_auth()

    def test_garbage_token(self, app):
        with app.test_request_context(headers={"Authorization": "Bearer not-a-jwt"}):
            assert AuthService.current_auth(optional=True) is None
            with pytest.raises(UnauthorizedError):
                AuthService.current_auth()

    def test_inactive_user_is_anonymous(self, app, make_user, auth_headers):
        user = make_user(active=False)

        with app.test_request_context(headers=auth_headers(user)):
            assert AuthService.current_auth(optional=True) is None
