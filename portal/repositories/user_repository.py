from typing import List
from portal.extensions import db
from portal.models import User, Role


class UserRepository:
    @staticmethod
    def sign_up(user):
        db.session.add(user)
        db.session.commit()
        return user

    @staticmethod
    def find_by_email(email):
        return User.query.filter_by(email=email).first()

    @staticmethod
    def find_by_id(user_id: int):
        return User.query.filter_by(id=user_id).first()

    @staticmethod
    def get_users():
        return User.query.order_by(User.name.asc()).all()

    @staticmethod
    def find_roles_by_names(names: List[str]) -> List[Role]:
        return Role.query.filter(Role.name.in_(names)).all()

    @staticmethod
    def set_roles(user: User, roles: List[Role]) -> User:
        user.roles = roles
        db.session.commit()
        return user

    @staticmethod
    def mark_email_verified(user: User) -> User:
        user.email_verified = True
        db.session.commit()
        return user

    @staticmethod
    def update_password(user: User, hashed_password: str) -> User:
        user.password = hashed_password
        db.session.commit()
        return user
