import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from portal import create_app
from portal.models import Company, User
from portal.models.enums import ADMIN_ROLE
from portal.extensions import db
from portal.repositories import CompanyRepository, UserRepository
from portal.seed import seed_roles
from werkzeug.security import generate_password_hash

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
STAFF_COMPANY_CNPJ = os.getenv("STAFF_COMPANY_CNPJ", "00000000000000")


def create_admin_user(update=False):
    app = create_app()
    with app.app_context():
        seed_roles()

        company = CompanyRepository.find_by_cnpj(STAFF_COMPANY_CNPJ)
        if not company:
            company = Company(cnpj=STAFF_COMPANY_CNPJ, name="Portal Staff", active=True)
            db.session.add(company)
            db.session.commit()

        admin_roles = UserRepository.find_roles_by_names([ADMIN_ROLE])
        admin = UserRepository.find_by_email(ADMIN_EMAIL)
        if not admin:
            admin = User(
                email=ADMIN_EMAIL,
                password=generate_password_hash(ADMIN_PASSWORD),
                name="Admin User",
                cpf="00000000000",
                company_id=company.cnpj,
                email_verified=True,
            )
            UserRepository.sign_up(admin)
            UserRepository.set_roles(admin, admin_roles)
            print("Admin user created successfully!")
        elif update:
            admin.password = generate_password_hash(ADMIN_PASSWORD)
            UserRepository.set_roles(admin, admin_roles)
            print("Admin user updated successfully!")
        else:
            print("Admin user already exists!")

if __name__ == '__main__':
    create_admin_user(update=True)
