from typing import Optional
from portal.extensions import db
from portal.models import Company


class CompanyRepository:
    @staticmethod
    def find_by_cnpj(cnpj: str) -> Optional[Company]:
        if not cnpj:
            return None
        return Company.query.filter_by(cnpj=cnpj).first()

    @staticmethod
    def set_active(company: Company, active: bool) -> Company:
        company.active = active
        db.session.commit()
        return company
