from typing import Optional
from portal.extensions import db
from portal.models import AppLog


class LogRepository:
    @staticmethod
    def add(attrs) -> AppLog:
        entry = AppLog(**attrs)
        db.session.add(entry)
        db.session.commit()
        return entry

    @staticmethod
    def find_logs(
        level: Optional[str] = None,
        action: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
    ):
        query = AppLog.query
        if level:
            query = query.filter(AppLog.level == level)
        if action:
            query = query.filter(AppLog.action == action)
        total = query.count()
        items = (
            query.order_by(AppLog.created_at.desc(), AppLog.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total
