import logging
from sqlalchemy.exc import SQLAlchemyError
from portal.extensions import db
from portal.models.enums import LogLevel
from portal.repositories import LogRepository

logger = logging.getLogger(__name__)

_PY_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class LogService:
    """Audit trail persisted in ``app_logs``, mirrored to the standard logger.

    Database failures while writing an entry are rolled back and reported,
    never raised.
    """

    @staticmethod
    def add_log(level: LogLevel, action, message, user_id=None, meta=None):
        logger.log(_PY_LEVELS[level], f"[{action}] {message} user={user_id} meta={meta}")
        try:
            return LogRepository.add(
                {
                    "level": level.value,
                    "action": action,
                    "message": message,
                    "user_id": user_id,
                    "meta": meta or {},
                }
            )
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to write audit log for {action}: {str(e)}")
            return None

    @staticmethod
    def log_info(action, message, user_id=None, meta=None):
        return LogService.add_log(LogLevel.INFO, action, message, user_id, meta)

    @staticmethod
    def log_warn(action, message, user_id=None, meta=None):
        return LogService.add_log(LogLevel.WARN, action, message, user_id, meta)

    @staticmethod
    def log_error(action, message, user_id=None, meta=None):
        return LogService.add_log(LogLevel.ERROR, action, message, user_id, meta)

    @staticmethod
    def log_debug(action, message, user_id=None, meta=None):
        return LogService.add_log(LogLevel.DEBUG, action, message, user_id, meta)

    @staticmethod
    def get_logs(level=None, action=None, page=1, limit=50):
        items, total = LogRepository.find_logs(level, action, page, limit)
        return {
            "logs": [entry.to_dict() for entry in items],
            "metadata": {
                "total_count": total,
                "page": page,
                "limit": limit,
                "total_pages": (total + limit - 1) // limit,
            },
        }
