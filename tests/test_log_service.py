from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from portal.models import AppLog
from portal.repositories import LogRepository
from portal.services import LogService


class TestLogService:
    def test_entries_are_persisted(self, app):
        LogService.log_debug("Events.debug", "details", 7, {"k": "v"})
        LogService.log_info("Events.create", "created", 7)

        entries = AppLog.query.order_by(AppLog.id).all()
        assert [(e.level, e.action) for e in entries] == [
            ("DEBUG", "Events.debug"),
            ("INFO", "Events.create"),
        ]
        assert entries[0].meta == {"k": "v"}
        assert entries[1].meta == {}

    def test_write_failure_is_swallowed(self, app):
        failure = OperationalError("INSERT", {}, Exception("disk full"))

        with patch.object(LogRepository, "add", side_effect=failure):
            assert LogService.log_error("Events.create", "boom") is None

        assert AppLog.query.count() == 0

    def test_listing_filters_and_paginates(self, app):
        for i in range(3):
            LogService.log_warn("AttendanceList.cancel", f"refused {i}")
        LogService.log_info("AttendanceList.cancel", "done")

        result = LogService.get_logs(level="WARN", page=1, limit=2)

        assert result["metadata"] == {"total_count": 3, "page": 1, "limit": 2, "total_pages": 2}
        assert len(result["logs"]) == 2
