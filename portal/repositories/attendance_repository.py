from typing import Dict, List, Optional
from sqlalchemy import func, or_
from portal.extensions import db
from portal.models import Attendance, Event
from portal.models.enums import AttendanceMode


class AttendanceRepository:
    @staticmethod
    def find_by_id(attendance_id: int) -> Optional[Attendance]:
        return Attendance.query.filter_by(id=attendance_id).first()

    @staticmethod
    def find_by_event_and_user(event_id: int, user_id: int) -> Optional[Attendance]:
        """Find an attendance record by event_id and user_id"""
        return Attendance.query.filter_by(event_id=event_id, user_id=user_id).first()

    @staticmethod
    def find_by_event_id(event_id: int) -> List[Attendance]:
        return (
            Attendance.query.filter_by(event_id=event_id)
            .order_by(Attendance.attendee_full_name.asc())
            .all()
        )

    @staticmethod
    def count_by_event_and_mode(
        event_id: int, company_id: Optional[str] = None
    ) -> Dict[AttendanceMode, int]:
        """Count an event's attendance rows per mode, optionally for one company."""
        query = db.session.query(
            Attendance.attendance_mode, func.count(Attendance.id)
        ).filter(Attendance.event_id == event_id)
        if company_id is not None:
            query = query.filter(Attendance.company_id == company_id)
        counts = {mode: 0 for mode in AttendanceMode}
        for mode, count in query.group_by(Attendance.attendance_mode).all():
            counts[mode] = count
        return counts

    @staticmethod
    def count_checked_in(event_id: int) -> int:
        return Attendance.query.filter_by(event_id=event_id, checked_in=True).count()

    @staticmethod
    def find_snapshot_duplicate(
        event_id: int, email: str, cpf: Optional[str], rg: Optional[str]
    ) -> Optional[Attendance]:
        """Another registration in the event sharing the email, CPF or RG."""
        conditions = [Attendance.attendee_email == email]
        if cpf:
            conditions.append(Attendance.attendee_cpf == cpf)
        if rg:
            conditions.append(Attendance.attendee_rg == rg)
        return Attendance.query.filter(
            Attendance.event_id == event_id, or_(*conditions)
        ).first()

    @staticmethod
    def find_for_user(user_id: int, now, past: bool, page: int, limit: int):
        """A page of the user's registrations, upcoming or past, with the total."""
        query = (
            Attendance.query.join(Event, Attendance.event_id == Event.id)
            .filter(Attendance.user_id == user_id)
        )
        if past:
            query = query.filter(Event.date <= now).order_by(Event.date.desc())
        else:
            query = query.filter(Event.date > now).order_by(Event.date.asc())
        total = query.count()
        items = query.offset((page - 1) * limit).limit(limit).all()
        return items, total

    @staticmethod
    def register_for_event(attendance: Attendance) -> Attendance:
        db.session.add(attendance)
        db.session.commit()
        return attendance

    @staticmethod
    def delete(attendance: Attendance):
        db.session.delete(attendance)
        db.session.commit()

    @staticmethod
    def update_check_in(attendance: Attendance, checked_in: bool, check_in_date=None):
        attendance.checked_in = checked_in
        attendance.check_in_date = check_in_date if checked_in else None
        db.session.commit()
        return attendance

    @staticmethod
    def update_participant_type(attendance: Attendance, participant_type: str):
        attendance.participant_type = participant_type
        db.session.commit()
        return attendance
