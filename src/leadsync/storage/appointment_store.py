"""Local persistent store for appointments."""

import sqlite3
import uuid
from typing import List, Optional

from .base import SQLiteStore
from ..domain.appointment import Appointment
from ..domain.record import parse_record_id
from ..utils.datetime import now_utc, to_iso_string, parse_timestamp


class AppointmentSession:
    """Appointment operations bound to one open transaction."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def fetch_all(self) -> List[Appointment]:
        cursor = self.conn.execute("SELECT * FROM appointments ORDER BY start_date")
        return [self._row_to_appointment(row) for row in cursor.fetchall()]

    def get(self, appointment_id: uuid.UUID) -> Optional[Appointment]:
        row = self.conn.execute(
            "SELECT * FROM appointments WHERE id = ?", (str(appointment_id),)
        ).fetchone()
        return self._row_to_appointment(row) if row else None

    def save(self, appointment: Appointment) -> Appointment:
        self.conn.execute("""
            INSERT OR REPLACE INTO appointments
            (id, title, notes, start_date, end_date, location, lead_id,
             appointment_type, status, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            str(appointment.id),
            appointment.title,
            appointment.notes,
            to_iso_string(appointment.start_date),
            to_iso_string(appointment.end_date),
            appointment.location,
            str(appointment.lead_id) if appointment.lead_id else None,
            appointment.appointment_type,
            appointment.status,
            to_iso_string(appointment.updated_at),
        ))
        return appointment

    def delete(self, appointment_id: uuid.UUID) -> bool:
        cursor = self.conn.execute(
            "DELETE FROM appointments WHERE id = ?", (str(appointment_id),)
        )
        return cursor.rowcount > 0

    def _row_to_appointment(self, row: sqlite3.Row) -> Appointment:
        return Appointment(
            id=uuid.UUID(row["id"]),
            title=row["title"] or "",
            notes=row["notes"] or "",
            start_date=parse_timestamp(row["start_date"]) or now_utc(),
            end_date=parse_timestamp(row["end_date"]),
            location=row["location"] or "",
            lead_id=parse_record_id(row["lead_id"]),
            appointment_type=row["appointment_type"] or "Consultation",
            status=row["status"] or "scheduled",
            updated_at=parse_timestamp(row["updated_at"]),
        )


class SQLiteAppointmentStore(SQLiteStore[AppointmentSession]):
    """Appointment store; may share a database file with the record store."""

    SCHEMA = [
        """
        CREATE TABLE IF NOT EXISTS appointments (
            id TEXT PRIMARY KEY,
            title TEXT,
            notes TEXT,
            start_date TEXT NOT NULL,
            end_date TEXT,
            location TEXT,
            lead_id TEXT,
            appointment_type TEXT,
            status TEXT,
            updated_at TEXT
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_appointments_lead_id ON appointments(lead_id)",
    ]

    def make_session(self, conn: sqlite3.Connection) -> AppointmentSession:
        return AppointmentSession(conn)

    def fetch_all(self) -> List[Appointment]:
        return self.run(lambda session: session.fetch_all())

    def get(self, appointment_id: uuid.UUID) -> Optional[Appointment]:
        return self.run(lambda session: session.get(appointment_id))

    def save(self, appointment: Appointment) -> Appointment:
        return self.run(lambda session: session.save(appointment))

    def delete(self, appointment_id: uuid.UUID) -> bool:
        return self.run(lambda session: session.delete(appointment_id))
