"""Local persistent store for lead records."""

import sqlite3
import uuid
from typing import Iterable, List, Optional

from .base import SQLiteStore
from ..domain.record import Record, LeadStatus, parse_record_id
from ..utils.datetime import now_utc, to_iso_string, parse_timestamp


RECORD_COLUMNS = [
    "id", "name", "address", "phone", "email", "latitude", "longitude",
    "status", "notes", "priority", "source", "estimated_value", "tags",
    "visit_count", "created_at", "updated_at", "remote_modified_at",
    "follow_up_date", "last_contact_date", "remote_key",
]


class RecordSession:
    """Record operations bound to one open transaction."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def fetch_all(self) -> List[Record]:
        """Return every stored record, including corrupt ones."""
        cursor = self.conn.execute("SELECT * FROM records ORDER BY store_key")
        return [self._row_to_record(row) for row in cursor.fetchall()]

    def get(self, record_id: uuid.UUID) -> Optional[Record]:
        cursor = self.conn.execute(
            "SELECT * FROM records WHERE id = ?", (str(record_id),)
        )
        row = cursor.fetchone()
        return self._row_to_record(row) if row else None

    def count(self) -> int:
        return self.conn.execute("SELECT COUNT(*) FROM records").fetchone()[0]

    def save(self, record: Record) -> Record:
        """Insert or update a record, keyed by row key first and id second."""
        values = self._record_to_values(record)

        if record.store_key is None and record.id is not None:
            row = self.conn.execute(
                "SELECT store_key FROM records WHERE id = ?", (str(record.id),)
            ).fetchone()
            if row:
                record.store_key = row["store_key"]

        if record.store_key is not None:
            assignments = ", ".join(f"{column} = ?" for column in RECORD_COLUMNS)
            self.conn.execute(
                f"UPDATE records SET {assignments} WHERE store_key = ?",
                values + [record.store_key],
            )
        else:
            placeholders = ", ".join("?" for _ in RECORD_COLUMNS)
            cursor = self.conn.execute(
                f"INSERT INTO records ({', '.join(RECORD_COLUMNS)}) VALUES ({placeholders})",
                values,
            )
            record.store_key = cursor.lastrowid
        return record

    def save_many(self, records: Iterable[Record]) -> int:
        count = 0
        for record in records:
            self.save(record)
            count += 1
        return count

    def delete(self, record_id: uuid.UUID) -> bool:
        cursor = self.conn.execute("DELETE FROM records WHERE id = ?", (str(record_id),))
        return cursor.rowcount > 0

    def delete_key(self, store_key: int) -> bool:
        cursor = self.conn.execute("DELETE FROM records WHERE store_key = ?", (store_key,))
        return cursor.rowcount > 0

    def _record_to_values(self, record: Record) -> list:
        return [
            str(record.id) if record.id else None,
            record.name,
            record.address,
            record.phone,
            record.email,
            record.latitude,
            record.longitude,
            record.status,
            record.notes,
            record.priority,
            record.source,
            record.estimated_value,
            record.tags,
            record.visit_count,
            to_iso_string(record.created_at),
            to_iso_string(record.updated_at),
            to_iso_string(record.remote_modified_at),
            to_iso_string(record.follow_up_date),
            to_iso_string(record.last_contact_date),
            record.remote_key,
        ]

    def _row_to_record(self, row: sqlite3.Row) -> Record:
        return Record(
            id=parse_record_id(row["id"]),
            name=row["name"],
            address=row["address"],
            phone=row["phone"],
            email=row["email"],
            latitude=row["latitude"] or 0.0,
            longitude=row["longitude"] or 0.0,
            status=row["status"] or LeadStatus.NOT_CONTACTED.value,
            notes=row["notes"],
            priority=row["priority"] or 0,
            source=row["source"],
            estimated_value=row["estimated_value"] or 0.0,
            tags=row["tags"],
            visit_count=row["visit_count"] or 0,
            created_at=parse_timestamp(row["created_at"]) or now_utc(),
            updated_at=parse_timestamp(row["updated_at"]),
            remote_modified_at=parse_timestamp(row["remote_modified_at"]),
            follow_up_date=parse_timestamp(row["follow_up_date"]),
            last_contact_date=parse_timestamp(row["last_contact_date"]),
            remote_key=row["remote_key"],
            store_key=row["store_key"],
        )


class SQLiteRecordStore(SQLiteStore[RecordSession]):
    """Record Store Adapter backed by sqlite.

    The ``id`` column is nullable: a record that lost its identity
    must still be loadable so the sweeper can find and remove it.
    """

    SCHEMA = [
        """
        CREATE TABLE IF NOT EXISTS records (
            store_key INTEGER PRIMARY KEY AUTOINCREMENT,
            id TEXT UNIQUE,
            name TEXT,
            address TEXT,
            phone TEXT,
            email TEXT,
            latitude REAL DEFAULT 0,
            longitude REAL DEFAULT 0,
            status TEXT,
            notes TEXT,
            priority INTEGER DEFAULT 0,
            source TEXT,
            estimated_value REAL DEFAULT 0,
            tags TEXT,
            visit_count INTEGER DEFAULT 0,
            created_at TEXT,
            updated_at TEXT,
            remote_modified_at TEXT,
            follow_up_date TEXT,
            last_contact_date TEXT,
            remote_key TEXT
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_records_updated_at ON records(updated_at)",
    ]

    def make_session(self, conn: sqlite3.Connection) -> RecordSession:
        return RecordSession(conn)

    # Application-facing API

    def get(self, record_id: uuid.UUID) -> Optional[Record]:
        return self.run(lambda session: session.get(record_id))

    def fetch_all(self) -> List[Record]:
        return self.run(lambda session: session.fetch_all())

    def count(self) -> int:
        return self.run(lambda session: session.count())

    def save(self, record: Record) -> Record:
        return self.run(lambda session: session.save(record))

    def delete(self, record_id: uuid.UUID) -> bool:
        return self.run(lambda session: session.delete(record_id))

    def delete_many(self, record_ids: Iterable[uuid.UUID]) -> int:
        ids = list(record_ids)
        return self.run(lambda session: sum(1 for record_id in ids if session.delete(record_id)))
