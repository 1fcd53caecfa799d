"""
Database persistence layer (optional DuckDB backend)
"""
import json
import logging
from pathlib import Path
from typing import Dict, Optional, Union

import duckdb

from models.case import CaseDocument
from config import settings
from storage.json_store import JsonFileStore
from utils.errors import ExternalServiceError, NotFoundError, ParseError, ValidationError
from utils.helpers import now_iso

logger = logging.getLogger(__name__)

DOCUMENT_ROW_ID = 1


class Database:
    """
    DuckDB persistence with the same load/save contract as the JSON file.
    The document is stored whole in one row; a flat cases table is rebuilt
    on every save for reporting queries.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self.db_path = str(db_path or settings.DATABASE_PATH)
        self.conn = None
        self._init_database()

    def _init_database(self):
        """Initialize database and create tables"""
        # Ensure directory exists
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            self.conn = duckdb.connect(self.db_path)
        except duckdb.Error as e:
            raise ExternalServiceError(f"Could not open database {self.db_path}: {e}")

        self._create_tables()

    def _create_tables(self):
        """Create database tables"""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS app_data (
                id INTEGER PRIMARY KEY,
                payload VARCHAR,
                last_updated VARCHAR
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS cases (
                id VARCHAR PRIMARY KEY,
                case_id VARCHAR,
                status VARCHAR,
                street VARCHAR,
                owner_name VARCHAR,
                owner_info_status VARCHAR,
                violation_type VARCHAR,
                date_created VARCHAR,
                compliance_deadline VARCHAR,
                is_vacant BOOLEAN
            )
        """)

    def has_data(self) -> bool:
        row = self.conn.execute(
            "SELECT COUNT(*) FROM app_data WHERE id = ?", [DOCUMENT_ROW_ID]
        ).fetchone()
        return row[0] > 0

    def create_new(self, overwrite: bool = False) -> CaseDocument:
        """Start an empty document; stored data is only replaced when overwrite is set"""
        if self.has_data() and not overwrite:
            raise ValidationError(
                f"Database {self.db_path} already holds data.",
                missing_fields=["overwrite"],
            )
        document = CaseDocument(cases=[], properties=[], last_updated=now_iso())
        self.save(document)
        return document

    def load(self) -> CaseDocument:
        """Load the stored document"""
        row = self.conn.execute(
            "SELECT payload FROM app_data WHERE id = ?", [DOCUMENT_ROW_ID]
        ).fetchone()
        if row is None:
            raise NotFoundError(f"No data stored in {self.db_path}")

        try:
            raw = json.loads(row[0])
        except json.JSONDecodeError as e:
            raise ParseError(f"Stored document in {self.db_path} is not valid JSON: {e}")

        return CaseDocument.from_dict(raw)

    def save(self, document: CaseDocument):
        """Replace the stored document and the reporting table in one transaction"""
        payload = json.dumps(document.to_dict())
        rows = [
            (
                c.id,
                c.case_id,
                c.status,
                c.address.street,
                c.owner_info.name,
                c.owner_info_status,
                c.violation.type,
                c.date_created,
                c.compliance_deadline,
                c.is_vacant,
            )
            for c in document.cases
        ]

        try:
            self.conn.begin()
            self.conn.execute(
                "INSERT OR REPLACE INTO app_data (id, payload, last_updated) VALUES (?, ?, ?)",
                [DOCUMENT_ROW_ID, payload, document.last_updated],
            )
            self.conn.execute("DELETE FROM cases")
            if rows:
                self.conn.executemany("""
                    INSERT INTO cases
                    (id, case_id, status, street, owner_name, owner_info_status,
                     violation_type, date_created, compliance_deadline, is_vacant)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, rows)
            self.conn.commit()
        except duckdb.Error as e:
            self.conn.rollback()
            raise ExternalServiceError(f"Auto-save failed: {e}")

        logger.debug("Saved %d cases to %s", len(rows), self.db_path)

    def get_status_counts(self) -> Dict[str, int]:
        """Number of cases per lifecycle status"""
        rows = self.conn.execute(
            "SELECT status, COUNT(*) FROM cases GROUP BY status ORDER BY status"
        ).fetchall()
        return {status: count for status, count in rows}

    def close(self):
        """Close database connection"""
        if self.conn:
            self.conn.close()
            self.conn = None


def open_store(data_path: Optional[Union[str, Path]] = None):
    """Pick the persistence backend from settings"""
    if settings.USE_DATABASE:
        return Database()
    return JsonFileStore(data_path or settings.DATA_PATH)
