"""
Audit trail logging
"""
from datetime import datetime
from typing import Optional
import json
from pathlib import Path

from config import settings


class AuditLog:
    """
    Maintains an audit trail of user actions on cases and properties
    """

    def __init__(self, log_path: Optional[str] = None):
        self.log_path = Path(log_path or settings.AUDIT_LOG_PATH)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def log_action(
        self,
        action: str,
        user: str,
        details: dict,
        timestamp: Optional[datetime] = None
    ):
        """Log an action to the audit trail"""
        if timestamp is None:
            timestamp = datetime.now()

        log_entry = {
            'timestamp': timestamp.isoformat(),
            'action': action,
            'user': user,
            'details': details
        }

        # Append to log file
        with open(self.log_path, 'a') as f:
            f.write(json.dumps(log_entry) + '\n')

    def log_case_created(self, case_id: str, street: str, user: str):
        self.log_action(
            action='case_created',
            user=user,
            details={'case_id': case_id, 'street': street}
        )

    def log_status_change(
        self,
        case_id: str,
        old_status: str,
        new_status: str,
        user: str
    ):
        """Log a case status transition"""
        self.log_action(
            action='status_change',
            user=user,
            details={
                'case_id': case_id,
                'old_status': old_status,
                'new_status': new_status
            }
        )

    def log_notice_generated(self, case_id: str, notice_type: str, title: str, user: str):
        self.log_action(
            action='notice_generated',
            user=user,
            details={'case_id': case_id, 'notice_type': notice_type, 'title': title}
        )

    def log_case_deleted(self, case_id: str, user: str):
        self.log_action(action='case_deleted', user=user, details={'case_id': case_id})

    def log_save_failure(self, error: str, user: str):
        self.log_action(action='save_failed', user=user, details={'error': error})

    def log_export(
        self,
        export_type: str,
        user: str,
        record_count: int
    ):
        """Log an export action"""
        self.log_action(
            action='export',
            user=user,
            details={
                'export_type': export_type,
                'record_count': record_count
            }
        )

    def get_recent_logs(self, limit: int = 100) -> list:
        """Get recent log entries"""
        if not self.log_path.exists():
            return []

        logs = []
        with open(self.log_path, 'r') as f:
            for line in f:
                if line.strip():
                    logs.append(json.loads(line))

        # Return most recent entries
        return logs[-limit:]
