"""
Error taxonomy for the case tracker
"""
from typing import List, Optional


class CaseTrackerError(Exception):
    """Base class for all case tracker errors"""


class ValidationError(CaseTrackerError):
    """Required case fields are missing or invalid"""

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None):
        super().__init__(message)
        self.missing_fields = missing_fields or []


class ParseError(CaseTrackerError):
    """Persisted document or a date string could not be parsed"""


class NotFoundError(CaseTrackerError):
    """No backing store is configured, or a referenced record is absent"""


class ExternalServiceError(CaseTrackerError):
    """A persistence or document collaborator failed"""
