"""
Time-status engine - derives a case's display status from its deadline
"""
import math
from datetime import date, datetime, time
from typing import Optional

from dateutil.relativedelta import relativedelta

from config import settings
from models.case import Case
from utils.helpers import parse_date

STATUS_LABELS = {
    settings.STATUS_PENDING_ABATEMENT: "Pending Abatement",
    settings.STATUS_CONTINUAL_ABATEMENT: "Continual Abatement",
}


def time_status(case: Case, today: Optional[date] = None) -> str:
    """
    Compute the time status of a case.

    Returns one of "ontime", "nearing-due", "overdue", "closed".
    Closed cases are "closed" whatever their deadline. A deadline that
    cannot be parsed yields "ontime".
    """
    if case.status == settings.STATUS_CLOSED:
        return settings.TIME_CLOSED

    deadline = parse_date(case.compliance_deadline)
    if deadline is None:
        return settings.TIME_ONTIME

    if today is None:
        today = date.today()

    # Both sides are taken at the start of their day
    delta = datetime.combine(deadline, time.min) - datetime.combine(today, time.min)
    diff_days = math.ceil(delta.total_seconds() / 86400)

    if diff_days < 0:
        return settings.TIME_OVERDUE
    if diff_days <= settings.NEARING_DUE_DAYS:
        return settings.TIME_NEARING_DUE
    return settings.TIME_ONTIME


def status_class(case: Case, today: Optional[date] = None) -> str:
    """Badge class for case lists"""
    if case.status == settings.STATUS_CLOSED:
        return "closed"
    if case.status == settings.STATUS_PENDING_ABATEMENT:
        return "abatement"
    if case.status == settings.STATUS_CONTINUAL_ABATEMENT:
        return "continual-abatement"
    return time_status(case, today)


def display_status(case: Case) -> str:
    """Human-readable status label"""
    return STATUS_LABELS.get(case.status, case.status)


def is_due(case: Case, today: Optional[date] = None) -> bool:
    """Overdue cases that still need attention (not closed, not already in abatement)"""
    if case.status in (settings.STATUS_CLOSED, settings.STATUS_PENDING_ABATEMENT):
        return False
    return time_status(case, today) == settings.TIME_OVERDUE


def continual_abatement_expiry(case: Case) -> Optional[date]:
    """Continual abatement lapses a fixed number of months after the work date"""
    if case.abatement is None:
        return None
    work_date = parse_date(case.abatement.work_date)
    if work_date is None:
        return None
    return work_date + relativedelta(months=settings.CONTINUAL_ABATEMENT_MONTHS)
