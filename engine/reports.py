"""
Reporting engine - monthly activity and abatement reports
"""
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional, Tuple

import pandas as pd

from config import settings
from models.case import Case
from engine.street_order import sort_cases
from utils.helpers import parse_date, format_long_date

TUESDAY = 1  # date.weekday()


def nth_weekday_of_month(year: int, month: int, weekday: int, n: int) -> date:
    """Date of the n-th given weekday (Monday=0) in a month"""
    first = date(year, month, 1)
    offset = (weekday - first.weekday()) % 7
    return first + timedelta(days=offset + (n - 1) * 7)


def reporting_period(reference_date: date) -> Tuple[date, date]:
    """
    Reporting periods run from the 2nd Tuesday of a month through the day
    before the 2nd Tuesday of the next month.
    """
    start = nth_weekday_of_month(reference_date.year, reference_date.month, TUESDAY, 2)
    next_year = reference_date.year + (1 if reference_date.month == 12 else 0)
    next_month = 1 if reference_date.month == 12 else reference_date.month + 1
    end = nth_weekday_of_month(next_year, next_month, TUESDAY, 2) - timedelta(days=1)
    return start, end


@dataclass
class MonthlyReport:
    period_start: date
    period_end: date
    cases: List[Case] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.cases)

    @property
    def closed(self) -> int:
        return len([c for c in self.cases if c.is_closed])

    @property
    def active(self) -> int:
        return self.total - self.closed

    @property
    def violation_counts(self) -> List[Tuple[str, int]]:
        """(violation type, count), most frequent first"""
        counts = Counter(c.violation.type for c in self.cases)
        return sorted(counts.items(), key=lambda item: (-item[1], item[0]))

    @property
    def title(self) -> str:
        return f"Report for {format_long_date(self.period_start)} to {format_long_date(self.period_end)}"

    def get_violations_df(self) -> pd.DataFrame:
        return pd.DataFrame(self.violation_counts, columns=['Violation', 'Cases'])


def monthly_report(cases: List[Case], reference_date: Optional[date] = None) -> MonthlyReport:
    """Collect cases created within the reporting period containing reference_date's month"""
    start, end = reporting_period(reference_date or date.today())
    in_period = []
    for case in cases:
        created = parse_date(case.date_created)
        if created and start <= created <= end:
            in_period.append(case)
    return MonthlyReport(period_start=start, period_end=end, cases=in_period)


def _forwarded_on(case: Case) -> str:
    note = next((n for n in case.notes if 'Forwarded for abatement' in n.text), None)
    if note:
        return note.date
    if case.follow_ups:
        return case.follow_ups[-1].date
    return "N/A"


def abatement_report(cases: List[Case], today: Optional[date] = None) -> str:
    """Plain-text report of cases pending abatement, in patrol order"""
    pending = [c for c in cases if c.status == settings.STATUS_PENDING_ABATEMENT]
    if not pending:
        return "No cases are currently pending abatement."

    lines = [
        "ABATEMENT ACTION REPORT",
        f"Generated on: {format_long_date(today or date.today())}",
        f"Total Properties: {len(pending)}",
        "====================================",
        "",
    ]

    for case in sort_cases(pending, list_type="abatement"):
        last_follow_up = case.follow_ups[-1] if case.follow_ups else None
        lines += [
            "------------------------------------",
            f"CASE ID: {case.case_id}",
            f"PROPERTY ADDRESS: {case.address.street}",
            f"VIOLATION: {case.violation.type}",
            f"FORWARDED ON: {_forwarded_on(case)}",
            "",
            f"OWNER NAME: {case.owner_info.name or 'Unknown'}",
            "OWNER MAILING ADDRESS:",
            case.owner_info.mailing_address or "N/A",
            "",
        ]
        if last_follow_up and last_follow_up.notes:
            lines += ["LAST FOLLOW-UP NOTES:", last_follow_up.notes]
        lines.append("")

    return "\n".join(lines)
