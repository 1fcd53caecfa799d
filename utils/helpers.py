"""
Helper utility functions
"""
from datetime import datetime, date
from typing import Optional, Union
from uuid import uuid4


def format_currency(amount: float) -> str:
    """Format a number as currency"""
    if amount < 0:
        return f"-${abs(amount):,.2f}"
    return f"${amount:,.2f}"


def parse_date(date_str: Union[str, date, None]) -> Optional[date]:
    """
    Parse the date formats found in case data to a date object.
    Examples: "October 19, 2026", "2026-10-19", "10/19/2026", "2026-10-19T08:30:00"
    """
    if not date_str:
        return None

    if isinstance(date_str, datetime):
        return date_str.date()

    if isinstance(date_str, date):
        return date_str

    text = str(date_str).strip()

    formats = [
        "%B %d, %Y",  # October 19, 2026
        "%b %d, %Y",  # Oct 19, 2026
        "%Y-%m-%d",  # 2026-10-19
        "%m/%d/%Y",  # 10/19/2026
        "%Y/%m/%d",  # 2026/10/19
    ]

    for fmt in formats:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    # ISO timestamps, e.g. lastUpdated or dateClosed
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def format_long_date(value: date) -> str:
    """Format a date the way case records store it (e.g. 'October 9, 2026')"""
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def now_iso() -> str:
    """Current timestamp as an ISO-8601 string"""
    return datetime.now().isoformat(timespec="seconds")


def normalize_address(street: str) -> str:
    """Normalize a street address for directory lookups (trim, lowercase)"""
    if not street:
        return ""
    return " ".join(str(street).split()).lower()


def generate_id(prefix: str = "") -> str:
    """Generate a unique ID"""
    unique = str(uuid4())
    if prefix:
        return f"{prefix}_{unique}"
    return unique
