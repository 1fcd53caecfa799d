"""
Configuration settings for the Code Enforcement Case Tracker
"""
import os
from typing import Dict, List

# Application Settings
APP_TITLE = "Commerce Code Enforcement"
APP_ICON = "🏛️"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Data File (single JSON document: cases, properties, lastUpdated)
DATA_PATH = os.getenv("CODE_ENFORCEMENT_DATA", "data/code-enforcement-data.json")

# Database Settings
USE_DATABASE = os.getenv("USE_DATABASE", "false").lower() in ("1", "true", "yes")
DATABASE_PATH = os.getenv("DATABASE_PATH", "data/code_enforcement.duckdb")

# Audit Trail
AUDIT_LOG_PATH = os.getenv("AUDIT_LOG_PATH", "data/audit_log.jsonl")

# Organization Defaults (used when no global settings are supplied)
CITY_NAME = os.getenv("CITY_NAME", "City of Commerce")
DEPARTMENT_NAME = os.getenv("DEPARTMENT_NAME", "Code Enforcement Division")
OFFICER_NAME = os.getenv("OFFICER_NAME", "Code Enforcement Officer")
CONTACT_PHONE = os.getenv("CONTACT_PHONE", "")
CONTACT_EMAIL = os.getenv("CONTACT_EMAIL", "")

# Case Lifecycle
COMPLIANCE_DAYS = 10
NEARING_DUE_DAYS = 3
CONTINUAL_ABATEMENT_MONTHS = 6

STATUS_ACTIVE = "ACTIVE"
STATUS_DUE = "DUE"
STATUS_CLOSED = "CLOSED"
STATUS_FAILURE_NOTICED = "FAILURE-NOTICED"
STATUS_PENDING_ABATEMENT = "PENDING_ABATEMENT"
STATUS_CONTINUAL_ABATEMENT = "CONTINUAL_ABATEMENT"

CASE_STATUSES: List[str] = [
    STATUS_ACTIVE,
    STATUS_DUE,
    STATUS_CLOSED,
    STATUS_FAILURE_NOTICED,
    STATUS_PENDING_ABATEMENT,
    STATUS_CONTINUAL_ABATEMENT,
]

OWNER_KNOWN = "KNOWN"
OWNER_UNKNOWN = "UNKNOWN"

# Time Status Values
TIME_ONTIME = "ontime"
TIME_NEARING_DUE = "nearing-due"
TIME_OVERDUE = "overdue"
TIME_CLOSED = "closed"

# Violation Catalog
VIOLATION_PLACEHOLDER = "Select a Violation..."
VIOLATION_MANUAL = "Other (Manual Entry)"

# Abatement Billing
ABATEMENT_HOURLY_RATE = 25.00
ABATEMENT_ADMIN_FEE = 50.00

# Document Types
DOC_TYPE_NOTICE = "notice"
DOC_TYPE_ENVELOPE = "envelope"
DOC_TYPE_STATEMENT = "statement"
DOC_TYPE_LIEN = "lien"
DOC_TYPE_CERTIFICATE = "certificate"
DOC_TYPES = [DOC_TYPE_NOTICE, DOC_TYPE_ENVELOPE, DOC_TYPE_STATEMENT, DOC_TYPE_LIEN, DOC_TYPE_CERTIFICATE]

# Documents that are tracked on the abatement record
ABATEMENT_DOC_TYPES = [DOC_TYPE_STATEMENT, DOC_TYPE_LIEN, DOC_TYPE_CERTIFICATE]

# Page sizes (width, height)
LETTER_PAGE_SIZE = ("8.5in", "11in")
ENVELOPE_PAGE_SIZE = ("9.5in", "4.125in")

# Patrol Route Order (west to east, then north to south)
STREET_ORDER: List[str] = [
    "main", "vine", "quincy", "river", "cherry", "maple", "walnut", "cedar", "elm",
    "mickey mantle",
    "l st",
    "mcbee",
    "meadowlark",
    "m st",
    "6th", "5th", "4th", "3rd", "2nd", "1st", "commerce", "a st", "b st", "c st",
    "doug furnas",
]

STREET_SUFFIXES: List[str] = [
    "st", "street", "blvd", "boulevard", "ave", "avenue",
    "ln", "lane", "rt", "route", "rd", "road",
]

# Alias phrase -> canonical street name
STREET_ALIASES: Dict[str, str] = {
    "route 66": "mickey mantle",
    "rt 66": "mickey mantle",
    "d st": "doug furnas",
}

# Date Formats
DATE_FORMAT = "%Y-%m-%d"
