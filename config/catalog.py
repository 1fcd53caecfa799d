"""
Violation catalog - loaded from YAML by an explicit call, never cached
"""
from pathlib import Path
from typing import List, Optional, Union

import yaml

from config import settings
from models.case import Violation

CATALOG_PATH = Path(__file__).parent / "violations.yaml"

DEFAULT_VIOLATIONS = [
    {
        'type': "Tall Grass / Weeds",
        'ordinance': "Municipal Code Sec. 8-32",
        'description': "Grass or weeds exceeding twelve (12) inches in height on the premises.",
        'corrective_action': "Mow and remove all grass and weeds exceeding twelve inches.",
        'notice_clause': "The City may mow the property and assess the cost against the owner.",
    },
]


class ViolationCatalog:
    """
    Fixed catalog of violation types. A draft violation is matched by type;
    the manual entry type is kept as entered.
    """

    def __init__(self, violations: List[Violation]):
        self.violations = violations
        self._by_type = {v.type: v for v in violations}

    @property
    def types(self) -> List[str]:
        return [v.type for v in self.violations]

    def get(self, violation_type: str) -> Optional[Violation]:
        return self._by_type.get(violation_type)

    def resolve(self, violation: Violation) -> Violation:
        """Return the catalog entry for a draft violation"""
        if violation.type == settings.VIOLATION_MANUAL:
            return violation

        entry = self.get(violation.type)
        if entry is None:
            return Violation()

        # Copy so case records never share catalog instances
        return Violation(
            type=entry.type,
            ordinance=entry.ordinance,
            description=entry.description,
            corrective_action=entry.corrective_action,
            notice_clause=entry.notice_clause,
        )


def load_violation_catalog(path: Optional[Union[str, Path]] = None) -> ViolationCatalog:
    """Load the violation catalog from YAML, falling back to built-in defaults"""
    catalog_path = Path(path) if path else CATALOG_PATH
    try:
        with open(catalog_path, 'r') as f:
            entries = (yaml.safe_load(f) or {}).get('violations') or []
    except FileNotFoundError:
        entries = DEFAULT_VIOLATIONS

    violations = [
        Violation(
            type=str(e['type']),
            ordinance=str(e.get('ordinance', '')),
            description=str(e.get('description', '')),
            corrective_action=str(e.get('corrective_action', '')),
            notice_clause=str(e.get('notice_clause', '')),
        )
        for e in entries
    ]
    return ViolationCatalog(violations)
