"""
JSON file persistence - the whole data set lives in one document
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from models.case import CaseDocument
from utils.errors import ExternalServiceError, NotFoundError, ParseError, ValidationError
from utils.helpers import now_iso

logger = logging.getLogger(__name__)


class JsonFileStore:
    """
    Reads and writes {cases, properties, lastUpdated} as a single JSON file.
    Each save replaces the entire file; the last writer wins.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None

    def _require_path(self) -> Path:
        if self.path is None:
            raise NotFoundError("No data file is configured.")
        return self.path

    def create_new(self, overwrite: bool = False) -> CaseDocument:
        """
        Initialize the data file with an empty document.
        An existing file is only replaced when overwrite is set.
        """
        path = self._require_path()
        if path.exists() and not overwrite:
            raise ValidationError(
                f"Data file already exists: {path}.",
                missing_fields=["overwrite"],
            )
        document = CaseDocument(cases=[], properties=[], last_updated=now_iso())
        self.save(document)
        logger.info("Created new data file %s", path)
        return document

    def load(self) -> CaseDocument:
        """Load the document from disk"""
        path = self._require_path()
        try:
            with open(path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except FileNotFoundError:
            raise NotFoundError(f"Data file not found: {path}")
        except json.JSONDecodeError as e:
            raise ParseError(f"Data file {path} is not valid JSON: {e}")
        except OSError as e:
            raise ExternalServiceError(f"Could not read data file {path}: {e}")

        document = CaseDocument.from_dict(raw)
        logger.info("Loaded %d cases and %d properties from %s",
                    len(document.cases), len(document.properties), path)
        return document

    def save(self, document: CaseDocument):
        """Replace the data file with the given document"""
        path = self._require_path()
        payload = json.dumps(document.to_dict(), indent=2)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # Write beside the target, then swap it in
            fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    f.write(payload)
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise ExternalServiceError(f"Auto-save failed: {e}")

        logger.debug("Saved %d cases to %s", len(document.cases), path)
