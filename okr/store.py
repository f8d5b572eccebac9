"""
DocumentStore: JSON file persistence for the OKR document.

Path: data/okr_data.json by default (see okr.paths / okr.config_manager).
Loading never fails: a missing, unreadable or malformed file yields an
empty Document. Saving surfaces failures as PersistenceError.
"""
import json
from pathlib import Path
from typing import Optional

from okr.config_manager import config
from okr.exceptions import PersistenceError
from okr.logger import get_logger
from okr.models import Document
from okr.paths import DATA_DIR

logger = get_logger("store")


def default_document_path() -> Path:
    return DATA_DIR / config.DATA_FILENAME


def parse_document(text: str) -> Document:
    """Parse serialized JSON into a Document; malformed input gives an empty one."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as exc:
        logger.warning("Unparsable OKR document, starting empty: %s", exc)
        return Document()
    if not isinstance(data, dict):
        logger.warning("OKR document is not a JSON object, starting empty")
        return Document()
    return Document.from_dict(data)


def serialize_document(document: Document) -> str:
    return json.dumps(document.to_dict(), ensure_ascii=False, indent=2)


class DocumentStore:
    """Reads and writes one full Document at ``path``."""

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path) if path is not None else default_document_path()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Document:
        if not self._path.exists():
            return Document()
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Cannot read %s, starting empty: %s", self._path, exc)
            return Document()
        document = parse_document(text)
        logger.info(
            "Loaded %d objectives and %d history entries from %s",
            len(document.objectives),
            len(document.history),
            self._path,
        )
        return document

    def save(self, document: Document) -> None:
        payload = serialize_document(document)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                f.write(payload)
        except OSError as exc:
            logger.error("Failed to save OKR document to %s: %s", self._path, exc)
            raise PersistenceError(f"Failed to save OKR document: {exc}", str(self._path)) from exc
