"""Session persistence: one JSON file per session id."""

import json
import logging
from pathlib import Path

from .errors import StorageShapeMismatch
from .structure import StructureCatalog
from .transcript import Transcript

logger = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "debate_demo"


def get_sessions_dir() -> Path:
    """Get the sessions directory, creating if needed."""
    sessions_dir = Path.home() / ".disputatio" / "sessions"
    sessions_dir.mkdir(parents=True, exist_ok=True)
    return sessions_dir


def check_shape(transcript: Transcript, catalog: StructureCatalog) -> None:
    """Raise StorageShapeMismatch if the transcript was built from a different catalog shape."""
    if transcript.shape() != catalog.shape():
        raise StorageShapeMismatch(
            f"Stored transcript shape {transcript.shape()} does not match "
            f"structure '{catalog.name}' {catalog.shape()}"
        )


class TranscriptStore:
    """Opaque load/save/clear of the whole transcript blob."""

    def __init__(
        self,
        catalog: StructureCatalog,
        sessions_dir: Path | None = None,
        session_id: str = DEFAULT_SESSION_ID,
    ):
        self.catalog = catalog
        self.sessions_dir = Path(sessions_dir) if sessions_dir is not None else get_sessions_dir()
        self.session_id = session_id

    @property
    def path(self) -> Path:
        return self.sessions_dir / f"{self.session_id}.json"

    def load(self) -> Transcript | None:
        """Stored transcript, or None if missing, unreadable or shaped for another catalog."""
        if not self.path.exists():
            return None

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            transcript = Transcript.from_dict(data)
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Discarding unreadable session %s: %s", self.path, e)
            self.clear()
            return None

        try:
            check_shape(transcript, self.catalog)
        except StorageShapeMismatch as e:
            logger.info("Discarding stale session: %s", e)
            self.clear()
            return None

        return transcript

    def save(self, transcript: Transcript) -> None:
        self.sessions_dir.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(transcript.to_dict(), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
