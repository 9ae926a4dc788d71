"""
Mentorship session persistence.

Append-only JSON files, one per scored session, for audit trail and
dashboard read-back.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

_SESSION_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class ScorePayloadStore:
    """
    Manages per-session JSON persistence.

    Layout:
        outputs/sessions/
            SESSION-abc123.json
            SESSION-def456.json
            ...

    Design:
    - Append-only (never overwrite a scored session)
    - One file per session
    - The payload is written and read back exactly as produced; readers
      never recompute it
    """

    def __init__(self, base_dir: str = "outputs/sessions"):
        """
        Initialize persistence layer.

        Args:
            base_dir: Directory holding all session files
        """
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"ScorePayloadStore initialized: {self.base_dir}")

    def _path(self, session_id: str) -> Path:
        if not isinstance(session_id, str) or not _SESSION_ID.match(session_id):
            raise ValueError(f"Invalid session id: {session_id!r}")
        return self.base_dir / f"SESSION-{session_id}.json"

    def save(self, session_id: str, payload: Mapping[str, int], answers: Optional[Dict[str, Any]] = None) -> str:
        """
        Save a scored session.

        Args:
            session_id: Session identifier
            payload: Flat score payload from ScoringResult.to_payload()
            answers: Answers the payload was computed from (kept so legacy
                payloads can be rescored later)

        Returns:
            str: Absolute path to saved file

        Raises:
            FileExistsError: If the session was already saved (double-submit)
        """
        filepath = self._path(session_id)

        if filepath.exists():
            raise FileExistsError(
                f"Session file already exists: {filepath}. "
                f"Scored sessions are never overwritten."
            )

        record = {
            'session_id': session_id,
            'scores': dict(payload),
            'answers': answers or {},
        }

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(record, f, indent=2, ensure_ascii=False)

        logger.info(f"Saved session {session_id}: {filepath.name}")
        return str(filepath.absolute())

    def load(self, session_id: str) -> Optional[Dict[str, Any]]:
        """
        Load a saved session record.

        Returns:
            dict with 'session_id', 'scores' and 'answers', or None if
            the session was never saved
        """
        filepath = self._path(session_id)

        if not filepath.exists():
            logger.warning(f"Session file not found: {session_id}")
            return None

        with open(filepath, 'r', encoding='utf-8') as f:
            return json.load(f)

    def load_payload(self, session_id: str) -> Optional[Dict[str, int]]:
        """Flat score payload only, unmodified."""
        record = self.load(session_id)
        return None if record is None else record['scores']

    def session_exists(self, session_id: str) -> bool:
        return self._path(session_id).exists()

    def iter_payloads(self):
        """Yield every saved score payload (for dashboard averaging)."""
        for filepath in sorted(self.base_dir.glob("SESSION-*.json")):
            with open(filepath, 'r', encoding='utf-8') as f:
                yield json.load(f)['scores']
