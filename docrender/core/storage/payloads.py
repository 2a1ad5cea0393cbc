"""
Payload Store
=============

JSON snapshots of incoming request bodies for audit and debugging.
Only the most recent ``retention`` snapshots are kept; older ones are deleted
in creation order.
"""

import json
import re
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from docrender.config.logging import get_logger
from docrender.models.schemas import PayloadRecord

logger = get_logger(__name__)

# <UTC timestamp with microseconds>-<uuid4 hex>; sortable by creation time
_ID_PATTERN = re.compile(r"^\d{8}T\d{12}Z-[0-9a-f]{32}$")
_TIMESTAMP_FORMAT = "%Y%m%dT%H%M%S%fZ"


class StorageError(Exception):
    """Exception raised when a snapshot cannot be written."""

    pass


class PayloadStore:
    """Filesystem backed request snapshot store."""

    def __init__(self, root: Path, retention: int = 100):
        self.root = Path(root)
        self.retention = retention
        self.logger: Any = logger.bind(component="payload_store")  # structlog.BoundLoggerBase
        self.root.mkdir(parents=True, exist_ok=True)
        self._last_created: Optional[datetime] = None

    @staticmethod
    def is_valid_id(payload_id: str) -> bool:
        return bool(_ID_PATTERN.match(payload_id))

    def _path(self, payload_id: str) -> Path:
        return self.root / f"{payload_id}.json"

    def save(self, body: Dict[str, Any]) -> str:
        """
        Write a snapshot of a request body.

        Returns:
            Identifier of the new snapshot

        Raises:
            StorageError: If the snapshot cannot be written
        """
        created = datetime.now(timezone.utc)
        # Identifiers must stay strictly increasing so retention follows creation order
        if self._last_created is not None and created <= self._last_created:
            created = self._last_created + timedelta(microseconds=1)
        self._last_created = created
        payload_id = f"{created.strftime(_TIMESTAMP_FORMAT)}-{uuid.uuid4().hex}"
        try:
            self._path(payload_id).write_text(json.dumps(body, default=str), encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to persist payload: {e}") from e

        self.logger.debug("Payload persisted", payload_id=payload_id)
        return payload_id

    def _ids(self) -> List[str]:
        """Snapshot identifiers, oldest first."""
        return sorted(
            path.stem for path in self.root.glob("*.json") if self.is_valid_id(path.stem)
        )

    def list(self) -> List[PayloadRecord]:
        """Snapshot summaries, newest first."""
        records = []
        for payload_id in reversed(self._ids()):
            path = self._path(payload_id)
            try:
                size = path.stat().st_size
            except FileNotFoundError:
                continue
            created = datetime.strptime(payload_id.split("-", 1)[0], _TIMESTAMP_FORMAT)
            records.append(
                PayloadRecord(
                    id=payload_id, created_at=created.replace(tzinfo=timezone.utc), size=size
                )
            )
        return records

    def get(self, payload_id: str) -> Optional[Dict[str, Any]]:
        """Load a snapshot; None for unknown or malformed identifiers and unreadable files."""
        if not self.is_valid_id(payload_id):
            return None
        path = self._path(payload_id)
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError are both ValueErrors
            self.logger.warning("Corrupt payload snapshot", payload_id=payload_id, error=str(e))
            return None

    def prune(self) -> int:
        """
        Delete all but the newest ``retention`` snapshots.

        Returns:
            Number of snapshots deleted
        """
        ids = self._ids()
        stale = ids[: max(0, len(ids) - self.retention)]
        deleted = 0
        for payload_id in stale:
            try:
                self._path(payload_id).unlink()
                deleted += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                self.logger.warning("Failed to delete payload", payload_id=payload_id, error=str(e))

        if deleted:
            self.logger.info("Pruned payload snapshots", deleted=deleted, kept=self.retention)
        return deleted
