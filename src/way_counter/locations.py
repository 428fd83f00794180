"""Flat-file store of each user's last reported location."""

import json
import logging
import threading
import time
from pathlib import Path
from typing import Any

from .models import Location

logger = logging.getLogger(__name__)

DEFAULT_LOCATIONS_FILE = "locations.json"


class LocationStore:
    """
    JSON file holding one location per user id.

    The whole file is rewritten on every change. A lock serializes writers
    within one process; there is no cross-process coordination.
    """

    def __init__(self, path: str | Path = DEFAULT_LOCATIONS_FILE) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> list[dict[str, Any]]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.info("No existing %s, starting fresh", self.path)
            return []
        except (OSError, ValueError) as e:
            logger.warning("Could not read %s, starting fresh: %s", self.path, e)
            return []
        return data if isinstance(data, list) else []

    def _write(self, data: list[dict[str, Any]]) -> None:
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def save(self, user_id: str | int, latitude: float, longitude: float) -> Location:
        """Replace the stored location for ``user_id``."""
        location = Location(
            id=user_id,
            latitude=latitude,
            longitude=longitude,
            timestamp=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        )
        with self._lock:
            data = [loc for loc in self._read() if loc.get("id") != user_id]
            data.append(location.to_dict())
            self._write(data)
        return location

    def remove(self, user_id: str | int) -> None:
        """Forget the location for ``user_id`` (no-op if unknown)."""
        with self._lock:
            data = [loc for loc in self._read() if loc.get("id") != user_id]
            self._write(data)

    def all(self) -> list[Location]:
        """All stored locations; malformed entries are skipped."""
        locations = []
        for entry in self._read():
            try:
                locations.append(Location.from_dict(entry))
            except (KeyError, TypeError):
                logger.debug("Skipping malformed location entry: %r", entry)
        return locations
