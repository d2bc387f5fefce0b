"""Recent results ("collage") storage for the Artify application.

Results are kept newest first in a single JSON file, capped at 50 entries.
"""

import json
import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

# Set up logging
logger = logging.getLogger(__name__)

MAX_COLLAGE_ENTRIES = 50


@dataclass(frozen=True)
class CollageEntry:
    """One saved result."""
    id: int
    image_data_uri: str
    style_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "imageDataUri": self.image_data_uri,
            "styleName": self.style_name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CollageEntry":
        return cls(
            id=int(data["id"]),
            image_data_uri=data["imageDataUri"],
            style_name=data["styleName"],
        )


class RecentResultsStore:
    """Bounded, newest-first list of results backed by a JSON file.

    Appends are a read-modify-write of the whole file. The lock serialises
    writers inside one process; two processes writing at the same time can
    still lose an update.
    """

    def __init__(self, path: Union[str, Path], max_entries: int = MAX_COLLAGE_ENTRIES):
        """Initialize the store.

        Args:
            path: JSON file holding the entries
            max_entries: Number of entries kept
        """
        self.path = Path(path)
        self.max_entries = max_entries
        self._lock = threading.Lock()

    def _read(self) -> List[Dict[str, Any]]:
        """Load the raw entries. A missing file is an empty list."""
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as e:
            logger.error(f"Error reading collage data from {self.path}: {e}")
            return []

        if not isinstance(data, list):
            logger.error(f"Collage data in {self.path} is not a list, ignoring it")
            return []
        return data

    def _write(self, data: List[Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)

    def list_recent(self, limit: Optional[int] = None) -> List[CollageEntry]:
        """Get the saved entries, newest first.

        Args:
            limit: Optional maximum number of entries

        Returns:
            List of entries
        """
        entries = []
        for item in self._read():
            try:
                entries.append(CollageEntry.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed collage entry: {e}")
        if limit is not None:
            entries = entries[:limit]
        return entries

    def append(self, entry: CollageEntry) -> None:
        """Insert an entry at the front and drop the oldest beyond the limit."""
        with self._lock:
            data = self._read()
            data.insert(0, entry.to_dict())
            self._write(data[:self.max_entries])
        logger.info(f"Saved '{entry.style_name}' to the collage")

    def add(self, image_data_uri: str, style_name: str) -> CollageEntry:
        """Create an entry stamped with the current time and append it.

        Args:
            image_data_uri: The result image as a data URI
            style_name: Display name of the style used

        Returns:
            The stored entry
        """
        entry = CollageEntry(
            id=int(time.time() * 1000),
            image_data_uri=image_data_uri,
            style_name=style_name,
        )
        self.append(entry)
        return entry

    def clear(self) -> None:
        """Delete all saved entries."""
        with self._lock:
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass
