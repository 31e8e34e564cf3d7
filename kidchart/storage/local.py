"""
Local persistence of the child list and the preferred growth standard.
"""
import json
import logging
from pathlib import Path
from typing import List

from kidchart.models.data_structures import Child

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = 'WHO'


class JsonChildStore:
    """Keeps the child list as a single JSON document on disk."""

    def __init__(self, path, location_path=None):
        self.path = Path(path)
        self.location_path = (Path(location_path) if location_path
                              else self.path.with_name('location.json'))

    def load_children(self) -> List[Child]:
        if not self.path.exists():
            return []
        try:
            with open(self.path) as f:
                data = json.load(f)
            return [Child.from_dict(c) for c in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Could not read children from %s: %s", self.path, e)
            return []

    def save_children(self, children: List[Child]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w') as f:
            json.dump([c.to_dict() for c in children], f, indent=2)
        logger.debug("Saved %d children to %s", len(children), self.path)

    def load_location(self) -> str:
        if not self.location_path.exists():
            return DEFAULT_LOCATION
        try:
            with open(self.location_path) as f:
                return json.load(f).get('location') or DEFAULT_LOCATION
        except (OSError, ValueError, AttributeError) as e:
            logger.warning("Could not read location from %s: %s",
                           self.location_path, e)
            return DEFAULT_LOCATION

    def save_location(self, location: str) -> None:
        self.location_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.location_path, 'w') as f:
            json.dump({'location': location}, f)
