"""
Shareable snapshots of a child list, saved under memorable ids such as
``happy-puppy-2847``.
"""
import json
import logging
import random
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List
from urllib.parse import quote

from kidchart.models.data_structures import Child
from kidchart.models.exceptions import InvalidShareIdError, ShareNotFoundError

logger = logging.getLogger(__name__)

ADJECTIVES = [
    'happy', 'sunny', 'bright', 'calm', 'wise', 'brave', 'sweet', 'kind',
    'smart', 'cool', 'warm', 'gentle', 'proud', 'lucky', 'fresh', 'royal',
    'swift', 'bold', 'clever', 'noble', 'keen', 'free', 'pure', 'golden',
]

NOUNS = [
    'puppy', 'kitten', 'bunny', 'tiger', 'eagle', 'star', 'moon', 'cloud',
    'river', 'ocean', 'mountain', 'forest', 'meadow', 'garden', 'rainbow', 'sunrise',
    'fox', 'bear', 'lion', 'wolf', 'hawk', 'owl', 'dolphin', 'panda',
]

SHARE_ID_PATTERN = re.compile(r'^[a-z]+-[a-z]+-\d{4}$')


def generate_readable_id(rng: random.Random = None) -> str:
    rng = rng or random
    return f"{rng.choice(ADJECTIVES)}-{rng.choice(NOUNS)}-{rng.randint(1000, 9999)}"


def validate_share_id(share_id: str) -> str:
    if not share_id or not SHARE_ID_PATTERN.match(share_id):
        raise InvalidShareIdError(f"Invalid share ID format: {share_id!r}")
    return share_id


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ShareResult:
    share_id: str
    share_url: str


class ShareStore:
    """Stores one JSON document per share id under ``directory``."""

    def __init__(self, directory, url_base: str = 'https://kidchart.com',
                 id_factory: Callable[[], str] = generate_readable_id):
        self.directory = Path(directory)
        self.url_base = url_base.rstrip('/')
        self.id_factory = id_factory

    def _path(self, share_id: str) -> Path:
        return self.directory / f"{share_id}.json"

    def share_url(self, share_id: str) -> str:
        return f"{self.url_base}/?share={quote(share_id)}"

    def save(self, children: List[Child], share_id: str = None) -> ShareResult:
        if share_id:
            path = self._path(validate_share_id(share_id))
        else:
            share_id = self.id_factory()
            while self._path(share_id).exists():
                share_id = self.id_factory()
            path = self._path(share_id)

        created_at = _now()
        if path.exists():
            with open(path) as f:
                created_at = json.load(f).get('createdAt', created_at)

        self.directory.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump({
                'children': [c.to_dict() for c in children],
                'createdAt': created_at,
                'lastModified': _now(),
            }, f)
        logger.info("Saved %d children under share id %s", len(children), share_id)
        return ShareResult(share_id=share_id, share_url=self.share_url(share_id))

    def load(self, share_id: str) -> dict:
        """Return ``{'children': [Child, ...], 'createdAt': ..., 'lastModified': ...}``."""
        path = self._path(validate_share_id(share_id))
        if not path.exists():
            raise ShareNotFoundError(f"Share ID not found: {share_id}")
        with open(path) as f:
            data = json.load(f)
        return {
            'children': [Child.from_dict(c) for c in data.get('children', [])],
            'createdAt': data.get('createdAt'),
            'lastModified': data.get('lastModified'),
        }
