"""
Reference percentile tables.

Each growth standard publishes its own set of centile curves. WHO charts
carry 7 bands (3rd..97th); the UK-WHO charts used by the NHS carry 9
(0.4th..99.6th). A ``Standard`` owns its ordered band schema, and every
``ReferenceTable`` knows its standard, so nothing downstream assumes a
fixed band set.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from kidchart.models.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class MeasurementType(str, Enum):
    HEIGHT = 'height'
    WEIGHT = 'weight'
    HEAD_CIRCUMFERENCE = 'headCircumference'


class Gender(str, Enum):
    MALE = 'male'
    FEMALE = 'female'


@dataclass(frozen=True)
class Band:
    """A single centile curve, e.g. ``Band('0.4th', 0.4)``."""
    label: str
    percentile: float


class Standard(str, Enum):
    WHO = 'WHO'
    NHS = 'NHS'

    @property
    def bands(self) -> Tuple[Band, ...]:
        """Band schema in ascending percentile order."""
        return BAND_SCHEMAS[self]

    @property
    def band_labels(self) -> Tuple[str, ...]:
        return tuple(b.label for b in self.bands)

    @property
    def display_name(self) -> str:
        return STANDARD_LABELS[self]


BAND_SCHEMAS: Dict[Standard, Tuple[Band, ...]] = {
    Standard.WHO: (
        Band('3rd', 3), Band('10th', 10), Band('25th', 25), Band('50th', 50),
        Band('75th', 75), Band('90th', 90), Band('97th', 97),
    ),
    Standard.NHS: (
        Band('0.4th', 0.4), Band('2nd', 2), Band('9th', 9), Band('25th', 25),
        Band('50th', 50), Band('75th', 75), Band('91st', 91), Band('98th', 98),
        Band('99.6th', 99.6),
    ),
}

STANDARD_LABELS: Dict[Standard, str] = {
    Standard.WHO: 'International (WHO)',
    Standard.NHS: 'UK (NHS)',
}


@dataclass(frozen=True)
class ReferenceRow:
    """Centile values at one age (days). Bands may be missing."""
    age: float
    values: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def __getitem__(self, label: str) -> float:
        return self.values[label]

    def __contains__(self, label: str) -> bool:
        return label in self.values

    def get(self, label: str, default: Optional[float] = None) -> Optional[float]:
        return self.values.get(label, default)


TableKey = Tuple[MeasurementType, Gender, Standard]


@dataclass(frozen=True)
class ReferenceTable:
    measurement_type: MeasurementType
    gender: Gender
    standard: Standard
    rows: Tuple[ReferenceRow, ...] = ()

    @property
    def key(self) -> TableKey:
        return (self.measurement_type, self.gender, self.standard)

    @property
    def bands(self) -> Tuple[Band, ...]:
        return self.standard.bands

    @property
    def ages(self) -> List[float]:
        return [row.age for row in self.rows]

    def __len__(self) -> int:
        return len(self.rows)


def table_key(measurement_type, gender, standard) -> TableKey:
    """Coerce raw identifiers to a table key; unknown names raise NotFoundError."""
    try:
        return (MeasurementType(measurement_type), Gender(gender),
                Standard(standard))
    except ValueError:
        raise NotFoundError(measurement_type, gender, standard) from None


class ReferenceTableStore:
    """Read-only registry of reference tables, populated once at start-up."""

    def __init__(self, tables: Iterable[ReferenceTable] = ()):
        self._tables: Dict[TableKey, ReferenceTable] = {}
        for table in tables:
            self.register(table)

    def register(self, table: ReferenceTable) -> None:
        if table.key in self._tables:
            logger.info("Replacing reference table %s/%s/%s",
                        *(k.value for k in table.key))
        self._tables[table.key] = table

    def lookup(self, measurement_type, gender, standard) -> ReferenceTable:
        key = table_key(measurement_type, gender, standard)
        try:
            return self._tables[key]
        except KeyError:
            raise NotFoundError(*(k.value for k in key)) from None

    def available(self) -> List[TableKey]:
        return sorted(self._tables, key=lambda k: tuple(p.value for p in k))

    def standards(self) -> List[Standard]:
        return [s for s in Standard if any(k[2] is s for k in self._tables)]

    def __contains__(self, key) -> bool:
        try:
            return table_key(*key) in self._tables
        except NotFoundError:
            return False

    def __iter__(self) -> Iterator[ReferenceTable]:
        return iter(self._tables.values())

    def __len__(self) -> int:
        return len(self._tables)
