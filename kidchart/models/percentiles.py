"""
Percentile interpolation and classification against reference tables.

Tables are static lookups: a value between two tabulated ages is read off
the straight line joining them, and ages outside the table are clamped to
the first or last row.
"""
from bisect import bisect_left
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from kidchart.models.exceptions import EmptyTableError
from kidchart.models.reference import ReferenceRow, ReferenceTable


@dataclass(frozen=True)
class BandInterval:
    """Where a value sits relative to a standard's centile curves.

    ``lower is None`` means below the lowest band; ``upper is None`` means
    at or above the highest populated band.
    """
    lower: Optional[str]
    upper: Optional[str]

    @property
    def label(self) -> str:
        if self.lower is None:
            return f"<{self.upper}"
        if self.upper is None:
            return f">{self.lower}"
        return f"{self.lower}-{self.upper}"

    def __str__(self) -> str:
        return self.label


def interpolate(age: float, table: ReferenceTable) -> ReferenceRow:
    """Reference row at ``age`` days by piecewise-linear interpolation."""
    rows = table.rows
    if not rows:
        raise EmptyTableError(
            "Reference table %s/%s/%s has no rows"
            % tuple(k.value for k in table.key)
        )

    if age <= rows[0].age:
        return rows[0]
    if age >= rows[-1].age:
        return rows[-1]

    i = bisect_left(table.ages, age)
    if rows[i].age == age:
        return rows[i]

    lo, hi = rows[i - 1], rows[i]
    ratio = (age - lo.age) / (hi.age - lo.age)
    values = {
        label: lo[label] + ratio * (hi[label] - lo[label])
        for label in lo.values
        if label in hi
    }
    return ReferenceRow(age=age, values=values)


def classify(value: float, age: float, table: ReferenceTable) -> BandInterval:
    """Find the centile interval ``value`` falls in at ``age`` days.

    Bands are walked in the order of the table's own standard. A value equal
    to a band's reference value belongs to the interval below that band.
    """
    row = interpolate(age, table)
    lower = None
    for band in table.bands:
        reference = row.get(band.label)
        if reference is None:
            continue
        if value <= reference:
            return BandInterval(lower=lower, upper=band.label)
        lower = band.label
    if lower is None:
        # nothing populated at this age
        lower = table.bands[-1].label
    return BandInterval(lower=lower, upper=None)


def percentile_lines(table: ReferenceTable) -> Dict[str, List[Tuple[float, float]]]:
    """One ``(age, value)`` series per band, in band order, for charting."""
    lines: Dict[str, List[Tuple[float, float]]] = {}
    for band in table.bands:
        points = [(row.age, row[band.label])
                  for row in table.rows if band.label in row]
        if points:
            lines[band.label] = points
    return lines
