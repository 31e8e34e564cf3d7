"""
Child and measurement records handled by the storage and API layers.

Serialised form keeps the camelCase keys of the shared JSON blob.
"""
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from kidchart.models.ages import calculate_age_in_days, format_age
from kidchart.models.dates import parse_iso_date
from kidchart.models.exceptions import NotFoundError
from kidchart.models.percentiles import classify
from kidchart.models.reference import MeasurementType, ReferenceTableStore


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Measurement:
    date: str
    age_in_days: int
    height: Optional[float] = None             # cm
    weight: Optional[float] = None             # kg
    head_circumference: Optional[float] = None  # cm
    id: str = field(default_factory=_new_id)

    def value_for(self, measurement_type) -> Optional[float]:
        measurement_type = MeasurementType(measurement_type)
        if measurement_type is MeasurementType.HEIGHT:
            return self.height
        if measurement_type is MeasurementType.WEIGHT:
            return self.weight
        return self.head_circumference

    @property
    def age_label(self) -> str:
        return format_age(self.age_in_days)

    def to_dict(self) -> dict:
        data = {'id': self.id, 'date': self.date, 'ageInDays': self.age_in_days}
        for key, value in (('height', self.height), ('weight', self.weight),
                           ('headCircumference', self.head_circumference)):
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Measurement':
        return cls(
            id=str(data.get('id') or _new_id()),
            date=data['date'],
            age_in_days=int(data['ageInDays']),
            height=data.get('height'),
            weight=data.get('weight'),
            head_circumference=data.get('headCircumference'),
        )


class Child:
    """A child's profile together with their measurement history."""

    def __init__(self, name: str, date_of_birth: str, gender: str,
                 child_id: str = None,
                 measurements: List[Measurement] = None):
        self.id = child_id or _new_id()
        self.name = name
        self.date_of_birth = parse_iso_date(date_of_birth).isoformat()
        self.gender = gender
        self.measurements: List[Measurement] = list(measurements or [])

    def add_measurement(self, date, height: float = None, weight: float = None,
                        head_circumference: float = None,
                        measurement_id: str = None) -> Measurement:
        measured_on = parse_iso_date(date).isoformat()
        measurement = Measurement(
            date=measured_on,
            age_in_days=calculate_age_in_days(self.date_of_birth, measured_on),
            height=height, weight=weight,
            head_circumference=head_circumference,
        )
        if measurement_id:
            measurement.id = measurement_id
        self.measurements.append(measurement)
        return measurement

    def remove_measurement(self, measurement_id: str) -> bool:
        before = len(self.measurements)
        self.measurements = [m for m in self.measurements
                             if m.id != measurement_id]
        return len(self.measurements) < before

    def get_measurements(self, measurement_type=None) -> List[Measurement]:
        """Measurements in date order, optionally only those with a value
        for ``measurement_type``."""
        ordered = sorted(self.measurements, key=lambda m: m.date)
        if measurement_type:
            return [m for m in ordered if m.value_for(measurement_type) is not None]
        return ordered

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'dateOfBirth': self.date_of_birth,
            'gender': self.gender,
            'measurements': [m.to_dict() for m in self.measurements],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Child':
        return cls(
            name=data['name'],
            date_of_birth=data['dateOfBirth'],
            gender=data['gender'],
            child_id=data.get('id'),
            measurements=[Measurement.from_dict(m)
                          for m in data.get('measurements', [])],
        )


def classify_measurement(measurement: Measurement, gender: str, standard: str,
                         store: ReferenceTableStore) -> Dict[str, str]:
    """Band label for every measured quantity that has a reference chart.

    Types without a registered table are left out.
    """
    ranges = {}
    for measurement_type in MeasurementType:
        value = measurement.value_for(measurement_type)
        if value is None:
            continue
        try:
            table = store.lookup(measurement_type, gender, standard)
        except NotFoundError:
            continue
        ranges[measurement_type.value] = classify(
            value, measurement.age_in_days, table).label
    return ranges
