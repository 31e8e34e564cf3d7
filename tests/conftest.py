import pytest

from kidchart.models.reference import (
    Gender, MeasurementType, ReferenceRow, ReferenceTable, Standard,
)


def _build_table(standard, rows, measurement_type=MeasurementType.HEIGHT,
                 gender=Gender.MALE):
    return ReferenceTable(
        measurement_type, gender, standard,
        tuple(ReferenceRow(age=age, values=values) for age, values in rows),
    )


@pytest.fixture
def make_table():
    """Factory: ``make_table(standard, [(age, {label: value}), ...])``."""
    return _build_table


@pytest.fixture
def who_table():
    """WHO-schema table whose bands step by 1 and grow by 10 every 10 days."""
    labels = Standard.WHO.band_labels
    rows = [
        (age, {label: base + i for i, label in enumerate(labels)})
        for age, base in ((0, 1.0), (10, 11.0), (20, 21.0))
    ]
    return _build_table(Standard.WHO, rows)


@pytest.fixture
def nhs_table():
    labels = Standard.NHS.band_labels
    rows = [
        (age, {label: base + i for i, label in enumerate(labels)})
        for age, base in ((0, 1.0), (30, 4.0))
    ]
    return _build_table(Standard.NHS, rows)
