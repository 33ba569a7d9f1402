from datetime import date

import pytest

from frontdesk.core.errors import ValidationFailed
from frontdesk.modules.appointments import obstetric


def test_gestational_age_and_delivery_date():
    """
    Given: LMP 2024-01-01, today 2024-03-01
    Then: 60 days elapsed, 8 weeks 4 days; due 280 days after LMP
    """
    data = obstetric.evaluate(date(2024, 1, 1), date(2024, 3, 1))
    assert (data.weeks, data.days) == (8, 4)
    assert data.gestational_age == "8 weeks 4 days"
    assert data.estimated_delivery_date == date(2024, 10, 7)


def test_singular_units():
    assert obstetric.evaluate(date(2024, 1, 1), date(2024, 1, 9)).gestational_age == "1 week 1 day"


def test_future_lmp_rejected():
    with pytest.raises(ValidationFailed):
        obstetric.evaluate(date(2024, 3, 2), date(2024, 3, 1))


def test_beyond_forty_two_weeks_rejected():
    with pytest.raises(ValidationFailed):
        obstetric.evaluate(date(2023, 1, 1), date(2024, 1, 1))


class TestParse:
    def test_day_month_year(self):
        assert obstetric.parse_lmp("01/02/2024") == date(2024, 2, 1)

    @pytest.mark.parametrize("text", ["01/02", "1/2/2024", "2024-02-01", "31/02/2024", ""])
    def test_incomplete_or_invalid(self, text):
        with pytest.raises(ValidationFailed):
            obstetric.parse_lmp(text)


@pytest.mark.parametrize("name,expected", [
    ("Ultrassom Obstétrica", True),
    ("CONSULTA OBSTÉTRICA", True),
    ("Consulta Geral", False),
    (None, False),
])
def test_is_obstetric(name, expected):
    assert obstetric.is_obstetric(name) is expected
