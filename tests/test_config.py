import json
import math
from pathlib import Path

import pytest

from networth_core.domain.errors import InvalidInputError, MissingInputError
from networth_core.domain.models import FilingStatus, PropertyMode
from networth_core.io import config as config_io

FIXTURE = Path(__file__).parent / "data" / "inputs.json"


def _fixture_data():
    return json.loads(FIXTURE.read_text())


def test_load_inputs_fixture():
    inputs = config_io.load_inputs(FIXTURE)

    assert inputs.profile.years_to_retirement == 10
    assert inputs.profile.filing_status is FilingStatus.SINGLE
    assert inputs.profile.location.state == "California"
    assert inputs.income_streams[0].jumps[0].jump_percent == 10
    assert inputs.expense_categories[0].growth_rate is None
    assert inputs.one_time_expenses[0].amount == 30000
    assert inputs.investments.total_allocation == 100
    assert inputs.investments.investments[0].initial_cost_basis == 30000
    assert inputs.investments.investments[1].initial_cost_basis == 10000
    assert inputs.property.mode is PropertyMode.NONE


def test_missing_sections_are_listed():
    data = _fixture_data()
    del data["income"]
    data["expenses"] = {}
    with pytest.raises(MissingInputError) as excinfo:
        config_io.inputs_from_dict(data)
    assert excinfo.value.sections == ["income", "expenses"]


def test_non_numeric_values_are_invalid():
    data = _fixture_data()
    data["profile"]["age"] = "thirty"
    with pytest.raises(InvalidInputError):
        config_io.inputs_from_dict(data)


def test_filing_status_overrides_are_parsed():
    data = _fixture_data()
    data["profile"]["filing_status"] = "married filing separately"
    data["taxes"]["filing_status_overrides"] = {"California": {"separate": "married"}}
    inputs = config_io.inputs_from_dict(data)
    assert inputs.profile.filing_status is FilingStatus.SEPARATE
    assert inputs.filing_status_overrides == {"California": {FilingStatus.SEPARATE: FilingStatus.MARRIED}}


def test_property_section():
    data = _fixture_data()
    data["property"] = {
        "mode": "buy",
        "purchase_year": 2,
        "purchase_price": 600000,
        "down_payment_percent": 20,
        "mortgage_rate": 6.25,
    }
    inputs = config_io.inputs_from_dict(data)
    assert inputs.property.mode is PropertyMode.BUY
    assert inputs.property.term_years == 30
    assert inputs.property.down_payment_amount is None


def test_custom_ladder_is_sorted_and_closed_by_next_edge():
    data = _fixture_data()
    data["taxes"]["custom_ladder"] = {
        "name": "Flat-ish",
        "income": [{"min": 40000, "rate": 0.3}, {"min": 0, "rate": 0.1}, {"min": 10000, "max": 1, "rate": 0.2}],
        "capital_gains": [{"min": 0, "rate": 0.15}],
        "payroll": ["FICA Medicare"],
    }
    custom = config_io.inputs_from_dict(data).custom_ladder

    assert custom.name == "Flat-ish"
    assert custom.enabled
    assert [(b.min, b.max, b.rate) for b in custom.income] == [
        (0, 10000, 0.1),
        (10000, 40000, 0.2),
        (40000, math.inf, 0.3),
    ]
    assert math.isinf(custom.capital_gains[0].max)
    assert custom.payroll == ("FICA Medicare",)


def test_custom_ladder_defaults_to_none():
    assert config_io.inputs_from_dict(_fixture_data()).custom_ladder is None
