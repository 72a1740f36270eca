import math
from typing import Sequence, Tuple

import pytest

from networth_core.domain.models import (
    Bracket,
    BracketLadder,
    ExpenseCategory,
    FilingStatus,
    IncomeStream,
    InvestmentAccount,
    InvestmentsConfig,
    LadderKey,
    Location,
    Profile,
    Region,
    Retirement401k,
)
from networth_core.io.brackets import load_bracket_index
from networth_core.services.ladders import BracketIndex


def make_ladder(
    region: Region,
    jurisdiction: str,
    tax_type: str,
    status: FilingStatus,
    steps: Sequence[Tuple[float, float]],
    parent: str = "",
) -> BracketLadder:
    """``steps`` is a list of (min, rate); each max is the next min, the last is open."""
    brackets = []
    for i, (low, rate) in enumerate(steps):
        top = steps[i + 1][0] if i + 1 < len(steps) else math.inf
        brackets.append(Bracket(min=low, max=top, rate=rate))
    return BracketLadder(
        key=LadderKey(region, jurisdiction, tax_type, status),
        brackets=tuple(brackets),
        parent_region=parent or (jurisdiction if region is Region.FEDERAL else ""),
    )


@pytest.fixture
def small_index() -> BracketIndex:
    fed, state = Region.FEDERAL, Region.STATE_PROVINCE
    return BracketIndex(
        [
            make_ladder(fed, "USA", "Income", FilingStatus.SINGLE, [(0, 0.10), (10_000, 0.20)]),
            make_ladder(fed, "USA", "Income", FilingStatus.MARRIED, [(0, 0.10), (20_000, 0.20)]),
            make_ladder(fed, "USA", "CapitalGains", FilingStatus.ALL, [(0, 0.0), (40_000, 0.15)]),
            make_ladder(fed, "USA", "FICA Social Security", FilingStatus.ALL, [(0, 0.062), (100_000, 0.0)]),
            make_ladder(fed, "USA", "FICA Medicare", FilingStatus.ALL, [(0, 0.0145)]),
            make_ladder(fed, "USA", "FICA Medicare Additional", FilingStatus.SINGLE, [(0, 0.0), (200_000, 0.009)]),
            make_ladder(fed, "USA", "FICA Medicare Additional", FilingStatus.MARRIED, [(0, 0.0), (250_000, 0.009)]),
            make_ladder(state, "Testland", "Income", FilingStatus.SINGLE, [(0, 0.05), (50_000, 0.10)], "USA"),
            make_ladder(state, "Testland", "Income", FilingStatus.MARRIED, [(0, 0.05), (100_000, 0.10)], "USA"),
            make_ladder(state, "Flatland", "Income", FilingStatus.ALL, [(0, 0.03)], "USA"),
            make_ladder(fed, "Canada", "Income_and_CapitalGains", FilingStatus.SINGLE, [(0, 0.15), (50_000, 0.20)]),
            make_ladder(state, "Northshire", "Income_and_CapitalGains", FilingStatus.SINGLE, [(0, 0.05)], "Canada"),
        ],
        base_year=2025,
    )


@pytest.fixture(scope="session")
def bundled_index() -> BracketIndex:
    return load_bracket_index()


@pytest.fixture
def profile_30_to_65() -> Profile:
    return Profile(age=30, retirement_age=65, inflation_rate=2.7, location=Location("Flatland", "USA"))


@pytest.fixture
def salary_100k() -> IncomeStream:
    return IncomeStream(id="job", name="Job", annual_income=100_000.0, growth_rate=0.0)


@pytest.fixture
def living_40k() -> ExpenseCategory:
    return ExpenseCategory(id="living", name="Living", annual_amount=40_000.0)


@pytest.fixture
def one_fund_portfolio() -> InvestmentsConfig:
    return InvestmentsConfig(
        current_cash=10_000.0,
        target_cash=10_000.0,
        retirement_401k=Retirement401k(),
        investments=(InvestmentAccount(id="index", name="Index fund", growth_rate=7.0, portfolio_percent=100.0),),
    )
