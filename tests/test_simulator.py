import pytest

from networth_core.domain.errors import InvalidInputError, MissingInputError
from networth_core.domain.models import (
    Bracket,
    CareerBreak,
    CustomLadder,
    ExpenseCategory,
    IncomeStream,
    InvestmentAccount,
    InvestmentsConfig,
    Location,
    Profile,
    PropertyConfig,
    PropertyMode,
    Retirement401k,
)
from networth_core.services.projection import project_expenses, project_income
from networth_core.services.simulator import individual_401k_contribution, simulate


def _run(profile, streams, categories, investments, index, property_config=None):
    years = profile.years_to_retirement
    income = project_income(streams, years, profile.inflation_rate)
    expenses = project_expenses(categories, years, profile.inflation_rate)
    return simulate(income, expenses, investments, property_config, profile, index)


def test_thirty_to_sixty_five(profile_30_to_65, salary_100k, living_40k, one_fund_portfolio, small_index):
    result = _run(profile_30_to_65, [salary_100k], [living_40k], one_fund_portfolio, small_index)
    assert len(result.snapshots) == 35

    year1 = result.snapshot(1).nominal
    # Flatland 3% + federal 1,000 + 18,000 + social security 6,200 + medicare 1,450
    assert year1.taxes == pytest.approx(3_000 + 19_000 + 6_200 + 1_450)
    assert year1.gap == pytest.approx(100_000 - 29_650 - 40_000)
    assert year1.gap > 0
    assert year1.cash_contribution == 0
    assert year1.invested_this_year == pytest.approx(year1.gap)
    assert year1.investments[0].market_value == pytest.approx(year1.gap * 1.07**0.5)

    year2 = result.snapshot(2).nominal
    new_money = year2.investments[0].allocation
    assert year2.investments[0].market_value == pytest.approx(
        year1.investments[0].market_value * 1.07 + new_money * 1.07**0.5
    )
    # cash target follows inflation
    assert year2.cash == pytest.approx(10_000 * 1.027)
    assert result.snapshot(2).calendar_year == 2026


def test_gap_identity_every_year(profile_30_to_65, salary_100k, living_40k, one_fund_portfolio, small_index):
    result = _run(profile_30_to_65, [salary_100k], [living_40k], one_fund_portfolio, small_index)
    cash = one_fund_portfolio.current_cash
    for snap in result.snapshots:
        f = snap.nominal
        assert f.gap == pytest.approx(f.gross_income - f.individual_401k - f.total_outflows)
        assert f.total_outflows == pytest.approx(f.taxes + f.expenses)
        assert f.cash_contribution + f.invested_this_year == pytest.approx(f.gap)
        assert f.cash - cash == pytest.approx(f.cash_contribution)
        assert snap.present_value.net_worth == pytest.approx(f.net_worth / snap.inflation_multiplier)
        cash = f.cash


def test_zero_growth_investments_stay_flat_in_deficit(small_index):
    profile = Profile(age=60, retirement_age=65, inflation_rate=0.0, location=Location("Flatland", "USA"))
    investments = InvestmentsConfig(
        current_cash=50_000,
        target_cash=10_000,
        investments=(InvestmentAccount(id="bonds", current_value=80_000, growth_rate=0.0, portfolio_percent=100),),
    )
    result = _run(
        profile,
        [IncomeStream(id="job", name="Job", annual_income=30_000)],
        [ExpenseCategory(id="all", name="All", annual_amount=60_000)],
        investments,
        small_index,
    )
    for snap in result.snapshots:
        assert snap.nominal.gap < 0
        assert snap.nominal.total_investment_value == pytest.approx(80_000)
        assert snap.nominal.invested_this_year == 0
    assert result.snapshots[-1].nominal.cash < 0


def test_down_payment_moves_cash_into_home_equity(profile_30_to_65, salary_100k, living_40k, one_fund_portfolio, small_index):
    property_config = PropertyConfig(
        mode=PropertyMode.BUY,
        purchase_year=2,
        purchase_price=300_000,
        down_payment_amount=60_000,
        mortgage_rate=6.0,
    )
    result = _run(profile_30_to_65, [salary_100k], [living_40k], one_fund_portfolio, small_index, property_config)

    year1, year2 = result.snapshot(1).nominal, result.snapshot(2).nominal
    assert year1.home_value == 0
    assert year2.down_payment == pytest.approx(60_000)
    assert year2.cash == pytest.approx(year1.cash - 60_000 + year2.cash_contribution)
    assert year2.home_value == pytest.approx(300_000)
    assert 0 < year2.mortgage_balance < 240_000
    assert year2.mortgage_interest > 0
    # the purchase is a balance-sheet transfer, not an outflow
    assert year2.gap == pytest.approx(year2.gross_income - year2.total_outflows)
    assert result.snapshot(31).nominal.mortgage_balance == 0


def test_simple_expense_mode_counts_housing_as_outflow(small_index):
    profile = Profile(age=40, retirement_age=42, inflation_rate=0.0, location=Location("Flatland", "USA"))
    property_config = PropertyConfig(
        mode=PropertyMode.OWN,
        home_value=400_000,
        mortgage_balance=100_000,
        interest_rate=5.0,
        remaining_term_years=10,
        simple_expense_mode=True,
        annual_property_costs=6_000,
    )
    result = _run(
        profile,
        [IncomeStream(id="job", name="Job", annual_income=100_000)],
        [ExpenseCategory(id="all", name="All", annual_amount=30_000)],
        InvestmentsConfig(),
        small_index,
        property_config,
    )
    year1 = result.snapshot(1).nominal
    assert year1.property_costs == pytest.approx(6_000)
    assert year1.total_outflows == pytest.approx(year1.taxes + 30_000 + year1.mortgage_payment + 6_000)
    assert year1.home_equity == pytest.approx(400_000 - year1.mortgage_balance)


def test_individual_401k_is_capped_and_grows_with_limit():
    plan = Retirement401k(individual_limit=23_000, limit_growth=2.0)
    streams = [
        IncomeStream(id="a", name="A", annual_income=150_000, individual_401k=30_000),
        IncomeStream(id="b", name="B", annual_income=50_000, individual_401k=5_000, end_work_year=1),
    ]
    assert individual_401k_contribution(streams, plan, 1) == pytest.approx(28_000)
    assert individual_401k_contribution(streams, plan, 2) == pytest.approx(23_000 * 1.02)


def test_401k_contributions_reduce_taxable_income_and_gap(small_index):
    profile = Profile(age=40, retirement_age=41, inflation_rate=0.0, location=Location("Flatland", "USA"))
    investments = InvestmentsConfig(retirement_401k=Retirement401k(current_value=100_000, growth_rate=5.0))
    stream = IncomeStream(id="job", name="Job", annual_income=100_000, company_401k=5_000, individual_401k=10_000)
    result = _run(profile, [stream], [ExpenseCategory(id="all", name="All", annual_amount=20_000)], investments, small_index)

    year1 = result.snapshot(1).nominal
    assert year1.gross_income == pytest.approx(100_000)
    assert year1.taxable_income == pytest.approx(95_000)
    assert year1.retirement_401k_value == pytest.approx(105_000 + 15_000)
    assert year1.gap == pytest.approx(100_000 - 10_000 - year1.total_outflows)


def test_retirement_before_current_age_fails_atomically(salary_100k, living_40k, one_fund_portfolio, small_index):
    profile = Profile(age=65, retirement_age=66, location=Location("Flatland", "USA"))
    income = project_income([salary_100k], 1, 2.7)
    expenses = project_expenses([living_40k], 1, 2.7)
    bad = Profile(age=65, retirement_age=60, location=Location("Flatland", "USA"))
    with pytest.raises(InvalidInputError):
        simulate(income, expenses, one_fund_portfolio, None, bad, small_index)

    with pytest.raises(MissingInputError) as excinfo:
        simulate(None, expenses, one_fund_portfolio, None, profile, small_index)
    assert excinfo.value.sections == ["income"]


def test_short_series_counts_as_missing(profile_30_to_65, salary_100k, living_40k, one_fund_portfolio, small_index):
    income = project_income([salary_100k], 5, 2.7)
    expenses = project_expenses([living_40k], 35, 2.7)
    with pytest.raises(MissingInputError):
        simulate(income, expenses, one_fund_portfolio, None, profile_30_to_65, small_index)


def test_overallocated_portfolio_is_rejected(profile_30_to_65, salary_100k, living_40k, small_index):
    investments = InvestmentsConfig(
        investments=(
            InvestmentAccount(id="a", portfolio_percent=70),
            InvestmentAccount(id="b", portfolio_percent=40),
        )
    )
    with pytest.raises(InvalidInputError):
        _run(profile_30_to_65, [salary_100k], [living_40k], investments, small_index)


def test_missing_brackets_warn_and_count_as_zero(caplog, salary_100k, living_40k, one_fund_portfolio, small_index):
    profile = Profile(age=30, retirement_age=32, location=Location("Atlantis", "USA"))
    with caplog.at_level("WARNING"):
        result = _run(profile, [salary_100k], [living_40k], one_fund_portfolio, small_index)
    assert result.summary.tax_unavailable_years == (1, 2)
    assert result.snapshot(1).tax.state_tax.amount == 0
    assert "No tax brackets" in caplog.text


@pytest.mark.parametrize(
    "property_config",
    [
        PropertyConfig(mode=PropertyMode.OWN, home_value=300_000, mortgage_balance=100_000, interest_rate=-3.0),
        PropertyConfig(mode=PropertyMode.OWN, home_value=300_000, mortgage_balance=-100_000, interest_rate=5.0),
        PropertyConfig(mode=PropertyMode.BUY, purchase_year=2, purchase_price=300_000, down_payment_percent=-10),
    ],
)
def test_negative_property_terms_are_rejected(property_config, profile_30_to_65, salary_100k, living_40k, small_index):
    with pytest.raises(InvalidInputError):
        _run(profile_30_to_65, [salary_100k], [living_40k], InvestmentsConfig(), small_index, property_config)


def test_career_break_reduction_above_100_is_rejected(profile_30_to_65, living_40k, small_index):
    stream = IncomeStream(
        id="job",
        name="Job",
        annual_income=100_000,
        career_breaks=(CareerBreak(start_year=2, duration_months=6, reduction_percent=150),),
    )
    with pytest.raises(InvalidInputError) as excinfo:
        _run(profile_30_to_65, [stream], [living_40k], InvestmentsConfig(), small_index)
    assert any("career break" in p for p in excinfo.value.problems)


def test_custom_ladder_drives_yearly_taxes(salary_100k, living_40k, small_index):
    profile = Profile(age=40, retirement_age=42, inflation_rate=0.0, location=Location("Flatland", "USA"))
    custom = CustomLadder(
        income=(Bracket(0, float("inf"), 0.20),),
        capital_gains=(Bracket(0, float("inf"), 0.10),),
        payroll=("FICA Social Security",),
    )
    income = project_income([salary_100k], 2, 0.0)
    expenses = project_expenses([living_40k], 2, 0.0)
    result = simulate(income, expenses, InvestmentsConfig(), None, profile, small_index, custom_ladder=custom)

    year1 = result.snapshot(1)
    assert year1.tax.state_tax.custom
    assert year1.nominal.taxes == pytest.approx(20_000 + 6_200)

    bad = CustomLadder(income=custom.income, capital_gains=custom.capital_gains, payroll=("Church Tax",))
    with pytest.raises(InvalidInputError) as excinfo:
        simulate(income, expenses, InvestmentsConfig(), None, profile, small_index, custom_ladder=bad)
    assert any("Church Tax" in p for p in excinfo.value.problems)
