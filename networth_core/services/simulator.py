from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np

from networth_core.domain.models import (
    CustomLadder,
    ExpenseSeries,
    FilingStatus,
    FilingStatusOverrides,
    IncomeKind,
    IncomeSeries,
    IncomeStream,
    InvestmentFigures,
    InvestmentPosition,
    InvestmentsConfig,
    Profile,
    ProjectionResult,
    PropertyConfig,
    PropertyMode,
    Retirement401k,
    SimulationState,
    YearFigures,
    YearSnapshot,
)
from networth_core.services import allocation, amortization, summary, taxes
from networth_core.services.ladders import BracketIndex
from networth_core.services.validation import validate_simulation_inputs

logger = logging.getLogger(__name__)

# New money is assumed to arrive mid-year and earns roughly half a year.
MID_YEAR_EXPONENT = 0.5


def grow_position(position: InvestmentPosition, new_money: float) -> None:
    rate = position.growth_rate / 100
    position.market_value = position.market_value * (1 + rate) + new_money * (1 + rate) ** MID_YEAR_EXPONENT
    position.cost_basis += new_money


def individual_401k_contribution(streams: Sequence[IncomeStream], plan: Retirement401k, year: int) -> float:
    """
    Employee deferrals for the year. Contributions and the per-person limit
    grow at the plan's limit growth, not at salary growth, and stop once a
    stream's working years end.
    """
    multiplier = (1 + plan.limit_growth / 100) ** (year - 1)
    limit = plan.individual_limit * multiplier if plan.individual_limit > 0 else None
    total = 0.0
    for stream in streams:
        if not stream.works_in(year):
            continue
        amount = stream.individual_401k * multiplier
        if limit is not None:
            amount = min(amount, limit)
        total += amount
    return total


def simulate_year(
    year: int,
    state: SimulationState,
    income: IncomeSeries,
    expenses: ExpenseSeries,
    investments: InvestmentsConfig,
    property_config: PropertyConfig,
    profile: Profile,
    index: BracketIndex,
    start_year: int,
    overrides: Optional[FilingStatusOverrides] = None,
    custom_ladder: Optional[CustomLadder] = None,
) -> YearSnapshot:
    """Advance ``state`` by one year and return that year's snapshot."""
    multiplier = profile.inflation_multiplier(year)
    target_cash = investments.target_cash * multiplier

    down_payment = 0.0
    if property_config.mode is PropertyMode.BUY and year == property_config.purchase_year:
        state.property, down_payment = amortization.purchase_property(property_config, year)
        state.cash -= down_payment

    comp = np.array([(m.salary, m.equity, m.company_401k) for m in income.year_months(year)], dtype=float)
    salary, equity, employer_401k = (float(v) for v in comp.reshape(-1, 3).sum(axis=0))
    gross_income = salary + equity

    if state.property.owned:
        mortgage = amortization.amortize_year(state.property)
        amortization.appreciate(state.property, property_config.home_growth_rate)
    else:
        mortgage = amortization.AmortizationYear(0.0, 0.0, 0.0, 0)

    individual_401k = individual_401k_contribution(income.streams, investments.retirement_401k, year)

    taxable_income = gross_income + employer_401k - individual_401k
    calendar_year = start_year + year - 1
    tax = taxes.compute_tax(
        taxable_income,
        IncomeKind.ORDINARY,
        profile.filing_status,
        profile.location,
        calendar_year,
        profile.inflation_rate,
        index,
        overrides,
        custom_ladder,
    )

    annual_expenses = float(np.array([m.total_nominal for m in expenses.year_months(year)], dtype=float).sum())
    property_costs = 0.0
    housing_outflows = 0.0
    if property_config.simple_expense_mode and state.property.owned:
        property_costs = property_config.annual_property_costs * multiplier
        housing_outflows = mortgage.payment + property_costs

    total_outflows = tax.total_tax + annual_expenses + housing_outflows
    gap = gross_income - individual_401k - total_outflows

    routed = allocation.allocate_gap(gap, state.cash, target_cash, [p.portfolio_percent for p in state.positions])
    state.cash = routed.cash
    for position, new_money in zip(state.positions, routed.allocations):
        grow_position(position, new_money)

    plan = investments.retirement_401k
    state.retirement_401k_value = (
        state.retirement_401k_value * (1 + plan.growth_rate / 100) + individual_401k + employer_401k
    )

    figures = YearFigures(
        gross_income=gross_income,
        salary=salary,
        equity=equity,
        employer_401k=employer_401k,
        individual_401k=individual_401k,
        taxable_income=taxable_income,
        taxes=tax.total_tax,
        expenses=annual_expenses,
        mortgage_interest=mortgage.interest,
        mortgage_principal=mortgage.principal,
        mortgage_payment=mortgage.payment,
        property_costs=property_costs,
        down_payment=down_payment,
        total_outflows=total_outflows,
        gap=gap,
        cash_contribution=routed.cash_contribution,
        invested_this_year=routed.invested_total,
        cash=state.cash,
        retirement_401k_value=state.retirement_401k_value,
        total_cost_basis=state.cost_basis,
        total_investment_value=state.investment_value,
        home_value=state.property.home_value,
        mortgage_balance=state.property.mortgage_balance,
        home_equity=state.property.equity,
        net_worth=state.net_worth,
        investments=tuple(
            InvestmentFigures(
                id=p.id,
                name=p.name,
                allocation=new_money,
                cost_basis=p.cost_basis,
                market_value=p.market_value,
            )
            for p, new_money in zip(state.positions, routed.allocations)
        ),
    )

    logger.debug(
        "Year %s (%s): gross=%.2f taxes=%.2f expenses=%.2f gap=%.2f cash=%.2f net_worth=%.2f",
        year,
        calendar_year,
        gross_income,
        tax.total_tax,
        annual_expenses,
        gap,
        state.cash,
        figures.net_worth,
    )

    return YearSnapshot(
        year=year,
        calendar_year=calendar_year,
        inflation_multiplier=multiplier,
        nominal=figures,
        present_value=figures.scaled(1 / multiplier),
        tax=tax,
    )


def simulate(
    income: IncomeSeries,
    expenses: ExpenseSeries,
    investments: InvestmentsConfig,
    property_config: Optional[PropertyConfig],
    profile: Profile,
    index: BracketIndex,
    overrides: Optional[FilingStatusOverrides] = None,
    custom_ladder: Optional[CustomLadder] = None,
) -> ProjectionResult:
    """
    Year-by-year projection from year 1 to retirement.

    Inputs are validated up front and every run owns a fresh running state,
    so a failure never leaves a partial projection behind and independent runs
    can share the bracket index.
    """
    validate_simulation_inputs(profile, income, expenses, investments, property_config, custom_ladder)
    property_config = property_config or PropertyConfig()

    state = SimulationState.from_inputs(investments, amortization.initial_property_state(property_config))
    start_year = profile.start_year or index.base_year

    snapshots: List[YearSnapshot] = []
    for year in range(1, profile.years_to_retirement + 1):
        snapshots.append(
            simulate_year(
                year,
                state,
                income,
                expenses,
                investments,
                property_config,
                profile,
                index,
                start_year,
                overrides,
                custom_ladder,
            )
        )

    missing = sorted({label for s in snapshots for label in s.tax.missing_components()})
    if missing:
        logger.warning(
            "No tax brackets for %s (%s, %s); those taxes were counted as zero",
            ", ".join(missing),
            profile.location.state,
            FilingStatus.parse(profile.filing_status).value,
        )

    return ProjectionResult(snapshots=snapshots, summary=summary.summarize(snapshots))
