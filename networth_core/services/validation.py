from __future__ import annotations

import numbers
from typing import Iterable, List, Optional

import numpy as np

from networth_core.domain.errors import InvalidInputError, MissingInputError
from networth_core.domain.models import (
    CustomLadder,
    ExpenseSeries,
    IncomeSeries,
    InvestmentsConfig,
    Profile,
    PropertyConfig,
    PropertyMode,
)
from networth_core.services.taxes import PAYROLL_COUNTRY

MIN_RATE = -100.0


def missing_sections(
    profile: Optional[Profile],
    income: Optional[IncomeSeries],
    expenses: Optional[ExpenseSeries],
    investments: Optional[InvestmentsConfig],
) -> List[str]:
    missing = []
    if profile is None:
        missing.append("profile")
    horizon = profile.years_to_retirement * 12 if profile is not None else 0
    if income is None or not income.months or len(income.months) < horizon:
        missing.append("income")
    if expenses is None or not expenses.months or len(expenses.months) < horizon:
        missing.append("expenses")
    if investments is None:
        missing.append("investments")
    return missing


def _non_finite(values: Iterable, label: str) -> List[str]:
    try:
        arr = np.asarray(list(values), dtype=float)
    except (TypeError, ValueError):
        return [f"{label} must be numeric"]
    if not np.all(np.isfinite(arr)):
        return [f"{label} must be finite numbers"]
    return []


def _rate(value, label: str) -> List[str]:
    if not isinstance(value, numbers.Real) or isinstance(value, bool):
        return [f"{label} must be numeric"]
    if value <= MIN_RATE:
        return [f"{label} must be greater than {MIN_RATE:.0f}%"]
    return []


def structural_problems(
    profile: Profile,
    income: IncomeSeries,
    expenses: ExpenseSeries,
    investments: InvestmentsConfig,
    property_config: Optional[PropertyConfig] = None,
) -> List[str]:
    problems: List[str] = []

    if profile.years_to_retirement < 1:
        problems.append("retirement age must be greater than current age")
    problems += _rate(profile.inflation_rate, "inflation rate")

    problems += _non_finite((m.salary for m in income.months), "monthly salary")
    problems += _non_finite((m.equity for m in income.months), "monthly equity")
    problems += _non_finite((m.company_401k for m in income.months), "monthly employer 401(k)")
    problems += _non_finite((m.total_nominal for m in expenses.months), "monthly expenses")
    for stream in income.streams:
        problems += _rate(stream.growth_rate, f"growth rate of income stream {stream.id!r}")
        if stream.individual_401k < 0:
            problems.append(f"individual 401(k) of income stream {stream.id!r} cannot be negative")
        for brk in stream.career_breaks:
            if not 0 <= brk.reduction_percent <= 100:
                problems.append(f"career break reduction of income stream {stream.id!r} must be between 0 and 100")
            if brk.duration_months < 0:
                problems.append(f"career break duration of income stream {stream.id!r} cannot be negative")

    plan = investments.retirement_401k
    problems += _rate(plan.growth_rate, "401(k) growth rate")
    problems += _rate(plan.limit_growth, "401(k) limit growth")
    for inv in investments.investments:
        problems += _rate(inv.growth_rate, f"growth rate of investment {inv.id!r}")
        if not 0 <= inv.portfolio_percent <= 100:
            problems.append(f"portfolio percent of investment {inv.id!r} must be between 0 and 100")
    if investments.total_allocation > 100 + 1e-9:
        problems.append("total portfolio allocation exceeds 100%")

    if property_config is not None and property_config.mode is not PropertyMode.NONE:
        problems += _rate(property_config.home_growth_rate, "home growth rate")
        if property_config.mode is PropertyMode.OWN:
            if property_config.mortgage_balance < 0:
                problems.append("mortgage balance cannot be negative")
            if property_config.interest_rate is not None and property_config.interest_rate < 0:
                problems.append("mortgage interest rate cannot be negative")
            if property_config.monthly_payment is not None and property_config.monthly_payment < 0:
                problems.append("monthly mortgage payment cannot be negative")
        if property_config.mode is PropertyMode.BUY:
            year = property_config.purchase_year
            if year is None or not 1 <= year <= profile.years_to_retirement:
                problems.append("purchase year must fall between year 1 and retirement")
            if property_config.term_years <= 0:
                problems.append("mortgage term must be positive")
            if property_config.mortgage_rate < 0:
                problems.append("mortgage rate cannot be negative")
            percent = property_config.down_payment_percent
            if percent is not None and not 0 <= percent <= 100:
                problems.append("down payment percent must be between 0 and 100")
            if property_config.down_payment_amount is not None and property_config.down_payment_amount < 0:
                problems.append("down payment amount cannot be negative")

    return problems


def custom_ladder_problems(custom: CustomLadder) -> List[str]:
    problems: List[str] = []
    for label, brackets in (("income", custom.income), ("capital gains", custom.capital_gains)):
        if not brackets:
            problems.append(f"custom ladder has no {label} brackets")
        for bracket in brackets:
            if bracket.min < 0 or bracket.max <= bracket.min:
                problems.append(f"custom {label} bracket {bracket.min:,.0f}-{bracket.max:,.0f} is out of order")
            if not 0 <= bracket.rate <= 1:
                problems.append(f"custom {label} rate {bracket.rate} must be a fraction between 0 and 1")
    for tax_type in custom.payroll:
        if tax_type not in PAYROLL_COUNTRY:
            problems.append(f"unknown payroll tax {tax_type!r} on custom ladder")
    return problems


def validate_simulation_inputs(
    profile: Optional[Profile],
    income: Optional[IncomeSeries],
    expenses: Optional[ExpenseSeries],
    investments: Optional[InvestmentsConfig],
    property_config: Optional[PropertyConfig] = None,
    custom_ladder: Optional[CustomLadder] = None,
) -> None:
    missing = missing_sections(profile, income, expenses, investments)
    if missing:
        raise MissingInputError(missing)
    problems = structural_problems(profile, income, expenses, investments, property_config)
    if custom_ladder is not None and custom_ladder.enabled:
        problems += custom_ladder_problems(custom_ladder)
    if problems:
        raise InvalidInputError(problems)
