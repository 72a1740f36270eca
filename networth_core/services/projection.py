from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

from networth_core.domain.models import (
    ExpenseCategory,
    ExpenseSeries,
    IncomeSeries,
    IncomeStream,
    MonthlyExpense,
    MonthlyIncome,
    OneTimeExpense,
)

ONE_TIME_KEY = "one_time"


def _jump_multiplier(stream: IncomeStream, year: int) -> float:
    multiplier = 1.0
    for jump in stream.jumps:
        if jump.year <= year and jump.jump_percent:
            multiplier *= 1 + jump.jump_percent / 100
    return multiplier


def _break_multiplier(stream: IncomeStream, month_index: int) -> float:
    # Overlapping breaks do not stack; the deepest reduction wins.
    reduction = max((b.reduction_percent for b in stream.career_breaks if b.covers(month_index)), default=0.0)
    return 1 - reduction / 100


def project_income(streams: Sequence[IncomeStream], years: int, inflation_rate: float) -> IncomeSeries:
    """
    Monthly income over ``years``:
    - Each stream grows once a year (year 1 is ungrown).
    - Jumps apply from January of their year and compound.
    - Career breaks scale individual months.
    - A stream stops after its end work year.
    """
    months: List[MonthlyIncome] = []
    for month_index in range(years * 12):
        year = month_index // 12 + 1
        discount = (1 + inflation_rate / 100) ** (year - 1)

        salary = equity = company_401k = 0.0
        active = []
        for stream in streams:
            if not stream.works_in(year):
                continue
            active.append(stream.id)
            factor = (
                (1 + stream.growth_rate / 100) ** (year - 1)
                * _jump_multiplier(stream, year)
                * _break_multiplier(stream, month_index)
            )
            salary += stream.annual_income * factor / 12
            equity += stream.equity * factor / 12
            company_401k += stream.company_401k * factor / 12

        months.append(
            MonthlyIncome(
                month_index=month_index,
                salary=salary,
                equity=equity,
                company_401k=company_401k,
                active_stream_ids=tuple(active),
                discount_factor=discount,
            )
        )
    return IncomeSeries(months=months, streams=list(streams))


def project_expenses(
    categories: Iterable[ExpenseCategory],
    years: int,
    inflation_rate: float,
    one_time: Iterable[OneTimeExpense] = (),
) -> ExpenseSeries:
    """
    Monthly expenses over ``years``. Categories are given in today's dollars
    and grow at their own rate (inflation when unset); one-time expenses are
    inflated to their year and spread across its twelve months.
    """
    categories = list(categories)
    one_time = list(one_time)
    months: List[MonthlyExpense] = []
    for month_index in range(years * 12):
        year = month_index // 12 + 1
        discount = (1 + inflation_rate / 100) ** (year - 1)

        nominal: Dict[str, float] = {}
        for category in categories:
            rate = inflation_rate if category.growth_rate is None else category.growth_rate
            nominal[category.id] = category.annual_amount * (1 + rate / 100) ** (year - 1) / 12

        one_time_today = sum(e.amount for e in one_time if e.year == year) / 12
        if one_time_today:
            nominal[ONE_TIME_KEY] = one_time_today * discount

        pv = {key: value / discount for key, value in nominal.items()}
        months.append(
            MonthlyExpense(
                month_index=month_index,
                total_nominal=sum(nominal.values()),
                total_pv=sum(pv.values()),
                categories_nominal=nominal,
                categories_pv=pv,
            )
        )
    return ExpenseSeries(months=months)
