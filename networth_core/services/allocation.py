from __future__ import annotations

import dataclasses
from typing import List, Sequence, Tuple


@dataclasses.dataclass(frozen=True)
class AllocationResult:
    cash: float
    cash_contribution: float  # signed change in cash from the gap
    allocations: Tuple[float, ...]
    invested_total: float
    overflow_to_cash: float = 0.0


def allocate_gap(gap: float, cash: float, target_cash: float, percents: Sequence[float]) -> AllocationResult:
    """
    Route a year's gap.

    Surplus: fill cash up to the target, then give each investment its
    percent of what remains. Whatever the percents leave behind first tops
    cash up to target again, then is spread over the investments in
    proportion to their normalized percents; any final remainder goes to cash
    so no money is dropped. This last step can leave cash above target.

    Deficit: drawn entirely from cash, which may go negative. Investments are
    never liquidated.
    """
    allocations: List[float] = [0.0] * len(percents)

    if gap < 0:
        return AllocationResult(
            cash=cash + gap,
            cash_contribution=gap,
            allocations=tuple(allocations),
            invested_total=0.0,
        )

    start_cash = cash
    remaining = gap

    to_cash = min(max(target_cash - cash, 0.0), remaining)
    cash += to_cash
    remaining -= to_cash

    base = remaining
    for i, pct in enumerate(percents):
        amount = base * pct / 100
        allocations[i] += amount
        remaining -= amount

    overflow = 0.0
    if remaining > 0:
        top_up = min(max(target_cash - cash, 0.0), remaining)
        cash += top_up
        remaining -= top_up

        total_pct = sum(percents)
        if total_pct > 0:
            leftover = remaining
            for i, pct in enumerate(percents):
                amount = leftover * pct / total_pct
                allocations[i] += amount
                remaining -= amount

        if remaining > 0:
            overflow = remaining
            cash += remaining
            remaining = 0.0

    return AllocationResult(
        cash=cash,
        cash_contribution=cash - start_cash,
        allocations=tuple(allocations),
        invested_total=sum(allocations),
        overflow_to_cash=overflow,
    )
