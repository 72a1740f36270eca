from __future__ import annotations

from typing import Sequence

from networth_core.domain.models import ProjectionSummary, YearSnapshot


def summarize(snapshots: Sequence[YearSnapshot]) -> ProjectionSummary:
    """Milestones (year 1, year 10, retirement) and lifetime totals."""
    if not snapshots:
        raise ValueError("No snapshots to summarize")

    current = snapshots[0]
    year10 = snapshots[9] if len(snapshots) >= 10 else snapshots[-1]
    retirement = snapshots[-1]

    growth = retirement.nominal.net_worth - current.nominal.net_worth
    growth_percent = growth / current.nominal.net_worth * 100 if current.nominal.net_worth > 0 else 0.0

    return ProjectionSummary(
        current_year_gap=current.nominal.gap,
        current_year_gap_pv=current.present_value.gap,
        current_net_worth=current.nominal.net_worth,
        current_net_worth_pv=current.present_value.net_worth,
        year10_gap=year10.nominal.gap,
        year10_gap_pv=year10.present_value.gap,
        year10_net_worth=year10.nominal.net_worth,
        year10_net_worth_pv=year10.present_value.net_worth,
        retirement_net_worth=retirement.nominal.net_worth,
        retirement_net_worth_pv=retirement.present_value.net_worth,
        retirement_cash=retirement.nominal.cash,
        retirement_cash_pv=retirement.present_value.cash,
        lifetime_gap=sum(s.nominal.gap for s in snapshots),
        lifetime_gap_pv=sum(s.present_value.gap for s in snapshots),
        lifetime_invested=sum(s.nominal.invested_this_year for s in snapshots),
        lifetime_invested_pv=sum(s.present_value.invested_this_year for s in snapshots),
        lifetime_taxes=sum(s.nominal.taxes for s in snapshots),
        lifetime_taxes_pv=sum(s.present_value.taxes for s in snapshots),
        net_worth_growth=growth,
        net_worth_growth_percent=growth_percent,
        tax_unavailable_years=tuple(s.year for s in snapshots if s.tax.not_available),
    )
