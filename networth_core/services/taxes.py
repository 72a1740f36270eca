from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from networth_core.domain.models import (
    Bracket,
    BracketSlice,
    CustomLadder,
    FilingStatus,
    FilingStatusOverrides,
    IncomeKind,
    Location,
    Region,
    TaxCategory,
    TaxComponent,
    TaxResult,
)
from networth_core.services.ladders import BracketIndex, resolve_ladder

logger = logging.getLogger(__name__)

# Ladder tax types tried in order for each category. Canada publishes a single
# combined ladder for income and capital gains.
LADDER_TAX_TYPES = {
    TaxCategory.ORDINARY: ("Income", "Income_and_CapitalGains"),
    TaxCategory.CAPITAL_GAINS: ("CapitalGains", "Income_and_CapitalGains"),
}

# Payroll / social-insurance ladders per country; wage-base caps and
# additional-rate thresholds are encoded as brackets.
PAYROLL_TAX_TYPES = {
    "USA": ("FICA Social Security", "FICA Medicare", "FICA Medicare Additional"),
    "Canada": ("CPP", "EI"),
}
PAYROLL_COUNTRY = {tax_type: country for country, types in PAYROLL_TAX_TYPES.items() for tax_type in types}

# Selecting Medicare on a custom ladder brings the additional Medicare surtax with it.
PAYROLL_COMPANIONS = {"FICA Medicare": ("FICA Medicare Additional",)}


def inflation_multiplier(tax_year: int, base_year: int, inflation_rate: float) -> float:
    """Cumulative bracket indexing factor; years at or before the base year are unindexed."""
    years = tax_year - base_year
    if years <= 0:
        return 1.0
    return (1 + inflation_rate / 100) ** years


def progressive_tax(income: float, brackets: Sequence[Bracket]) -> Tuple[float, Tuple[BracketSlice, ...]]:
    """
    Standard marginal-bracket math over ascending brackets. Returns the tax
    and the per-bracket breakdown.
    """
    if income <= 0 or not brackets:
        return 0.0, ()

    total = 0.0
    slices: List[BracketSlice] = []
    for bracket in brackets:
        if income <= bracket.min:
            break
        top = income if bracket.open_ended else min(income, bracket.max)
        taxable = max(top - bracket.min, 0.0)
        if taxable > 0:
            tax = taxable * bracket.rate
            total += tax
            slices.append(
                BracketSlice(
                    min=bracket.min,
                    max=bracket.max,
                    rate=bracket.rate,
                    taxable_amount=taxable,
                    tax_amount=tax,
                )
            )
        if bracket.open_ended or income <= bracket.max:
            break
    return total, tuple(slices)


def _component(
    label: str,
    income: float,
    region: Region,
    jurisdiction: Optional[str],
    tax_types: Sequence[str],
    requested: FilingStatus,
    status: FilingStatus,
    multiplier: float,
    index: BracketIndex,
) -> TaxComponent:
    """One ladder-backed component. ``status`` is ``requested`` after any user override."""
    override_used = status is not requested
    resolution = None
    tax_type = tax_types[0]
    if jurisdiction:
        for tax_type in tax_types:
            resolution = resolve_ladder(index, region, jurisdiction, tax_type, status)
            if resolution.found:
                break

    if resolution is None or not resolution.found:
        return TaxComponent(
            label=label,
            tax_type=tax_types[0],
            not_available=True,
            requested_status=requested,
            override_used=override_used,
        )

    amount, breakdown = progressive_tax(income, resolution.ladder.inflated(multiplier))
    return TaxComponent(
        label=label,
        tax_type=tax_type,
        amount=amount,
        effective_rate=amount / income if income > 0 else 0.0,
        breakdown=breakdown,
        requested_status=requested,
        resolved_status=resolution.resolved_status,
        fallback_used=resolution.fallback_used,
        override_used=override_used,
    )


def _custom_component(label: str, income: float, brackets: Sequence[Bracket], multiplier: float) -> TaxComponent:
    amount, breakdown = progressive_tax(income, tuple(b.scaled(multiplier) for b in brackets))
    return TaxComponent(
        label=label,
        tax_type="Custom",
        amount=amount,
        effective_rate=amount / income if income > 0 else 0.0,
        breakdown=breakdown,
        custom=True,
    )


def remapped_status(status: FilingStatus, state: str, overrides: Optional[FilingStatusOverrides]) -> FilingStatus:
    """The status to use for every ladder of ``state``'s household, after user overrides."""
    pinned = (overrides or {}).get(state, {}).get(status)
    return status if pinned is None else FilingStatus.parse(pinned)


def selected_payroll(custom: CustomLadder) -> List[str]:
    selected: List[str] = []
    for tax_type in custom.payroll:
        for name in (tax_type,) + PAYROLL_COMPANIONS.get(tax_type, ()):
            if name not in selected:
                selected.append(name)
    return selected


def compute_tax(
    amount: float,
    kind,
    filing_status,
    jurisdiction: Location,
    tax_year: int,
    inflation_rate: float,
    index: BracketIndex,
    overrides: Optional[FilingStatusOverrides] = None,
    custom: Optional[CustomLadder] = None,
) -> TaxResult:
    """
    Tax on ``amount`` for one year: state/province + federal ladders, plus
    payroll ladders for ordinary income. Bracket edges are indexed by
    ``(1 + inflation_rate%)^(tax_year - base_year)``. Missing ladders yield
    zero for that component, flagged ``not_available``.

    A filing-status override stored under the household's state applies to
    the state, federal and payroll lookups alike. An enabled ``custom`` ladder
    replaces the state and federal ladders; payroll is limited to its
    selection.
    """
    kind = IncomeKind.parse(kind)
    status = FilingStatus.parse(filing_status)
    country = jurisdiction.country or index.country_for(jurisdiction.state)
    multiplier = inflation_multiplier(tax_year, index.base_year, inflation_rate)
    effective = remapped_status(status, jurisdiction.state, overrides)

    if custom is not None and custom.enabled:
        state_tax = TaxComponent(label="state", tax_type="Custom", custom=True)
        federal_tax = _custom_component("federal", amount, custom.brackets_for(kind), multiplier)
        payroll_types = [(t, PAYROLL_COUNTRY.get(t)) for t in selected_payroll(custom)]
    else:
        category = TaxCategory.ORDINARY if kind is IncomeKind.ORDINARY else TaxCategory.CAPITAL_GAINS
        tax_types = LADDER_TAX_TYPES[category]
        state_tax = _component(
            "state", amount, Region.STATE_PROVINCE, jurisdiction.state, tax_types, status, effective, multiplier, index
        )
        federal_tax = _component(
            "federal", amount, Region.FEDERAL, country, tax_types, status, effective, multiplier, index
        )
        payroll_types = [(t, country) for t in PAYROLL_TAX_TYPES.get(country or "", ())]

    payroll: Tuple[TaxComponent, ...] = ()
    if kind is IncomeKind.ORDINARY:
        payroll = tuple(
            _component(tax_type, amount, Region.FEDERAL, family, (tax_type,), status, effective, multiplier, index)
            for tax_type, family in payroll_types
        )

    result = TaxResult(
        income=amount,
        kind=kind,
        filing_status=status,
        jurisdiction=Location(jurisdiction.state, country),
        tax_year=tax_year,
        inflation_multiplier=multiplier,
        state_tax=state_tax,
        federal_tax=federal_tax,
        payroll=payroll,
    )
    logger.debug(
        "Tax %s %s %s year=%s income=%.2f total=%.2f rate=%.4f",
        kind.value,
        jurisdiction.state,
        effective.value,
        tax_year,
        amount,
        result.total_tax,
        result.effective_rate,
    )
    return result
