from __future__ import annotations

import dataclasses
import math
from typing import Any, Dict, List

import pandas as pd

from networth_core.domain.models import ProjectionResult, ScenarioComparison, TaxComponent, TaxResult, YearFigures

# Columns written by ``snapshots_to_frame``; per-investment detail stays in JSON.
FRAME_COLUMNS = [f.name for f in dataclasses.fields(YearFigures) if f.name != "investments"]


def _edge(value: float):
    return None if math.isinf(value) else value


def component_to_dict(component: TaxComponent) -> Dict[str, Any]:
    return {
        "label": component.label,
        "tax_type": component.tax_type,
        "amount": component.amount,
        "effective_rate": component.effective_rate,
        "not_available": component.not_available,
        "requested_status": component.requested_status.value if component.requested_status else None,
        "resolved_status": component.resolved_status.value if component.resolved_status else None,
        "fallback_used": component.fallback_used,
        "override_used": component.override_used,
        "custom": component.custom,
        "breakdown": [
            {
                "min": s.min,
                "max": _edge(s.max),
                "rate": s.rate,
                "taxable_amount": s.taxable_amount,
                "tax_amount": s.tax_amount,
            }
            for s in component.breakdown
        ],
    }


def tax_to_dict(result: TaxResult) -> Dict[str, Any]:
    return {
        "income": result.income,
        "kind": result.kind.value,
        "filing_status": result.filing_status.value,
        "state": result.jurisdiction.state,
        "country": result.jurisdiction.country,
        "tax_year": result.tax_year,
        "inflation_multiplier": result.inflation_multiplier,
        "state_tax": component_to_dict(result.state_tax),
        "federal_tax": component_to_dict(result.federal_tax),
        "payroll": [component_to_dict(c) for c in result.payroll],
        "payroll_total": result.payroll_total,
        "total_tax": result.total_tax,
        "effective_rate": result.effective_rate,
        "take_home": result.take_home,
        "not_available": result.not_available,
    }


def result_to_dict(result: ProjectionResult) -> Dict[str, Any]:
    years: List[Dict[str, Any]] = []
    for snap in result.snapshots:
        years.append(
            {
                "year": snap.year,
                "calendar_year": snap.calendar_year,
                "inflation_multiplier": snap.inflation_multiplier,
                "nominal": dataclasses.asdict(snap.nominal),
                "present_value": dataclasses.asdict(snap.present_value),
                "tax": {
                    "total_tax": snap.tax.total_tax,
                    "effective_rate": snap.tax.effective_rate,
                    "not_available": snap.tax.not_available,
                    "missing": snap.tax.missing_components(),
                    "fallback_used": snap.tax.fallback_used,
                },
            }
        )
    summary = dataclasses.asdict(result.summary)
    summary["tax_unavailable_years"] = list(result.summary.tax_unavailable_years)
    return {"summary": summary, "years": years}


def comparison_to_dict(comparison: ScenarioComparison) -> Dict[str, Any]:
    return {
        "baseline": dataclasses.asdict(comparison.baseline.summary),
        "scenario": dataclasses.asdict(comparison.scenario.summary),
        "summary_delta": comparison.summary_delta,
        "net_worth_delta": comparison.net_worth_delta,
        "net_worth_pv_delta": comparison.net_worth_pv_delta,
    }


def snapshots_to_frame(result: ProjectionResult, present_value: bool = False) -> pd.DataFrame:
    """One row per simulated year, in nominal dollars or today's dollars."""
    rows = []
    for snap in result.snapshots:
        figures = snap.present_value if present_value else snap.nominal
        row = {"year": snap.year, "calendar_year": snap.calendar_year}
        row.update({name: getattr(figures, name) for name in FRAME_COLUMNS})
        rows.append(row)
    return pd.DataFrame(rows, columns=["year", "calendar_year"] + FRAME_COLUMNS)
