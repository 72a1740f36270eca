from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from networth_core.domain.errors import InvalidInputError, MissingInputError
from networth_core.domain.models import (
    Bracket,
    CareerBreak,
    CustomLadder,
    ExpenseCategory,
    FilingStatus,
    FilingStatusOverrides,
    IncomeJump,
    IncomeStream,
    InvestmentAccount,
    InvestmentsConfig,
    Location,
    OneTimeExpense,
    Profile,
    ProjectionInputs,
    PropertyConfig,
    PropertyMode,
    Retirement401k,
)

REQUIRED_SECTIONS = ("profile", "income", "expenses", "investments")


def load_inputs(path: str | Path) -> ProjectionInputs:
    return inputs_from_dict(_read_json(path))


def load_overrides(path: str | Path) -> Dict[str, Any]:
    return _read_json(path)


def load_custom_ladder(path: str | Path) -> CustomLadder:
    try:
        return _custom_ladder(_read_json(path)) or CustomLadder()
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidInputError([f"{type(exc).__name__}: {exc}"]) from exc


def inputs_from_dict(data: Dict[str, Any]) -> ProjectionInputs:
    missing = [section for section in REQUIRED_SECTIONS if not data.get(section)]
    if missing:
        raise MissingInputError(missing)

    try:
        return ProjectionInputs(
            profile=_profile(data["profile"]),
            income_streams=tuple(_income_stream(i, s) for i, s in enumerate(data["income"].get("streams", []))),
            expense_categories=tuple(
                _expense_category(i, c) for i, c in enumerate(data["expenses"].get("categories", []))
            ),
            one_time_expenses=tuple(
                OneTimeExpense(year=int(e["year"]), amount=float(e["amount"]), name=str(e.get("name", "")))
                for e in data["expenses"].get("one_time", [])
            ),
            investments=_investments(data["investments"]),
            property=_property(data.get("property") or {}),
            filing_status_overrides=_overrides((data.get("taxes") or {}).get("filing_status_overrides") or {}),
            custom_ladder=_custom_ladder((data.get("taxes") or {}).get("custom_ladder")),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidInputError([f"{type(exc).__name__}: {exc}"]) from exc


def _profile(data: Dict[str, Any]) -> Profile:
    location = data.get("location") or {}
    return Profile(
        age=int(data["age"]),
        retirement_age=int(data["retirement_age"]),
        inflation_rate=float(data.get("inflation_rate", 2.7)),
        filing_status=FilingStatus.parse(data.get("filing_status", "single")),
        location=Location(
            state=str(location.get("state", "California")),
            country=location.get("country"),
        ),
        start_year=_optional_int(data.get("start_year")),
    )


def _income_stream(position: int, data: Dict[str, Any]) -> IncomeStream:
    stream_id = str(data.get("id", f"stream{position + 1}"))
    return IncomeStream(
        id=stream_id,
        name=str(data.get("name", stream_id)),
        annual_income=float(data.get("annual_income", 0.0)),
        equity=float(data.get("equity", 0.0)),
        company_401k=float(data.get("company_401k", 0.0)),
        individual_401k=float(data.get("individual_401k", 0.0)),
        growth_rate=float(data.get("growth_rate", 0.0)),
        end_work_year=_optional_int(data.get("end_work_year")),
        jumps=tuple(
            IncomeJump(year=int(j["year"]), jump_percent=float(j["jump_percent"])) for j in data.get("jumps", [])
        ),
        career_breaks=tuple(
            CareerBreak(
                start_year=int(b["start_year"]),
                duration_months=int(b["duration_months"]),
                reduction_percent=float(b.get("reduction_percent", 100.0)),
            )
            for b in data.get("career_breaks", [])
        ),
    )


def _expense_category(position: int, data: Dict[str, Any]) -> ExpenseCategory:
    category_id = str(data.get("id", f"category{position + 1}"))
    growth = data.get("growth_rate")
    return ExpenseCategory(
        id=category_id,
        name=str(data.get("name", category_id)),
        annual_amount=float(data.get("annual_amount", 0.0)),
        growth_rate=None if growth in (None, "") else float(growth),
    )


def _investments(data: Dict[str, Any]) -> InvestmentsConfig:
    plan = data.get("retirement_401k") or {}
    accounts = []
    for position, inv in enumerate(data.get("investments", [])):
        inv_id = str(inv.get("id", f"investment{position + 1}"))
        cost_basis = inv.get("cost_basis")
        accounts.append(
            InvestmentAccount(
                id=inv_id,
                name=str(inv.get("name", inv_id)),
                current_value=float(inv.get("current_value", 0.0)),
                growth_rate=float(inv.get("growth_rate", 0.0)),
                portfolio_percent=float(inv.get("portfolio_percent", 0.0)),
                cost_basis=None if cost_basis is None else float(cost_basis),
            )
        )
    return InvestmentsConfig(
        current_cash=float(data.get("current_cash", 0.0)),
        target_cash=float(data.get("target_cash", 0.0)),
        retirement_401k=Retirement401k(
            current_value=float(plan.get("current_value", 0.0)),
            growth_rate=float(plan.get("growth_rate", 0.0)),
            individual_limit=float(plan.get("individual_limit", 0.0)),
            limit_growth=float(plan.get("limit_growth", 0.0)),
        ),
        investments=tuple(accounts),
    )


def _property(data: Dict[str, Any]) -> PropertyConfig:
    if not data:
        return PropertyConfig()
    return PropertyConfig(
        mode=PropertyMode(str(data.get("mode", "none")).lower()),
        home_growth_rate=float(data.get("home_growth_rate", 0.0)),
        simple_expense_mode=bool(data.get("simple_expense_mode", False)),
        annual_property_costs=float(data.get("annual_property_costs", 0.0)),
        home_value=float(data.get("home_value", 0.0)),
        mortgage_balance=float(data.get("mortgage_balance", 0.0)),
        monthly_payment=_optional_float(data.get("monthly_payment")),
        interest_rate=_optional_float(data.get("interest_rate")),
        remaining_term_years=_optional_float(data.get("remaining_term_years")),
        purchase_year=_optional_int(data.get("purchase_year")),
        purchase_price=float(data.get("purchase_price", 0.0)),
        down_payment_amount=_optional_float(data.get("down_payment_amount")),
        down_payment_percent=_optional_float(data.get("down_payment_percent")),
        mortgage_rate=float(data.get("mortgage_rate", 0.0)),
        term_years=int(data.get("term_years", 30)),
    )


def _overrides(data: Dict[str, Dict[str, str]]) -> FilingStatusOverrides:
    return {
        jurisdiction: {FilingStatus.parse(k): FilingStatus.parse(v) for k, v in mapping.items()}
        for jurisdiction, mapping in data.items()
    }


def _custom_brackets(rows) -> Tuple[Bracket, ...]:
    # Sorted by lower edge; each top edge is the next lower edge, the last is open.
    lows = sorted((float(r["min"]), float(r["rate"])) for r in rows)
    return tuple(
        Bracket(min=low, max=lows[i + 1][0] if i + 1 < len(lows) else math.inf, rate=rate)
        for i, (low, rate) in enumerate(lows)
    )


def _custom_ladder(data: Optional[Dict[str, Any]]) -> Optional[CustomLadder]:
    if not data:
        return None
    return CustomLadder(
        name=str(data.get("name", "Custom")),
        enabled=bool(data.get("enabled", True)),
        income=_custom_brackets(data.get("income", [])),
        capital_gains=_custom_brackets(data.get("capital_gains", [])),
        payroll=tuple(str(t) for t in data.get("payroll", ("FICA Social Security", "FICA Medicare"))),
    )


def _optional_int(value) -> Optional[int]:
    return None if value in (None, "") else int(value)


def _optional_float(value) -> Optional[float]:
    return None if value in (None, "") else float(value)


def _read_json(path: str | Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
