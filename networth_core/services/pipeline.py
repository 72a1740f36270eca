from __future__ import annotations

import dataclasses
import logging
from typing import Any, Dict

from networth_core.domain.models import ProjectionInputs, ProjectionResult, ScenarioComparison
from networth_core.io import config as config_io
from networth_core.services import projection
from networth_core.services import scenario as scenario_service
from networth_core.services import simulator
from networth_core.services.ladders import BracketIndex

logger = logging.getLogger(__name__)


def run_projection(inputs: ProjectionInputs, index: BracketIndex) -> ProjectionResult:
    """Project income and expenses over the working horizon, then simulate."""
    profile = inputs.profile
    years = profile.years_to_retirement
    income = projection.project_income(inputs.income_streams, years, profile.inflation_rate)
    expenses = projection.project_expenses(
        inputs.expense_categories, years, profile.inflation_rate, inputs.one_time_expenses
    )
    return simulator.simulate(
        income,
        expenses,
        inputs.investments,
        inputs.property,
        profile,
        index,
        inputs.filing_status_overrides,
        inputs.custom_ladder,
    )


def compare_scenario(base_data: Dict[str, Any], overrides: Dict[str, Any], index: BracketIndex) -> ScenarioComparison:
    baseline = run_projection(config_io.inputs_from_dict(base_data), index)
    scenario_data = scenario_service.apply_overrides(base_data, overrides)
    scenario = run_projection(config_io.inputs_from_dict(scenario_data), index)

    # Horizons may differ when the scenario moves the retirement age.
    paired = list(zip(baseline.snapshots, scenario.snapshots))
    net_worth_delta = [s.nominal.net_worth - b.nominal.net_worth for b, s in paired]
    net_worth_pv_delta = [s.present_value.net_worth - b.present_value.net_worth for b, s in paired]

    base_summary = dataclasses.asdict(baseline.summary)
    scen_summary = dataclasses.asdict(scenario.summary)
    summary_delta = {
        key: scen_summary[key] - value
        for key, value in base_summary.items()
        if isinstance(value, (int, float))
    }
    logger.info(
        "Scenario retirement net worth %.2f vs baseline %.2f",
        scenario.summary.retirement_net_worth,
        baseline.summary.retirement_net_worth,
    )
    return ScenarioComparison(
        baseline=baseline,
        scenario=scenario,
        net_worth_delta=net_worth_delta,
        net_worth_pv_delta=net_worth_pv_delta,
        summary_delta=summary_delta,
    )
