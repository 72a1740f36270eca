from networth_core.services.amortization import amortization_schedule  # noqa: F401
from networth_core.services.ladders import BracketIndex, resolve_ladder  # noqa: F401
from networth_core.services.pipeline import compare_scenario, run_projection  # noqa: F401
from networth_core.services.projection import project_expenses, project_income  # noqa: F401
from networth_core.services.scenario import apply_overrides  # noqa: F401
from networth_core.services.simulator import simulate  # noqa: F401
from networth_core.services.taxes import compute_tax  # noqa: F401

__all__ = [
    "BracketIndex",
    "resolve_ladder",
    "compute_tax",
    "project_income",
    "project_expenses",
    "simulate",
    "run_projection",
    "apply_overrides",
    "compare_scenario",
    "amortization_schedule",
]
