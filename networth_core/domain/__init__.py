from networth_core.domain.errors import InvalidInputError, MissingInputError, NetworthError  # noqa: F401
from networth_core.domain.models import (  # noqa: F401
    Bracket,
    BracketLadder,
    CareerBreak,
    CustomLadder,
    ExpenseCategory,
    ExpenseSeries,
    FilingStatus,
    IncomeJump,
    IncomeKind,
    IncomeSeries,
    IncomeStream,
    InvestmentAccount,
    InvestmentsConfig,
    LadderKey,
    Location,
    OneTimeExpense,
    Profile,
    ProjectionInputs,
    ProjectionResult,
    ProjectionSummary,
    PropertyConfig,
    PropertyMode,
    Region,
    Retirement401k,
    ScenarioComparison,
    TaxCategory,
    TaxResult,
    YearFigures,
    YearSnapshot,
)

__all__ = [
    "Bracket",
    "BracketLadder",
    "CareerBreak",
    "CustomLadder",
    "ExpenseCategory",
    "ExpenseSeries",
    "FilingStatus",
    "IncomeJump",
    "IncomeKind",
    "IncomeSeries",
    "IncomeStream",
    "InvalidInputError",
    "InvestmentAccount",
    "InvestmentsConfig",
    "LadderKey",
    "Location",
    "MissingInputError",
    "NetworthError",
    "OneTimeExpense",
    "Profile",
    "ProjectionInputs",
    "ProjectionResult",
    "ProjectionSummary",
    "PropertyConfig",
    "PropertyMode",
    "Region",
    "Retirement401k",
    "ScenarioComparison",
    "TaxCategory",
    "TaxResult",
    "YearFigures",
    "YearSnapshot",
]
