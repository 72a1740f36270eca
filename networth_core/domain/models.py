from __future__ import annotations

import dataclasses
import enum
import math
from typing import Dict, List, Optional, Tuple


class FilingStatus(str, enum.Enum):
    SINGLE = "Single"
    MARRIED = "Married"
    SEPARATE = "Separate"
    HEAD_OF_HOUSEHOLD = "Head_of_Household"
    ALL = "All"  # catch-all ladder, applies regardless of status

    @classmethod
    def parse(cls, raw) -> "FilingStatus":
        """
        Accepts table codes ("Head_of_Household") as well as the labels people
        type ("married filing jointly", "head", "mfs").
        """
        if isinstance(raw, cls):
            return raw
        key = str(raw).strip().lower().replace("_", " ")
        status = _FILING_STATUS_ALIASES.get(key)
        if status is None:
            raise ValueError(f"Unknown filing status: {raw!r}")
        return status


_FILING_STATUS_ALIASES = {
    "single": FilingStatus.SINGLE,
    "married": FilingStatus.MARRIED,
    "married filing jointly": FilingStatus.MARRIED,
    "mfj": FilingStatus.MARRIED,
    "joint": FilingStatus.MARRIED,
    "separate": FilingStatus.SEPARATE,
    "married filing separately": FilingStatus.SEPARATE,
    "mfs": FilingStatus.SEPARATE,
    "head of household": FilingStatus.HEAD_OF_HOUSEHOLD,
    "head": FilingStatus.HEAD_OF_HOUSEHOLD,
    "hoh": FilingStatus.HEAD_OF_HOUSEHOLD,
    "all": FilingStatus.ALL,
}


class Region(str, enum.Enum):
    FEDERAL = "Federal"
    STATE_PROVINCE = "State_Province"


class IncomeKind(str, enum.Enum):
    ORDINARY = "ordinary"
    CAPITAL_GAINS = "capital_gains"

    @classmethod
    def parse(cls, raw) -> "IncomeKind":
        if isinstance(raw, cls):
            return raw
        key = str(raw).strip().lower().replace("-", "_")
        if key in ("ordinary", "salary", "income"):
            return cls.ORDINARY
        if key in ("capital_gains", "capitalgains", "investment"):
            return cls.CAPITAL_GAINS
        raise ValueError(f"Unknown income kind: {raw!r}")


class TaxCategory(str, enum.Enum):
    ORDINARY = "ordinary"
    CAPITAL_GAINS = "capital_gains"
    PAYROLL = "payroll"


class PropertyMode(str, enum.Enum):
    NONE = "none"
    OWN = "own"
    BUY = "buy"


# jurisdiction name -> {requested status: status to use instead}
FilingStatusOverrides = Dict[str, Dict[FilingStatus, FilingStatus]]


# -------------------------------
# Inputs
# -------------------------------


@dataclasses.dataclass(frozen=True)
class Location:
    state: str
    country: Optional[str] = None


@dataclasses.dataclass(frozen=True)
class Profile:
    age: int
    retirement_age: int
    inflation_rate: float = 2.7  # percent
    filing_status: FilingStatus = FilingStatus.SINGLE
    location: Location = Location("California", "USA")
    start_year: Optional[int] = None  # calendar year of simulation year 1

    @property
    def years_to_retirement(self) -> int:
        return self.retirement_age - self.age

    def inflation_multiplier(self, year: int) -> float:
        return (1 + self.inflation_rate / 100) ** (year - 1)


@dataclasses.dataclass(frozen=True)
class IncomeJump:
    year: int
    jump_percent: float


@dataclasses.dataclass(frozen=True)
class CareerBreak:
    start_year: int
    duration_months: int
    reduction_percent: float

    def covers(self, month_index: int) -> bool:
        start = (self.start_year - 1) * 12
        return start <= month_index <= start + self.duration_months - 1


@dataclasses.dataclass(frozen=True)
class IncomeStream:
    id: str
    name: str
    annual_income: float
    equity: float = 0.0
    company_401k: float = 0.0
    individual_401k: float = 0.0
    growth_rate: float = 0.0  # percent
    end_work_year: Optional[int] = None
    jumps: Tuple[IncomeJump, ...] = ()
    career_breaks: Tuple[CareerBreak, ...] = ()

    def works_in(self, year: int) -> bool:
        return self.end_work_year is None or year <= self.end_work_year


@dataclasses.dataclass(frozen=True)
class MonthlyIncome:
    month_index: int
    salary: float
    equity: float = 0.0
    company_401k: float = 0.0
    active_stream_ids: Tuple[str, ...] = ()
    discount_factor: float = 1.0

    @property
    def year(self) -> int:
        return self.month_index // 12 + 1

    @property
    def month(self) -> int:
        return self.month_index % 12 + 1

    @property
    def total_comp(self) -> float:
        return self.salary + self.equity + self.company_401k

    @property
    def total_comp_pv(self) -> float:
        return self.total_comp / self.discount_factor


@dataclasses.dataclass
class IncomeSeries:
    months: List[MonthlyIncome]
    streams: List[IncomeStream]

    def year_months(self, year: int) -> List[MonthlyIncome]:
        return self.months[(year - 1) * 12 : year * 12]


@dataclasses.dataclass(frozen=True)
class ExpenseCategory:
    id: str
    name: str
    annual_amount: float  # today's dollars
    growth_rate: Optional[float] = None  # percent; None follows inflation


@dataclasses.dataclass(frozen=True)
class OneTimeExpense:
    year: int
    amount: float  # today's dollars
    name: str = ""


@dataclasses.dataclass(frozen=True)
class MonthlyExpense:
    month_index: int
    total_nominal: float
    total_pv: float
    categories_nominal: Dict[str, float] = dataclasses.field(default_factory=dict)
    categories_pv: Dict[str, float] = dataclasses.field(default_factory=dict)

    @property
    def year(self) -> int:
        return self.month_index // 12 + 1


@dataclasses.dataclass
class ExpenseSeries:
    months: List[MonthlyExpense]

    def year_months(self, year: int) -> List[MonthlyExpense]:
        return self.months[(year - 1) * 12 : year * 12]


@dataclasses.dataclass(frozen=True)
class InvestmentAccount:
    id: str
    name: str = ""
    current_value: float = 0.0
    growth_rate: float = 0.0  # percent
    portfolio_percent: float = 0.0
    cost_basis: Optional[float] = None

    @property
    def initial_cost_basis(self) -> float:
        return self.current_value if self.cost_basis is None else self.cost_basis


@dataclasses.dataclass(frozen=True)
class Retirement401k:
    current_value: float = 0.0
    growth_rate: float = 0.0  # percent
    individual_limit: float = 0.0  # 0 means uncapped
    limit_growth: float = 0.0  # percent, independent of salary growth


@dataclasses.dataclass(frozen=True)
class InvestmentsConfig:
    current_cash: float = 0.0
    target_cash: float = 0.0
    retirement_401k: Retirement401k = Retirement401k()
    investments: Tuple[InvestmentAccount, ...] = ()

    @property
    def total_allocation(self) -> float:
        return sum(inv.portfolio_percent for inv in self.investments)


@dataclasses.dataclass(frozen=True)
class PropertyConfig:
    mode: PropertyMode = PropertyMode.NONE
    home_growth_rate: float = 0.0  # percent
    simple_expense_mode: bool = False
    annual_property_costs: float = 0.0  # today's dollars
    # own
    home_value: float = 0.0
    mortgage_balance: float = 0.0
    monthly_payment: Optional[float] = None
    interest_rate: Optional[float] = None  # percent
    remaining_term_years: Optional[float] = None
    # buy
    purchase_year: Optional[int] = None
    purchase_price: float = 0.0  # today's price
    down_payment_amount: Optional[float] = None
    down_payment_percent: Optional[float] = None
    mortgage_rate: float = 0.0  # percent
    term_years: int = 30


@dataclasses.dataclass(frozen=True)
class ProjectionInputs:
    profile: Profile
    income_streams: Tuple[IncomeStream, ...]
    expense_categories: Tuple[ExpenseCategory, ...]
    investments: InvestmentsConfig
    one_time_expenses: Tuple[OneTimeExpense, ...] = ()
    property: PropertyConfig = PropertyConfig()
    filing_status_overrides: FilingStatusOverrides = dataclasses.field(default_factory=dict)
    custom_ladder: Optional[CustomLadder] = None


# -------------------------------
# Running state (owned by one run)
# -------------------------------


@dataclasses.dataclass
class PropertyState:
    owned: bool = False
    home_value: float = 0.0
    mortgage_balance: float = 0.0
    monthly_payment: float = 0.0
    monthly_rate: float = 0.0

    @property
    def equity(self) -> float:
        return max(0.0, self.home_value - self.mortgage_balance)


@dataclasses.dataclass
class InvestmentPosition:
    id: str
    name: str
    growth_rate: float
    portfolio_percent: float
    cost_basis: float
    market_value: float


@dataclasses.dataclass
class SimulationState:
    cash: float
    retirement_401k_value: float
    positions: List[InvestmentPosition]
    property: PropertyState

    @classmethod
    def from_inputs(cls, investments: InvestmentsConfig, property_state: PropertyState) -> "SimulationState":
        return cls(
            cash=float(investments.current_cash),
            retirement_401k_value=float(investments.retirement_401k.current_value),
            positions=[
                InvestmentPosition(
                    id=inv.id,
                    name=inv.name,
                    growth_rate=inv.growth_rate,
                    portfolio_percent=inv.portfolio_percent,
                    cost_basis=float(inv.initial_cost_basis),
                    market_value=float(inv.current_value),
                )
                for inv in investments.investments
            ],
            property=property_state,
        )

    @property
    def investment_value(self) -> float:
        return sum(p.market_value for p in self.positions)

    @property
    def cost_basis(self) -> float:
        return sum(p.cost_basis for p in self.positions)

    @property
    def net_worth(self) -> float:
        return self.cash + self.retirement_401k_value + self.investment_value + self.property.equity


# -------------------------------
# Tax tables and results
# -------------------------------


@dataclasses.dataclass(frozen=True)
class Bracket:
    min: float
    max: float  # math.inf for the top bracket
    rate: float  # fraction

    @property
    def open_ended(self) -> bool:
        return math.isinf(self.max)

    def scaled(self, multiplier: float) -> "Bracket":
        top = self.max if self.open_ended else self.max * multiplier
        return Bracket(min=self.min * multiplier, max=top, rate=self.rate)


@dataclasses.dataclass(frozen=True)
class CustomLadder:
    """
    User-defined brackets that replace the state and federal ladders. Payroll
    ladders still come from the table, limited to the selected tax types.
    """

    name: str = "Custom"
    enabled: bool = True
    income: Tuple[Bracket, ...] = ()
    capital_gains: Tuple[Bracket, ...] = ()
    payroll: Tuple[str, ...] = ("FICA Social Security", "FICA Medicare")

    def brackets_for(self, kind: IncomeKind) -> Tuple[Bracket, ...]:
        return self.capital_gains if kind is IncomeKind.CAPITAL_GAINS else self.income


@dataclasses.dataclass(frozen=True)
class LadderKey:
    region: Region
    jurisdiction: str
    tax_type: str
    filing_status: FilingStatus


@dataclasses.dataclass(frozen=True)
class BracketLadder:
    key: LadderKey
    brackets: Tuple[Bracket, ...]
    parent_region: str = ""

    def inflated(self, multiplier: float) -> Tuple[Bracket, ...]:
        if multiplier == 1:
            return self.brackets
        return tuple(b.scaled(multiplier) for b in self.brackets)


@dataclasses.dataclass(frozen=True)
class BracketSlice:
    min: float
    max: float
    rate: float
    taxable_amount: float
    tax_amount: float


@dataclasses.dataclass(frozen=True)
class TaxComponent:
    label: str
    tax_type: Optional[str] = None
    amount: float = 0.0
    effective_rate: float = 0.0
    breakdown: Tuple[BracketSlice, ...] = ()
    not_available: bool = False
    custom: bool = False
    requested_status: Optional[FilingStatus] = None
    resolved_status: Optional[FilingStatus] = None
    fallback_used: bool = False
    override_used: bool = False


@dataclasses.dataclass(frozen=True)
class TaxResult:
    income: float
    kind: IncomeKind
    filing_status: FilingStatus
    jurisdiction: Location
    tax_year: int
    inflation_multiplier: float
    state_tax: TaxComponent
    federal_tax: TaxComponent
    payroll: Tuple[TaxComponent, ...] = ()

    @property
    def payroll_total(self) -> float:
        return sum(c.amount for c in self.payroll)

    @property
    def total_tax(self) -> float:
        return self.state_tax.amount + self.federal_tax.amount + self.payroll_total

    @property
    def effective_rate(self) -> float:
        return self.total_tax / self.income if self.income > 0 else 0.0

    @property
    def take_home(self) -> float:
        return self.income - self.total_tax

    def components(self) -> Tuple[TaxComponent, ...]:
        return (self.state_tax, self.federal_tax) + tuple(self.payroll)

    @property
    def not_available(self) -> bool:
        return any(c.not_available for c in self.components())

    @property
    def fallback_used(self) -> bool:
        return any(c.fallback_used for c in self.components())

    def missing_components(self) -> List[str]:
        return [c.label for c in self.components() if c.not_available]


# -------------------------------
# Outputs
# -------------------------------


@dataclasses.dataclass(frozen=True)
class InvestmentFigures:
    id: str
    name: str
    allocation: float
    cost_basis: float
    market_value: float

    def scaled(self, factor: float) -> "InvestmentFigures":
        return dataclasses.replace(
            self,
            allocation=self.allocation * factor,
            cost_basis=self.cost_basis * factor,
            market_value=self.market_value * factor,
        )


@dataclasses.dataclass(frozen=True)
class YearFigures:
    gross_income: float
    salary: float
    equity: float
    employer_401k: float
    individual_401k: float
    taxable_income: float
    taxes: float
    expenses: float
    mortgage_interest: float
    mortgage_principal: float
    mortgage_payment: float
    property_costs: float
    down_payment: float
    total_outflows: float
    gap: float
    cash_contribution: float
    invested_this_year: float
    cash: float
    retirement_401k_value: float
    total_cost_basis: float
    total_investment_value: float
    home_value: float
    mortgage_balance: float
    home_equity: float
    net_worth: float
    investments: Tuple[InvestmentFigures, ...] = ()

    def scaled(self, factor: float) -> "YearFigures":
        values = {}
        for field in dataclasses.fields(self):
            value = getattr(self, field.name)
            if field.name == "investments":
                values[field.name] = tuple(inv.scaled(factor) for inv in value)
            else:
                values[field.name] = value * factor
        return YearFigures(**values)


@dataclasses.dataclass(frozen=True)
class YearSnapshot:
    year: int
    calendar_year: int
    inflation_multiplier: float
    nominal: YearFigures
    present_value: YearFigures
    tax: TaxResult

    @property
    def pv(self) -> YearFigures:
        return self.present_value


@dataclasses.dataclass(frozen=True)
class ProjectionSummary:
    current_year_gap: float
    current_year_gap_pv: float
    current_net_worth: float
    current_net_worth_pv: float
    year10_gap: float
    year10_gap_pv: float
    year10_net_worth: float
    year10_net_worth_pv: float
    retirement_net_worth: float
    retirement_net_worth_pv: float
    retirement_cash: float
    retirement_cash_pv: float
    lifetime_gap: float
    lifetime_gap_pv: float
    lifetime_invested: float
    lifetime_invested_pv: float
    lifetime_taxes: float
    lifetime_taxes_pv: float
    net_worth_growth: float
    net_worth_growth_percent: float
    tax_unavailable_years: Tuple[int, ...] = ()


@dataclasses.dataclass
class ProjectionResult:
    snapshots: List[YearSnapshot]
    summary: ProjectionSummary

    def snapshot(self, year: int) -> YearSnapshot:
        return self.snapshots[year - 1]


@dataclasses.dataclass
class ScenarioComparison:
    baseline: ProjectionResult
    scenario: ProjectionResult
    net_worth_delta: List[float]
    net_worth_pv_delta: List[float]
    summary_delta: Dict[str, float]
