from __future__ import annotations

import dataclasses
import logging
from typing import List, Tuple

import pandas as pd

from networth_core.domain.errors import InvalidInputError
from networth_core.domain.models import PropertyConfig, PropertyMode, PropertyState

logger = logging.getLogger(__name__)

# Balances this close to zero are treated as paid off.
BALANCE_EPSILON = 1e-6


@dataclasses.dataclass(frozen=True)
class AmortizationYear:
    interest: float
    principal: float
    payment: float
    months_paid: int


def _months(term_years: float) -> int:
    return int(round(term_years * 12))


def monthly_payment(balance: float, annual_rate: float, term_years: float) -> float:
    """Fixed payment for a fully amortizing loan; ``annual_rate`` is a percent."""
    n = _months(term_years)
    if balance <= 0 or n <= 0:
        return 0.0
    r = annual_rate / 100 / 12
    if r == 0:
        return balance / n
    growth = (1 + r) ** n
    return balance * (r * growth) / (growth - 1)


def infer_annual_rate(balance: float, payment: float, term_years: float, tol: float = 1e-9) -> float:
    """
    Solve the amortization formula for the annual rate (percent) by bisection,
    given the balance, the monthly payment and the remaining term.
    """
    n = _months(term_years)
    if n <= 0 or balance <= 0:
        return 0.0
    if payment * n < balance - BALANCE_EPSILON:
        raise InvalidInputError([f"Monthly payment {payment:,.2f} never pays off a balance of {balance:,.2f}"])

    lo, hi = 0.0, 100.0
    if monthly_payment(balance, hi, term_years) < payment:
        raise InvalidInputError([f"Monthly payment {payment:,.2f} implies a rate above {hi:.0f}%"])
    for _ in range(200):
        mid = (lo + hi) / 2
        if monthly_payment(balance, mid, term_years) < payment:
            lo = mid
        else:
            hi = mid
        if hi - lo < tol:
            break
    return (lo + hi) / 2


def step_month(state: PropertyState) -> Tuple[float, float, float]:
    """One month of amortization; returns (interest, principal, paid)."""
    balance = state.mortgage_balance
    if balance <= 0:
        return 0.0, 0.0, 0.0
    interest = balance * state.monthly_rate
    principal = min(max(0.0, state.monthly_payment - interest), balance)
    if balance - principal <= BALANCE_EPSILON:
        principal = balance
    state.mortgage_balance = 0.0 if principal == balance else balance - principal
    return interest, principal, min(state.monthly_payment, interest + principal)


def amortize_year(state: PropertyState, months: int = 12) -> AmortizationYear:
    interest_total = 0.0
    principal_total = 0.0
    paid_total = 0.0
    months_paid = 0
    for _ in range(months):
        if state.mortgage_balance <= 0:
            break
        interest, principal, paid = step_month(state)
        interest_total += interest
        principal_total += principal
        paid_total += paid
        months_paid += 1
    return AmortizationYear(
        interest=interest_total,
        principal=principal_total,
        payment=paid_total,
        months_paid=months_paid,
    )


def appreciate(state: PropertyState, growth_rate: float) -> None:
    if state.owned:
        state.home_value *= 1 + growth_rate / 100


def open_owned_property(config: PropertyConfig) -> PropertyState:
    balance = float(config.mortgage_balance)
    if balance <= 0:
        return PropertyState(owned=True, home_value=float(config.home_value))

    rate = config.interest_rate
    payment = config.monthly_payment
    term = config.remaining_term_years
    if rate is None and payment is None:
        raise InvalidInputError(["Owned property needs a mortgage interest rate or a monthly payment"])
    if rate is None:
        if not term:
            raise InvalidInputError(["Inferring the mortgage rate needs the remaining term"])
        rate = infer_annual_rate(balance, payment, term)
        logger.info("Inferred mortgage rate %.3f%% from payment %.2f", rate, payment)
    if payment is None:
        if not term:
            raise InvalidInputError(["Computing the mortgage payment needs the remaining term"])
        payment = monthly_payment(balance, rate, term)

    return PropertyState(
        owned=True,
        home_value=float(config.home_value),
        mortgage_balance=balance,
        monthly_payment=float(payment),
        monthly_rate=rate / 100 / 12,
    )


def initial_property_state(config: PropertyConfig) -> PropertyState:
    if config.mode is PropertyMode.OWN:
        return open_owned_property(config)
    return PropertyState()


def purchase_property(config: PropertyConfig, year: int) -> Tuple[PropertyState, float]:
    """
    Purchase event for buy mode. The price compounds at the home growth rate
    for the years elapsed before ``year``. Returns the new property state and
    the down payment to move out of cash.
    """
    price = config.purchase_price * (1 + config.home_growth_rate / 100) ** (year - 1)
    if config.down_payment_amount is not None:
        down_payment = min(float(config.down_payment_amount), price)
    else:
        down_payment = price * (config.down_payment_percent or 0.0) / 100
    balance = price - down_payment
    payment = monthly_payment(balance, config.mortgage_rate, config.term_years)
    logger.info(
        "Property purchase in year %s: price=%.2f down=%.2f mortgage=%.2f payment=%.2f",
        year,
        price,
        down_payment,
        balance,
        payment,
    )
    state = PropertyState(
        owned=True,
        home_value=price,
        mortgage_balance=balance,
        monthly_payment=payment,
        monthly_rate=config.mortgage_rate / 100 / 12,
    )
    return state, down_payment


def amortization_schedule(balance: float, annual_rate: float, term_years: float) -> pd.DataFrame:
    state = PropertyState(
        owned=True,
        mortgage_balance=float(balance),
        monthly_payment=monthly_payment(balance, annual_rate, term_years),
        monthly_rate=annual_rate / 100 / 12,
    )
    rows: List[dict] = []
    for month in range(1, _months(term_years) + 1):
        interest, principal, paid = step_month(state)
        rows.append(
            {
                "month": month,
                "year": (month - 1) // 12 + 1,
                "payment": paid,
                "interest": interest,
                "principal": principal,
                "balance": state.mortgage_balance,
            }
        )
        if state.mortgage_balance <= 0:
            break
    return pd.DataFrame(rows, columns=["month", "year", "payment", "interest", "principal", "balance"])
