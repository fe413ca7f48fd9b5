"""FIRE (financial independence) projection with Monte Carlo bands"""

import math
import random
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional
from financial_guru.utils.date_utils import add_years

EXPECTED_RETURN = 0.07
RETURN_STDDEV = 0.15
SAFE_WITHDRAWAL_MULTIPLE = 25  # 4% rule
MAX_SEARCH_YEARS = 60
UNREACHABLE_YEARS = 360
PROJECTION_CAP_YEARS = 40
SIMULATIONS = 100
SIMULATION_YEARS = 40
SIMULATION_SEED = 42


@dataclass
class YearProjection:
    year: int
    portfolio_value: float
    annual_contribution: float


@dataclass
class FireProjection:
    fi_number: float
    current_savings: float
    annual_expenses: float
    monthly_savings: float
    years_to_fire: float
    fire_date: date
    savings_rate: float
    monthly_savings_gap: float
    projections: List[YearProjection] = field(default_factory=list)
    monte_carlo_p10: List[float] = field(default_factory=list)
    monte_carlo_p50: List[float] = field(default_factory=list)
    monte_carlo_p90: List[float] = field(default_factory=list)


def years_to_target(current: float, annual_savings: float, target: float) -> float:
    """
    Whole years until current + contributions compounding at 7% reach target.

    Returns 0 when already there without savings, 360 when unreachable
    without savings, and at most 60 otherwise.
    """
    if annual_savings <= 0:
        return 0 if current >= target else UNREACHABLE_YEARS
    for n in range(MAX_SEARCH_YEARS + 1):
        growth = (1 + EXPECTED_RETURN) ** n
        future_value = current * growth + annual_savings * (growth - 1) / EXPECTED_RETURN
        if future_value >= target:
            return n
    return MAX_SEARCH_YEARS


def _nearest_rank(values: List[float], pct: float) -> float:
    index = math.ceil(len(values) * pct) - 1
    return values[min(max(index, 0), len(values) - 1)]


def monte_carlo_bands(current: float, annual_savings: float, seed: int = SIMULATION_SEED):
    """p10/p50/p90 portfolio value per year over 40 years of N(7%, 15%) returns"""
    rng = random.Random(seed)
    runs = []
    for _ in range(SIMULATIONS):
        value = current
        yearly = [value]
        for _ in range(SIMULATION_YEARS):
            annual_return = EXPECTED_RETURN + rng.gauss(0, 1) * RETURN_STDDEV
            value = value * (1 + annual_return) + annual_savings
            yearly.append(max(0.0, value))
        runs.append(yearly)

    p10, p50, p90 = [], [], []
    for year in range(SIMULATION_YEARS + 1):
        values = sorted(run[year] for run in runs)
        p10.append(round(_nearest_rank(values, 0.10)))
        p50.append(round(_nearest_rank(values, 0.50)))
        p90.append(round(_nearest_rank(values, 0.90)))
    return p10, p50, p90


def calculate_fire(
    monthly_income: float,
    monthly_expenses: float,
    current_investments: Optional[float] = None,
    age: Optional[float] = None,
    target_retirement_age: Optional[float] = None,
    today: date | None = None,
) -> FireProjection:
    """
    Project the path to financial independence.

    Requirements:
    - FI number = 25 x annual expenses
    - Monthly savings = max(income - expenses, 0); savings rate as a percent of income
    - Years to FI found by stepping whole years of 7% compound growth
    - Savings gap: extra monthly saving needed to hit the FI number by the
      target age (annuity formula at 7%/12 per month)
    - Yearly projections through min(40, years to FI + 5)
    - Monte Carlo: 100 seeded runs, 40 years, percentiles by nearest rank
    """
    today = today or date.today()
    current = current_investments or 0.0
    annual_expenses = monthly_expenses * 12
    fi_number = annual_expenses * SAFE_WITHDRAWAL_MULTIPLE

    monthly_savings = max(monthly_income - monthly_expenses, 0.0)
    savings_rate = round(monthly_savings / monthly_income, 4) * 100 if monthly_income > 0 else 0.0
    annual_savings = monthly_savings * 12

    years = years_to_target(current, annual_savings, fi_number)
    fire_date = add_years(today, int(years))

    gap = 0.0
    if age is not None and target_retirement_age is not None:
        years_available = target_retirement_age - age
        if years_available > 0 and current < fi_number:
            months_available = years_available * 12
            monthly_rate = EXPECTED_RETURN / 12
            required = (
                (fi_number - current * (1 + EXPECTED_RETURN) ** years_available)
                * monthly_rate
                / ((1 + monthly_rate) ** months_available - 1)
            )
            gap = round(max(0.0, required - monthly_savings), 2)

    projections = []
    portfolio = current
    for offset in range(min(PROJECTION_CAP_YEARS, int(years) + 5) + 1):
        projections.append(
            YearProjection(
                year=today.year + offset,
                portfolio_value=round(portfolio),
                annual_contribution=round(annual_savings),
            )
        )
        portfolio = portfolio * (1 + EXPECTED_RETURN) + annual_savings

    p10, p50, p90 = monte_carlo_bands(current, annual_savings)

    return FireProjection(
        fi_number=round(fi_number),
        current_savings=round(current),
        annual_expenses=round(annual_expenses, 2),
        monthly_savings=round(monthly_savings, 2),
        years_to_fire=float(years),
        fire_date=fire_date,
        savings_rate=round(savings_rate, 2),
        monthly_savings_gap=gap,
        projections=projections,
        monte_carlo_p10=p10,
        monte_carlo_p50=p50,
        monte_carlo_p90=p90,
    )
