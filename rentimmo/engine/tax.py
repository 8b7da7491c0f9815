"""Yearly rental-income taxation under the four French regimes.

Micro-foncier and micro-bic apply a flat allowance to gross revenue.
Reel-foncier and reel-bic deduct actual expenses, loan interest and (reel-bic)
depreciation, and carry deficits forward from one year to the next.

Pure functions: dataclasses in, dataclasses out. No I/O.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import assert_never

from rentimmo.config import settings
from rentimmo.engine.cashflow import (
    loan_schedule,
    loan_service,
    record_for,
    regime_revenue,
)
from rentimmo.engine.depreciation import allocate_depreciation
from rentimmo.models.investment import Investment
from rentimmo.models.loan import AmortizationSchedule
from rentimmo.models.results import FiscalRegime, TaxYearResult

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")


def _opening_deficit(investment: Investment, year: int, prior: TaxYearResult | None) -> Decimal:
    """Deficit available at the start of the year, as a positive amount."""
    if prior is not None:
        return max(prior.deficit_available, ZERO)
    return max(record_for(investment, year).deficit, ZERO)


def _apply_rates(investment: Investment, result: TaxYearResult) -> TaxYearResult:
    taxable = result.taxable_income
    result.income_tax = (taxable * investment.tax.income_tax_rate).quantize(
        TWO_PLACES, ROUND_HALF_UP
    )
    result.social_charges = (taxable * investment.tax.social_charges_rate).quantize(
        TWO_PLACES, ROUND_HALF_UP
    )
    result.total_tax = result.income_tax + result.social_charges
    result.net_revenue = result.gross_revenue - result.total_tax
    return result


def _micro(
    year: int,
    regime: FiscalRegime,
    revenue: Decimal,
    allowance: Decimal,
    opening_deficit: Decimal,
) -> TaxYearResult:
    """Flat allowance regime. Deficits cannot be used and expire."""
    deductible = (revenue * allowance).quantize(TWO_PLACES, ROUND_HALF_UP)
    if opening_deficit > 0:
        logger.debug(
            "%s %d: opening deficit %s cannot be used under a micro regime",
            regime.value, year, opening_deficit,
        )
    return TaxYearResult(
        year=year,
        regime=regime,
        gross_revenue=revenue,
        deductible_expenses=deductible,
        taxable_income=max(revenue - deductible, ZERO),
        expired_deficit=opening_deficit,
    )


def _reel_foncier(
    investment: Investment,
    year: int,
    revenue: Decimal,
    deductible: Decimal,
    interest: Decimal,
    opening_deficit: Decimal,
) -> TaxYearResult:
    """Unfurnished actual regime.

    A profit absorbs the opening deficit. A loss is split: the part due to
    loan interest is only carried forward; the rest is imputed on global
    income up to the deficit limit and the excess is carried forward.
    """
    result = TaxYearResult(
        year=year,
        regime=FiscalRegime.REEL_FONCIER,
        gross_revenue=revenue,
        deductible_expenses=deductible,
    )
    net = revenue - deductible

    if net >= 0:
        used = min(opening_deficit, net)
        result.used_deficit = used
        result.taxable_income = net - used
        result.carried_deficit = used - opening_deficit
        return result

    loss = -net
    interest_part = min(interest, loss)
    other_part = loss - interest_part
    offset = min(other_part, investment.tax.deficit_limit)

    result.global_income_offset = offset
    result.carried_deficit = ZERO - opening_deficit - interest_part - (other_part - offset)
    return result


def _reel_bic(
    investment: Investment,
    year: int,
    revenue: Decimal,
    deductible: Decimal,
    opening_deficit: Decimal,
    prior: TaxYearResult | None,
) -> TaxYearResult:
    """Furnished actual regime.

    A loss is carried forward in full. A profit absorbs the opening deficit,
    then depreciation, which can bring the result to zero but never below.
    """
    prior_depreciation = None
    if prior is not None and prior.regime is FiscalRegime.REEL_BIC:
        prior_depreciation = prior.depreciation

    result = TaxYearResult(
        year=year,
        regime=FiscalRegime.REEL_BIC,
        gross_revenue=revenue,
    )
    net = revenue - deductible

    if net < 0:
        result.depreciation = allocate_depreciation(investment, year, ZERO, prior_depreciation)
        result.deductible_expenses = deductible
        result.carried_deficit = net - opening_deficit
        return result

    used = min(opening_deficit, net)
    remaining = net - used
    depreciation = allocate_depreciation(investment, year, remaining, prior_depreciation)

    result.depreciation = depreciation
    result.deductible_expenses = deductible + depreciation.total_used
    result.used_deficit = used
    result.taxable_income = remaining - depreciation.total_used
    result.carried_deficit = used - opening_deficit
    return result


def compute_tax_year(
    investment: Investment,
    year: int,
    regime: FiscalRegime,
    prior: TaxYearResult | None = None,
    schedule: AmortizationSchedule | None = None,
) -> TaxYearResult:
    """Compute taxable income and tax for one year under one regime.

    Args:
        investment: The investment being simulated
        year: Calendar year
        regime: Fiscal regime
        prior: Previous year's result under the same regime, carrying the
            deficit (and reel-bic depreciation) forward. When None, the
            year's record `deficit` is the opening deficit.
        schedule: Amortization schedule; computed from the loan if omitted
    """
    schedule = loan_schedule(investment, schedule)
    record = record_for(investment, year)
    revenue = regime_revenue(record, regime, investment.vacancy_rate_pct)
    opening = _opening_deficit(investment, year, prior)

    service = loan_service(investment, year, schedule)
    # Actual regimes only. Loan principal is never deductible.
    deductible = record.deductible_expenses + service.insurance + service.interest

    match regime:
        case FiscalRegime.MICRO_FONCIER:
            result = _micro(year, regime, revenue, settings.micro_foncier_allowance, opening)
        case FiscalRegime.MICRO_BIC:
            result = _micro(year, regime, revenue, settings.micro_bic_allowance, opening)
        case FiscalRegime.REEL_FONCIER:
            result = _reel_foncier(
                investment, year, revenue, deductible, service.interest, opening
            )
        case FiscalRegime.REEL_BIC:
            result = _reel_bic(investment, year, revenue, deductible, opening, prior)
        case _:
            assert_never(regime)

    return _apply_rates(investment, result)


def build_tax_ledger(
    investment: Investment,
    regime: FiscalRegime,
    schedule: AmortizationSchedule | None = None,
) -> list[TaxYearResult]:
    """Fold compute_tax_year over the project years, threading the deficit."""
    schedule = loan_schedule(investment, schedule)
    ledger: list[TaxYearResult] = []
    prior = None
    for year in investment.years:
        prior = compute_tax_year(investment, year, regime, prior, schedule)
        ledger.append(prior)
    return ledger


def compute_all_regimes(
    investment: Investment,
    year: int,
    prior: dict[FiscalRegime, TaxYearResult] | None = None,
    schedule: AmortizationSchedule | None = None,
) -> dict[FiscalRegime, TaxYearResult]:
    schedule = loan_schedule(investment, schedule)
    prior = prior or {}
    return {
        regime: compute_tax_year(investment, year, regime, prior.get(regime), schedule)
        for regime in FiscalRegime
    }


def cumulative_depreciation(ledger: list[TaxYearResult]) -> Decimal:
    """Depreciation actually deducted over a reel-bic ledger."""
    for result in reversed(ledger):
        if result.depreciation is not None:
            return result.depreciation.cumulative_used
    return ZERO


def is_micro_eligible(investment: Investment, year: int, regime: FiscalRegime) -> bool:
    """Whether the year's gross revenue stays under the micro-regime ceiling.

    Actual regimes are always available.
    """
    record = record_for(investment, year)
    revenue = regime_revenue(record, regime, investment.vacancy_rate_pct)
    match regime:
        case FiscalRegime.MICRO_FONCIER:
            return revenue <= settings.micro_foncier_threshold
        case FiscalRegime.MICRO_BIC:
            return revenue <= settings.micro_bic_threshold
        case FiscalRegime.REEL_FONCIER | FiscalRegime.REEL_BIC:
            return True
        case _:
            assert_never(regime)


def recommended_regime(
    investment: Investment,
    year: int,
    prior: dict[FiscalRegime, TaxYearResult] | None = None,
    schedule: AmortizationSchedule | None = None,
) -> FiscalRegime:
    """Eligible regime leaving the highest net revenue for the year.

    Ties go to the regime declared first in FiscalRegime.
    """
    results = compute_all_regimes(investment, year, prior, schedule)
    eligible = [r for r in FiscalRegime if is_micro_eligible(investment, year, r)]
    best = eligible[0]
    for regime in eligible[1:]:
        if results[regime].net_revenue > results[best].net_revenue:
            best = regime
    return best
