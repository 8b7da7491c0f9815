"""Amortization schedule computation with partial and total deferral.

Pure functions: LoanTerms in, dataclass out. No I/O.
"""

import calendar
import functools
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from rentimmo.models.loan import (
    AmortizationRow,
    AmortizationSchedule,
    DeferralPolicy,
    LoanTerms,
)

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")


@dataclass(frozen=True)
class YearlyDebtSummary:
    year: int
    principal: Decimal
    interest: Decimal
    payments: Decimal
    insurance: Decimal
    ending_balance: Decimal
    deferred_months: int = 0


def monthly_rate(annual_rate_pct: Decimal) -> Decimal:
    return annual_rate_pct / 12 / 100


def monthly_payment(principal: Decimal, annual_rate_pct: Decimal, months: int) -> Decimal:
    """Fixed monthly annuity repaying `principal` over `months` months."""
    if principal <= 0 or months <= 0:
        return Decimal("0")
    if annual_rate_pct <= 0:
        return (principal / months).quantize(TWO_PLACES, ROUND_HALF_UP)

    r = monthly_rate(annual_rate_pct)
    # M = P * [r(1+r)^n] / [(1+r)^n - 1]
    factor = (1 + r) ** months
    payment = principal * (r * factor) / (factor - 1)
    return payment.quantize(TWO_PLACES, ROUND_HALF_UP)


def monthly_insurance(loan: LoanTerms) -> Decimal:
    """Borrower insurance per month, computed on the initial principal."""
    if loan.principal <= 0 or loan.insurance_rate_pct <= 0:
        return Decimal("0")
    return (loan.principal * loan.insurance_rate_pct / 100 / 12).quantize(
        TWO_PLACES, ROUND_HALF_UP
    )


def add_months(start: date, months: int) -> date:
    month0 = start.month - 1 + months
    year = start.year + month0 // 12
    month = month0 % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


@functools.lru_cache(maxsize=128)
def amortization_schedule(loan: LoanTerms) -> AmortizationSchedule:
    """Generate the month-by-month schedule for a loan.

    During a partial deferral only interest is paid and the amortizing payment
    is computed on the original principal over the remaining months of the
    term. During a total deferral nothing is paid; interest is capitalized
    monthly and the increased balance is amortized over the full term, which
    starts after the deferral.

    The last payment absorbs rounding so the final balance is exactly zero.
    Invalid terms produce an empty schedule.
    """
    if not loan.is_valid:
        logger.debug("Invalid loan terms, returning empty schedule: %s", loan)
        return AmortizationSchedule()

    r = monthly_rate(loan.annual_rate_pct)
    insurance = monthly_insurance(loan)
    deferred = loan.effective_deferred_months
    principal = loan.principal.quantize(TWO_PLACES, ROUND_HALF_UP)

    rows: list[AmortizationRow] = []
    balance = principal
    capitalized = ZERO
    cumulative_paid = ZERO
    total_interest = ZERO

    for month in range(1, deferred + 1):
        interest = (balance * r).quantize(TWO_PLACES, ROUND_HALF_UP)
        total_interest += interest

        if loan.deferral is DeferralPolicy.TOTAL:
            capitalized += interest
            balance += interest
            payment = ZERO
        else:
            payment = interest
            cumulative_paid += payment

        rows.append(AmortizationRow(
            month_index=month,
            date=add_months(loan.start_date, month - 1),
            payment=payment,
            principal=ZERO,
            interest=interest,
            remaining_principal=principal,
            remaining_balance=balance,
            cumulative_paid=cumulative_paid,
            is_deferred=True,
            insurance=insurance,
        ))

    if loan.deferral is DeferralPolicy.PARTIAL:
        n_periods = loan.term_years * 12 - deferred
    else:
        n_periods = loan.term_years * 12

    pmt = monthly_payment(balance, loan.annual_rate_pct, n_periods)
    outstanding_capitalized = capitalized

    for period in range(1, n_periods + 1):
        interest = (balance * r).quantize(TWO_PLACES, ROUND_HALF_UP)
        principal_paid = pmt - interest

        # Final payment adjustment
        if period == n_periods or principal_paid > balance:
            principal_paid = balance

        payment = interest + principal_paid
        balance -= principal_paid
        cumulative_paid += payment
        total_interest += interest

        # Repayments retire capitalized interest before the original principal
        repaid_capitalized = min(outstanding_capitalized, principal_paid)
        outstanding_capitalized -= repaid_capitalized

        rows.append(AmortizationRow(
            month_index=deferred + period,
            date=add_months(loan.start_date, deferred + period - 1),
            payment=payment,
            principal=principal_paid,
            interest=interest,
            remaining_principal=balance - outstanding_capitalized,
            remaining_balance=balance,
            cumulative_paid=cumulative_paid,
            is_deferred=False,
            insurance=insurance,
        ))

        if balance <= 0:
            break

    return AmortizationSchedule(
        rows=tuple(rows),
        capitalized_interest=capitalized,
        monthly_payment=pmt,
        total_interest=total_interest,
        total_paid=cumulative_paid,
    )


def yearly_debt_summary(schedule: AmortizationSchedule) -> list[YearlyDebtSummary]:
    """Aggregate an amortization schedule by calendar year."""
    yearly: list[YearlyDebtSummary] = []
    if schedule.is_empty:
        return yearly

    current_year = schedule.rows[0].date.year
    year_principal = ZERO
    year_interest = ZERO
    year_payments = ZERO
    year_insurance = ZERO
    year_deferred = 0
    last_balance = ZERO

    for row in schedule.rows:
        if row.date.year != current_year:
            yearly.append(YearlyDebtSummary(
                year=current_year,
                principal=year_principal,
                interest=year_interest,
                payments=year_payments,
                insurance=year_insurance,
                ending_balance=last_balance,
                deferred_months=year_deferred,
            ))
            current_year = row.date.year
            year_principal = ZERO
            year_interest = ZERO
            year_payments = ZERO
            year_insurance = ZERO
            year_deferred = 0

        year_principal += row.principal
        year_interest += row.interest
        year_payments += row.payment
        year_insurance += row.insurance
        year_deferred += 1 if row.is_deferred else 0
        last_balance = row.remaining_balance

    yearly.append(YearlyDebtSummary(
        year=current_year,
        principal=year_principal,
        interest=year_interest,
        payments=year_payments,
        insurance=year_insurance,
        ending_balance=last_balance,
        deferred_months=year_deferred,
    ))
    return yearly


def debt_for_year(schedule: AmortizationSchedule, year: int) -> YearlyDebtSummary:
    """Debt totals for one calendar year; zero flows outside the schedule."""
    for summary in yearly_debt_summary(schedule):
        if summary.year == year:
            return summary
    return YearlyDebtSummary(
        year=year,
        principal=ZERO,
        interest=ZERO,
        payments=ZERO,
        insurance=ZERO,
        ending_balance=remaining_balance_at(schedule, year),
    )


def remaining_balance_at(
    schedule: AmortizationSchedule,
    year: int,
    initial_balance: Decimal = ZERO,
) -> Decimal:
    """Outstanding balance (capitalized interest included) at 31 December of `year`.

    Before the first scheduled month the initial balance is still owed.
    """
    last = None
    for row in schedule.rows:
        if row.date.year > year:
            break
        last = row
    if last is None:
        return initial_balance if not schedule.is_empty else ZERO
    return last.remaining_balance
