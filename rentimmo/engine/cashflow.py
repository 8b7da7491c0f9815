"""Yearly revenue, expenses, loan service and cash flow per fiscal regime.

Pure functions: Decimal in, Decimal out. No I/O.
"""

import dataclasses
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from rentimmo.engine.debt import amortization_schedule, debt_for_year
from rentimmo.models.investment import Investment, YearlyExpenseRecord
from rentimmo.models.loan import AmortizationSchedule
from rentimmo.models.results import FiscalRegime

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")

# Record fields an expense projection may grow year over year
PROJECTABLE_FIELDS = (
    "rent",
    "furnished_rent",
    "tenant_charges",
    "tax_benefit",
    "property_tax",
    "condo_fees",
    "property_insurance",
    "management_fees",
    "unpaid_rent_insurance",
    "repairs",
    "other_deductible",
    "other_non_deductible",
)


@dataclass(frozen=True)
class LoanService:
    payment: Decimal
    insurance: Decimal
    interest: Decimal

    @property
    def total(self) -> Decimal:
        return self.payment + self.insurance


def loan_schedule(
    investment: Investment, schedule: AmortizationSchedule | None = None
) -> AmortizationSchedule:
    """Schedule passed by the caller, else the (memoized) one for the investment's loan."""
    if schedule is not None:
        return schedule
    if investment.loan is None:
        return AmortizationSchedule()
    return amortization_schedule(investment.loan)


def record_for(investment: Investment, year: int) -> YearlyExpenseRecord:
    """Expense record for a year; a zero record when none was entered."""
    return investment.expense_for(year) or YearlyExpenseRecord(year=year)


def regime_revenue(
    record: YearlyExpenseRecord,
    regime: FiscalRegime,
    vacancy_rate_pct: Decimal = Decimal("0"),
) -> Decimal:
    """Gross revenue taxed under a regime, reduced by rental vacancy.

    Unfurnished: rent + tax benefit + tenant charges.
    Furnished: furnished rent + tenant charges.
    """
    if regime.is_furnished:
        total = record.furnished_rent + record.tenant_charges
    else:
        total = record.rent + record.tax_benefit + record.tenant_charges
    occupancy = 1 - vacancy_rate_pct / 100
    return (total * occupancy).quantize(TWO_PLACES, ROUND_HALF_UP)


def loan_service(
    investment: Investment,
    year: int,
    schedule: AmortizationSchedule | None = None,
) -> LoanService:
    """Loan payment, borrower insurance and interest for a calendar year.

    Amounts entered on the year's record take precedence over the schedule.
    Interest always comes from the schedule.
    """
    debt = debt_for_year(loan_schedule(investment, schedule), year)
    record = investment.expense_for(year)

    payment = debt.payments
    insurance = debt.insurance
    if record is not None and record.loan_payment is not None:
        payment = record.loan_payment
    if record is not None and record.loan_insurance is not None:
        insurance = record.loan_insurance

    return LoanService(payment=payment, insurance=insurance, interest=debt.interest)


def annual_cash_flow_before_tax(
    investment: Investment,
    year: int,
    regime: FiscalRegime,
    schedule: AmortizationSchedule | None = None,
) -> Decimal:
    """Revenue - all operating expenses - loan payment - loan insurance."""
    record = record_for(investment, year)
    revenue = regime_revenue(record, regime, investment.vacancy_rate_pct)
    service = loan_service(investment, year, schedule)
    return revenue - record.operating_expenses - service.total


def gross_yield(investment: Investment, year: int, regime: FiscalRegime) -> Decimal:
    """Gross yield in percent: regime revenue / (price + agency fees + renovation)."""
    base = investment.purchase_price + investment.agency_fees + investment.renovation_costs
    if base <= 0:
        return Decimal("0")
    revenue = regime_revenue(record_for(investment, year), regime)
    return (revenue / base * 100).quantize(FOUR_PLACES, ROUND_HALF_UP)


def project_yearly_expenses(
    base: YearlyExpenseRecord,
    last_year: int,
    growth_pct: dict[str, Decimal],
) -> list[YearlyExpenseRecord]:
    """Build one record per year from `base.year` to `last_year`.

    Each field named in `growth_pct` grows by that annual percentage,
    compounded from the base year. Loan fields are left to the schedule.
    """
    unknown = set(growth_pct) - set(PROJECTABLE_FIELDS)
    if unknown:
        raise ValueError(f"Cannot project fields: {sorted(unknown)}")

    records: list[YearlyExpenseRecord] = []
    for offset, year in enumerate(range(base.year, last_year + 1)):
        changes: dict[str, object] = {"year": year, "deficit": Decimal("0")}
        for name in PROJECTABLE_FIELDS:
            rate = growth_pct.get(name, Decimal("0"))
            factor = (1 + rate / 100) ** offset
            changes[name] = (getattr(base, name) * factor).quantize(TWO_PLACES, ROUND_HALF_UP)
        if offset == 0:
            changes["deficit"] = base.deficit
            changes["loan_payment"] = base.loan_payment
            changes["loan_insurance"] = base.loan_insurance
        else:
            changes["loan_payment"] = None
            changes["loan_insurance"] = None
        records.append(dataclasses.replace(base, **changes))
    return records
