from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


class DeferralPolicy(Enum):
    NONE = "none"
    PARTIAL = "partial"  # Interest-only during the deferral
    TOTAL = "total"  # Nothing paid, interest capitalized


@dataclass(frozen=True)
class LoanTerms:
    principal: Decimal
    annual_rate_pct: Decimal  # e.g. Decimal("1.5") for 1.5%
    term_years: int
    start_date: date
    deferral: DeferralPolicy = DeferralPolicy.NONE
    deferred_months: int = 0
    insurance_rate_pct: Decimal = Decimal("0")  # Annual, on initial principal

    @property
    def effective_deferred_months(self) -> int:
        if self.deferral is DeferralPolicy.NONE:
            return 0
        return self.deferred_months

    @property
    def total_months(self) -> int:
        """Scheduled months, deferral included."""
        if self.deferral is DeferralPolicy.PARTIAL:
            return self.term_years * 12
        return self.effective_deferred_months + self.term_years * 12

    @property
    def is_valid(self) -> bool:
        if self.principal <= 0 or self.annual_rate_pct < 0 or self.term_years <= 0:
            return False
        if self.deferred_months < 0:
            return False
        if self.deferral is DeferralPolicy.PARTIAL and self.deferred_months >= self.term_years * 12:
            return False
        # Last payment date must stay representable
        last_month = self.start_date.month - 1 + self.total_months - 1
        return self.start_date.year + last_month // 12 <= date.max.year


@dataclass(frozen=True)
class AmortizationRow:
    month_index: int
    date: date
    payment: Decimal
    principal: Decimal
    interest: Decimal
    remaining_principal: Decimal
    remaining_balance: Decimal  # Principal + still-capitalized deferred interest
    cumulative_paid: Decimal
    is_deferred: bool = False
    insurance: Decimal = Decimal("0")


@dataclass(frozen=True)
class AmortizationSchedule:
    rows: tuple[AmortizationRow, ...] = ()
    capitalized_interest: Decimal = Decimal("0")
    monthly_payment: Decimal = Decimal("0")  # Amortizing payment, after deferral
    total_interest: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")

    @property
    def is_empty(self) -> bool:
        return not self.rows

    @property
    def deferred_rows(self) -> list[AmortizationRow]:
        return [r for r in self.rows if r.is_deferred]
