from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from rentimmo.models.investment import AssetClass


class FiscalRegime(Enum):
    MICRO_FONCIER = "micro-foncier"  # Unfurnished, flat allowance
    REEL_FONCIER = "reel-foncier"  # Unfurnished, itemized
    MICRO_BIC = "micro-bic"  # Furnished, flat allowance
    REEL_BIC = "reel-bic"  # Furnished, itemized + depreciation

    @property
    def is_furnished(self) -> bool:
        return self in (FiscalRegime.MICRO_BIC, FiscalRegime.REEL_BIC)

    @property
    def is_micro(self) -> bool:
        return self in (FiscalRegime.MICRO_FONCIER, FiscalRegime.MICRO_BIC)


@dataclass(frozen=True)
class DepreciationLine:
    asset_class: AssetClass
    annual_quota: Decimal = Decimal("0")
    used: Decimal = Decimal("0")
    cumulative_used: Decimal = Decimal("0")
    unused_carry: Decimal = Decimal("0")  # Capacity rolled forward to next year


@dataclass(frozen=True)
class DepreciationBreakdown:
    lines: dict[AssetClass, DepreciationLine] = field(default_factory=dict)

    @property
    def total_quota(self) -> Decimal:
        return sum((line.annual_quota for line in self.lines.values()), Decimal("0"))

    @property
    def total_used(self) -> Decimal:
        return sum((line.used for line in self.lines.values()), Decimal("0"))

    @property
    def total_unused_carry(self) -> Decimal:
        return sum((line.unused_carry for line in self.lines.values()), Decimal("0"))

    @property
    def cumulative_used(self) -> Decimal:
        return sum((line.cumulative_used for line in self.lines.values()), Decimal("0"))

    def line(self, asset_class: AssetClass) -> DepreciationLine:
        return self.lines.get(asset_class, DepreciationLine(asset_class=asset_class))


@dataclass
class TaxYearResult:
    year: int
    regime: FiscalRegime

    gross_revenue: Decimal = Decimal("0")
    deductible_expenses: Decimal = Decimal("0")
    taxable_income: Decimal = Decimal("0")

    income_tax: Decimal = Decimal("0")
    social_charges: Decimal = Decimal("0")
    total_tax: Decimal = Decimal("0")
    net_revenue: Decimal = Decimal("0")  # Gross revenue - total tax

    # Deficit chain. carried_deficit <= 0: negative = available next year.
    carried_deficit: Decimal = Decimal("0")
    used_deficit: Decimal = Decimal("0")
    expired_deficit: Decimal = Decimal("0")  # Opening deficit a micro regime cannot use
    global_income_offset: Decimal = Decimal("0")  # reel-foncier, imputed on global income

    depreciation: DepreciationBreakdown | None = None  # reel-bic only

    @property
    def deficit_available(self) -> Decimal:
        """Carried deficit as a positive amount."""
        return -self.carried_deficit


@dataclass
class CapitalGainResult:
    regime: FiscalRegime
    selling_price: Decimal = Decimal("0")  # Net of resale agency fee
    adjusted_cost: Decimal = Decimal("0")
    holding_years: int = 0
    gross_gain: Decimal = Decimal("0")

    # Holding-period discounts (fractions in [0, 1])
    income_tax_discount: Decimal = Decimal("0")
    social_charges_discount: Decimal = Decimal("0")

    income_tax_base: Decimal = Decimal("0")
    social_charges_base: Decimal = Decimal("0")
    income_tax: Decimal = Decimal("0")
    social_charges: Decimal = Decimal("0")
    total_tax: Decimal = Decimal("0")
    net_gain: Decimal = Decimal("0")

    # Non-professional furnished: depreciation reintegrated at the marginal rate
    depreciation_recapture: Decimal = Decimal("0")
    depreciation_recapture_tax: Decimal = Decimal("0")

    # Professional furnished (LMP): short/long-term split
    short_term_gain: Decimal = Decimal("0")
    long_term_gain: Decimal = Decimal("0")
    short_term_tax: Decimal = Decimal("0")
    long_term_income_tax: Decimal = Decimal("0")
    long_term_social_charges: Decimal = Decimal("0")


@dataclass
class YearRegimeProjection:
    year: int
    regime: FiscalRegime

    annual_cash_flow_before_tax: Decimal = Decimal("0")
    annual_cash_flow: Decimal = Decimal("0")  # After income tax
    cumulative_cash_flow_before_tax: Decimal = Decimal("0")
    cumulative_cash_flow: Decimal = Decimal("0")
    cumulative_tax: Decimal = Decimal("0")

    # If sold at the end of this year
    sale_price: Decimal = Decimal("0")
    remaining_debt: Decimal = Decimal("0")
    sale_balance: Decimal = Decimal("0")  # Before capital-gains tax
    capital_gain_tax: Decimal = Decimal("0")
    total_gain: Decimal = Decimal("0")
    equity_multiple: Decimal = Decimal("0")

    irr: Decimal = Decimal("0")
    irr_computable: bool = False


@dataclass
class ProjectionTable:
    years: list[int] = field(default_factory=list)
    rows: list[YearRegimeProjection] = field(default_factory=list)

    def for_regime(self, regime: FiscalRegime) -> list[YearRegimeProjection]:
        return [r for r in self.rows if r.regime is regime]

    def row(self, year: int, regime: FiscalRegime) -> YearRegimeProjection | None:
        for r in self.rows:
            if r.year == year and r.regime is regime:
                return r
        return None

    def best_exit(self, regime: FiscalRegime | None = None) -> YearRegimeProjection | None:
        """Row with the highest computable IRR, optionally within one regime."""
        candidates = [
            r for r in self.rows
            if r.irr_computable and (regime is None or r.regime is regime)
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda r: (r.irr, r.total_gain))
