from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from rentimmo.config import settings
from rentimmo.models.loan import LoanTerms


class AssetClass(Enum):
    BUILDING = "building"
    FURNITURE = "furniture"
    WORKS = "works"
    OTHER = "other"


class AppreciationType(Enum):
    ANNUAL = "annual"  # Compound % per year of holding
    GLOBAL = "global"  # % over the whole holding period
    AMOUNT = "amount"  # Fixed target selling price


@dataclass(frozen=True)
class DepreciableAsset:
    value: Decimal = Decimal("0")
    useful_life_years: int = 1

    @property
    def annual_quota(self) -> Decimal:
        if self.value <= 0 or self.useful_life_years <= 0:
            return Decimal("0")
        return self.value / self.useful_life_years


def default_assets() -> dict[AssetClass, DepreciableAsset]:
    return {
        AssetClass.BUILDING: DepreciableAsset(useful_life_years=25),
        AssetClass.FURNITURE: DepreciableAsset(useful_life_years=5),
        AssetClass.WORKS: DepreciableAsset(useful_life_years=10),
        AssetClass.OTHER: DepreciableAsset(useful_life_years=5),
    }


@dataclass(frozen=True)
class TaxParameters:
    income_tax_rate_pct: Decimal = field(
        default_factory=lambda: settings.default_income_tax_rate_pct
    )
    social_charges_rate_pct: Decimal = field(
        default_factory=lambda: settings.default_social_charges_rate_pct
    )
    deficit_limit: Decimal = field(default_factory=lambda: settings.default_deficit_limit)
    assets: dict[AssetClass, DepreciableAsset] = field(default_factory=default_assets)

    @property
    def income_tax_rate(self) -> Decimal:
        return self.income_tax_rate_pct / 100

    @property
    def social_charges_rate(self) -> Decimal:
        return self.social_charges_rate_pct / 100

    def asset(self, asset_class: AssetClass) -> DepreciableAsset:
        return self.assets.get(asset_class, DepreciableAsset())


@dataclass(frozen=True)
class SaleParameters:
    appreciation_type: AppreciationType = AppreciationType.ANNUAL
    appreciation_value: Decimal = field(
        default_factory=lambda: settings.default_annual_appreciation_pct
    )
    agency_fee: Decimal = Decimal("0")  # Resale agency fee
    early_repayment_fee: Decimal = Decimal("0")  # Penalty on remaining debt


@dataclass(frozen=True)
class YearlyExpenseRecord:
    year: int

    # Revenues
    rent: Decimal = Decimal("0")  # Unfurnished rent
    furnished_rent: Decimal = Decimal("0")
    tenant_charges: Decimal = Decimal("0")  # Charges reimbursed by the tenant
    tax_benefit: Decimal = Decimal("0")

    # Expenses
    property_tax: Decimal = Decimal("0")
    condo_fees: Decimal = Decimal("0")
    property_insurance: Decimal = Decimal("0")
    management_fees: Decimal = Decimal("0")
    unpaid_rent_insurance: Decimal = Decimal("0")
    repairs: Decimal = Decimal("0")
    other_deductible: Decimal = Decimal("0")
    other_non_deductible: Decimal = Decimal("0")

    # Loan (None = taken from the amortization schedule)
    loan_payment: Decimal | None = None
    loan_insurance: Decimal | None = None

    # Deficit carried in from before the simulated period
    deficit: Decimal = Decimal("0")

    @property
    def deductible_expenses(self) -> Decimal:
        return (
            self.property_tax
            + self.condo_fees
            + self.property_insurance
            + self.management_fees
            + self.unpaid_rent_insurance
            + self.repairs
            + self.other_deductible
        )

    @property
    def operating_expenses(self) -> Decimal:
        return self.deductible_expenses + self.other_non_deductible


@dataclass(frozen=True)
class Investment:
    project_start: date
    project_end: date

    # Acquisition
    purchase_price: Decimal
    agency_fees: Decimal = Decimal("0")
    notary_fees: Decimal = Decimal("0")
    bank_fees: Decimal = Decimal("0")
    bank_guarantee_fees: Decimal = Decimal("0")
    mandatory_diagnostics: Decimal = Decimal("0")
    renovation_costs: Decimal = Decimal("0")
    improvement_works: Decimal = Decimal("0")  # Added to the capital-gain cost basis

    # Financing
    loan: LoanTerms | None = None

    # Operations
    expenses: tuple[YearlyExpenseRecord, ...] = ()
    vacancy_rate_pct: Decimal = Decimal("0")

    # Tax
    tax: TaxParameters = field(default_factory=TaxParameters)
    is_professional_lessor: bool = False  # LMP rather than LMNP
    accumulated_depreciation: Decimal = Decimal("0")

    # Sale simulation
    sale: SaleParameters = field(default_factory=SaleParameters)

    @property
    def acquisition_year(self) -> int:
        return self.project_start.year

    @property
    def end_year(self) -> int:
        return self.project_end.year

    @property
    def years(self) -> list[int]:
        return list(range(self.acquisition_year, self.end_year + 1))

    @property
    def acquisition_fees(self) -> Decimal:
        """Agency + notary fees, the part of acquisition costs kept in the gain basis."""
        return self.agency_fees + self.notary_fees

    @property
    def total_acquisition_cost(self) -> Decimal:
        return (
            self.purchase_price
            + self.agency_fees
            + self.notary_fees
            + self.bank_fees
            + self.bank_guarantee_fees
            + self.mandatory_diagnostics
            + self.renovation_costs
        )

    @property
    def loan_amount(self) -> Decimal:
        """Loan principal; invalid terms finance nothing (their schedule is empty)."""
        if self.loan is None or not self.loan.is_valid:
            return Decimal("0")
        return self.loan.principal

    @property
    def personal_contribution(self) -> Decimal:
        """Cash put in by the investor at acquisition (cost not covered by the loan)."""
        return self.total_acquisition_cost - self.loan_amount

    def expense_for(self, year: int) -> YearlyExpenseRecord | None:
        for record in self.expenses:
            if record.year == year:
                return record
        return None
