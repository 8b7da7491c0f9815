"""Pydantic schemas for API request/response models."""

import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from rentimmo.config import settings
from rentimmo.models.investment import (
    AppreciationType,
    AssetClass,
    DepreciableAsset,
    Investment,
    SaleParameters,
    TaxParameters,
    YearlyExpenseRecord,
    default_assets,
)
from rentimmo.models.loan import DeferralPolicy, LoanTerms
from rentimmo.models.results import FiscalRegime


# ---- Request schemas ----

class LoanTermsRequest(BaseModel):
    principal: Decimal = Field(..., gt=0)
    annual_rate_pct: Decimal = Field(..., ge=0, description="e.g. 1.5 for 1.5%")
    term_years: int = Field(..., gt=0)
    start_date: datetime.date
    deferral: DeferralPolicy = DeferralPolicy.NONE
    deferred_months: int = Field(0, ge=0)
    insurance_rate_pct: Decimal = Field(Decimal("0"), ge=0)

    def to_domain(self) -> LoanTerms:
        return LoanTerms(
            principal=self.principal,
            annual_rate_pct=self.annual_rate_pct,
            term_years=self.term_years,
            start_date=self.start_date,
            deferral=self.deferral,
            deferred_months=self.deferred_months,
            insurance_rate_pct=self.insurance_rate_pct,
        )


class ExpenseRecordRequest(BaseModel):
    year: int
    rent: Decimal = Decimal("0")
    furnished_rent: Decimal = Decimal("0")
    tenant_charges: Decimal = Decimal("0")
    tax_benefit: Decimal = Decimal("0")
    property_tax: Decimal = Decimal("0")
    condo_fees: Decimal = Decimal("0")
    property_insurance: Decimal = Decimal("0")
    management_fees: Decimal = Decimal("0")
    unpaid_rent_insurance: Decimal = Decimal("0")
    repairs: Decimal = Decimal("0")
    other_deductible: Decimal = Decimal("0")
    other_non_deductible: Decimal = Decimal("0")
    loan_payment: Decimal | None = Field(None, description="Omit to use the schedule")
    loan_insurance: Decimal | None = Field(None, description="Omit to use the schedule")
    deficit: Decimal = Field(Decimal("0"), ge=0)

    def to_domain(self) -> YearlyExpenseRecord:
        return YearlyExpenseRecord(**self.model_dump())


class DepreciableAssetRequest(BaseModel):
    value: Decimal = Field(Decimal("0"), ge=0)
    useful_life_years: int = Field(..., gt=0)


class TaxParametersRequest(BaseModel):
    income_tax_rate_pct: Decimal = Field(
        default_factory=lambda: settings.default_income_tax_rate_pct, ge=0, le=100
    )
    social_charges_rate_pct: Decimal = Field(
        default_factory=lambda: settings.default_social_charges_rate_pct, ge=0, le=100
    )
    deficit_limit: Decimal = Field(default_factory=lambda: settings.default_deficit_limit, ge=0)
    # Classes left out keep their default useful life and a zero value
    assets: dict[AssetClass, DepreciableAssetRequest] = Field(default_factory=dict)

    def to_domain(self) -> TaxParameters:
        assets = default_assets()
        for asset_class, asset in self.assets.items():
            assets[asset_class] = DepreciableAsset(
                value=asset.value, useful_life_years=asset.useful_life_years
            )
        return TaxParameters(
            income_tax_rate_pct=self.income_tax_rate_pct,
            social_charges_rate_pct=self.social_charges_rate_pct,
            deficit_limit=self.deficit_limit,
            assets=assets,
        )


class SaleParametersRequest(BaseModel):
    appreciation_type: AppreciationType = AppreciationType.ANNUAL
    appreciation_value: Decimal = Field(
        default_factory=lambda: settings.default_annual_appreciation_pct
    )
    agency_fee: Decimal = Field(Decimal("0"), ge=0)
    early_repayment_fee: Decimal = Field(Decimal("0"), ge=0)

    def to_domain(self) -> SaleParameters:
        return SaleParameters(**self.model_dump())


class InvestmentRequest(BaseModel):
    project_start: datetime.date
    project_end: datetime.date

    purchase_price: Decimal = Field(..., ge=0)
    agency_fees: Decimal = Field(Decimal("0"), ge=0)
    notary_fees: Decimal = Field(Decimal("0"), ge=0)
    bank_fees: Decimal = Field(Decimal("0"), ge=0)
    bank_guarantee_fees: Decimal = Field(Decimal("0"), ge=0)
    mandatory_diagnostics: Decimal = Field(Decimal("0"), ge=0)
    renovation_costs: Decimal = Field(Decimal("0"), ge=0)
    improvement_works: Decimal = Field(Decimal("0"), ge=0)

    loan: LoanTermsRequest | None = None
    expenses: list[ExpenseRecordRequest] = Field(default_factory=list)
    vacancy_rate_pct: Decimal = Field(Decimal("0"), ge=0, le=100)

    tax: TaxParametersRequest = Field(default_factory=TaxParametersRequest)
    is_professional_lessor: bool = False
    accumulated_depreciation: Decimal = Field(Decimal("0"), ge=0)
    sale: SaleParametersRequest = Field(default_factory=SaleParametersRequest)

    def to_domain(self) -> Investment:
        return Investment(
            project_start=self.project_start,
            project_end=self.project_end,
            purchase_price=self.purchase_price,
            agency_fees=self.agency_fees,
            notary_fees=self.notary_fees,
            bank_fees=self.bank_fees,
            bank_guarantee_fees=self.bank_guarantee_fees,
            mandatory_diagnostics=self.mandatory_diagnostics,
            renovation_costs=self.renovation_costs,
            improvement_works=self.improvement_works,
            loan=self.loan.to_domain() if self.loan is not None else None,
            expenses=tuple(r.to_domain() for r in self.expenses),
            vacancy_rate_pct=self.vacancy_rate_pct,
            tax=self.tax.to_domain(),
            is_professional_lessor=self.is_professional_lessor,
            accumulated_depreciation=self.accumulated_depreciation,
            sale=self.sale.to_domain(),
        )


class TaxLedgerRequest(BaseModel):
    investment: InvestmentRequest
    regime: FiscalRegime | None = Field(None, description="Omit for all four regimes")


class SaleRequest(BaseModel):
    investment: InvestmentRequest
    selling_year: int
    gross_selling_price: Decimal | None = Field(
        None, ge=0, description="Omit to estimate from the appreciation assumption"
    )
    accumulated_depreciation: Decimal | None = Field(None, ge=0)


class IRRRequest(BaseModel):
    cash_flows: list[Decimal] = Field(..., description="cash_flows[0] is the initial outlay")
    initial_guess: float | None = None


class ProjectionRequest(BaseModel):
    investment: InvestmentRequest


# ---- Response schemas ----

class AmortizationRowResponse(BaseModel):
    model_config = {"from_attributes": True}

    month_index: int
    date: datetime.date
    payment: Decimal
    principal: Decimal
    interest: Decimal
    insurance: Decimal
    remaining_principal: Decimal
    remaining_balance: Decimal
    cumulative_paid: Decimal
    is_deferred: bool


class YearlyDebtResponse(BaseModel):
    model_config = {"from_attributes": True}

    year: int
    principal: Decimal
    interest: Decimal
    payments: Decimal
    insurance: Decimal
    ending_balance: Decimal
    deferred_months: int


class ScheduleResponse(BaseModel):
    monthly_payment: Decimal
    capitalized_interest: Decimal
    total_interest: Decimal
    total_paid: Decimal
    rows: list[AmortizationRowResponse]
    yearly: list[YearlyDebtResponse]


class DepreciationLineResponse(BaseModel):
    model_config = {"from_attributes": True}

    asset_class: AssetClass
    annual_quota: Decimal
    used: Decimal
    cumulative_used: Decimal
    unused_carry: Decimal


class TaxYearResponse(BaseModel):
    year: int
    regime: FiscalRegime
    gross_revenue: Decimal
    deductible_expenses: Decimal
    taxable_income: Decimal
    income_tax: Decimal
    social_charges: Decimal
    total_tax: Decimal
    net_revenue: Decimal
    carried_deficit: Decimal
    used_deficit: Decimal
    expired_deficit: Decimal
    global_income_offset: Decimal
    depreciation: list[DepreciationLineResponse] | None = None


class TaxLedgerResponse(BaseModel):
    ledgers: dict[FiscalRegime, list[TaxYearResponse]]
    micro_eligible: dict[FiscalRegime, bool]  # First project year
    recommended_regime: FiscalRegime  # First project year


class CapitalGainResponse(BaseModel):
    model_config = {"from_attributes": True}

    regime: FiscalRegime
    selling_price: Decimal
    adjusted_cost: Decimal
    holding_years: int
    gross_gain: Decimal
    income_tax_discount: Decimal
    social_charges_discount: Decimal
    income_tax_base: Decimal
    social_charges_base: Decimal
    income_tax: Decimal
    social_charges: Decimal
    total_tax: Decimal
    net_gain: Decimal
    depreciation_recapture: Decimal
    depreciation_recapture_tax: Decimal
    short_term_gain: Decimal
    long_term_gain: Decimal
    short_term_tax: Decimal
    long_term_income_tax: Decimal
    long_term_social_charges: Decimal


class SaleResponse(BaseModel):
    selling_year: int
    gross_selling_price: Decimal
    results: dict[FiscalRegime, CapitalGainResponse]


class IRRResponse(BaseModel):
    rate: float
    rate_pct: Decimal
    computable: bool
    converged: bool
    iterations: int


class ProjectionRowResponse(BaseModel):
    model_config = {"from_attributes": True}

    year: int
    regime: FiscalRegime
    annual_cash_flow_before_tax: Decimal
    annual_cash_flow: Decimal
    cumulative_cash_flow_before_tax: Decimal
    cumulative_cash_flow: Decimal
    cumulative_tax: Decimal
    sale_price: Decimal
    remaining_debt: Decimal
    sale_balance: Decimal
    capital_gain_tax: Decimal
    total_gain: Decimal
    equity_multiple: Decimal
    irr: Decimal
    irr_computable: bool


class ProjectionResponse(BaseModel):
    years: list[int]
    personal_contribution: Decimal
    rows: list[ProjectionRowResponse]
    best_exit: ProjectionRowResponse | None = None
