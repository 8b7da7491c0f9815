"""Analysis routes: thin wrappers around the calculation engine."""

import logging

from fastapi import APIRouter, HTTPException

from rentimmo.api.schemas import (
    AmortizationRowResponse,
    CapitalGainResponse,
    DepreciationLineResponse,
    InvestmentRequest,
    IRRRequest,
    IRRResponse,
    LoanTermsRequest,
    ProjectionRequest,
    ProjectionResponse,
    ProjectionRowResponse,
    SaleRequest,
    SaleResponse,
    ScheduleResponse,
    TaxLedgerRequest,
    TaxLedgerResponse,
    TaxYearResponse,
    YearlyDebtResponse,
)
from rentimmo.engine.cashflow import loan_schedule
from rentimmo.engine.debt import amortization_schedule, yearly_debt_summary
from rentimmo.engine.disposition import compute_sale, estimate_sale_price
from rentimmo.engine.irr import irr_as_decimal, solve_irr
from rentimmo.engine.proforma import run_projection
from rentimmo.engine.tax import build_tax_ledger, is_micro_eligible, recommended_regime
from rentimmo.models.investment import Investment
from rentimmo.models.results import FiscalRegime, TaxYearResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["analysis"])


def _build_investment(req: InvestmentRequest) -> Investment:
    """Convert the request body, rejecting an inverted project period."""
    if req.project_end < req.project_start:
        raise HTTPException(
            status_code=400,
            detail="project_end must not be before project_start",
        )
    return req.to_domain()


def _tax_year_to_response(result: TaxYearResult) -> TaxYearResponse:
    depreciation = None
    if result.depreciation is not None:
        depreciation = [
            DepreciationLineResponse.model_validate(line)
            for line in result.depreciation.lines.values()
        ]
    return TaxYearResponse(
        year=result.year,
        regime=result.regime,
        gross_revenue=result.gross_revenue,
        deductible_expenses=result.deductible_expenses,
        taxable_income=result.taxable_income,
        income_tax=result.income_tax,
        social_charges=result.social_charges,
        total_tax=result.total_tax,
        net_revenue=result.net_revenue,
        carried_deficit=result.carried_deficit,
        used_deficit=result.used_deficit,
        expired_deficit=result.expired_deficit,
        global_income_offset=result.global_income_offset,
        depreciation=depreciation,
    )


@router.post("/loan/schedule", response_model=ScheduleResponse)
async def loan_schedule_endpoint(req: LoanTermsRequest):
    """Month-by-month amortization schedule with yearly totals.

    Inconsistent terms (e.g. a partial deferral as long as the loan) give an
    empty schedule rather than an error.
    """
    schedule = amortization_schedule(req.to_domain())
    return ScheduleResponse(
        monthly_payment=schedule.monthly_payment,
        capitalized_interest=schedule.capitalized_interest,
        total_interest=schedule.total_interest,
        total_paid=schedule.total_paid,
        rows=[AmortizationRowResponse.model_validate(r) for r in schedule.rows],
        yearly=[YearlyDebtResponse.model_validate(y) for y in yearly_debt_summary(schedule)],
    )


@router.post("/tax/ledger", response_model=TaxLedgerResponse)
async def tax_ledger(req: TaxLedgerRequest):
    """Year-by-year tax under one regime, or all four."""
    investment = _build_investment(req.investment)
    schedule = loan_schedule(investment)
    regimes = [req.regime] if req.regime is not None else list(FiscalRegime)

    first_year = investment.acquisition_year
    return TaxLedgerResponse(
        ledgers={
            regime: [
                _tax_year_to_response(r)
                for r in build_tax_ledger(investment, regime, schedule)
            ]
            for regime in regimes
        },
        micro_eligible={
            regime: is_micro_eligible(investment, first_year, regime)
            for regime in FiscalRegime
        },
        recommended_regime=recommended_regime(investment, first_year, schedule=schedule),
    )


@router.post("/sale", response_model=SaleResponse)
async def sale(req: SaleRequest):
    """Capital-gains tax on a sale, for every regime."""
    investment = _build_investment(req.investment)
    price = req.gross_selling_price
    if price is None:
        price = estimate_sale_price(investment, req.selling_year)

    results = compute_sale(
        investment, req.selling_year, price, req.accumulated_depreciation
    )
    return SaleResponse(
        selling_year=req.selling_year,
        gross_selling_price=price,
        results={
            regime: CapitalGainResponse.model_validate(result)
            for regime, result in results.items()
        },
    )


@router.post("/irr", response_model=IRRResponse)
async def irr(req: IRRRequest):
    """IRR of an arbitrary cash-flow series.

    A series without both signs is answered with computable=false.
    """
    solution = solve_irr(req.cash_flows, initial_guess=req.initial_guess)
    return IRRResponse(
        rate=solution.rate,
        rate_pct=irr_as_decimal(solution) * 100,
        computable=solution.computable,
        converged=solution.converged,
        iterations=solution.iterations,
    )


@router.post("/projection", response_model=ProjectionResponse)
async def projection(req: ProjectionRequest):
    """Full (year, regime) projection with the best exit."""
    investment = _build_investment(req.investment)
    table = run_projection(investment)
    best = table.best_exit()
    logger.info(
        "Projection over %d years, best exit: %s",
        len(table.years),
        f"{best.regime.value} {best.year}" if best is not None else "none",
    )
    return ProjectionResponse(
        years=table.years,
        personal_contribution=investment.personal_contribution,
        rows=[ProjectionRowResponse.model_validate(r) for r in table.rows],
        best_exit=ProjectionRowResponse.model_validate(best) if best is not None else None,
    )
