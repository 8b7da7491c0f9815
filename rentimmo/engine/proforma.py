"""Projection orchestrator: composes the engine sub-modules into a
(year, regime) table of cash flows, sale outcomes and IRR.

Pure computation. No I/O. Investment in, ProjectionTable out.
"""

import logging
from decimal import Decimal

from rentimmo.engine.cashflow import annual_cash_flow_before_tax, loan_schedule
from rentimmo.engine.debt import remaining_balance_at
from rentimmo.engine.disposition import compute_capital_gain, estimate_sale_price
from rentimmo.engine.irr import compute_equity_multiple, irr_as_decimal, solve_irr
from rentimmo.engine.tax import build_tax_ledger, cumulative_depreciation
from rentimmo.models.investment import Investment
from rentimmo.models.loan import AmortizationSchedule
from rentimmo.models.results import FiscalRegime, ProjectionTable, YearRegimeProjection

logger = logging.getLogger(__name__)


def sale_balance(
    investment: Investment,
    gross_selling_price: Decimal,
    remaining_debt: Decimal,
) -> Decimal:
    """Cash left after selling and repaying the loan, before capital-gains tax.

    The early repayment fee only applies while debt remains.
    """
    balance = gross_selling_price - investment.sale.agency_fee - remaining_debt
    if remaining_debt > 0:
        balance -= investment.sale.early_repayment_fee
    return balance


def project_regime(
    investment: Investment,
    regime: FiscalRegime,
    schedule: AmortizationSchedule,
) -> list[YearRegimeProjection]:
    """Project every exit year of one regime."""
    ledger = build_tax_ledger(investment, regime, schedule)
    contribution = investment.personal_contribution

    rows: list[YearRegimeProjection] = []
    after_tax_flows: list[Decimal] = []
    cumulative_before = Decimal("0")
    cumulative_after = Decimal("0")
    cumulative_tax = Decimal("0")

    for index, tax_year in enumerate(ledger):
        year = tax_year.year
        before_tax = annual_cash_flow_before_tax(investment, year, regime, schedule)
        after_tax = before_tax - tax_year.total_tax
        cumulative_before += before_tax
        cumulative_after += after_tax
        cumulative_tax += tax_year.total_tax
        after_tax_flows.append(after_tax)

        # Selling at the end of this year
        price = estimate_sale_price(investment, year)
        debt = remaining_balance_at(schedule, year, investment.loan_amount)
        balance = sale_balance(investment, price, debt)

        depreciation = cumulative_depreciation(ledger[: index + 1])
        gain = compute_capital_gain(investment, regime, year, price, depreciation)

        flows = [-contribution, *after_tax_flows]
        flows[-1] += balance - gain.total_tax
        solution = solve_irr(flows)
        if not solution.converged:
            logger.debug("%s exit in %d: IRR unavailable or unconverged", regime.value, year)

        returned = cumulative_after + balance - gain.total_tax
        rows.append(YearRegimeProjection(
            year=year,
            regime=regime,
            annual_cash_flow_before_tax=before_tax,
            annual_cash_flow=after_tax,
            cumulative_cash_flow_before_tax=cumulative_before,
            cumulative_cash_flow=cumulative_after,
            cumulative_tax=cumulative_tax,
            sale_price=price,
            remaining_debt=debt,
            sale_balance=balance,
            capital_gain_tax=gain.total_tax,
            total_gain=returned - contribution,
            equity_multiple=compute_equity_multiple(returned, contribution),
            irr=irr_as_decimal(solution),
            irr_computable=solution.computable,
        ))

    return rows


def run_projection(
    investment: Investment,
    schedule: AmortizationSchedule | None = None,
) -> ProjectionTable:
    """Run the projection for every regime and exit year.

    Rows are ordered by regime (FiscalRegime declaration order), then year.
    """
    schedule = loan_schedule(investment, schedule)
    table = ProjectionTable(years=investment.years)
    for regime in FiscalRegime:
        table.rows.extend(project_regime(investment, regime, schedule))
    return table
