"""Property disposition (sale) analysis under French capital-gains rules.

Private-individual regime (plus-value des particuliers) with holding-period
discounts, depreciation recapture for non-professional furnished lessors,
and the short/long-term split for professional furnished lessors (LMP).

Pure functions. No I/O.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import assert_never

from rentimmo.config import settings
from rentimmo.models.investment import AppreciationType, Investment
from rentimmo.models.results import CapitalGainResult, FiscalRegime

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")
ONE = Decimal("1")

# Holding-period discount schedule (years of detention)
DISCOUNT_START_YEAR = 5
INCOME_TAX_DISCOUNT_PER_YEAR = Decimal("0.06")  # Years 6 to 21
INCOME_TAX_EXEMPT_YEAR = 22
SOCIAL_DISCOUNT_PER_YEAR = Decimal("0.0165")  # Years 6 to 21
SOCIAL_DISCOUNT_YEAR_22 = Decimal("0.016")
SOCIAL_DISCOUNT_AFTER_22 = Decimal("0.09")  # Years 23 to 30
SOCIAL_EXEMPT_YEAR = 31

# Professional gains: all short-term when held two years or less
PROFESSIONAL_SHORT_TERM_YEARS = 2


def _clamp(fraction: Decimal) -> Decimal:
    return min(max(fraction, ZERO), ONE)


def income_tax_discount(holding_years: int) -> Decimal:
    """Income-tax discount: 6%/year from year 6 to 21, full exemption at 22."""
    if holding_years <= DISCOUNT_START_YEAR:
        return ZERO
    if holding_years >= INCOME_TAX_EXEMPT_YEAR:
        return ONE
    return _clamp((holding_years - DISCOUNT_START_YEAR) * INCOME_TAX_DISCOUNT_PER_YEAR)


def social_charges_discount(holding_years: int) -> Decimal:
    """Social-charges discount.

    1.65%/year from year 6 to 21, 1.60% for year 22, then 9%/year until
    full exemption at 30 years (reached, and kept, from year 31 on).
    """
    if holding_years <= DISCOUNT_START_YEAR:
        return ZERO
    if holding_years >= SOCIAL_EXEMPT_YEAR:
        return ONE

    capped = min(holding_years, INCOME_TAX_EXEMPT_YEAR - 1)
    discount = (capped - DISCOUNT_START_YEAR) * SOCIAL_DISCOUNT_PER_YEAR
    if holding_years >= INCOME_TAX_EXEMPT_YEAR:
        discount += SOCIAL_DISCOUNT_YEAR_22
    if holding_years > INCOME_TAX_EXEMPT_YEAR:
        discount += (holding_years - INCOME_TAX_EXEMPT_YEAR) * SOCIAL_DISCOUNT_AFTER_22
    return _clamp(discount)


def holding_years(investment: Investment, selling_year: int) -> int:
    return max(0, selling_year - investment.acquisition_year)


def estimate_sale_price(investment: Investment, selling_year: int) -> Decimal:
    """Gross selling price from the investment's appreciation assumption.

    annual: compound growth of the purchase price over the holding period.
    global: one percentage over the whole holding period.
    amount: the value itself is the selling price.
    """
    sale = investment.sale
    price = investment.purchase_price
    match sale.appreciation_type:
        case AppreciationType.ANNUAL:
            years = holding_years(investment, selling_year)
            estimate = price * (1 + sale.appreciation_value / 100) ** years
        case AppreciationType.GLOBAL:
            estimate = price * (1 + sale.appreciation_value / 100)
        case AppreciationType.AMOUNT:
            estimate = sale.appreciation_value
        case _:
            assert_never(sale.appreciation_type)
    return estimate.quantize(TWO_PLACES, ROUND_HALF_UP)


def _adjusted_cost(investment: Investment, regime: FiscalRegime) -> Decimal:
    """Purchase price + acquisition fees, plus improvement works when unfurnished."""
    cost = investment.purchase_price + investment.acquisition_fees
    if not regime.is_furnished:
        cost += investment.improvement_works
    return cost


def _private_gain_tax(result: CapitalGainResult) -> None:
    """Holding-period discounts, then flat income-tax and social-charges rates."""
    gain = result.gross_gain
    result.income_tax_base = (gain * (1 - result.income_tax_discount)).quantize(
        TWO_PLACES, ROUND_HALF_UP
    )
    result.social_charges_base = (gain * (1 - result.social_charges_discount)).quantize(
        TWO_PLACES, ROUND_HALF_UP
    )
    result.income_tax = (
        result.income_tax_base * settings.capital_gain_income_tax_rate
    ).quantize(TWO_PLACES, ROUND_HALF_UP)
    result.social_charges = (
        result.social_charges_base * settings.capital_gain_social_charges_rate
    ).quantize(TWO_PLACES, ROUND_HALF_UP)


def _professional_gain_tax(
    investment: Investment,
    result: CapitalGainResult,
    depreciation: Decimal,
) -> None:
    """LMP: depreciation (and the whole gain within two years) is short-term."""
    if result.holding_years <= PROFESSIONAL_SHORT_TERM_YEARS:
        short_term = result.gross_gain + depreciation
        long_term = ZERO
    else:
        short_term = depreciation
        long_term = result.gross_gain

    result.short_term_gain = short_term
    result.long_term_gain = long_term
    result.short_term_tax = (short_term * investment.tax.income_tax_rate).quantize(
        TWO_PLACES, ROUND_HALF_UP
    )
    result.long_term_income_tax = (
        long_term * settings.professional_long_term_income_tax_rate
    ).quantize(TWO_PLACES, ROUND_HALF_UP)
    result.long_term_social_charges = (
        long_term * settings.capital_gain_social_charges_rate
    ).quantize(TWO_PLACES, ROUND_HALF_UP)

    result.income_tax_base = short_term + long_term
    result.social_charges_base = long_term
    result.income_tax = result.short_term_tax + result.long_term_income_tax
    result.social_charges = result.long_term_social_charges


def compute_capital_gain(
    investment: Investment,
    regime: FiscalRegime,
    selling_year: int,
    gross_selling_price: Decimal,
    accumulated_depreciation: Decimal = ZERO,
) -> CapitalGainResult:
    """Capital-gains tax on a sale under one regime.

    Args:
        investment: The investment being sold
        regime: Fiscal regime the property was let under
        selling_year: Calendar year of the sale
        gross_selling_price: Price before the resale agency fee
        accumulated_depreciation: Depreciation deducted over the holding
            period; only reel-bic uses it
    """
    held = holding_years(investment, selling_year)
    net_price = gross_selling_price - investment.sale.agency_fee
    cost = _adjusted_cost(investment, regime)

    result = CapitalGainResult(
        regime=regime,
        selling_price=net_price,
        adjusted_cost=cost,
        holding_years=held,
        gross_gain=net_price - cost,
        income_tax_discount=income_tax_discount(held),
        social_charges_discount=social_charges_discount(held),
    )

    # Capital loss: nothing taxed
    if result.gross_gain <= 0:
        result.net_gain = result.gross_gain
        return result

    depreciation = accumulated_depreciation if regime is FiscalRegime.REEL_BIC else ZERO

    if regime.is_furnished and investment.is_professional_lessor:
        _professional_gain_tax(investment, result, depreciation)
        result.total_tax = result.income_tax + result.social_charges
    else:
        _private_gain_tax(result)
        if regime is FiscalRegime.REEL_BIC and depreciation > 0:
            result.depreciation_recapture = min(depreciation, result.gross_gain)
            result.depreciation_recapture_tax = (
                result.depreciation_recapture * investment.tax.income_tax_rate
            ).quantize(TWO_PLACES, ROUND_HALF_UP)
        result.total_tax = (
            result.income_tax + result.social_charges + result.depreciation_recapture_tax
        )

    result.net_gain = result.gross_gain - result.total_tax
    return result


def compute_sale(
    investment: Investment,
    selling_year: int,
    gross_selling_price: Decimal,
    accumulated_depreciation: Decimal | None = None,
) -> dict[FiscalRegime, CapitalGainResult]:
    """Capital-gains result for every regime.

    When `accumulated_depreciation` is None the investment's own figure is used.
    """
    if accumulated_depreciation is None:
        accumulated_depreciation = investment.accumulated_depreciation
    return {
        regime: compute_capital_gain(
            investment, regime, selling_year, gross_selling_price, accumulated_depreciation
        )
        for regime in FiscalRegime
    }
