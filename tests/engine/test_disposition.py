import dataclasses
from datetime import date
from decimal import Decimal

import pytest

from rentimmo.engine.disposition import (
    compute_capital_gain,
    compute_sale,
    estimate_sale_price,
    holding_years,
    income_tax_discount,
    social_charges_discount,
)
from rentimmo.models.investment import AppreciationType, SaleParameters
from rentimmo.models.results import FiscalRegime


@pytest.fixture
def sale_investment(make_investment):
    """200K purchase, 20K fees, 10K improvement works, bought in 2024."""
    return make_investment(
        purchase_price=Decimal("200000"),
        agency_fees=Decimal("5000"),
        notary_fees=Decimal("15000"),
        improvement_works=Decimal("10000"),
    )


class TestDiscounts:
    @pytest.mark.parametrize("years", [0, 1, 5])
    def test_none_before_six_years(self, years):
        assert income_tax_discount(years) == Decimal("0")
        assert social_charges_discount(years) == Decimal("0")

    def test_sixth_year(self):
        assert income_tax_discount(6) == Decimal("0.06")
        assert social_charges_discount(6) == Decimal("0.0165")

    def test_twenty_first_year(self):
        assert income_tax_discount(21) == Decimal("0.96")
        assert social_charges_discount(21) == Decimal("0.264")

    def test_twenty_second_year(self):
        assert income_tax_discount(22) == Decimal("1")
        assert social_charges_discount(22) == Decimal("0.28")

    def test_social_after_twenty_two(self):
        assert social_charges_discount(23) == Decimal("0.37")
        assert social_charges_discount(30) == Decimal("1")

    @pytest.mark.parametrize("years", [31, 40])
    def test_full_exemption(self, years):
        assert income_tax_discount(years) == Decimal("1")
        assert social_charges_discount(years) == Decimal("1")

    def test_bounded(self):
        for years in range(0, 45):
            assert Decimal("0") <= income_tax_discount(years) <= Decimal("1")
            assert Decimal("0") <= social_charges_discount(years) <= Decimal("1")


class TestEstimateSalePrice:
    def test_annual_compound(self, sale_investment):
        investment = dataclasses.replace(sale_investment, sale=SaleParameters(
            appreciation_type=AppreciationType.ANNUAL, appreciation_value=Decimal("2"),
        ))
        assert estimate_sale_price(investment, 2034) == Decimal("243798.88")

    def test_global(self, make_investment):
        investment = make_investment(
            purchase_price=Decimal("200000"),
            sale=SaleParameters(
                appreciation_type=AppreciationType.GLOBAL, appreciation_value=Decimal("10"),
            ),
        )
        assert estimate_sale_price(investment, 2034) == Decimal("220000.00")

    def test_amount(self, make_investment):
        investment = make_investment(sale=SaleParameters(
            appreciation_type=AppreciationType.AMOUNT, appreciation_value=Decimal("250000"),
        ))
        assert estimate_sale_price(investment, 2030) == Decimal("250000.00")

    def test_sale_in_acquisition_year(self, make_investment):
        investment = make_investment(sale=SaleParameters(appreciation_value=Decimal("5")))
        assert estimate_sale_price(investment, 2024) == Decimal("100000.00")


class TestHoldingYears:
    def test_whole_years(self, sale_investment):
        assert holding_years(sale_investment, 2034) == 10

    def test_never_negative(self, sale_investment):
        assert holding_years(sale_investment, 2020) == 0


class TestUnfurnishedGain:
    def test_ten_year_sale(self, sale_investment):
        result = compute_capital_gain(
            sale_investment, FiscalRegime.REEL_FONCIER, 2034, Decimal("300000")
        )
        # Improvement works count in the unfurnished cost basis
        assert result.adjusted_cost == Decimal("230000")
        assert result.gross_gain == Decimal("70000")
        assert result.income_tax_discount == Decimal("0.30")
        assert result.social_charges_discount == Decimal("0.0825")
        assert result.income_tax_base == Decimal("49000.00")
        assert result.social_charges_base == Decimal("64225.00")
        assert result.income_tax == Decimal("9310.00")
        assert result.social_charges == Decimal("11046.70")
        assert result.total_tax == Decimal("20356.70")
        assert result.net_gain == Decimal("49643.30")

    def test_resale_agency_fee(self, make_investment):
        investment = make_investment(
            purchase_price=Decimal("200000"),
            sale=SaleParameters(agency_fee=Decimal("10000")),
        )
        result = compute_capital_gain(
            investment, FiscalRegime.MICRO_FONCIER, 2034, Decimal("300000")
        )
        assert result.selling_price == Decimal("290000")
        assert result.gross_gain == Decimal("90000")

    def test_exempt_after_thirty_years(self, sale_investment):
        result = compute_capital_gain(
            sale_investment, FiscalRegime.MICRO_FONCIER, 2054, Decimal("500000")
        )
        assert result.total_tax == Decimal("0.00")
        assert result.net_gain == result.gross_gain


class TestFurnishedNonProfessional:
    def test_micro_bic_excludes_works(self, sale_investment):
        result = compute_capital_gain(
            sale_investment, FiscalRegime.MICRO_BIC, 2034, Decimal("300000"),
            accumulated_depreciation=Decimal("30000"),
        )
        assert result.adjusted_cost == Decimal("220000")
        assert result.gross_gain == Decimal("80000")
        assert result.income_tax == Decimal("10640.00")
        assert result.social_charges == Decimal("12624.80")
        # No depreciation taken under micro-bic
        assert result.depreciation_recapture == Decimal("0")
        assert result.total_tax == Decimal("23264.80")

    def test_reel_bic_recapture(self, sale_investment):
        result = compute_capital_gain(
            sale_investment, FiscalRegime.REEL_BIC, 2034, Decimal("300000"),
            accumulated_depreciation=Decimal("30000"),
        )
        assert result.depreciation_recapture == Decimal("30000")
        assert result.depreciation_recapture_tax == Decimal("9000.00")
        assert result.total_tax == Decimal("32264.80")
        assert result.net_gain == Decimal("47735.20")

    def test_recapture_capped_at_gain(self, sale_investment):
        result = compute_capital_gain(
            sale_investment, FiscalRegime.REEL_BIC, 2034, Decimal("230000"),
            accumulated_depreciation=Decimal("30000"),
        )
        assert result.gross_gain == Decimal("10000")
        assert result.depreciation_recapture == Decimal("10000")


class TestFurnishedProfessional:
    @pytest.fixture
    def lmp_investment(self, sale_investment):
        return dataclasses.replace(sale_investment, is_professional_lessor=True)

    def test_long_holding_split(self, lmp_investment):
        result = compute_capital_gain(
            lmp_investment, FiscalRegime.REEL_BIC, 2034, Decimal("300000"),
            accumulated_depreciation=Decimal("30000"),
        )
        assert result.short_term_gain == Decimal("30000")
        assert result.long_term_gain == Decimal("80000")
        assert result.short_term_tax == Decimal("9000.00")
        assert result.long_term_income_tax == Decimal("10240.00")
        assert result.long_term_social_charges == Decimal("13760.00")
        assert result.total_tax == Decimal("33000.00")
        assert result.net_gain == Decimal("47000.00")

    def test_short_holding_all_short_term(self, lmp_investment):
        result = compute_capital_gain(
            lmp_investment, FiscalRegime.REEL_BIC, 2026, Decimal("300000"),
            accumulated_depreciation=Decimal("30000"),
        )
        assert result.holding_years == 2
        assert result.short_term_gain == Decimal("110000")
        assert result.long_term_gain == Decimal("0")
        assert result.total_tax == Decimal("33000.00")

    def test_micro_bic_professional(self, lmp_investment):
        result = compute_capital_gain(
            lmp_investment, FiscalRegime.MICRO_BIC, 2034, Decimal("300000"),
            accumulated_depreciation=Decimal("30000"),
        )
        assert result.short_term_gain == Decimal("0")
        assert result.total_tax == Decimal("24000.00")

    def test_unfurnished_unaffected(self, lmp_investment):
        result = compute_capital_gain(
            lmp_investment, FiscalRegime.REEL_FONCIER, 2034, Decimal("300000")
        )
        assert result.short_term_gain == Decimal("0")
        assert result.total_tax == Decimal("20356.70")


class TestComputeSale:
    def test_all_regimes(self, sale_investment):
        results = compute_sale(sale_investment, 2034, Decimal("300000"))
        assert set(results) == set(FiscalRegime)

    @pytest.mark.parametrize("price", ["200000", "150000"])
    def test_capital_loss_not_taxed(self, sale_investment, price):
        results = compute_sale(sale_investment, 2034, Decimal(price), Decimal("30000"))
        for result in results.values():
            assert result.gross_gain <= 0
            assert result.total_tax == Decimal("0")
            assert result.net_gain == result.gross_gain

    def test_default_depreciation_from_investment(self, make_investment):
        investment = make_investment(
            purchase_price=Decimal("200000"),
            accumulated_depreciation=Decimal("20000"),
            project_start=date(2024, 1, 1),
        )
        results = compute_sale(investment, 2034, Decimal("300000"))
        assert results[FiscalRegime.REEL_BIC].depreciation_recapture == Decimal("20000")
