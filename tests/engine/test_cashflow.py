from decimal import Decimal

import pytest

from rentimmo.engine.cashflow import (
    annual_cash_flow_before_tax,
    gross_yield,
    loan_schedule,
    loan_service,
    project_yearly_expenses,
    record_for,
    regime_revenue,
)
from rentimmo.engine.debt import amortization_schedule, debt_for_year
from rentimmo.models.investment import YearlyExpenseRecord
from rentimmo.models.results import FiscalRegime


class TestRegimeRevenue:
    def test_unfurnished_sources(self):
        record = YearlyExpenseRecord(
            year=2024,
            rent=Decimal("9600"),
            furnished_rent=Decimal("12000"),
            tenant_charges=Decimal("600"),
            tax_benefit=Decimal("400"),
        )
        assert regime_revenue(record, FiscalRegime.MICRO_FONCIER) == Decimal("10600.00")
        assert regime_revenue(record, FiscalRegime.REEL_FONCIER) == Decimal("10600.00")

    def test_furnished_sources(self):
        record = YearlyExpenseRecord(
            year=2024,
            rent=Decimal("9600"),
            furnished_rent=Decimal("12000"),
            tenant_charges=Decimal("600"),
            tax_benefit=Decimal("400"),
        )
        assert regime_revenue(record, FiscalRegime.MICRO_BIC) == Decimal("12600.00")
        assert regime_revenue(record, FiscalRegime.REEL_BIC) == Decimal("12600.00")

    def test_vacancy(self):
        record = YearlyExpenseRecord(
            year=2024, rent=Decimal("10000"), tenant_charges=Decimal("500")
        )
        revenue = regime_revenue(record, FiscalRegime.REEL_FONCIER, Decimal("10"))
        assert revenue == Decimal("9450.00")


class TestRecords:
    def test_missing_record_is_zero(self, make_investment):
        record = record_for(make_investment(), 2030)
        assert record.year == 2030
        assert record.rent == Decimal("0")
        assert record.operating_expenses == Decimal("0")

    def test_expense_totals(self):
        record = YearlyExpenseRecord(
            year=2024,
            property_tax=Decimal("900"),
            condo_fees=Decimal("800"),
            property_insurance=Decimal("200"),
            management_fees=Decimal("500"),
            unpaid_rent_insurance=Decimal("100"),
            repairs=Decimal("300"),
            other_deductible=Decimal("50"),
            other_non_deductible=Decimal("150"),
        )
        assert record.deductible_expenses == Decimal("2850")
        assert record.operating_expenses == Decimal("3000")


class TestLoanService:
    def test_from_schedule(self, canonical_investment):
        schedule = amortization_schedule(canonical_investment.loan)
        service = loan_service(canonical_investment, 2024, schedule)
        debt = debt_for_year(schedule, 2024)
        assert service.payment == debt.payments
        assert service.insurance == Decimal("600.00")
        assert service.interest == debt.interest

    def test_record_overrides_schedule(self, make_investment, canonical_loan):
        investment = make_investment(
            records={2024: {"loan_payment": Decimal("12000"), "loan_insurance": Decimal("300")}},
            loan=canonical_loan,
        )
        service = loan_service(investment, 2024)
        assert service.payment == Decimal("12000")
        assert service.insurance == Decimal("300")
        # Interest always from the schedule
        assert service.interest == debt_for_year(amortization_schedule(canonical_loan), 2024).interest

    def test_no_loan(self, make_investment):
        investment = make_investment()
        assert loan_schedule(investment).is_empty
        service = loan_service(investment, 2024)
        assert service.total == Decimal("0")
        assert service.interest == Decimal("0")


class TestAnnualCashFlow:
    def test_cash_only(self, make_investment):
        investment = make_investment(records={2024: {
            "rent": Decimal("10000"),
            "property_tax": Decimal("1000"),
            "repairs": Decimal("1000"),
            "other_non_deductible": Decimal("150"),
        }})
        cf = annual_cash_flow_before_tax(investment, 2024, FiscalRegime.MICRO_FONCIER)
        assert cf == Decimal("7850.00")

    def test_loan_service_deducted(self, canonical_investment):
        service = loan_service(canonical_investment, 2024)
        cf = annual_cash_flow_before_tax(canonical_investment, 2024, FiscalRegime.MICRO_BIC)
        # 12600 revenue - 2850 expenses
        assert cf == Decimal("9750.00") - service.payment - service.insurance


class TestGrossYield:
    def test_basic(self, make_investment):
        investment = make_investment(records={2024: {"rent": Decimal("10000")}})
        assert gross_yield(investment, 2024, FiscalRegime.REEL_FONCIER) == Decimal("10.0000")

    def test_zero_base(self, make_investment):
        investment = make_investment(purchase_price=Decimal("0"))
        assert gross_yield(investment, 2024, FiscalRegime.REEL_FONCIER) == Decimal("0")


class TestProjectYearlyExpenses:
    def test_compound_growth(self):
        base = YearlyExpenseRecord(year=2024, rent=Decimal("10000"), repairs=Decimal("500"))
        records = project_yearly_expenses(base, 2026, {"rent": Decimal("2")})
        assert [r.year for r in records] == [2024, 2025, 2026]
        assert [r.rent for r in records] == [
            Decimal("10000.00"), Decimal("10200.00"), Decimal("10404.00"),
        ]
        assert all(r.repairs == Decimal("500.00") for r in records)

    def test_deficit_and_loan_only_in_base_year(self):
        base = YearlyExpenseRecord(
            year=2024, deficit=Decimal("3000"), loan_payment=Decimal("11000")
        )
        records = project_yearly_expenses(base, 2025, {})
        assert records[0].deficit == Decimal("3000")
        assert records[0].loan_payment == Decimal("11000")
        assert records[1].deficit == Decimal("0")
        assert records[1].loan_payment is None

    def test_unknown_field(self):
        base = YearlyExpenseRecord(year=2024)
        with pytest.raises(ValueError):
            project_yearly_expenses(base, 2025, {"loan_payment": Decimal("1")})
