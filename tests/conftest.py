"""Canonical test fixtures used across all engine tests.

Fixture: 200K EUR apartment bought January 2024, 200K loan at 1.5% over
20 years, ten-year project (2024-2033).
Investor: 30% marginal rate, 17.2% social charges.
"""

import dataclasses
from datetime import date
from decimal import Decimal

import pytest

from rentimmo.models.investment import (
    AssetClass,
    DepreciableAsset,
    Investment,
    SaleParameters,
    TaxParameters,
    YearlyExpenseRecord,
)
from rentimmo.models.loan import LoanTerms


@pytest.fixture
def canonical_loan() -> LoanTerms:
    """200K at 1.5% over 20 years, no deferral."""
    return LoanTerms(
        principal=Decimal("200000"),
        annual_rate_pct=Decimal("1.5"),
        term_years=20,
        start_date=date(2024, 1, 1),
    )


@pytest.fixture
def canonical_records() -> tuple[YearlyExpenseRecord, ...]:
    """Same rent and charges every year of the project."""
    return tuple(
        YearlyExpenseRecord(
            year=year,
            rent=Decimal("9600"),
            furnished_rent=Decimal("12000"),
            tenant_charges=Decimal("600"),
            property_tax=Decimal("900"),
            condo_fees=Decimal("800"),
            property_insurance=Decimal("200"),
            management_fees=Decimal("500"),
            repairs=Decimal("300"),
            other_non_deductible=Decimal("150"),
        )
        for year in range(2024, 2034)
    )


@pytest.fixture
def canonical_investment(canonical_loan, canonical_records) -> Investment:
    """Financed apartment with furnished depreciation basis."""
    return Investment(
        project_start=date(2024, 1, 1),
        project_end=date(2033, 12, 31),
        purchase_price=Decimal("200000"),
        agency_fees=Decimal("5000"),
        notary_fees=Decimal("15000"),
        bank_fees=Decimal("1000"),
        bank_guarantee_fees=Decimal("2000"),
        renovation_costs=Decimal("10000"),
        improvement_works=Decimal("5000"),
        loan=dataclasses.replace(canonical_loan, insurance_rate_pct=Decimal("0.30")),
        expenses=canonical_records,
        tax=TaxParameters(
            assets={
                AssetClass.BUILDING: DepreciableAsset(Decimal("150000"), 25),
                AssetClass.FURNITURE: DepreciableAsset(Decimal("10000"), 5),
                AssetClass.WORKS: DepreciableAsset(Decimal("10000"), 10),
                AssetClass.OTHER: DepreciableAsset(Decimal("0"), 5),
            },
        ),
        sale=SaleParameters(appreciation_value=Decimal("2")),
    )


@pytest.fixture
def make_investment():
    """Factory for small cash-only investments starting in 2024.

    `records` maps year -> YearlyExpenseRecord keyword arguments.
    """
    def _make(records: dict[int, dict] | None = None, **overrides) -> Investment:
        expenses = tuple(
            YearlyExpenseRecord(year=year, **fields)
            for year, fields in (records or {}).items()
        )
        kwargs = dict(
            project_start=date(2024, 1, 1),
            project_end=date(2024, 12, 31),
            purchase_price=Decimal("100000"),
            expenses=expenses,
            sale=SaleParameters(appreciation_value=Decimal("0")),
        )
        kwargs.update(overrides)
        return Investment(**kwargs)

    return _make
