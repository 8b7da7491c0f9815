from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {
        "env_prefix": "RENTIMMO_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    # App
    debug: bool = False
    log_level: str = "INFO"

    # Rental income: micro regimes (flat allowance on gross revenue)
    micro_foncier_allowance: Decimal = Decimal("0.30")
    micro_bic_allowance: Decimal = Decimal("0.50")
    micro_foncier_threshold: Decimal = Decimal("15000")
    micro_bic_threshold: Decimal = Decimal("72600")

    # Rental income: defaults for the investor's tax parameters
    default_income_tax_rate_pct: Decimal = Decimal("30")  # Marginal rate (TMI)
    default_social_charges_rate_pct: Decimal = Decimal("17.2")
    default_deficit_limit: Decimal = Decimal("10700")  # Foncier deficit on global income

    # Capital gains on sale (plus-values immobilieres des particuliers)
    capital_gain_income_tax_rate: Decimal = Decimal("0.19")
    capital_gain_social_charges_rate: Decimal = Decimal("0.172")
    # Long-term professional gains (LMP)
    professional_long_term_income_tax_rate: Decimal = Decimal("0.128")

    # Sale simulation defaults
    default_annual_appreciation_pct: Decimal = Decimal("2")

    # IRR solver
    irr_initial_guess: float = 0.10
    irr_tolerance: float = 1e-7
    irr_max_iterations: int = 100


settings = Settings()
