"""Furnished-actual (reel-bic) depreciation: straight-line quotas per asset
class, capped at the year's result, with unused capacity rolled forward.

Pure functions. No I/O.
"""

from decimal import Decimal, ROUND_HALF_UP

from rentimmo.models.investment import AssetClass, Investment
from rentimmo.models.results import DepreciationBreakdown, DepreciationLine

TWO_PLACES = Decimal("0.01")

# Order in which depreciation is charged against the result
ALLOCATION_ORDER = (
    AssetClass.BUILDING,
    AssetClass.FURNITURE,
    AssetClass.WORKS,
    AssetClass.OTHER,
)


def annual_quota(investment: Investment, asset_class: AssetClass, year: int) -> Decimal:
    """Straight-line quota for one class, zero outside its useful life.

    The life starts in the acquisition year: an asset with a 5-year life is
    depreciated in years acq .. acq + 4.
    """
    asset = investment.tax.asset(asset_class)
    first = investment.acquisition_year
    last = first + asset.useful_life_years - 1
    if not first <= year <= last:
        return Decimal("0")
    return asset.annual_quota.quantize(TWO_PLACES, ROUND_HALF_UP)


def available_depreciation(
    investment: Investment,
    year: int,
    prior: DepreciationBreakdown | None = None,
) -> Decimal:
    """This year's quotas plus capacity carried from earlier years."""
    total = Decimal("0")
    for asset_class in ALLOCATION_ORDER:
        total += annual_quota(investment, asset_class, year)
        if prior is not None:
            total += prior.line(asset_class).unused_carry
    return total


def allocate_depreciation(
    investment: Investment,
    year: int,
    result_before_depreciation: Decimal,
    prior: DepreciationBreakdown | None = None,
) -> DepreciationBreakdown:
    """Charge depreciation against a result without creating a loss.

    Usage is capped at `result_before_depreciation` (floored at zero) and
    allocated in ALLOCATION_ORDER. Whatever a class cannot use stays in its
    `unused_carry` for the next year.
    """
    remaining = max(result_before_depreciation, Decimal("0"))
    lines: dict[AssetClass, DepreciationLine] = {}

    for asset_class in ALLOCATION_ORDER:
        quota = annual_quota(investment, asset_class, year)
        carried = Decimal("0")
        cumulative = Decimal("0")
        if prior is not None:
            carried = prior.line(asset_class).unused_carry
            cumulative = prior.line(asset_class).cumulative_used

        available = quota + carried
        used = min(available, remaining)
        remaining -= used

        lines[asset_class] = DepreciationLine(
            asset_class=asset_class,
            annual_quota=quota,
            used=used,
            cumulative_used=cumulative + used,
            unused_carry=available - used,
        )

    return DepreciationBreakdown(lines=lines)
