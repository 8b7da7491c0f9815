"""IRR computation by Newton-Raphson on the NPV function.

Pure functions. No I/O.
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from rentimmo.config import settings

logger = logging.getLogger(__name__)

FOUR_PLACES = Decimal("0.0001")

# Newton iterates must stay in this rate domain
MIN_RATE = -0.99
MAX_RATE = 10.0
MIN_DERIVATIVE = 1e-10


@dataclass(frozen=True)
class IRRSolution:
    rate: float
    computable: bool
    converged: bool = False
    iterations: int = 0


def npv(cash_flows: Sequence[float], rate: float) -> float:
    """Sum of cf_t / (1 + rate)^t, t starting at 0."""
    v = 1.0 / (1.0 + rate)
    discount = 1.0
    total = 0.0
    for cf in cash_flows:
        total += cf * discount
        discount *= v
    return total


def npv_derivative(cash_flows: Sequence[float], rate: float) -> float:
    """d(NPV)/d(rate) = sum of -t * cf_t / (1 + rate)^(t+1)."""
    v = 1.0 / (1.0 + rate)
    discount = v
    total = 0.0
    for t, cf in enumerate(cash_flows):
        total -= t * cf * discount
        discount *= v
    return total


def _is_solvable(flows: list[float]) -> bool:
    if len(flows) < 2:
        return False
    if not all(math.isfinite(cf) for cf in flows):
        return False
    return any(cf > 0 for cf in flows) and any(cf < 0 for cf in flows)


def _perturb(guess: float) -> float:
    """New guess after a vanishing derivative, always inside the rate domain.

    Positive guesses double (capped at MAX_RATE), negative ones halve toward
    zero, and zero becomes 0.1.
    """
    if guess > 0:
        return min(guess * 2, MAX_RATE)
    if guess < 0:
        return guess / 2
    return 0.1


def solve_irr(
    cash_flows: Sequence[float | Decimal],
    initial_guess: float | None = None,
    tolerance: float | None = None,
    max_iterations: int | None = None,
) -> IRRSolution:
    """Solve NPV(rate) = 0 with Newton-Raphson.

    cash_flows[0] is usually the (negative) initial outlay. Without both a
    positive and a negative flow there is no IRR and the result is marked
    not computable.

    When the derivative vanishes the guess is moved away from the flat spot
    (see _perturb) and iteration restarts from it; when a step leaves the
    rate domain the guess is halved instead.
    After max_iterations the last estimate is returned, unconverged.
    """
    guess = settings.irr_initial_guess if initial_guess is None else initial_guess
    tolerance = settings.irr_tolerance if tolerance is None else tolerance
    max_iterations = settings.irr_max_iterations if max_iterations is None else max_iterations

    flows = [float(cf) for cf in cash_flows]
    if not _is_solvable(flows):
        logger.warning("IRR not computable for cash flows %s", flows)
        return IRRSolution(rate=0.0, computable=False)

    if not (math.isfinite(guess) and MIN_RATE < guess <= MAX_RATE):
        guess = 0.1
    rate = guess

    for iteration in range(1, max_iterations + 1):
        value = npv(flows, rate)
        if abs(value) < tolerance:
            return IRRSolution(rate=rate, computable=True, converged=True, iterations=iteration)

        derivative = npv_derivative(flows, rate)
        if not math.isfinite(derivative) or abs(derivative) < MIN_DERIVATIVE:
            guess = _perturb(guess)
            rate = guess
            continue

        new_rate = rate - value / derivative
        if not math.isfinite(new_rate) or not MIN_RATE < new_rate <= MAX_RATE:
            guess /= 2
            rate = guess
            continue

        if abs(new_rate - rate) < tolerance:
            return IRRSolution(
                rate=new_rate, computable=True, converged=True, iterations=iteration
            )
        rate = new_rate

    logger.warning(
        "IRR did not converge after %d iterations, last estimate %.6f",
        max_iterations, rate,
    )
    return IRRSolution(rate=rate, computable=True, converged=False, iterations=max_iterations)


def irr_as_decimal(solution: IRRSolution) -> Decimal:
    """Rate as a Decimal fraction, four places; 0 when not computable."""
    if not solution.computable:
        return Decimal("0")
    return Decimal(str(solution.rate)).quantize(FOUR_PLACES, ROUND_HALF_UP)


def compute_irr(cash_flows: list[Decimal]) -> Decimal:
    """Compute IRR from a vector of annual cash flows.

    cash_flows[0] should be negative (initial investment).
    cash_flows[-1] should include sale proceeds.
    Returns 0 when no IRR exists.
    """
    return irr_as_decimal(solve_irr(cash_flows))


def compute_equity_multiple(
    total_cash_returned: Decimal, total_cash_invested: Decimal
) -> Decimal:
    """Equity multiple = total cash out / total cash in."""
    if total_cash_invested == 0:
        return Decimal("0")
    return (total_cash_returned / total_cash_invested).quantize(FOUR_PLACES, ROUND_HALF_UP)
