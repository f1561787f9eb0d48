"""
Reward accrual arithmetic.

Rewards are simple (non-compounding) interest on the staked amount:

    reward = staked * interest_rate * elapsed_seconds // (SECONDS_PER_YEAR * 100)

All values are integers in the asset's smallest unit. Intermediate results are
checked against the 256-bit unsigned ceiling so that a host backed by a
fixed-width ledger never sees a value it cannot store.
"""

from staking.errors import ArithmeticOverflow, InvalidAmount

SECONDS_PER_YEAR = 365 * 24 * 3600
PERCENT_DENOMINATOR = 100

MAX_UINT256 = 2**256 - 1


def _require_uint(value: int, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"{name} must be an integer", **{name: repr(value)})
    if value < 0:
        raise InvalidAmount(f"{name} must be non-negative", **{name: value})
    if value > MAX_UINT256:
        raise ArithmeticOverflow(f"{name} exceeds uint256", **{name: value})


def checked_add(a: int, b: int) -> int:
    """Add two uint256 values, raising ArithmeticOverflow past the ceiling."""
    result = a + b
    if result > MAX_UINT256:
        raise ArithmeticOverflow("Addition overflow", a=a, b=b)
    return result


def checked_sub(a: int, b: int) -> int:
    """Subtract two uint256 values, raising ArithmeticOverflow below zero."""
    if b > a:
        raise ArithmeticOverflow("Subtraction underflow", a=a, b=b)
    return a - b


def checked_mul(a: int, b: int) -> int:
    """Multiply two uint256 values, raising ArithmeticOverflow past the ceiling."""
    result = a * b
    if result > MAX_UINT256:
        raise ArithmeticOverflow("Multiplication overflow", a=a, b=b)
    return result


def elapsed_since(last_accrual_time: int, now: int) -> int:
    """Seconds since the last settlement, clamped at zero for clock skew."""
    return max(0, now - last_accrual_time)


def calculate_rewards(staked: int, interest_rate: int, elapsed_seconds: int) -> int:
    """
    Compute the reward owed for ``elapsed_seconds`` of staking.

    Args:
        staked: Amount currently staked
        interest_rate: Annual rate in whole percent
        elapsed_seconds: Time since the last settlement (negative is treated as zero)

    Returns:
        Reward amount, floored to an integer

    Raises:
        InvalidAmount: If staked or interest_rate is negative or not an integer
        ArithmeticOverflow: If an intermediate product leaves the uint256 range
    """
    _require_uint(staked, "staked")
    _require_uint(interest_rate, "interest_rate")

    if isinstance(elapsed_seconds, bool) or not isinstance(elapsed_seconds, int):
        raise InvalidAmount("elapsed_seconds must be an integer")
    if elapsed_seconds <= 0 or staked == 0 or interest_rate == 0:
        return 0

    numerator = checked_mul(checked_mul(staked, interest_rate), elapsed_seconds)
    return numerator // (SECONDS_PER_YEAR * PERCENT_DENOMINATOR)
