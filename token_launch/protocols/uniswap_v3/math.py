"""
Math utilities for Uniswap V3 price ranges.

Converts human price ranges ("quote per base") into the pool-native
representations: Q64.96 square-root prices and spacing-aligned ticks.
Every function here is pure and raises DomainError on bad input.
"""

import math
import warnings
from decimal import ROUND_FLOOR, Decimal, InvalidOperation, localcontext
from fractions import Fraction

from ...core.exceptions import DomainError, PrecisionWarning
from .types import TickRange

Q96 = 2 ** 96
Q192 = 2 ** 192

MIN_TICK = -887272
MAX_TICK = 887272
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342

TICK_BASE = Decimal("1.0001")

# Doubles hold ~15-16 significant digits; outside this band the float
# fast paths are not trusted.
FLOAT_SAFE_MIN = 1e-15
FLOAT_SAFE_MAX = 1e15
TICK_BOUNDARY_EPSILON = 1e-9

_LOG_PRECISION = 60


def _to_decimal(price):
    """Parse a price into a positive, finite Decimal"""
    if isinstance(price, bool):
        raise DomainError(f"Price must be a number, got {price!r}")
    try:
        if isinstance(price, float):
            value = Decimal(repr(price))
        else:
            value = Decimal(price)
    except (InvalidOperation, TypeError, ValueError):
        raise DomainError(f"Price is not a number: {price!r}")

    if not value.is_finite():
        raise DomainError(f"Price must be finite, got {price!r}")
    if value <= 0:
        raise DomainError(f"Price must be positive, got {price!r}")
    return value


def validate_tick(tick):
    """Raise DomainError unless tick lies inside the global tick range"""
    if not MIN_TICK <= tick <= MAX_TICK:
        raise DomainError(f"Tick {tick} outside [{MIN_TICK}, {MAX_TICK}]")
    return tick


def _validate_spacing(spacing):
    if isinstance(spacing, bool) or not isinstance(spacing, int) or spacing <= 0:
        raise DomainError(f"Tick spacing must be a positive integer, got {spacing!r}")
    return spacing


def float_precision_ok(price):
    """
    Check whether float log/sqrt can be trusted for this price.

    Returns False when the price is outside the safe band or when the float
    log ratio lands so close to an integer that floor() could flip.
    """
    value = float(_to_decimal(price))
    if not FLOAT_SAFE_MIN <= value <= FLOAT_SAFE_MAX:
        return False

    ratio = math.log(value) / math.log(1.0001)
    return abs(ratio - round(ratio)) > TICK_BOUNDARY_EPSILON


def _warn_precision(price, what):
    warnings.warn(
        f"Float {what} for price {price!r} may be inaccurate; using exact math",
        PrecisionWarning,
        stacklevel=3,
    )


def price_to_sqrt_price_x96(price, exact=True):
    """
    Convert price (token1/token0) to sqrtPriceX96.

    Args:
        price: Raw pool price as token1/token0
        exact: Use integer square root (default). The float path is faster
            but falls back to exact math when precision is in doubt.

    Returns:
        floor(sqrt(price) * 2^96)
    """
    value = _to_decimal(price)

    if not exact:
        if float_precision_ok(value):
            result = int(math.sqrt(float(value)) * Q96)
            return _validate_sqrt_price(result, price)
        _warn_precision(price, "sqrt")

    # floor(sqrt(x)) == isqrt(floor(x)) for x >= 0
    fraction = Fraction(value)
    scaled = (fraction.numerator * Q192) // fraction.denominator
    return _validate_sqrt_price(math.isqrt(scaled), price)


def _validate_sqrt_price(sqrt_price_x96, price):
    if not MIN_SQRT_RATIO <= sqrt_price_x96 < MAX_SQRT_RATIO:
        raise DomainError(
            f"sqrtPriceX96 for price {price!r} outside the supported range"
        )
    return sqrt_price_x96


def price_to_tick(price, exact=True):
    """
    Convert price (token1/token0) to tick.

    Returns the largest tick t with 1.0001^t <= price.

    Args:
        price: Raw pool price as token1/token0
        exact: Use high-precision Decimal logarithm (default)

    Returns:
        Tick value (not rounded to spacing)
    """
    value = _to_decimal(price)

    if not exact:
        if float_precision_ok(value):
            tick = math.floor(math.log(float(value)) / math.log(1.0001))
            return validate_tick(tick)
        _warn_precision(price, "log")

    with localcontext() as ctx:
        ctx.prec = _LOG_PRECISION
        tick = int((value.ln() / TICK_BASE.ln()).to_integral_value(rounding=ROUND_FLOOR))

        # Rule out a one-off from the last digit of the logarithm
        if tick > MAX_TICK or tick < MIN_TICK - 1:
            raise DomainError(f"Price {price!r} maps outside the tick range")
        while TICK_BASE ** (tick + 1) <= value:
            tick += 1
        while TICK_BASE ** tick > value:
            tick -= 1

    return validate_tick(tick)


def tick_to_price(tick, decimals0=18, decimals1=18):
    """
    Convert tick to human-readable price.

    Args:
        tick: Uniswap V3 tick value
        decimals0: Token0 decimals
        decimals1: Token1 decimals

    Returns:
        Price as token1/token0
    """
    return (1.0001 ** tick) * (10 ** decimals0) / (10 ** decimals1)


def sqrt_price_x96_to_price(sqrt_price_x96, decimals0=18, decimals1=18):
    """Convert sqrtPriceX96 to human-readable price"""
    price = (sqrt_price_x96 / Q96) ** 2
    return price * (10 ** decimals0) / (10 ** decimals1)


def nearest_usable_tick(tick, spacing):
    """
    Round tick to the nearest multiple of spacing.

    Ties round half away from zero, the same way for both signs.
    The result is not clamped; check it with validate_usable_tick().

    Args:
        tick: Raw tick value
        spacing: Tick spacing for fee tier

    Returns:
        Tick aligned to spacing
    """
    _validate_spacing(spacing)
    quotient, remainder = divmod(abs(tick), spacing)
    if 2 * remainder >= spacing:
        quotient += 1
    aligned = quotient * spacing
    return aligned if tick >= 0 else -aligned


def min_usable_tick(spacing):
    """Smallest tick aligned to spacing inside the global range"""
    _validate_spacing(spacing)
    return -(MAX_TICK // spacing) * spacing


def max_usable_tick(spacing):
    """Largest tick aligned to spacing inside the global range"""
    _validate_spacing(spacing)
    return (MAX_TICK // spacing) * spacing


def validate_usable_tick(tick, spacing):
    """Raise DomainError unless tick is aligned and within usable bounds"""
    _validate_spacing(spacing)
    if tick % spacing != 0:
        raise DomainError(f"Tick {tick} is not a multiple of spacing {spacing}")
    if not min_usable_tick(spacing) <= tick <= max_usable_tick(spacing):
        raise DomainError(
            f"Tick {tick} outside usable range "
            f"[{min_usable_tick(spacing)}, {max_usable_tick(spacing)}]"
        )
    return tick


def sort_tokens(token_a, token_b):
    """
    Order two token addresses the way the factory does.

    Returns:
        (token0, token1) with token0 < token1 numerically
    """
    a, b = int(token_a, 16), int(token_b, 16)
    if a == b:
        raise DomainError(f"Tokens must differ: {token_a}")
    return (token_a, token_b) if a < b else (token_b, token_a)


def is_token0(token, other):
    """True when token sorts first in the pair"""
    return sort_tokens(token, other)[0] == token


def to_pool_price(price, base_is_token0, decimals_base=18, decimals_quote=18):
    """
    Convert a human "quote per base" price into the raw token1/token0 ratio.

    Args:
        price: Quote units per one base unit (human readable)
        base_is_token0: Whether the base token is token0
        decimals_base: Base token decimals
        decimals_quote: Quote token decimals

    Returns:
        Decimal raw pool price
    """
    value = _to_decimal(price)
    with localcontext() as ctx:
        ctx.prec = _LOG_PRECISION
        # raw quote per raw base
        raw = value * (Decimal(10) ** decimals_quote) / (Decimal(10) ** decimals_base)
        return raw if base_is_token0 else 1 / raw


def resolve_start_price(policy, price_lower, price_upper):
    """
    Pick the initial pool price from an explicit policy.

    Args:
        policy: "lower", "upper", or an explicit positive price
        price_lower: Bottom of the desired range (quote per base)
        price_upper: Top of the desired range (quote per base)

    Returns:
        Start price (quote per base)
    """
    if isinstance(policy, str):
        key = policy.strip().lower()
        if key == "lower":
            return _to_decimal(price_lower)
        if key == "upper":
            return _to_decimal(price_upper)
    return _to_decimal(policy)


def derive_tick_range(price_lower, price_upper, tick_spacing, base_is_token0,
                      decimals_base=18, decimals_quote=18):
    """
    Derive spacing-aligned ticks bounding a human price range.

    The pool always prices token1 in token0, so the range flips when the
    base token is token1.

    Args:
        price_lower: Lower price, quote per base
        price_upper: Upper price, quote per base
        tick_spacing: Pool tick spacing
        base_is_token0: Whether the base token is token0
        decimals_base: Base token decimals
        decimals_quote: Quote token decimals

    Returns:
        (tick_lower, tick_upper)
    """
    _validate_spacing(tick_spacing)
    if _to_decimal(price_lower) >= _to_decimal(price_upper):
        raise DomainError(
            f"price_lower ({price_lower}) must be below price_upper ({price_upper})"
        )

    pool_lower = to_pool_price(price_lower, base_is_token0, decimals_base, decimals_quote)
    pool_upper = to_pool_price(price_upper, base_is_token0, decimals_base, decimals_quote)
    if not base_is_token0:
        pool_lower, pool_upper = pool_upper, pool_lower

    tick_lower = nearest_usable_tick(price_to_tick(pool_lower), tick_spacing)
    tick_upper = nearest_usable_tick(price_to_tick(pool_upper), tick_spacing)
    validate_usable_tick(tick_lower, tick_spacing)
    validate_usable_tick(tick_upper, tick_spacing)

    if tick_lower >= tick_upper:
        raise DomainError(
            f"Price range collapses to an empty tick range at spacing {tick_spacing}: "
            f"{tick_lower} >= {tick_upper}"
        )
    return tick_lower, tick_upper


def compute_single_sided_range(price_lower, price_upper, current_price, tick_spacing,
                               base_is_token0, decimals_base=18, decimals_quote=18):
    """
    Boundary ticks plus initial sqrt price for a new position.

    Only derives values. Whether the current tick sits outside the range is
    left to clamp_single_sided().

    Returns:
        TickRange
    """
    tick_lower, tick_upper = derive_tick_range(
        price_lower, price_upper, tick_spacing, base_is_token0,
        decimals_base, decimals_quote,
    )
    pool_price = to_pool_price(current_price, base_is_token0, decimals_base, decimals_quote)

    return TickRange(
        tick_lower=tick_lower,
        tick_upper=tick_upper,
        sqrt_price_x96=price_to_sqrt_price_x96(pool_price),
        current_tick=price_to_tick(pool_price),
    )


def is_single_sided(tick_lower, tick_upper, current_tick, base_is_token0):
    """
    Whether a fresh position would hold only the base token.

    token0-only needs current < lower; token1-only needs current >= upper.
    """
    if base_is_token0:
        return current_tick < tick_lower
    return current_tick >= tick_upper


def clamp_single_sided(tick_range, current_tick, tick_spacing, base_is_token0):
    """
    Move the boundary nearest the current price to its far side.

    Args:
        tick_range: TickRange or (tick_lower, tick_upper)
        current_tick: Current (or initial) pool tick
        tick_spacing: Pool tick spacing
        base_is_token0: Whether the supplied asset is token0

    Returns:
        TickRange with the single-sided condition satisfied
    """
    _validate_spacing(tick_spacing)
    if isinstance(tick_range, TickRange):
        tick_lower, tick_upper = tick_range.tick_lower, tick_range.tick_upper
        sqrt_price_x96 = tick_range.sqrt_price_x96
    else:
        tick_lower, tick_upper = tick_range
        sqrt_price_x96 = None

    if not is_single_sided(tick_lower, tick_upper, current_tick, base_is_token0):
        if base_is_token0:
            tick_lower = (current_tick // tick_spacing + 1) * tick_spacing
        else:
            tick_upper = (current_tick // tick_spacing) * tick_spacing

    validate_usable_tick(tick_lower, tick_spacing)
    validate_usable_tick(tick_upper, tick_spacing)
    if tick_lower >= tick_upper:
        raise DomainError(
            f"No single-sided range left: current tick {current_tick} is past "
            f"the far boundary ({tick_lower}, {tick_upper})"
        )

    return TickRange(
        tick_lower=tick_lower,
        tick_upper=tick_upper,
        sqrt_price_x96=sqrt_price_x96,
        current_tick=current_tick,
    )


def plan_single_sided_position(price_lower, price_upper, current_price, tick_spacing,
                               base_is_token0, decimals_base=18, decimals_quote=18):
    """Derive the range, then clamp it so the position starts single-sided"""
    derived = compute_single_sided_range(
        price_lower, price_upper, current_price, tick_spacing, base_is_token0,
        decimals_base, decimals_quote,
    )
    return clamp_single_sided(derived, derived.current_tick, tick_spacing, base_is_token0)


# Q128 factors sqrt(1.0001)^-(2^i), as hard-coded in the pool's TickMath
_TICK_RATIOS = (
    0xfffcb933bd6fad37aa2d162d1a594001,
    0xfff97272373d413259a46990580e213a,
    0xfff2e50f5f656932ef12357cf3c7fdcc,
    0xffe5caca7e10e4e61c3624eaa0941cd0,
    0xffcb9843d60f6159c9db58835c926644,
    0xff973b41fa98c081472e6896dfb254c0,
    0xff2ea16466c96a3843ec78b326b52861,
    0xfe5dee046a99a2a811c461f1969c3053,
    0xfcbe86c7900a88aedcffc83b479aa3a4,
    0xf987a7253ac413176f2b074cf7815e54,
    0xf3392b0822b70005940c7a398e4b70f3,
    0xe7159475a2c29b7443b29c7fa6e889d9,
    0xd097f3bdfd2022b8845ad8f792aa5825,
    0xa9f746462d870fdf8a65dc1f90e061e5,
    0x70d869a156d2a1b890bb3df62baf32f7,
    0x31be135f97d08fd981231505542fcfa6,
    0x9aa508b5b7a84e1c677de54f3e99bc9,
    0x5d6af8dedb81196699c329225ee604,
    0x2216e584f5fa1ea926041bedfe98,
    0x48a170391f7dc42444e8fa2,
)

_MAX_UINT256 = 2 ** 256 - 1
_MAX_UINT128 = 2 ** 128 - 1


def get_sqrt_ratio_at_tick(tick):
    """
    sqrtPriceX96 at a tick, bit-for-bit as the pool computes it.

    This is the value the contracts use for range boundaries, so mint
    amounts must be computed from it rather than from an exact square root.
    """
    validate_tick(tick)
    abs_tick = abs(tick)

    ratio = 1 << 128
    for bit, factor in enumerate(_TICK_RATIOS):
        if abs_tick & (1 << bit):
            ratio = (ratio * factor) >> 128
    if tick > 0:
        ratio = _MAX_UINT256 // ratio

    # Q128.128 to Q64.96, rounding up
    return (ratio >> 32) + (1 if ratio % (1 << 32) else 0)


def _mul_div_rounding_up(a, b, denominator):
    return -(-(a * b) // denominator)


def liquidity_for_single_sided_amount(tick_lower, tick_upper, amount, base_is_token0):
    """
    Liquidity the position manager mints for a one-token deposit that sits
    entirely outside the current price.

    Args:
        amount: Base units of the supplied token (token0 if base_is_token0)
    """
    sqrt_a = get_sqrt_ratio_at_tick(tick_lower)
    sqrt_b = get_sqrt_ratio_at_tick(tick_upper)
    if sqrt_a >= sqrt_b:
        raise DomainError(f"Empty tick range [{tick_lower}, {tick_upper}]")

    if base_is_token0:
        liquidity = amount * (sqrt_a * sqrt_b // Q96) // (sqrt_b - sqrt_a)
    else:
        liquidity = amount * Q96 // (sqrt_b - sqrt_a)
    if liquidity > _MAX_UINT128:
        raise DomainError(f"Liquidity {liquidity} does not fit in uint128")
    return liquidity


def amount_for_liquidity(tick_lower, tick_upper, liquidity, base_is_token0):
    """Tokens the pool pulls for the liquidity, rounded up as the pool does"""
    sqrt_a = get_sqrt_ratio_at_tick(tick_lower)
    sqrt_b = get_sqrt_ratio_at_tick(tick_upper)
    if base_is_token0:
        return -(-_mul_div_rounding_up(liquidity << 96, sqrt_b - sqrt_a, sqrt_b) // sqrt_a)
    return _mul_div_rounding_up(liquidity, sqrt_b - sqrt_a, Q96)


def single_sided_mint_amount(tick_lower, tick_upper, amount, base_is_token0):
    """
    What a single-sided mint of `amount` actually deposits.

    Liquidity is rounded down and the deposit rounded back up, so the result
    is at most `amount` and usually a few wei below it. A mint minimum above
    this value makes the position manager revert.
    """
    liquidity = liquidity_for_single_sided_amount(tick_lower, tick_upper, amount, base_is_token0)
    return amount_for_liquidity(tick_lower, tick_upper, liquidity, base_is_token0)
