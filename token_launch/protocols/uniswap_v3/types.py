"""Uniswap V3 launch type definitions"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from ...core.config import Config, load_json
from ...core.exceptions import ConfigError

Number = Union[int, float, str, Decimal]

FEE_TIERS = (100, 500, 3000, 10000)


@dataclass(frozen=True)
class TickRange:
    """
    Position boundaries and pool price in pool-native units.

    Attributes:
        tick_lower: Lower tick, aligned to spacing
        tick_upper: Upper tick, aligned to spacing
        sqrt_price_x96: Initial sqrt price (None when clamping bare ticks)
        current_tick: Tick implied by the current or initial price
    """

    tick_lower: int
    tick_upper: int
    sqrt_price_x96: Optional[int] = None
    current_tick: Optional[int] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class LaunchConfig:
    """
    Parameters for bootstrapping a launch token's first position.

    Prices are "quote per base", e.g. WETH per launch token. Keep them as
    strings in launch.json so they reach the math without float rounding.

    Attributes:
        token: Launch token symbol or address (the base asset, supplied 100%)
        quote_token: Quote token symbol or address
        fee: Fee tier (100, 500, 3000, 10000)
        price_lower: Bottom of the range
        price_upper: Top of the range
        amount: Launch tokens to deposit (human readable)
        start_price: "lower", "upper", or an explicit price
        slippage_bps: Mint tolerance in basis points below the amount the
            pool will take. None (the default) sets no minimum.
        deadline_minutes: Mint deadline from now
        clamp: Move the near boundary so the position starts single-sided
    """

    token: str
    price_lower: Number
    price_upper: Number
    amount: Number
    quote_token: str = "WETH"
    fee: int = 10000
    start_price: Number = "lower"
    slippage_bps: Optional[int] = None
    deadline_minutes: int = 20
    clamp: bool = True

    def __post_init__(self):
        if self.fee not in FEE_TIERS:
            raise ConfigError(f"Invalid fee tier: {self.fee}. Valid: {list(FEE_TIERS)}")
        try:
            lower = Decimal(str(self.price_lower))
            upper = Decimal(str(self.price_upper))
            amount = Decimal(str(self.amount))
        except InvalidOperation as e:
            raise ConfigError(f"Invalid number in launch config: {e}")
        for name, value in (("price_lower", lower), ("price_upper", upper), ("amount", amount)):
            if not value.is_finite():
                raise ConfigError(f"{name} must be a finite number, got {value}")
        if lower <= 0 or lower >= upper:
            raise ConfigError(
                f"Price range must satisfy 0 < price_lower < price_upper, "
                f"got {self.price_lower} .. {self.price_upper}"
            )
        if amount <= 0:
            raise ConfigError(f"Amount must be positive, got {self.amount}")
        if self.slippage_bps is not None and not 0 <= self.slippage_bps < 10000:
            raise ConfigError(f"Slippage must be in [0, 10000) bps, got {self.slippage_bps}")

    @classmethod
    def from_dict(cls, data):
        """Build from a plain dict, rejecting unknown keys"""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown launch config keys: {sorted(unknown)}")
        try:
            return cls(**data)
        except TypeError as e:
            raise ConfigError(f"Invalid launch config: {e}")

    @classmethod
    def load(cls, path=None):
        """
        Load launch parameters from JSON.

        Args:
            path: launch.json path (defaults to the config directory)
        """
        if path is None:
            path = Config().config_dir / "launch.json"
        return cls.from_dict(load_json(path, "launch config"))

    def to_dict(self) -> dict:
        return {k: str(v) if isinstance(v, Decimal) else v for k, v in asdict(self).items()}
