"""Pydantic models for CoinGecko market snapshots.

Market APIs omit fields inconsistently, so every field is optional and a new
snapshot is produced on every poll.
"""

from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, ConfigDict


_CENTS = Decimal("0.01")
_BILLION = Decimal(1_000_000_000)
_MILLION = Decimal(1_000_000)
_TRILLION = Decimal(1_000_000_000_000)


def _signed_percent(value: Decimal | None) -> str:
    if value is None:
        return "0.00%"
    sign = "+" if value >= 0 else ""
    return f"{sign}{value.quantize(_CENTS, rounding=ROUND_HALF_UP)}%"


def _scaled(value: Decimal, unit: Decimal) -> Decimal:
    return (value / unit).quantize(_CENTS, rounding=ROUND_HALF_UP)


class EthPrice(BaseModel):
    """ETH spot price and 24h statistics."""

    model_config = ConfigDict(frozen=True)

    price: Decimal | None = None
    price_change_24h: Decimal | None = None
    price_change_percent_24h: Decimal | None = None
    market_cap: Decimal | None = None
    volume_24h: Decimal | None = None

    @property
    def formatted_price(self) -> str:
        if self.price is None:
            return "$0.00"
        return f"${self.price.quantize(_CENTS, rounding=ROUND_HALF_UP)}"

    @property
    def formatted_change(self) -> str:
        return _signed_percent(self.price_change_percent_24h)


class EthSupply(BaseModel):
    """ETH supply breakdown; ``max_supply`` is None because ETH has no cap."""

    model_config = ConfigDict(frozen=True)

    circulating_supply: Decimal | None = None
    total_supply: Decimal | None = None
    max_supply: Decimal | None = None

    @property
    def formatted_short_supply(self) -> str:
        """Circulating supply in billions, e.g. ``"0.12B ETH"``."""
        if self.circulating_supply is None:
            return "N/A"
        return f"{_scaled(self.circulating_supply, _BILLION)}B ETH"

    @property
    def formatted_max_supply(self) -> str:
        if self.max_supply is None:
            return "Unlimited"
        return f"{self.max_supply:,.0f} ETH"


class GlobalMarketData(BaseModel):
    """Aggregate cryptocurrency market statistics."""

    model_config = ConfigDict(frozen=True)

    total_market_cap: Decimal | None = None
    total_volume_24h: Decimal | None = None
    market_cap_change_percent_24h: Decimal | None = None
    active_cryptocurrencies: int | None = None
    markets: int | None = None

    @property
    def formatted_total_market_cap(self) -> str:
        if self.total_market_cap is None:
            return "N/A"
        return f"${_scaled(self.total_market_cap, _TRILLION)}T"

    @property
    def formatted_total_volume(self) -> str:
        if self.total_volume_24h is None:
            return "N/A"
        return f"${_scaled(self.total_volume_24h, _BILLION)}B"

    @property
    def formatted_market_cap_change(self) -> str:
        return _signed_percent(self.market_cap_change_percent_24h)


class TrendingCoin(BaseModel):
    """A coin from the trending list or the top coins by market cap."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    name: str | None = None
    symbol: str | None = None
    market_cap_rank: int | None = None
    price: Decimal | None = None
    price_change_24h: Decimal | None = None
    price_change_percent_24h: Decimal | None = None
    market_cap: Decimal | None = None
    volume_24h: Decimal | None = None
    image_url: str | None = None

    @property
    def formatted_price(self) -> str:
        if self.price is None:
            return "$0.00"
        places = Decimal("0.0001") if self.price < 1 else _CENTS
        return f"${self.price.quantize(places, rounding=ROUND_HALF_UP)}"

    @property
    def formatted_change(self) -> str:
        return _signed_percent(self.price_change_percent_24h)

    @property
    def formatted_market_cap(self) -> str:
        if self.market_cap is None:
            return "$0"
        if self.market_cap >= _BILLION:
            return f"${_scaled(self.market_cap, _BILLION)}B"
        if self.market_cap >= _MILLION:
            return f"${_scaled(self.market_cap, _MILLION)}M"
        return f"${self.market_cap.quantize(Decimal(1), rounding=ROUND_HALF_UP)}"


__all__ = [
    "EthPrice",
    "EthSupply",
    "GlobalMarketData",
    "TrendingCoin",
]
