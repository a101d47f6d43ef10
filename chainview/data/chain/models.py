"""Pydantic models for chain entities decoded from the Etherscan API."""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, ConfigDict, Field

from chainview.helpers.parsers import (
    format_relative_time,
    timestamp_to_datetime,
    wei_to_eth,
)


# 4-byte function selectors of common token, DEX and staking calls
FUNCTION_SIGNATURES: dict[str, str] = {
    "0xa9059cbb": "Transfer",
    "0x23b872dd": "Transfer From",
    "0x095ea7b3": "Approval",
    "0x40c10f19": "Mint",
    "0x42966c68": "Burn",
    "0x1249c58b": "Burn From",
    "0x3a4b66f1": "Claim",
    "0x7ff36ab5": "Swap",
    "0x38ed1739": "Swap",
    "0x8803dbee": "Swap",
    "0x02751cec": "Remove Liquidity",
    "0x2195995c": "Remove Liquidity",
    "0xe8e33700": "Add Liquidity",
    "0xf305d719": "Add Liquidity",
    "0x2e1a7d4d": "Withdraw",
    "0xb6b55f25": "Deposit",
    "0x379607f5": "Stake",
    "0x2e17de78": "Unstake",
}

_EMPTY_INPUTS = {"", "0x", "0x0"}


class Block(BaseModel):
    """Ethereum block model."""

    model_config = ConfigDict(frozen=True)

    number: int
    hash: str | None = None
    timestamp: int | None = None
    transaction_count: int | None = None
    gas_used: Decimal | None = None
    gas_limit: Decimal | None = None
    miner: str | None = None
    transactions: tuple[str, ...] = ()

    @property
    def gas_utilization(self) -> Decimal | None:
        """Gas used as a percentage of the gas limit, two decimal places."""
        if self.gas_used is None or not self.gas_limit:
            return None
        ratio = self.gas_used * 100 / self.gas_limit
        return ratio.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    @property
    def formatted_time(self) -> str:
        return format_relative_time(self.timestamp)


class Transaction(BaseModel):
    """Ethereum transaction model.

    ``hash`` is always present; a provider record without one is treated as
    a decode failure rather than an empty transaction.
    """

    model_config = ConfigDict(frozen=True)

    hash: str = Field(..., min_length=1)
    from_address: str | None = None
    to_address: str | None = None
    value: Decimal | None = None
    block_number: int | None = None
    timestamp: int | None = None
    status: str | None = None
    gas_used: Decimal | None = None
    gas_price: Decimal | None = None
    input: str | None = None

    @property
    def is_contract_creation(self) -> bool:
        return not self.to_address

    @property
    def transaction_type(self) -> str:
        """Classify the transaction from its recipient and call data."""
        if self.is_contract_creation:
            return "Contract Creation"

        if self.input is None or self.input in _EMPTY_INPUTS:
            return "Transfer"

        if len(self.input) >= 10:
            return FUNCTION_SIGNATURES.get(self.input[:10].lower(), "Contract Call")

        return "Contract Call"

    @property
    def value_eth(self) -> Decimal | None:
        return wei_to_eth(self.value)

    @property
    def formatted_value(self) -> str:
        if self.value is None:
            return "0 ETH"
        eth = wei_to_eth(self.value)
        return f"{eth.quantize(Decimal('0.000001'), rounding=ROUND_HALF_UP)} ETH"

    @property
    def formatted_time(self) -> str:
        return format_relative_time(self.timestamp)

    @property
    def timestamp_utc(self) -> datetime | None:
        return timestamp_to_datetime(self.timestamp)


class Address(BaseModel):
    """Account balance and nonce."""

    model_config = ConfigDict(frozen=True)

    address: str
    balance: Decimal | None = None
    transaction_count: int | None = None

    @property
    def balance_eth(self) -> Decimal | None:
        return wei_to_eth(self.balance)


class BlockchainStats(BaseModel):
    """Aggregate chain statistics.

    Only ``latest_block`` is filled. ``total_transactions``,
    ``average_gas_price`` and ``total_value_transferred`` are placeholders
    for chain-wide aggregates neither provider offers; they stay None.
    """

    model_config = ConfigDict(frozen=True)

    latest_block: int | None = None
    total_transactions: Decimal | None = None
    average_gas_price: Decimal | None = None
    total_value_transferred: Decimal | None = None


__all__ = [
    "FUNCTION_SIGNATURES",
    "Address",
    "Block",
    "BlockchainStats",
    "Transaction",
]
