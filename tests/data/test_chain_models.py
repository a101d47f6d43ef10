"""Tests for block, transaction and address models."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from chainview.data.chain.models import Address, Block, BlockchainStats, Transaction


TX_HASH = "0x5c504ed432cb51138bcf09aa5e8a410dd4a1e204ef84bfed1be16dfba1b22060"


class TestBlock:
    """Tests for Block model."""

    def test_gas_utilization(self) -> None:
        """Test gas used as a percentage of the limit."""
        block = Block(number=1, gas_used=Decimal(15_000_000), gas_limit=Decimal(30_000_000))

        assert block.gas_utilization == Decimal("50.00")

    def test_gas_utilization_rounds_half_up(self) -> None:
        """Test utilization is rounded to two places."""
        block = Block(number=1, gas_used=Decimal(1), gas_limit=Decimal(8))

        assert block.gas_utilization == Decimal("12.50")

    @pytest.mark.parametrize(
        ("gas_used", "gas_limit"),
        [(None, Decimal(100)), (Decimal(1), None), (Decimal(1), Decimal(0))],
    )
    def test_gas_utilization_missing(
        self, gas_used: Decimal | None, gas_limit: Decimal | None
    ) -> None:
        """Test utilization is None without both gas fields or with a zero limit."""
        block = Block(number=1, gas_used=gas_used, gas_limit=gas_limit)

        assert block.gas_utilization is None

    def test_formatted_time_without_timestamp(self) -> None:
        """Test N/A when the timestamp is unknown."""
        assert Block(number=1).formatted_time == "N/A"

    def test_frozen(self) -> None:
        """Test blocks are immutable."""
        block = Block(number=1)
        with pytest.raises(ValueError, match="frozen"):
            block.number = 2  # type: ignore[misc]


class TestTransaction:
    """Tests for Transaction model."""

    def test_timestamp_utc(self) -> None:
        """Test the timestamp converts to an aware UTC datetime."""
        tx = Transaction(hash=TX_HASH, timestamp=1700000000)

        assert tx.timestamp_utc == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)
        assert Transaction(hash=TX_HASH).timestamp_utc is None

    def test_hash_required(self) -> None:
        """Test an empty hash is rejected."""
        with pytest.raises(ValueError, match="at least 1 character"):
            Transaction(hash="")

    def test_contract_creation(self) -> None:
        """Test a missing recipient is a contract creation."""
        tx = Transaction(hash=TX_HASH, to_address=None, input="0x6080")

        assert tx.is_contract_creation
        assert tx.transaction_type == "Contract Creation"

    def test_empty_recipient_is_contract_creation(self) -> None:
        """Test an empty recipient string is a contract creation."""
        assert Transaction(hash=TX_HASH, to_address="").is_contract_creation

    @pytest.mark.parametrize("call_data", [None, "", "0x", "0x0"])
    def test_plain_transfer(self, call_data: str | None) -> None:
        """Test empty call data is a plain transfer."""
        tx = Transaction(hash=TX_HASH, to_address="0xabc", input=call_data)

        assert tx.transaction_type == "Transfer"

    @pytest.mark.parametrize(
        ("selector", "expected"),
        [
            ("0xa9059cbb", "Transfer"),
            ("0x23b872dd", "Transfer From"),
            ("0x095ea7b3", "Approval"),
            ("0x7ff36ab5", "Swap"),
            ("0x38ED1739", "Swap"),
            ("0xe8e33700", "Add Liquidity"),
            ("0x2e1a7d4d", "Withdraw"),
            ("0x2e17de78", "Unstake"),
        ],
    )
    def test_known_selectors(self, selector: str, expected: str) -> None:
        """Test known 4-byte selectors, case-insensitively."""
        tx = Transaction(hash=TX_HASH, to_address="0xabc", input=f"{selector}000000")

        assert tx.transaction_type == expected

    def test_unknown_selector(self) -> None:
        """Test unknown selectors are generic contract calls."""
        tx = Transaction(hash=TX_HASH, to_address="0xabc", input="0xdeadbeef0000")

        assert tx.transaction_type == "Contract Call"

    def test_short_call_data(self) -> None:
        """Test call data shorter than a selector is a contract call."""
        tx = Transaction(hash=TX_HASH, to_address="0xabc", input="0x1234")

        assert tx.transaction_type == "Contract Call"

    def test_value_in_eth(self) -> None:
        """Test wei values convert to ETH."""
        tx = Transaction(hash=TX_HASH, value=Decimal("1500000000000000000"))

        assert tx.value_eth == Decimal("1.5")
        assert tx.formatted_value == "1.500000 ETH"

    def test_value_missing(self) -> None:
        """Test missing values format as zero without inventing a value."""
        tx = Transaction(hash=TX_HASH)

        assert tx.value_eth is None
        assert tx.formatted_value == "0 ETH"


class TestAddressAndStats:
    """Tests for Address and BlockchainStats models."""

    def test_balance_eth(self) -> None:
        """Test balances convert to ETH."""
        address = Address(address="0xAbC", balance=Decimal(10**18), transaction_count=5)

        assert address.balance_eth == Decimal(1)
        assert address.address == "0xAbC"

    def test_balance_unknown(self) -> None:
        """Test an unknown balance stays None."""
        assert Address(address="0xabc").balance_eth is None

    def test_stats_defaults(self) -> None:
        """Test every stat is optional."""
        stats = BlockchainStats(latest_block=100)

        assert stats.latest_block == 100
        assert stats.total_transactions is None
        assert stats.average_gas_price is None
        assert stats.total_value_transferred is None
