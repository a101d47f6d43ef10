"""Etherscan v2 API adapter for blocks, transactions and addresses."""

import asyncio

from typing import Any

from chainview.data.chain.models import Address, Block, Transaction
from chainview.helpers.constants import (
    BENIGN_API_MESSAGES,
    DEFAULT_CHAIN_ID,
    ETHERSCAN_API_URL,
    INITIAL_DELAY_MS,
    LATEST_TRANSACTIONS_FEED_ADDRESS,
    RATE_LIMIT_MARKERS,
)
from chainview.helpers.http import RequestExecutor, classify_status, decode_json
from chainview.helpers.http_models import (
    Err,
    Ok,
    OutcomeApiError,
    OutcomeRateLimited,
    OutcomeSuccess,
    RequestOutcome,
)
from chainview.helpers.logging import get_logger
from chainview.helpers.parsers import (
    parse_decimal_str,
    parse_hex_decimal,
    parse_hex_int,
    parse_int_str,
)


logger = get_logger(__name__)


def _is_rate_limit_message(*texts: str) -> bool:
    haystack = " ".join(texts).lower()
    return any(marker in haystack for marker in RATE_LIMIT_MARKERS)


def classify_etherscan_response(status_code: int, body: str) -> RequestOutcome:
    """Classify an Etherscan response, including errors embedded in HTTP 200.

    Etherscan reports failures as ``{"status": "0", "message": ..., "result":
    ...}`` and proxied JSON-RPC failures as ``{"error": {...}}``. Rate limits
    are only recognizable by their message text, so detection matches
    fragments such as "rate limit" and "max calls per sec".

    Args:
        status_code: HTTP status code
        body: Response body text

    Returns:
        RequestOutcome for the retry state machine
    """
    outcome = classify_status(status_code, body)
    if not isinstance(outcome, OutcomeSuccess):
        return outcome

    data = decode_json(body)
    if not isinstance(data, dict):
        # Left to the adapter, which reports it as a decode failure
        return outcome

    if str(data.get("status")) == "0":
        message = data.get("message")
        message = message if isinstance(message, str) else "API returned error"
        result = data.get("result")
        result = result if isinstance(result, str) else ""

        if _is_rate_limit_message(message, result):
            return OutcomeRateLimited(message=message)

        if message == "OK" or any(benign in message for benign in BENIGN_API_MESSAGES):
            return outcome

        detail = f" - {result}" if result else ""
        return OutcomeApiError(message=f"API Error: {message}{detail}")

    error = data.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        message = message if isinstance(message, str) else "Unknown error"
        if _is_rate_limit_message(message):
            return OutcomeRateLimited(message=message)
        code = error.get("code")
        return OutcomeApiError(
            code=code if isinstance(code, int) else None,
            message=f"JSON-RPC Error: {message}",
        )

    return outcome


def _text(record: dict[str, Any], key: str) -> str | None:
    value = record.get(key)
    return value if isinstance(value, str) else None


def _transaction_hashes(transactions: list[Any]) -> tuple[str, ...]:
    hashes = []
    for item in transactions:
        if isinstance(item, str):
            hashes.append(item)
        elif isinstance(item, dict) and isinstance(item.get("hash"), str):
            hashes.append(item["hash"])
    return tuple(hashes)


def parse_block(block_number: int, result: dict[str, Any]) -> Block:
    """Build a Block from an ``eth_getBlockByNumber`` result.

    Fields that are missing or fail to parse are left as None instead of
    failing the whole block.

    Args:
        block_number: Requested block number
        result: The ``result`` object of the envelope

    Returns:
        Block model
    """
    transactions = result.get("transactions")
    if not isinstance(transactions, list):
        transactions = None

    return Block(
        number=block_number,
        hash=_text(result, "hash"),
        timestamp=parse_hex_int(result.get("timestamp")),
        transaction_count=len(transactions) if transactions is not None else None,
        gas_used=parse_hex_decimal(result.get("gasUsed")),
        gas_limit=parse_hex_decimal(result.get("gasLimit")),
        miner=_text(result, "miner"),
        transactions=_transaction_hashes(transactions or []),
    )


def parse_rpc_transaction(result: dict[str, Any]) -> Transaction | None:
    """Build a Transaction from an ``eth_getTransactionByHash`` result.

    Returns:
        Transaction, or None when the record has no hash
    """
    tx_hash = _text(result, "hash")
    if not tx_hash:
        return None

    return Transaction(
        hash=tx_hash,
        from_address=_text(result, "from"),
        to_address=_text(result, "to"),
        value=parse_hex_decimal(result.get("value")),
        block_number=parse_hex_int(result.get("blockNumber")),
        gas_used=parse_hex_decimal(result.get("gas")),
        gas_price=parse_hex_decimal(result.get("gasPrice")),
        input=_text(result, "input"),
    )


def parse_account_transaction(record: dict[str, Any]) -> Transaction | None:
    """Build a Transaction from an ``account/txlist`` record (base-10 strings).

    Returns:
        Transaction, or None when the record has no hash
    """
    tx_hash = _text(record, "hash")
    if not tx_hash:
        return None

    is_error = _text(record, "isError")
    status = {"0": "success", "1": "failed"}.get(is_error or "")

    return Transaction(
        hash=tx_hash,
        from_address=_text(record, "from"),
        to_address=_text(record, "to"),
        value=parse_decimal_str(record.get("value")),
        block_number=parse_int_str(record.get("blockNumber")),
        timestamp=parse_int_str(record.get("timeStamp")),
        status=status,
        gas_used=parse_decimal_str(record.get("gasUsed")),
        gas_price=parse_decimal_str(record.get("gasPrice")),
        input=_text(record, "input") or _text(record, "methodId"),
    )


class EtherscanClient:
    """Chain-data adapter over the Etherscan v2 multichain API.

    Every public method returns ``Ok`` or ``Err``; expected failures are
    never raised.
    """

    def __init__(
        self,
        executor: RequestExecutor,
        *,
        api_key: str = "",
        base_url: str = ETHERSCAN_API_URL,
        chain_id: str = DEFAULT_CHAIN_ID,
        initial_delay_ms: int = INITIAL_DELAY_MS,
    ) -> None:
        """Initialize the adapter.

        Args:
            executor: Request executor shared with other adapters
            api_key: Etherscan API key (empty uses the public limit)
            base_url: Etherscan v2 endpoint
            chain_id: Chain identifier sent with every request
            initial_delay_ms: Stagger before resolving the latest block

        Raises:
            ValueError: If base_url is empty or initial_delay_ms is negative
        """
        if not base_url:
            msg = "Etherscan base URL cannot be empty"
            raise ValueError(msg)
        if initial_delay_ms < 0:
            msg = "initial_delay_ms cannot be negative"
            raise ValueError(msg)

        self.executor = executor
        self.api_key = api_key
        self.base_url = base_url
        self.chain_id = chain_id
        self.initial_delay_ms = initial_delay_ms

    async def _request(
        self, module: str, action: str, **params: Any
    ) -> Ok[dict[str, Any]] | Err:
        """Execute one API call and decode its envelope.

        Returns:
            Ok with the envelope object, Err on failure or a non-object body
        """
        query = {"module": module, "action": action, "chainid": self.chain_id, **params}
        if self.api_key:
            query["apikey"] = self.api_key

        response = await self.executor.execute(
            self.base_url, params=query, classify=classify_etherscan_response
        )
        if isinstance(response, Err):
            return response

        envelope = decode_json(response.value)
        if not isinstance(envelope, dict):
            logger.error("Invalid %s/%s response: not a JSON object", module, action)
            return Err.decode(f"Invalid API response for {action}")
        if "result" not in envelope:
            logger.error("Invalid %s/%s response: missing result", module, action)
            return Err.decode(f"Invalid API response for {action}: missing result")

        return Ok(value=envelope)

    async def get_latest_block_number(self) -> Ok[int] | Err:
        """Get the latest block number.

        Returns:
            Ok with the block number
        """
        if self.initial_delay_ms and not await self.executor.pause(self.initial_delay_ms):
            return Err.interrupted()

        response = await self._request("proxy", "eth_blockNumber")
        if isinstance(response, Err):
            return response

        block_number = parse_hex_int(response.value["result"])
        if block_number is None:
            return Err.decode(
                f"Invalid block number response: {response.value['result']!r}"
            )
        return Ok(value=block_number)

    async def get_block_by_number(self, block_number: int) -> Ok[Block | None] | Err:
        """Get a block with its transaction hashes.

        Args:
            block_number: Block number

        Returns:
            Ok with the block, or Ok(None) if the provider has no such block
        """
        response = await self._request(
            "proxy", "eth_getBlockByNumber", tag=hex(block_number), boolean="true"
        )
        if isinstance(response, Err):
            return response

        result = response.value["result"]
        if result is None:
            return Ok(value=None)
        if not isinstance(result, dict):
            return Err.decode(f"Invalid block response for {block_number}")

        return Ok(value=parse_block(block_number, result))

    async def get_transaction_by_hash(self, tx_hash: str) -> Ok[Transaction | None] | Err:
        """Get a transaction, enriched with the timestamp of its block.

        The containing block is fetched only to recover the timestamp; if that
        lookup fails the transaction is still returned without one.

        Args:
            tx_hash: Transaction hash

        Returns:
            Ok with the transaction, or Ok(None) if it is unknown
        """
        response = await self._request("proxy", "eth_getTransactionByHash", txhash=tx_hash)
        if isinstance(response, Err):
            return response

        result = response.value["result"]
        if result is None:
            return Ok(value=None)
        if not isinstance(result, dict):
            return Err.decode(f"Invalid transaction response for {tx_hash}")

        transaction = parse_rpc_transaction(result)
        if transaction is None:
            return Err.decode(f"Transaction record for {tx_hash} has no hash")

        if transaction.block_number is not None:
            block = await self.get_block_by_number(transaction.block_number)
            if isinstance(block, Ok) and block.value is not None:
                transaction = transaction.model_copy(
                    update={"timestamp": block.value.timestamp}
                )
            else:
                logger.warning(
                    "Could not load block %d for transaction %s timestamp",
                    transaction.block_number,
                    tx_hash,
                )

        return Ok(value=transaction)

    async def get_transaction_count(self, address: str) -> Ok[int | None] | Err:
        """Get the nonce (sent transaction count) of an address."""
        response = await self._request(
            "proxy", "eth_getTransactionCount", address=address, tag="latest"
        )
        if isinstance(response, Err):
            return response
        return Ok(value=parse_hex_int(response.value["result"]))

    async def get_address_details(self, address: str) -> Ok[Address] | Err:
        """Get balance and transaction count of an address.

        Both calls run concurrently. A failed balance call fails the
        operation; a failed nonce call leaves ``transaction_count`` unset.

        Args:
            address: Account address

        Returns:
            Ok with the address details
        """
        balance_response, nonce_response = await asyncio.gather(
            self._request("account", "balance", address=address, tag="latest"),
            self.get_transaction_count(address),
        )
        if isinstance(balance_response, Err):
            return balance_response

        raw_balance = balance_response.value["result"]
        balance = parse_decimal_str(raw_balance)
        if balance is None:
            logger.warning("Invalid balance response for %s: %r", address, raw_balance)

        if isinstance(nonce_response, Err):
            logger.warning(
                "Could not load transaction count for %s: %s",
                address,
                nonce_response.message,
            )
            transaction_count = None
        else:
            transaction_count = nonce_response.value

        return Ok(
            value=Address(
                address=address, balance=balance, transaction_count=transaction_count
            )
        )

    async def get_address_transactions(
        self, address: str, count: int
    ) -> Ok[list[Transaction]] | Err:
        """Get the most recent transactions of an address, newest first.

        Args:
            address: Account address
            count: Maximum number of transactions

        Returns:
            Ok with at most ``count`` transactions
        """
        if count <= 0:
            return Ok(value=[])

        response = await self._request(
            "account",
            "txlist",
            address=address,
            startblock=0,
            endblock=99999999,
            page=1,
            offset=count,
            sort="desc",
        )
        if isinstance(response, Err):
            return response

        records = response.value["result"]
        if not isinstance(records, list):
            return Ok(value=[])

        transactions = []
        for record in records[:count]:
            transaction = (
                parse_account_transaction(record) if isinstance(record, dict) else None
            )
            if transaction is None:
                logger.warning("Skipping transaction record without hash for %s", address)
                continue
            transactions.append(transaction)

        return Ok(value=transactions)

    async def get_latest_transactions(self, count: int) -> Ok[list[Transaction]] | Err:
        """Get recent network activity from a busy feed address."""
        return await self.get_address_transactions(
            LATEST_TRANSACTIONS_FEED_ADDRESS, count
        )


__all__ = [
    "EtherscanClient",
    "classify_etherscan_response",
    "parse_account_transaction",
    "parse_block",
    "parse_rpc_transaction",
]
