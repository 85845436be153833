from __future__ import annotations

from enum import Enum
from typing import Any

from eth_abi import decode
from hexbytes import HexBytes
from loguru import logger
from web3 import Web3

from credit_gate.chain.rpc import ChainClient
from credit_gate.errors import ConfigurationError
from credit_gate.models import ChainEvent

# ERC-1155 TransferSingle(operator, from, to, id, value); operator/from/to are indexed.
TRANSFER_SINGLE_TOPIC = Web3.to_hex(Web3.keccak(text="TransferSingle(address,address,address,uint256,uint256)"))
ZERO_ADDRESS_TOPIC = "0x" + "0" * 64


class EventKind(str, Enum):
    MINT = "mint"
    BURN = "burn"


def address_topic(address: str) -> str:
    """Left-pad an address to a 32-byte log topic."""
    bare = address.lower()
    if bare.startswith("0x"):
        bare = bare[2:]
    return "0x" + bare.rjust(64, "0")


def parse_asset_id(asset_id: str | int) -> int:
    if isinstance(asset_id, int):
        return asset_id
    text = str(asset_id).strip()
    try:
        return int(text, 16) if text.lower().startswith("0x") else int(text)
    except ValueError as ex:
        raise ConfigurationError(f"Asset id is not a token id: {asset_id!r}") from ex


def _log_position(entry: dict[str, Any]) -> tuple[int, int]:
    return int(entry["blockNumber"]), int(entry.get("logIndex") or 0)


class EventLocator:
    """Single-shot search for credit mint/burn transfers of one wallet and asset id."""

    def __init__(self, chain: ChainClient):
        self._chain = chain

    async def find_event(
        self,
        kind: EventKind,
        contract: str,
        wallet: str,
        asset_id: str | int,
        from_block: int,
    ) -> ChainEvent | None:
        token_id = parse_asset_id(asset_id)
        kind = EventKind(kind)
        if kind is EventKind.MINT:
            topics = [TRANSFER_SINGLE_TOPIC, None, ZERO_ADDRESS_TOPIC, address_topic(wallet)]
        else:
            topics = [TRANSFER_SINGLE_TOPIC, None, address_topic(wallet), ZERO_ADDRESS_TOPIC]

        logs = await self._chain.get_logs({
            "address": Web3.to_checksum_address(contract),
            "fromBlock": from_block,
            "toBlock": "latest",
            "topics": topics,
        })

        for entry in sorted(logs, key=_log_position):
            event_id, value = decode(["uint256", "uint256"], bytes(HexBytes(entry["data"])))
            if event_id != token_id:
                continue
            event = ChainEvent(
                tx_hash=Web3.to_hex(HexBytes(entry["transactionHash"])),
                value=int(value),
                block_number=int(entry["blockNumber"]),
            )
            logger.info(f"Found {kind.value} event: tx={event.tx_hash} value={event.value} block={event.block_number}")
            return event

        logger.debug(f"No {kind.value} event for token {token_id} since block {from_block} ({len(logs)} log(s) scanned)")
        return None
