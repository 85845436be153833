"""Read-only chain access.

web3.py's HTTP provider is synchronous; every call is pushed onto the default
executor so a slow RPC node never blocks the event loop.
"""
from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, Protocol, TypeVar, runtime_checkable

from loguru import logger
from web3 import Web3

from credit_gate.errors import UpstreamProviderError

T = TypeVar("T")

# ERC20: balanceOf only
ERC20_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function",
    },
]


@runtime_checkable
class ChainClient(Protocol):
    async def get_block_number(self) -> int: ...

    async def get_erc20_balance(self, token_address: str, wallet: str) -> int: ...

    async def get_logs(self, filter_params: dict[str, Any]) -> list[dict[str, Any]]: ...


class Web3ChainClient:
    def __init__(self, rpc_url: str, *, timeout: int = 30):
        self._rpc_url = rpc_url
        self._w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))

    async def _run(self, label: str, fn: Callable[[], T]) -> T:
        try:
            return await asyncio.get_running_loop().run_in_executor(None, fn)
        except Exception as ex:
            logger.warning(f"Chain RPC {label} failed on {self._rpc_url}: {ex}")
            raise UpstreamProviderError("chain", f"{label} failed: {ex}") from ex

    async def get_block_number(self) -> int:
        return int(await self._run("eth_blockNumber", lambda: self._w3.eth.block_number))

    async def get_erc20_balance(self, token_address: str, wallet: str) -> int:
        def _call() -> int:
            token = self._w3.eth.contract(address=Web3.to_checksum_address(token_address), abi=ERC20_ABI)
            return token.functions.balanceOf(Web3.to_checksum_address(wallet)).call()

        return int(await self._run("balanceOf", _call))

    async def get_logs(self, filter_params: dict[str, Any]) -> list[dict[str, Any]]:
        logs = await self._run("eth_getLogs", lambda: self._w3.eth.get_logs(filter_params))
        return [dict(entry) for entry in logs]
