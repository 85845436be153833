import asyncio
import unittest
from types import SimpleNamespace

from credit_gate.chain.rpc import Web3ChainClient
from credit_gate.errors import UpstreamProviderError


class _FakeEth:
    def __init__(self, logs=None, error: Exception | None = None):
        self.block_number = 777
        self._logs = logs or []
        self._error = error
        self.filters: list[dict] = []

    def get_logs(self, filter_params):
        self.filters.append(filter_params)
        if self._error is not None:
            raise self._error
        return self._logs


def _client(eth: _FakeEth) -> Web3ChainClient:
    client = Web3ChainClient.__new__(Web3ChainClient)
    client._rpc_url = "http://rpc.test"
    client._w3 = SimpleNamespace(eth=eth)
    return client


class Web3ChainClientTests(unittest.TestCase):
    def test_block_number(self) -> None:
        self.assertEqual(777, asyncio.run(_client(_FakeEth()).get_block_number()))

    def test_get_logs_returns_plain_dicts(self) -> None:
        eth = _FakeEth(logs=[{"blockNumber": 1, "data": b""}])
        logs = asyncio.run(_client(eth).get_logs({"fromBlock": 1}))
        self.assertEqual([{"blockNumber": 1, "data": b""}], logs)
        self.assertEqual([{"fromBlock": 1}], eth.filters)

    def test_rpc_failure_is_upstream_error(self) -> None:
        eth = _FakeEth(error=ConnectionError("node down"))
        with self.assertRaises(UpstreamProviderError) as ctx:
            asyncio.run(_client(eth).get_logs({}))
        self.assertEqual("chain", ctx.exception.source)


if __name__ == "__main__":
    unittest.main()
