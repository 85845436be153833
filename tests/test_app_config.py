import os
import unittest
from unittest.mock import patch

from credit_gate.app_config import AppConfig, RuntimeEnv, parse_app_config, resolve_runtime_env
from credit_gate.bootstrap import build_orchestrator, create_ledger_client
from credit_gate.errors import AuthenticationError, ConfigurationError
from credit_gate.ledger.bridge import DEFAULT_STABLECOIN_ADDRESS
from tests.fakes import FakeChain, FakeLedger, FakeProvider


def _env(**overrides) -> RuntimeEnv:
    values = dict(
        provider_api_key="sk-test",
        provider_env_var="OPENAI_API_KEY",
        nvm_api_key="nvm-test",
        nvm_environment="testing",
        plan_id="123",
        agent_id="did:nv:agent",
        mcp_endpoint=None,
        rpc_url=None,
    )
    values.update(overrides)
    return RuntimeEnv(**values)


class ParseAppConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        app = parse_app_config({})
        self.assertEqual("openai", app.provider_name)
        self.assertEqual(512, app.router_max_tokens)
        self.assertEqual(0.2, app.router_temperature)
        self.assertEqual(64, app.intent_max_tokens)
        self.assertEqual(0.3, app.intent_temperature)
        self.assertEqual(16, app.title_max_tokens)
        self.assertEqual(0.7, app.title_temperature)
        self.assertEqual("http://localhost:3001/mcp", app.mcp_endpoint)
        self.assertEqual("weather.today", app.mcp_default_tool)
        self.assertEqual("city", app.mcp_default_argument)
        self.assertEqual(DEFAULT_STABLECOIN_ADDRESS, app.stablecoin_address)
        self.assertEqual(6, app.stablecoin_decimals)
        self.assertEqual(10, app.confirmation_attempts)
        self.assertEqual(5.0, app.confirmation_delay_seconds)
        self.assertEqual(1, app.structured_output_retries)
        self.assertIsNone(app.log_consumers)

    def test_overrides(self) -> None:
        app = parse_app_config({
            "Provider": " Anthropic ",
            "Model": "claude-sonnet",
            "ConfirmationAttempts": "3",
            "LogConsumers": [{"type": "console"}],
        })
        self.assertEqual("anthropic", app.provider_name)
        self.assertEqual("claude-sonnet", app.model)
        self.assertEqual(3, app.confirmation_attempts)
        self.assertEqual([{"type": "console"}], app.log_consumers)


class ResolveRuntimeEnvTests(unittest.TestCase):
    def test_reads_environment(self) -> None:
        environ = {
            "ANTHROPIC_API_KEY": "ak",
            "OPENAI_API_KEY": "ok",
            "NVM_API_KEY": "nvm",
            "PLAN_ID": "42",
            "AGENT_DID": "did:nv:a",
            "MCP_ENDPOINT": "http://agent/mcp",
        }
        with patch.dict(os.environ, environ, clear=True):
            env = resolve_runtime_env("anthropic")
        self.assertEqual("ak", env.provider_api_key)
        self.assertEqual("ANTHROPIC_API_KEY", env.provider_env_var)
        self.assertEqual("nvm", env.nvm_api_key)
        self.assertEqual("testing", env.nvm_environment)
        self.assertEqual("42", env.plan_id)
        self.assertEqual("did:nv:a", env.agent_id)
        self.assertEqual("http://agent/mcp", env.mcp_endpoint)
        self.assertIsNone(env.rpc_url)

    def test_missing_values(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            env = resolve_runtime_env("openai")
        self.assertEqual("", env.provider_api_key)
        self.assertEqual("OPENAI_API_KEY", env.provider_env_var)
        self.assertIsNone(env.plan_id)


class BootstrapTests(unittest.TestCase):
    def test_ledger_requires_api_key(self) -> None:
        with self.assertRaises(AuthenticationError):
            create_ledger_client(_env(nvm_api_key=""))

    def test_build_requires_plan_id(self) -> None:
        with self.assertRaises(ConfigurationError):
            build_orchestrator(
                parse_app_config({}),
                _env(plan_id=None),
                provider=FakeProvider(),
                ledger=FakeLedger(),
                chain=FakeChain(),
            )

    def test_build_wires_components(self) -> None:
        app: AppConfig = parse_app_config({"McpEndpoint": "http://config/mcp"})
        orchestrator, bridge, gateway = build_orchestrator(
            app,
            _env(mcp_endpoint="http://env/mcp"),
            provider=FakeProvider(),
            ledger=FakeLedger(),
            chain=FakeChain(),
        )
        self.assertEqual("123", bridge.plan_id)
        self.assertEqual("http://env/mcp", gateway._endpoint)
        self.assertIsNotNone(orchestrator)


if __name__ == "__main__":
    unittest.main()
