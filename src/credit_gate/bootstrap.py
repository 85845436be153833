from __future__ import annotations

from dataclasses import dataclass

from credit_gate.app_config import AppConfig, RuntimeEnv
from credit_gate.chain.rpc import ChainClient, Web3ChainClient
from credit_gate.errors import AuthenticationError, ConfigurationError
from credit_gate.intent import IntentSynthesizer
from credit_gate.ledger.bridge import CreditLedgerBridge
from credit_gate.ledger.client import LedgerClient
from credit_gate.logging_config import setup_logging
from credit_gate.mcp.tool_gateway import ToolGateway
from credit_gate.orchestrator import Orchestrator
from credit_gate.prompts import PromptLoader
from credit_gate.provider import CompletionProvider, create_provider
from credit_gate.router import MessageRouter
from credit_gate.title import TitleSummarizer


@dataclass
class AppRuntime:
    orchestrator: Orchestrator
    bridge: CreditLedgerBridge
    gateway: ToolGateway
    mcp_endpoint: str
    rpc_url: str
    log_descriptions: list[str]


def create_ledger_client(env: RuntimeEnv) -> LedgerClient:
    if not env.nvm_api_key:
        raise AuthenticationError("NVM_API_KEY environment variable is required.")
    from credit_gate.ledger.nevermined import NeverminedLedgerClient
    return NeverminedLedgerClient(env.nvm_api_key, env.nvm_environment)


def build_orchestrator(
    app: AppConfig,
    env: RuntimeEnv,
    *,
    provider: CompletionProvider,
    ledger: LedgerClient,
    chain: ChainClient,
) -> tuple[Orchestrator, CreditLedgerBridge, ToolGateway]:
    if not env.plan_id:
        raise ConfigurationError("PLAN_ID environment variable is required.")

    prompts = PromptLoader(app.prompt_directory)
    bridge = CreditLedgerBridge(
        ledger,
        chain,
        plan_id=env.plan_id,
        agent_id=env.agent_id,
        stablecoin_address=app.stablecoin_address,
        stablecoin_decimals=app.stablecoin_decimals,
        confirmation_attempts=app.confirmation_attempts,
        confirmation_delay_seconds=app.confirmation_delay_seconds,
    )
    gateway = ToolGateway(env.mcp_endpoint or app.mcp_endpoint, bridge.get_access_token)
    orchestrator = Orchestrator(
        router=MessageRouter(
            provider,
            prompts,
            max_tokens=app.router_max_tokens,
            temperature=app.router_temperature,
        ),
        synthesizer=IntentSynthesizer(
            provider,
            max_tokens=app.intent_max_tokens,
            temperature=app.intent_temperature,
        ),
        gateway=gateway,
        bridge=bridge,
        prompts=prompts,
        title_summarizer=TitleSummarizer(
            provider,
            max_tokens=app.title_max_tokens,
            temperature=app.title_temperature,
        ),
        default_tool=app.mcp_default_tool,
        default_argument=app.mcp_default_argument,
        structured_output_retries=app.structured_output_retries,
    )
    return orchestrator, bridge, gateway


def bootstrap_runtime(app: AppConfig, env: RuntimeEnv) -> AppRuntime:
    log_descriptions = setup_logging(level=app.log_level, consumers=app.log_consumers)

    if not env.provider_api_key:
        raise AuthenticationError(f"{env.provider_env_var} environment variable is required.")

    rpc_url = env.rpc_url or app.rpc_url
    orchestrator, bridge, gateway = build_orchestrator(
        app,
        env,
        provider=create_provider(app.provider_name, env.provider_api_key, app.model),
        ledger=create_ledger_client(env),
        chain=Web3ChainClient(rpc_url),
    )
    return AppRuntime(
        orchestrator=orchestrator,
        bridge=bridge,
        gateway=gateway,
        mcp_endpoint=env.mcp_endpoint or app.mcp_endpoint,
        rpc_url=rpc_url,
        log_descriptions=log_descriptions,
    )
