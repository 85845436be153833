from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from credit_gate.ledger.bridge import DEFAULT_STABLECOIN_ADDRESS


@dataclass
class RuntimeEnv:
    provider_api_key: str
    provider_env_var: str
    nvm_api_key: str
    nvm_environment: str
    plan_id: str | None
    agent_id: str | None
    mcp_endpoint: str | None
    rpc_url: str | None


@dataclass
class AppConfig:
    provider_name: str
    model: str
    router_max_tokens: int
    router_temperature: float
    intent_max_tokens: int
    intent_temperature: float
    title_max_tokens: int
    title_temperature: float
    prompt_directory: str | None
    mcp_endpoint: str
    mcp_default_tool: str
    mcp_default_argument: str
    rpc_url: str
    stablecoin_address: str
    stablecoin_decimals: int
    confirmation_attempts: int
    confirmation_delay_seconds: float
    structured_output_retries: int
    log_level: str
    log_consumers: list | None


def load_json_config() -> dict:
    config_path = Path.cwd() / "config.json"
    if config_path.exists():
        with open(config_path) as f:
            return json.load(f)
    return {}


def parse_app_config(config: dict) -> AppConfig:
    return AppConfig(
        provider_name=config.get("Provider", "openai").strip().lower(),
        model=config.get("Model", "gpt-4.1"),
        router_max_tokens=int(config.get("RouterMaxTokens", 512)),
        router_temperature=float(config.get("RouterTemperature", 0.2)),
        intent_max_tokens=int(config.get("IntentMaxTokens", 64)),
        intent_temperature=float(config.get("IntentTemperature", 0.3)),
        title_max_tokens=int(config.get("TitleMaxTokens", 16)),
        title_temperature=float(config.get("TitleTemperature", 0.7)),
        prompt_directory=config.get("PromptDirectory"),
        mcp_endpoint=config.get("McpEndpoint", "http://localhost:3001/mcp"),
        mcp_default_tool=config.get("McpDefaultTool", "weather.today"),
        mcp_default_argument=config.get("McpDefaultArgument", "city"),
        rpc_url=config.get("RpcUrl", "https://sepolia.base.org"),
        stablecoin_address=config.get("StablecoinAddress", DEFAULT_STABLECOIN_ADDRESS),
        stablecoin_decimals=int(config.get("StablecoinDecimals", 6)),
        confirmation_attempts=int(config.get("ConfirmationAttempts", 10)),
        confirmation_delay_seconds=float(config.get("ConfirmationDelaySeconds", 5.0)),
        structured_output_retries=int(config.get("StructuredOutputRetries", 1)),
        log_level=config.get("LogLevel", "INFO"),
        log_consumers=config.get("LogConsumers"),
    )


def resolve_runtime_env(provider_name: str) -> RuntimeEnv:
    if provider_name == "anthropic":
        provider_api_key = os.environ.get("ANTHROPIC_API_KEY", "")
        provider_env_var = "ANTHROPIC_API_KEY"
    else:
        provider_api_key = os.environ.get("OPENAI_API_KEY", "")
        provider_env_var = "OPENAI_API_KEY"

    return RuntimeEnv(
        provider_api_key=provider_api_key,
        provider_env_var=provider_env_var,
        nvm_api_key=os.environ.get("NVM_API_KEY", ""),
        nvm_environment=os.environ.get("NVM_ENVIRONMENT", "testing"),
        plan_id=os.environ.get("PLAN_ID") or None,
        agent_id=os.environ.get("AGENT_DID") or None,
        mcp_endpoint=os.environ.get("MCP_ENDPOINT") or None,
        rpc_url=os.environ.get("RPC_URL") or None,
    )
