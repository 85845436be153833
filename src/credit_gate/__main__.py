import asyncio
import sys

from dotenv import load_dotenv
from loguru import logger

from credit_gate.app_config import load_json_config, parse_app_config, resolve_runtime_env
from credit_gate.bootstrap import bootstrap_runtime
from credit_gate.chat_session import ChatSession
from credit_gate.errors import CreditGateError


async def main() -> None:
    load_dotenv()

    app = parse_app_config(load_json_config())
    env = resolve_runtime_env(app.provider_name)

    try:
        runtime = bootstrap_runtime(app, env)
    except CreditGateError as ex:
        logger.error(str(ex))
        sys.exit(1)

    session = ChatSession(runtime.orchestrator)

    print("credit-gate (type 'exit' to quit, '/help' for commands)")
    print(f"Plan: {runtime.bridge.plan_id}")
    print(f"Agent endpoint: {runtime.mcp_endpoint}")
    print(f"Chain RPC: {runtime.rpc_url}")
    if runtime.log_descriptions:
        print(f"Logging: {', '.join(runtime.log_descriptions)}")
    print()

    while True:
        try:
            user_input = input("you> ")
        except (EOFError, KeyboardInterrupt):
            break

        trimmed = user_input.strip()

        if trimmed in ("exit", "quit"):
            break

        if not trimmed:
            continue

        try:
            await session.run(trimmed)
            print()
        except Exception as ex:
            logger.error(f"Unhandled error: {ex}")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
