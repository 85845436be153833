from __future__ import annotations

import asyncio

from loguru import logger

from credit_gate.commands.router import CommandRouter
from credit_gate.errors import CreditGateError, ToolExecutionError, UpstreamProviderError
from credit_gate.models import ConversationMessage, OrchestratorResult
from credit_gate.orchestrator import Orchestrator


class ChatSession:
    """Interactive conversation over an Orchestrator, keeping history in memory."""

    _LINE_PREFIX = "assistant> "

    def __init__(self, orchestrator: Orchestrator):
        self._orchestrator = orchestrator
        self._history: list[ConversationMessage] = []
        self._run_lock = asyncio.Lock()
        self._command_router = CommandRouter(
            on_help=self._on_help,
            on_credits=self._on_credits,
            on_cost=self._on_cost,
            on_buy=self._on_buy,
            on_redeem=self._on_redeem,
            on_confirm=self._on_confirm,
            on_block=self._on_block,
            on_tools=self._on_tools,
            on_title=self._on_title,
            on_unknown=self._on_unknown,
        )

    @property
    def history(self) -> list[ConversationMessage]:
        return list(self._history)

    async def run(self, user_message: str) -> None:
        async with self._run_lock:
            if await self._command_router.try_handle(user_message):
                return

            try:
                result = await self._orchestrator.handle_message(user_message, self._history)
            except ToolExecutionError as ex:
                self._print(f"The agent could not complete the request: {ex.output_text}")
                return
            except UpstreamProviderError as ex:
                logger.error(f"Upstream failure: {ex}")
                self._print("Could not reach a required service. Please try again.")
                return
            except CreditGateError as ex:
                logger.error(f"Request failed: {type(ex).__name__}: {ex}")
                self._print(f"Request failed: {ex}")
                return

            self._history.append(ConversationMessage(role="user", content=user_message))
            reply = self._format_result(result)
            self._history.append(ConversationMessage(role="assistant", content=reply))
            self._print(reply)

    def _format_result(self, result: OrchestratorResult) -> str:
        if result.output_text:
            return result.output_text
        return f"(no response; action={result.decision.action})"

    def _print(self, text: str) -> None:
        print(f"{self._LINE_PREFIX}{text}")

    async def _on_help(self) -> None:
        self._print("Available commands:")
        self._print("- /help")
        self._print("- /credits                 show the plan's available credits")
        self._print("- /cost                    show the plan price and credit grant")
        self._print("- /buy                     purchase the plan")
        self._print("- /redeem <credits>        burn credits from the plan")
        self._print("- /confirm <from_block>    wait for the burn transaction since a block")
        self._print("- /block                   show the latest block number")
        self._print("- /tools                   list the agent's tools")
        self._print("- /title                   summarize this conversation as a title")

    def _on_unknown(self, trimmed: str) -> None:
        self._print(f"Unknown local command: {trimmed}")

    async def _on_credits(self) -> None:
        self._print(f"Credits: {await self._orchestrator.get_credits()}")

    async def _on_cost(self) -> None:
        cost = await self._orchestrator.get_plan_cost()
        self._print(f"Plan price: {cost.price_normalized} for {cost.credits} credit(s)")

    async def _on_buy(self) -> None:
        order = await self._orchestrator.order_plan()
        self._print(order.message)

    async def _on_redeem(self, argument: str) -> None:
        if not argument:
            self._print("Usage: /redeem <credits>")
            return
        try:
            result = await self._orchestrator.redeem_credits(argument)
        except ValueError as ex:
            self._print(str(ex))
            return
        suffix = f" (tx: {result.tx_hash})" if result.tx_hash else ""
        self._print(f"{result.message}{suffix}")

    async def _on_confirm(self, argument: str) -> None:
        if not argument.isdigit():
            self._print("Usage: /confirm <from_block>")
            return
        self._print("Waiting for burn confirmation...")
        confirmation = await self._orchestrator.find_burn_confirmation(int(argument))
        if confirmation is None:
            self._print("No burn transaction found")
            return
        self._print(f"Burned {confirmation.credits} credit(s) in tx {confirmation.tx_hash}")

    async def _on_block(self) -> None:
        self._print(f"Latest block: {await self._orchestrator.get_current_block()}")

    async def _on_tools(self) -> None:
        tools = await self._orchestrator.list_tools()
        if not tools:
            self._print("No tools available.")
            return
        for tool in tools:
            self._print(f"- {tool.name}: {tool.description}" if tool.description else f"- {tool.name}")

    async def _on_title(self) -> None:
        if not self._history:
            self._print("Nothing to summarize yet.")
            return
        self._print(await self._orchestrator.summarize_title(self._history))
