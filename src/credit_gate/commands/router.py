from __future__ import annotations

from collections.abc import Awaitable, Callable


class CommandRouter:
    def __init__(
        self,
        *,
        on_help: Callable[[], Awaitable[None]],
        on_credits: Callable[[], Awaitable[None]],
        on_cost: Callable[[], Awaitable[None]],
        on_buy: Callable[[], Awaitable[None]],
        on_redeem: Callable[[str], Awaitable[None]],
        on_confirm: Callable[[str], Awaitable[None]],
        on_block: Callable[[], Awaitable[None]],
        on_tools: Callable[[], Awaitable[None]],
        on_title: Callable[[], Awaitable[None]],
        on_unknown: Callable[[str], None],
    ) -> None:
        self._on_help = on_help
        self._on_credits = on_credits
        self._on_cost = on_cost
        self._on_buy = on_buy
        self._on_redeem = on_redeem
        self._on_confirm = on_confirm
        self._on_block = on_block
        self._on_tools = on_tools
        self._on_title = on_title
        self._on_unknown = on_unknown

    async def try_handle(self, user_message: str) -> bool:
        trimmed = user_message.strip()
        if not trimmed.startswith("/"):
            return False

        command, _, argument = trimmed.partition(" ")
        argument = argument.strip()

        if command == "/help":
            await self._on_help()
        elif command == "/credits":
            await self._on_credits()
        elif command == "/cost":
            await self._on_cost()
        elif command == "/buy":
            await self._on_buy()
        elif command == "/redeem":
            await self._on_redeem(argument)
        elif command == "/confirm":
            await self._on_confirm(argument)
        elif command == "/block":
            await self._on_block()
        elif command == "/tools":
            await self._on_tools()
        elif command == "/title":
            await self._on_title()
        else:
            self._on_unknown(trimmed)
        return True
