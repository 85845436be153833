import asyncio
import tempfile
import unittest
from pathlib import Path

from credit_gate.errors import MalformedResponse, UpstreamProviderError
from credit_gate.models import ConversationMessage, RouterAction, RouterDecision
from credit_gate.prompts import ROUTER_PROMPT_FILE, ROUTER_SYSTEM_PROMPT, PromptLoader
from credit_gate.router import MessageRouter, parse_router_response
from tests.fakes import FakeProvider


class ParseRouterResponseTests(unittest.TestCase):
    def test_extracts_embedded_decision(self) -> None:
        decision = parse_router_response('Sure. {"action":"no_credit","message":"Buy a plan"} Thanks.')
        self.assertEqual("no_credit", decision.action)
        self.assertEqual("Buy a plan", decision.message)
        self.assertEqual(RouterAction.NO_CREDIT, decision.resolved_action)

    def test_message_is_optional(self) -> None:
        decision = parse_router_response('{"action": "forward"}')
        self.assertEqual(RouterAction.FORWARD, decision.resolved_action)
        self.assertIsNone(decision.message)

    def test_non_string_message_is_coerced(self) -> None:
        decision = parse_router_response('{"action": "no_action", "message": 42}')
        self.assertEqual("42", decision.message)

    def test_no_json_raises(self) -> None:
        with self.assertRaises(MalformedResponse) as ctx:
            parse_router_response("I think you should forward this")
        self.assertEqual("I think you should forward this", ctx.exception.raw_text)

    def test_missing_action_raises(self) -> None:
        with self.assertRaises(MalformedResponse):
            parse_router_response('{"message": "hello"}')

    def test_malformed_decision_does_not_fall_through_to_nested_action(self) -> None:
        with self.assertRaises(MalformedResponse):
            parse_router_response('{"action": forward, "why": {"action": "order_plan"}}')

    def test_malformed_decision_does_not_fall_through_to_later_object(self) -> None:
        with self.assertRaises(MalformedResponse):
            parse_router_response('Plan {action: forward} then {"action":"order_plan"}')

    def test_unknown_action_resolves_to_no_action(self) -> None:
        decision = parse_router_response('{"action": "refund", "message": "?"}')
        self.assertEqual("refund", decision.action)
        self.assertEqual(RouterAction.NO_ACTION, decision.resolved_action)


class MessageRouterTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        Path(self._tmp.name, ROUTER_PROMPT_FILE).write_text("ROUTING RULES", encoding="utf-8")
        self.prompts = PromptLoader(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_decide_builds_prompt_with_credits_and_history(self) -> None:
        provider = FakeProvider('{"action": "forward"}')
        router = MessageRouter(provider, self.prompts)
        history = [ConversationMessage("user", "hi"), ConversationMessage("assistant", "hello")]

        decision = asyncio.run(router.decide("Weather in Lima?", history, 3))

        self.assertEqual(RouterDecision(action="forward"), decision)
        call = provider.calls[0]
        self.assertEqual(ROUTER_SYSTEM_PROMPT, call["system_prompt"])
        self.assertEqual(512, call["max_tokens"])
        self.assertEqual(0.2, call["temperature"])
        self.assertIn("ROUTING RULES", call["user_prompt"])
        self.assertIn('"Weather in Lima?"', call["user_prompt"])
        self.assertIn("User credits: 3", call["user_prompt"])
        self.assertIn('"role": "assistant"', call["user_prompt"])

    def test_zero_credits_is_passed_through(self) -> None:
        provider = FakeProvider('{"action": "no_credit", "message": "Buy a plan"}')
        router = MessageRouter(provider, self.prompts)

        decision = asyncio.run(router.decide("Weather?", [], 0))

        self.assertEqual(RouterAction.NO_CREDIT, decision.resolved_action)
        self.assertIn("User credits: 0", provider.calls[0]["user_prompt"])

    def test_empty_message_is_rejected(self) -> None:
        router = MessageRouter(FakeProvider(), self.prompts)
        with self.assertRaises(ValueError):
            asyncio.run(router.decide("   ", [], 1))

    def test_negative_credits_are_rejected(self) -> None:
        router = MessageRouter(FakeProvider(), self.prompts)
        with self.assertRaises(ValueError):
            asyncio.run(router.decide("hi", [], -1))

    def test_provider_failure_propagates(self) -> None:
        router = MessageRouter(FakeProvider(UpstreamProviderError("openai", "down")), self.prompts)
        with self.assertRaises(UpstreamProviderError):
            asyncio.run(router.decide("hi", [], 1))

    def test_malformed_output_is_not_retried(self) -> None:
        provider = FakeProvider("no json", '{"action": "forward"}')
        router = MessageRouter(provider, self.prompts)
        with self.assertRaises(MalformedResponse):
            asyncio.run(router.decide("hi", [], 1))
        self.assertEqual(1, len(provider.calls))


if __name__ == "__main__":
    unittest.main()
