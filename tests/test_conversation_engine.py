"""Tests for the conversation engine."""

import asyncio

import pytest

from advisor.config import EngineConfig
from advisor.models.messages import RichContentPart, TextPart, ToolResultPart
from advisor.models.rich_content import BarChartContent
from advisor.services.conversation import (
    CANCELLED_ERROR,
    EMPTY_RESPONSE_TEXT,
    INITIALIZATION_ERROR,
    MAX_ROUNDS_TEXT,
    MISSING_CREDENTIAL_ERROR,
    MODEL_SERVICE_ERROR,
    ConversationEngine,
)
from advisor.services.credentials import MissingCredentialError
from advisor.services.tool_executor import ToolExecutor
from advisor.tools.registry import ToolsRegistry
from tests.stubs import ScriptedModelService, default_registry, make_engine, simple_tool, text_turn, tool_turn


class TestPlainReplies:
    """Tests for turns without tool calls."""

    @pytest.mark.asyncio
    async def test_text_reply_appends_user_and_model_messages(self):
        """Test that a text-only reply ends the turn after one model call."""
        service = ScriptedModelService(text_turn("Hello! How can I help?"))
        engine = make_engine(service)

        state = await engine.send_message("Hi there")

        assert [m.role for m in state.messages] == ["user", "model"]
        assert state.messages[0].text == "Hi there"
        assert state.messages[1].text == "Hello! How can I help?"
        assert state.messages[1].metadata["stop_reason"] == "end_turn"
        assert state.is_loading is False
        assert state.error is None
        assert service.inputs == ["Hi there"]

    @pytest.mark.asyncio
    async def test_empty_message_is_ignored(self):
        """Test that blank input never reaches the model."""
        service = ScriptedModelService(text_turn("unused"))
        engine = make_engine(service)

        state = await engine.send_message("   ")

        assert state.messages == ()
        assert service.inputs == []

    @pytest.mark.asyncio
    async def test_empty_final_text_uses_fallback(self):
        """Test that an empty model reply is replaced with an apology."""
        engine = make_engine(ScriptedModelService(text_turn(None)))

        state = await engine.send_message("Hello")

        assert state.messages[-1].text == EMPTY_RESPONSE_TEXT

    @pytest.mark.asyncio
    async def test_rich_content_is_split_from_text(self):
        """Test that fenced rich content blocks become rich content parts."""
        reply = (
            "Here is your spending.\n"
            "```rich_content\n"
            '{"type": "bar_chart", "data": {"dataKey": "amount", "items": [{"name": "Rent", "amount": 1850}]}}\n'
            "```"
        )
        engine = make_engine(ScriptedModelService(text_turn(reply)))

        state = await engine.send_message("Chart my spending")

        parts = state.messages[-1].parts
        assert isinstance(parts[0], TextPart)
        assert parts[0].text == "Here is your spending."
        assert isinstance(parts[1], RichContentPart)
        assert isinstance(parts[1].payload, BarChartContent)

    @pytest.mark.asyncio
    async def test_request_context_reaches_model(self):
        """Test that context passed with a message is merged before sending."""
        service = ScriptedModelService(text_turn("ok"))
        engine = make_engine(service)

        state = await engine.send_message("Hi", context={"current_view": "Dashboard"})

        assert service.states[0].active_context["current_view"] == "Dashboard"
        assert state.active_context["last_stop_reason"] == "end_turn"


class TestToolRounds:
    """Tests for tool-calling rounds."""

    @pytest.mark.asyncio
    async def test_balance_question_produces_four_messages(self):
        """Test the summary tool flow: user, model call, tool-log, final answer."""
        service = ScriptedModelService(
            tool_turn(("get_financial_summary", {}), text="Let me check your balance."),
            text_turn("Your total balance is $8,484.05."),
        )
        engine = make_engine(service)

        state = await engine.send_message("What's my total balance?")

        user, call, log, answer = state.messages
        assert [m.role for m in state.messages] == ["user", "model", "tool-log", "model"]
        assert call.text == "Let me check your balance."
        assert call.tool_calls[0].name == "get_financial_summary"
        assert call.tool_calls[0].call_id == "toolu_0"
        assert log.tool_results[0].response["total_balance"] == 8484.05
        assert answer.text == "Your total balance is $8,484.05."

        results = service.inputs[1]
        assert [r.call_id for r in results] == ["toolu_0"]
        assert state.active_context["last_tool_calls"] == ["get_financial_summary"]
        assert state.active_context["tool_rounds"] == 1

    @pytest.mark.asyncio
    async def test_results_follow_request_order_not_completion_order(self):
        """Test that a round's results keep the order the model asked for them."""
        finished: list[str] = []

        async def slow_failure(params):
            await asyncio.sleep(0.03)
            finished.append("a")
            raise RuntimeError("boom")

        async def fast(params):
            await asyncio.sleep(0)
            finished.append("b")
            return {"value": "b"}

        async def medium(params):
            await asyncio.sleep(0.01)
            finished.append("c")
            return {"value": "c"}

        registry = ToolsRegistry([simple_tool("a", slow_failure), simple_tool("b", fast), simple_tool("c", medium)])
        service = ScriptedModelService(tool_turn(("a", {}), ("b", {}), ("c", {})), text_turn("done"))
        engine = make_engine(service, registry=registry)

        state = await engine.send_message("Run everything")

        log = state.messages[2]
        assert finished == ["b", "c", "a"]
        assert [r.name for r in log.tool_results] == ["a", "b", "c"]
        assert log.tool_results[0].response == {"error": "boom"}
        assert log.tool_results[1].response == {"value": "b"}
        assert log.tool_results[2].response == {"value": "c"}

    @pytest.mark.asyncio
    async def test_calls_run_concurrently_and_flags_clear(self):
        """Test that every call of a round is in flight at once."""
        seen_active: list[tuple[str, ...]] = []

        async def handler(params):
            await asyncio.sleep(0.01)
            return {"ok": True}

        registry = ToolsRegistry([simple_tool("a", handler), simple_tool("b", handler), simple_tool("c", handler)])
        engine = make_engine(
            ScriptedModelService(tool_turn(("a", {}), ("b", {}), ("c", {})), text_turn("done")),
            registry=registry,
        )
        engine.subscribe(lambda s: seen_active.append(s.active_tools))

        state = await engine.send_message("Go")

        assert max(len(active) for active in seen_active) == 3
        assert state.active_tools == ()
        assert state.is_tool_executing is False
        assert state.active_tool_name is None

    @pytest.mark.asyncio
    async def test_unknown_tool_does_not_affect_siblings(self):
        """Test that an unknown tool yields an error result beside normal results."""
        service = ScriptedModelService(
            tool_turn(("transfer_funds", {"amount": 100}), ("get_financial_summary", {})),
            text_turn("I couldn't do that."),
        )
        engine = make_engine(service)

        state = await engine.send_message("Move money")

        results = state.messages[2].tool_results
        assert results[0].name == "transfer_funds"
        assert results[0].response == {"error": "unknown tool"}
        assert results[1].response["net_worth"] == 108484.05
        assert state.error is None

    @pytest.mark.asyncio
    async def test_invalid_arguments_become_error_result(self):
        """Test that schema violations are reported to the model, not raised."""
        service = ScriptedModelService(
            tool_turn(("get_transactions", {"min_amount": 500, "max_amount": 100})),
            text_turn("Those filters don't make sense."),
        )
        engine = make_engine(service)

        state = await engine.send_message("Show transactions")

        result = state.messages[2].tool_results[0]
        assert result.is_error
        assert result.response["error"].startswith("invalid arguments")


class TestRoundLimit:
    """Tests for the bound on tool rounds."""

    @pytest.mark.asyncio
    async def test_model_is_called_one_more_time_than_the_limit(self):
        """Test that a model that never stops asking for tools is cut off."""
        service = ScriptedModelService(
            tool_turn(("get_financial_summary", {}), text="Checking again..."),
            repeat_last=True,
        )
        engine = make_engine(service, config=EngineConfig(max_tool_rounds=2))

        state = await engine.send_message("Loop forever")

        assert len(service.inputs) == 3
        assert [m.role for m in state.messages].count("tool-log") == 2

        final = state.messages[-1]
        assert final.role == "model"
        assert final.text == "Checking again..."
        assert final.tool_calls == []
        assert final.metadata["stop_reason"] == "max_tool_rounds"
        assert state.is_loading is False
        assert state.error is None

    @pytest.mark.asyncio
    async def test_zero_rounds_never_dispatches_tools(self):
        """Test that a zero limit ends the turn at the first response."""
        service = ScriptedModelService(tool_turn(("get_financial_summary", {})))
        engine = make_engine(service, config=EngineConfig(max_tool_rounds=0))

        state = await engine.send_message("Balance?")

        assert len(service.inputs) == 1
        assert [m.role for m in state.messages] == ["user", "model"]
        assert state.messages[-1].text == MAX_ROUNDS_TEXT


class TestAppendOnlyHistory:
    """Tests for message history stability."""

    @pytest.mark.asyncio
    async def test_every_transition_extends_the_previous_history(self):
        """Test that no transition rewrites or drops an existing message."""
        snapshots = []
        service = ScriptedModelService(
            tool_turn(("get_financial_summary", {}), ("analyze_spending_by_category", {})),
            text_turn("Summary ready."),
            text_turn("Anything else?"),
        )
        engine = make_engine(service)
        engine.subscribe(snapshots.append)

        await engine.send_message("First")
        await engine.send_message("Second")

        for before, after in zip(snapshots, snapshots[1:]):
            assert len(after.messages) >= len(before.messages)
            assert all(a is b for a, b in zip(before.messages, after.messages))
        assert len(snapshots[-1].messages) == 6


class TestResetAndStaleTurns:
    """Tests for resetting while a turn is in flight."""

    @pytest.mark.asyncio
    async def test_late_tool_results_are_dropped_after_reset(self):
        """Test that a round finishing after a reset leaves the new conversation untouched."""
        started = asyncio.Event()
        release = asyncio.Event()

        async def blocking(params):
            started.set()
            await release.wait()
            return {"ok": True}

        service = ScriptedModelService(tool_turn(("blocking", {})), text_turn("never sent"))
        engine = make_engine(service, registry=ToolsRegistry([simple_tool("blocking", blocking)]))
        old_id = engine.state.conversation_id

        task = asyncio.create_task(engine.send_message("Start"))
        await started.wait()
        assert engine.state.is_tool_executing is True

        reset_state = engine.reset_conversation()
        release.set()
        final_state = await task

        assert reset_state.conversation_id != old_id
        assert final_state.conversation_id == reset_state.conversation_id
        assert final_state.messages == ()
        assert final_state.is_tool_executing is False
        assert final_state.active_tools == ()
        assert final_state.is_loading is False
        assert len(service.inputs) == 1
        assert service.reset_count == 1

    @pytest.mark.asyncio
    async def test_late_model_reply_is_dropped_after_reset(self):
        """Test that a model reply arriving after a reset is discarded."""
        release = asyncio.Event()

        async def delayed_reply():
            await release.wait()
            return text_turn("Too late")

        service = ScriptedModelService(delayed_reply)
        engine = make_engine(service)

        task = asyncio.create_task(engine.send_message("Hello"))
        await asyncio.sleep(0)
        assert engine.state.is_loading is True

        engine.reset_conversation()
        release.set()
        state = await task

        assert state.messages == ()
        assert state.is_loading is False

    @pytest.mark.asyncio
    async def test_reset_is_idempotent(self):
        """Test that resetting twice yields two fresh empty conversations."""
        engine = make_engine(ScriptedModelService(text_turn("hi")))
        await engine.send_message("Hello")

        first = engine.reset_conversation()
        second = engine.reset_conversation()

        assert first.messages == second.messages == ()
        assert first.conversation_id != second.conversation_id
        assert second.active_context == {}


class TestErrors:
    """Tests for failure handling."""

    @pytest.mark.asyncio
    async def test_model_failure_sets_error_and_clears_flags(self):
        """Test that a model service exception ends the turn with an error."""
        engine = make_engine(ScriptedModelService(RuntimeError("provider down")))

        state = await engine.send_message("Hello")

        assert state.error == MODEL_SERVICE_ERROR
        assert state.is_loading is False
        assert state.is_tool_executing is False
        assert [m.role for m in state.messages] == ["user"]

    @pytest.mark.asyncio
    async def test_failure_after_tool_round_keeps_history(self):
        """Test that an error on the follow-up call keeps the round's messages."""
        service = ScriptedModelService(tool_turn(("get_financial_summary", {})), RuntimeError("provider down"))
        engine = make_engine(service)

        state = await engine.send_message("Balance?")

        assert [m.role for m in state.messages] == ["user", "model", "tool-log"]
        assert state.error == MODEL_SERVICE_ERROR
        assert state.active_tools == ()
        assert state.is_loading is False

    @pytest.mark.asyncio
    async def test_model_timeout_sets_error(self):
        """Test that a model call exceeding its timeout is reported as an error."""

        async def hang():
            await asyncio.sleep(5)
            return text_turn("late")

        engine = make_engine(ScriptedModelService(hang), config=EngineConfig(model_timeout=0.05))

        state = await engine.send_message("Hello")

        assert state.error == MODEL_SERVICE_ERROR
        assert state.is_loading is False

    @pytest.mark.asyncio
    async def test_cancelled_turn_clears_flags(self):
        """Test that cancelling a turn mid-tool leaves no activity flags set."""
        started = asyncio.Event()

        async def blocking(params):
            started.set()
            await asyncio.Event().wait()

        service = ScriptedModelService(tool_turn(("blocking", {})), text_turn("never sent"))
        engine = make_engine(service, registry=ToolsRegistry([simple_tool("blocking", blocking)]))

        task = asyncio.create_task(engine.send_message("Start"))
        await started.wait()
        assert engine.state.is_loading is False
        assert engine.state.is_tool_executing is True

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert engine.state.error == CANCELLED_ERROR
        assert engine.state.is_loading is False
        assert engine.state.active_tools == ()

    @pytest.mark.asyncio
    async def test_cancelled_model_call_clears_loading(self):
        """Test that cancelling while waiting on the model clears the loading flag."""

        async def hang():
            await asyncio.Event().wait()

        engine = make_engine(ScriptedModelService(hang))

        task = asyncio.create_task(engine.send_message("Hello"))
        await asyncio.sleep(0)
        assert engine.state.is_loading is True

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert engine.state.is_loading is False
        assert engine.state.error == CANCELLED_ERROR

    @pytest.mark.asyncio
    async def test_next_send_clears_previous_error(self):
        """Test that starting a new turn clears the last error."""
        engine = make_engine(ScriptedModelService(RuntimeError("down"), text_turn("Back online")))

        await engine.send_message("First")
        state = await engine.send_message("Second")

        assert state.error is None
        assert state.messages[-1].text == "Back online"

    @pytest.mark.asyncio
    async def test_missing_credential_is_a_configuration_error(self):
        """Test that a missing API key stops the turn before anything is appended."""

        def factory():
            raise MissingCredentialError("anthropic")

        engine = ConversationEngine(factory, ToolExecutor(default_registry()))

        state = await engine.send_message("Hello")

        assert state.error == MISSING_CREDENTIAL_ERROR
        assert state.messages == ()
        assert state.is_loading is False

    @pytest.mark.asyncio
    async def test_factory_is_retried_after_initialization_failure(self):
        """Test that a failed model service build is retried on the next send."""
        service = ScriptedModelService(text_turn("Ready"))
        attempts = []

        def factory():
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("bad config")
            return service

        engine = ConversationEngine(factory, ToolExecutor(default_registry()))

        first = await engine.send_message("Hello")
        assert first.error == INITIALIZATION_ERROR

        second = await engine.send_message("Hello again")
        assert second.error is None
        assert second.messages[-1].text == "Ready"


class TestPriming:
    """Tests for the greeting message."""

    def test_prime_adds_greeting_once(self):
        """Test that the greeting is only added to an empty conversation."""
        engine = make_engine(ScriptedModelService())

        engine.prime("Welcome!")
        state = engine.prime("Welcome again!")

        assert len(state.messages) == 1
        assert state.messages[0].role == "model"
        assert state.messages[0].text == "Welcome!"


class TestToolResultParts:
    """Tests for tool results sent back to the model."""

    @pytest.mark.asyncio
    async def test_results_sent_to_model_match_tool_log(self):
        """Test that the model receives exactly the results shown in the tool-log."""
        service = ScriptedModelService(
            tool_turn(("get_financial_summary", {}), ("get_ledger_accounts", {})),
            text_turn("Done."),
        )
        engine = make_engine(service)

        state = await engine.send_message("Summarize")

        sent = service.inputs[1]
        assert all(isinstance(part, ToolResultPart) for part in sent)
        assert tuple(sent) == state.messages[2].parts
