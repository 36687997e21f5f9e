"""Tests for conversation state transitions."""

import pytest
from pydantic import ValidationError

from advisor.models.messages import Message, TextPart
from advisor.state.conversation import (
    AppendModelMessage,
    AppendUserMessage,
    BeginSend,
    BeginTool,
    ClearError,
    ConversationState,
    ConversationStore,
    EndTool,
    MergeContext,
    Reset,
    SetError,
    reduce,
)


class TestReducer:
    """Tests for individual state transitions."""

    def test_initial_state(self):
        """Test that a new state is empty and idle."""
        state = ConversationState()
        assert state.conversation_id.startswith("conv_")
        assert state.messages == ()
        assert state.is_loading is False
        assert state.is_tool_executing is False
        assert state.active_tool_name is None
        assert state.error is None
        assert state.active_context == {}

    def test_begin_send_sets_loading_and_clears_error(self):
        """Test that starting a send shows activity and drops the old error."""
        state = ConversationState(error="previous failure")
        state = reduce(state, BeginSend())
        assert state.is_loading is True
        assert state.error is None

    def test_append_user_message_keeps_loading(self):
        """Test that the user's message does not end the loading indicator."""
        state = reduce(ConversationState(), BeginSend())
        state = reduce(state, AppendUserMessage(Message.user("Hello")))
        assert state.is_loading is True
        assert state.messages[0].role == "user"

    def test_append_model_message_clears_loading(self):
        """Test that a model message ends the loading indicator."""
        state = reduce(ConversationState(), BeginSend())
        state = reduce(state, AppendModelMessage(Message.model([TextPart(text="Hi")])))
        assert state.is_loading is False
        assert state.messages[0].role == "model"

    def test_append_preserves_existing_message_identity(self):
        """Test that appending never copies or rewrites earlier messages."""
        first = Message.user("one")
        state = reduce(ConversationState(), AppendUserMessage(first))
        state = reduce(state, AppendModelMessage(Message.model([TextPart(text="two")])))
        assert state.messages[0] is first

    def test_set_error_clears_all_activity(self):
        """Test that an error always leaves the state idle."""
        state = reduce(ConversationState(), BeginSend())
        state = reduce(state, BeginTool("get_transactions"))
        state = reduce(state, SetError("failed"))
        assert state.error == "failed"
        assert state.is_loading is False
        assert state.is_tool_executing is False
        assert state.active_tool_name is None
        assert state.active_tools == ()

    def test_clear_error(self):
        """Test that the error can be cleared without other changes."""
        state = reduce(ConversationState(error="oops"), ClearError())
        assert state.error is None

    def test_overlapping_tools_are_tracked(self):
        """Test that ending one of two running tools keeps the other active."""
        state = reduce(ConversationState(), BeginTool("a"))
        state = reduce(state, BeginTool("b"))
        assert state.active_tool_name == "b"

        state = reduce(state, EndTool("b"))
        assert state.is_tool_executing is True
        assert state.active_tool_name == "a"

        state = reduce(state, EndTool("a"))
        assert state.is_tool_executing is False
        assert state.active_tool_name is None

    def test_end_tool_without_name_ends_everything(self):
        """Test that an unnamed end clears every running tool."""
        state = reduce(ConversationState(), BeginTool("a"))
        state = reduce(state, BeginTool("b"))
        state = reduce(state, EndTool())
        assert state.active_tools == ()
        assert state.is_tool_executing is False

    def test_merge_context_is_shallow(self):
        """Test that context merges overwrite keys and keep the rest."""
        state = reduce(ConversationState(), MergeContext({"view": "Dashboard", "rounds": 1}))
        state = reduce(state, MergeContext({"rounds": 2}))
        assert state.active_context == {"view": "Dashboard", "rounds": 2}

    def test_reset_returns_fresh_state(self):
        """Test that reset discards messages, context and flags."""
        state = reduce(ConversationState(), AppendUserMessage(Message.user("Hello")))
        state = reduce(state, MergeContext({"view": "Budgets"}))
        state = reduce(state, BeginTool("a"))

        reset = reduce(state, Reset())

        assert reset.messages == ()
        assert reset.active_context == {}
        assert reset.is_tool_executing is False
        assert reset.conversation_id != state.conversation_id

    def test_unknown_action_raises(self):
        """Test that unknown actions are rejected."""
        with pytest.raises(TypeError, match="Unknown conversation action"):
            reduce(ConversationState(), object())

    def test_state_is_immutable(self):
        """Test that states cannot be modified in place."""
        state = ConversationState()
        with pytest.raises(ValidationError):
            state.is_loading = True


class TestConversationStore:
    """Tests for the state store."""

    def test_dispatch_notifies_listeners(self):
        """Test that listeners receive every new state."""
        store = ConversationStore()
        received = []
        store.subscribe(received.append)

        store.dispatch(BeginSend())
        store.dispatch(SetError("boom"))

        assert [s.is_loading for s in received] == [True, False]
        assert received[-1] is store.state

    def test_unsubscribe_stops_notifications(self):
        """Test that an unsubscribed listener is not called again."""
        store = ConversationStore()
        received = []
        unsubscribe = store.subscribe(received.append)

        store.dispatch(BeginSend())
        unsubscribe()
        store.dispatch(ClearError())

        assert len(received) == 1

    def test_failing_listener_does_not_block_others(self):
        """Test that one broken listener does not stop the dispatch."""
        store = ConversationStore()
        received = []

        def broken(state):
            raise RuntimeError("listener bug")

        store.subscribe(broken)
        store.subscribe(received.append)

        state = store.dispatch(BeginSend())

        assert state.is_loading is True
        assert len(received) == 1
