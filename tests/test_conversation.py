"""Unit tests for the conversation module."""
import pytest
from hypothesis import given
from hypothesis import strategies as st

from civicchat.conversation import (
    ConnectionStatus,
    FeedbackType,
    MessageRole,
    MessageStatus,
    MessageStore,
    Session,
    new_session_token,
)


class TestMessageStore:
    """Tests for MessageStore."""

    def test_append_assigns_increasing_ids(self):
        """Test that ids follow append order."""
        store = MessageStore()
        first = store.append(MessageRole.USER, "Hola", MessageStatus.PENDING)
        second = store.append(MessageRole.ASSISTANT, "Buenos días")

        assert first.id == "msg_000001"
        assert second.id == "msg_000002"
        assert first.seq < second.seq
        assert [m.id for m in store.messages] == [first.id, second.id]

    def test_only_user_messages_carry_status(self):
        """Test that assistant and system messages reject a status."""
        store = MessageStore()
        with pytest.raises(ValueError):
            store.append(MessageRole.ASSISTANT, "x", MessageStatus.SENT)

    def test_update_status_replaces_in_place(self):
        """Test that a status update keeps position and id."""
        store = MessageStore()
        user = store.append(MessageRole.USER, "¿Horario?", MessageStatus.PENDING)
        store.append(MessageRole.ASSISTANT, "De 8 a 14")

        updated = store.update_status(user.id, MessageStatus.SENT)

        assert updated.status == MessageStatus.SENT
        assert store.messages[0].id == user.id
        assert store.messages[0].status == MessageStatus.SENT
        assert len(store) == 2

    def test_update_status_of_missing_message_returns_none(self):
        """Test updating a message that is not stored."""
        store = MessageStore()
        assert store.update_status("msg_999999", MessageStatus.SENT) is None

    def test_update_status_rejects_assistant_message(self):
        """Test that delivery status is only tracked for user turns."""
        store = MessageStore()
        message = store.append(MessageRole.ASSISTANT, "Hola")
        with pytest.raises(ValueError):
            store.update_status(message.id, MessageStatus.FAILED)

    def test_messages_are_immutable(self):
        """Test that stored messages cannot be changed by callers."""
        store = MessageStore()
        message = store.append(MessageRole.USER, "Hola", MessageStatus.PENDING)
        with pytest.raises(ValueError):
            message.content = "changed"  # type: ignore[misc]

    def test_long_conversation_keeps_every_message(self):
        """Test that nothing is dropped from a long conversation."""
        store = MessageStore()
        ids = [store.append(MessageRole.USER, str(i), MessageStatus.SENT).id for i in range(120)]

        assert [m.id for m in store.messages] == ids
        assert store.messages[0].content == "0"

    def test_clear_keeps_sequence_increasing(self):
        """Test that ids are never reused after a clear."""
        store = MessageStore()
        before = store.append(MessageRole.USER, "a", MessageStatus.SENT)
        store.clear()
        after = store.append(MessageRole.USER, "b", MessageStatus.SENT)

        assert len(store) == 1
        assert after.seq > before.seq
        assert after.id != before.id

    def test_last_filters_by_role(self):
        """Test retrieving the most recent message of a role."""
        store = MessageStore()
        store.append(MessageRole.USER, "q1", MessageStatus.SENT)
        answer = store.append(MessageRole.ASSISTANT, "a1")
        store.append(MessageRole.USER, "q2", MessageStatus.PENDING)

        assert store.last(MessageRole.ASSISTANT) == answer
        assert store.last().content == "q2"
        assert store.last(MessageRole.SYSTEM) is None

    def test_record_feedback(self):
        """Test that feedback is kept on the assistant message."""
        store = MessageStore()
        answer = store.append(MessageRole.ASSISTANT, "a1", server_id="42")
        store.record_feedback(answer.id, FeedbackType.HELPFUL)

        assert store.get(answer.id).feedback == FeedbackType.HELPFUL

    @given(st.lists(st.sampled_from(list(MessageRole)), max_size=80))
    def test_order_matches_append_order(self, roles):
        """Property test: the log holds every append, in order."""
        store = MessageStore()
        appended = []
        for role in roles:
            status = MessageStatus.PENDING if role == MessageRole.USER else None
            appended.append(store.append(role, "x", status).id)

        assert [m.id for m in store.messages] == appended
        seqs = [m.seq for m in store.messages]
        assert seqs == sorted(seqs)


class TestSession:
    """Tests for Session and token creation."""

    def test_token_format(self):
        """Test that tokens are prefixed and unique."""
        first = new_session_token()
        second = new_session_token()

        assert first.startswith("web_")
        assert first != second

    def test_new_session_is_connected(self):
        """Test defaults of a fresh session."""
        session = Session()

        assert session.token.startswith("web_")
        assert session.connection_status == ConnectionStatus.CONNECTED
        assert session.is_connected
