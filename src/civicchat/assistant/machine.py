"""Conversation state machine.

The single authority over the message log, the session identity and
whether a request is in flight. The transport and the retry policies are
consulted, never handed the shared state.

Hides:
- Which transitions are legal from each state
- Scheduling of retry backoff and reconnect probes as asyncio tasks
- Cancellation of stale work through a generation counter
"""

import asyncio
from collections.abc import Callable
from typing import Any

from ..conversation.models import (
    ConnectionStatus,
    FeedbackType,
    Message,
    MessageRole,
    MessageStatus,
    Session,
    new_session_token,
)
from ..conversation.store import MessageStore
from ..retry.policy import ReconnectPolicy, RetryDecision, RetryPolicy
from ..transport.base import ChatTransport
from ..transport.models import AssistantReply, ChatError, Err, ErrorKind, Ok
from .events import ChatState, Snapshot, Transition, TransitionListener, TransitionReason


def _is_current(task: asyncio.Task) -> bool:
    try:
        return task is asyncio.current_task()
    except RuntimeError:
        return False


class ConversationStateMachine:
    """Stateful conversation with the assistant backend.

    One instance per widget. At most one request is outstanding per
    session: a submit while a request is in flight is a no-op.

    Usage:
        machine = ConversationStateMachine(transport)
        machine.subscribe(lambda transition: print(transition.current))
        await machine.send_message("¿Cómo pago el impuesto predial?")
        print(machine.messages[-1].content)
        await machine.close()
    """

    def __init__(
        self,
        transport: ChatTransport,
        retry_policy: RetryPolicy | None = None,
        reconnect_policy: ReconnectPolicy | None = None,
        max_input_length: int = 1000,
        typing_delay: float = 0.0,
        user_id: str | None = None,
        token_factory: Callable[[], str] = new_session_token,
    ) -> None:
        self._transport = transport
        self._retry_policy = retry_policy or RetryPolicy()
        self._reconnect_policy = reconnect_policy or ReconnectPolicy()
        self._max_input_length = max_input_length
        self._typing_delay = typing_delay
        self._user_id = user_id
        self._token_factory = token_factory

        self._store = MessageStore()
        self._session = Session(token=token_factory())
        self._state = ChatState.IDLE
        self._error: ChatError | None = None

        # Bumped by clear/close; work started under an older value is ignored
        self._generation = 0
        self._request_task: asyncio.Task | None = None
        self._timer_task: asyncio.Task | None = None
        self._stale_tasks: set[asyncio.Task] = set()

        self._held_id: str | None = None  # User message of the unresolved turn
        self._typing_reply: AssistantReply | None = None  # Received, not yet shown
        # Where a successful reconnect returns to, and whether it replays the held turn
        self._resume_state = ChatState.IDLE
        self._replay_on_reconnect = False
        self._retry_attempts = 0
        self._listeners: list[TransitionListener] = []
        self._debug_callback: Any = None
        self._closed = False

    # ------------------------------------------------------------------
    # Observables
    # ------------------------------------------------------------------

    @property
    def state(self) -> ChatState:
        return self._state

    @property
    def messages(self) -> tuple[Message, ...]:
        return self._store.messages

    @property
    def is_loading(self) -> bool:
        return self._state in (ChatState.SENDING, ChatState.AWAITING_REPLY)

    @property
    def is_typing(self) -> bool:
        return self._state == ChatState.TYPING

    @property
    def error(self) -> str | None:
        """Developer-facing description of the last failure."""
        return self._error.describe() if self._error else None

    @property
    def last_error(self) -> ChatError | None:
        return self._error

    @property
    def is_connected(self) -> bool:
        return self._session.is_connected

    @property
    def connection_status(self) -> ConnectionStatus:
        return self._session.connection_status

    @property
    def session_token(self) -> str:
        return self._session.token

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def held_message(self) -> Message | None:
        """User message of the turn that is still unresolved, if any."""
        return self._store.get(self._held_id) if self._held_id else None

    @property
    def retry_pending(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    def snapshot(self) -> Snapshot:
        return Snapshot(
            state=self._state,
            messages=self._store.messages,
            error=self._error,
            session_token=self._session.token,
            connection_status=self._session.connection_status,
        )

    # ------------------------------------------------------------------
    # Subscriptions and diagnostics
    # ------------------------------------------------------------------

    def subscribe(self, listener: TransitionListener) -> Callable[[], None]:
        """Register a listener for every transition.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_debug_callback(self, callback: Any) -> None:
        """Set the debug callback for detailed diagnostics.

        Args:
            callback: Callable(level: str, component: str, message: str)
                      level: 'debug', 'info', 'warning', 'error'

        The callback is propagated to the transport.
        """
        self._debug_callback = callback
        self._transport.set_debug_callback(callback)

    def _debug(self, level: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, "Chat", message)

    def _set_state(
        self,
        state: ChatState,
        reason: TransitionReason,
        reply: Message | None = None
    ) -> None:
        previous, self._state = self._state, state
        self._debug("debug", f"{previous.value} -> {state.value} ({reason.value})")
        transition = Transition(
            previous=previous,
            current=state,
            reason=reason,
            snapshot=self.snapshot(),
            reply=reply,
        )
        for listener in list(self._listeners):
            listener(transition)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def send_message(self, text: str) -> None:
        """Submit a user turn.

        Blank input, input over the length limit, and input arriving while
        a request is in flight or the connection is down are ignored.
        A submit during TYPING shows the received reply at once and then
        starts the new turn. Returns once the first attempt of the turn has
        resolved; automatic retries continue in the background.
        """
        self._ensure_open()
        content = text.strip()
        if not content:
            return
        if len(content) > self._max_input_length:
            self._debug(
                "warning",
                f"Rejected message of {len(content)} chars (max {self._max_input_length})"
            )
            return
        if self._state == ChatState.TYPING:
            self._cancel_request()
            self._land_typed_reply()
        if self._state not in (ChatState.IDLE, ChatState.ERROR):
            self._debug("info", f"Rejected submit while {self._state.value}")
            return

        # A new turn abandons a failed one and any retry scheduled for it
        self._cancel_timer()
        message = self._store.append(MessageRole.USER, content, MessageStatus.PENDING)
        self._held_id = message.id
        self._retry_attempts = 0
        self._error = None
        task = self._dispatch(message.id, TransitionReason.SUBMITTED)
        await asyncio.wait({task})

    async def retry_last_message(self) -> None:
        """Re-issue the failed or held turn, resetting the retry counter."""
        self._ensure_open()
        if self._state not in (ChatState.ERROR, ChatState.DISCONNECTED) or self._held_id is None:
            self._debug("info", f"Nothing to retry while {self._state.value}")
            return
        self._cancel_timer()
        self._retry_attempts = 0
        task = self._resend(TransitionReason.MANUAL_RETRY)
        if task is not None:
            await asyncio.wait({task})

    async def reconnect(self) -> bool:
        """Probe the backend now and resume on success.

        An interrupted turn is replayed; a turn that had given up is left
        in ERROR for a manual retry.

        Returns:
            True if the conversation is connected afterwards
        """
        self._ensure_open()
        if self._state != ChatState.DISCONNECTED:
            return self.is_connected

        self._cancel_timer()
        generation = self._generation
        self._session.connection_status = ConnectionStatus.RECONNECTING
        self._set_state(ChatState.DISCONNECTED, TransitionReason.RECONNECTING)

        reachable = await self._transport.probe()
        if generation != self._generation or self._state != ChatState.DISCONNECTED:
            return self.is_connected
        if not reachable:
            self._debug("info", "Manual reconnect failed, resuming probes")
            self._start_probing()
            return False

        task = self._on_reconnected()
        if task is not None:
            await asyncio.wait({task})
        return True

    def clear_error(self) -> None:
        """Dismiss the last failure.

        From ERROR this returns to IDLE and abandons the failed turn,
        cancelling any automatic retry. Messages are left untouched.
        """
        self._error = None
        if self._state == ChatState.ERROR:
            self._cancel_timer()
            self._held_id = None
            self._retry_attempts = 0
            self._set_state(ChatState.IDLE, TransitionReason.ERROR_CLEARED)
        else:
            self._set_state(self._state, TransitionReason.ERROR_CLEARED)

    def clear_messages(self) -> None:
        """Empty the conversation and start a fresh session.

        Pending retries and probes are cancelled. A request still in flight
        is left to finish, but its result is ignored.
        """
        self._generation += 1
        self._cancel_timer()
        self._detach_request()
        self._store.clear()
        self._session = Session(token=self._token_factory())
        self._error = None
        self._held_id = None
        self._typing_reply = None
        self._retry_attempts = 0
        self._debug("info", "Conversation cleared")
        self._set_state(ChatState.IDLE, TransitionReason.CLEARED)

    def mark_connectivity_lost(self) -> None:
        """Report a connectivity loss detected by the host environment.

        Ignored while a request is in flight, whose own outcome decides, and
        while a received reply is being typed. A successful reconnect returns
        to the state held before the loss; only a turn that was waiting on an
        automatic retry is replayed.
        """
        if self._state.busy or self._state in (ChatState.TYPING, ChatState.DISCONNECTED):
            return
        replay = self._state == ChatState.ERROR and self.retry_pending
        self._enter_disconnected(resume_state=self._state, replay=replay)

    async def submit_feedback(
        self,
        message_id: str,
        feedback: FeedbackType | str,
        comment: str | None = None
    ) -> Ok[None] | Err:
        """Rate an assistant reply.

        Raises:
            ValueError: If the message cannot receive feedback
        """
        self._ensure_open()
        feedback = FeedbackType(feedback)
        message = self._store.get(message_id)
        if message is None or not message.is_assistant:
            raise ValueError(f"No assistant message with id {message_id}")
        if message.server_id is None:
            raise ValueError(f"Message {message_id} has no backend id")
        if message.feedback is not None:
            raise ValueError(f"Feedback already given for message {message_id}")

        generation = self._generation
        result = await self._transport.send_feedback(
            self._session.token, message.server_id, feedback.value, comment
        )
        if isinstance(result, Ok) and generation == self._generation:
            self._store.record_feedback(message_id, feedback)
        return result

    async def wait_until_settled(self) -> None:
        """Wait until no request, retry or probe is pending."""
        while True:
            pending = {
                task for task in (self._request_task, self._timer_task)
                if task is not None and not task.done()
            }
            if not pending:
                return
            await asyncio.wait(pending)

    async def close(self) -> None:
        """Cancel all pending work and close the transport."""
        if self._closed:
            return
        self._closed = True
        self._generation += 1
        tasks = [
            task for task in (self._request_task, self._timer_task, *self._stale_tasks)
            if task is not None and not task.done()
        ]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._request_task = None
        self._timer_task = None
        self._stale_tasks.clear()
        await self._transport.close()

    # ------------------------------------------------------------------
    # Turn execution
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Conversation is closed")

    def _dispatch(self, message_id: str, reason: TransitionReason) -> asyncio.Task:
        self._set_state(ChatState.SENDING, reason)
        task = asyncio.create_task(self._run_turn(message_id, self._generation))
        self._request_task = task
        return task

    async def _run_turn(self, message_id: str, generation: int) -> None:
        if generation != self._generation:
            return
        message = self._store.get(message_id)
        if message is None:
            self._debug("warning", f"Held message {message_id} is no longer in the log, dropping turn")
            self._held_id = None
            self._set_state(ChatState.IDLE, TransitionReason.REQUEST_FAILED)
            return

        self._set_state(ChatState.AWAITING_REPLY, TransitionReason.REQUEST_ISSUED)
        result = await self._transport.send(
            message.content, self._session.token, user_id=self._user_id
        )
        if generation != self._generation:
            self._debug("debug", f"Ignoring stale response for {message_id}")
            return

        if isinstance(result, Err):
            self._on_failure(message_id, result.error)
        else:
            await self._on_success(message_id, result.value, generation)

    async def _on_success(self, message_id: str, reply: AssistantReply, generation: int) -> None:
        if reply.session_token and reply.session_token != self._session.token:
            self._debug("info", "Adopting session token issued by the backend")
            self._session.token = reply.session_token
        self._store.update_status(message_id, MessageStatus.SENT)
        self._held_id = None
        self._retry_attempts = 0
        self._error = None
        self._session.connection_status = ConnectionStatus.CONNECTED

        self._typing_reply = reply
        self._set_state(ChatState.TYPING, TransitionReason.REPLY_RECEIVED)
        if self._typing_delay > 0:
            await asyncio.sleep(self._typing_delay)
            if generation != self._generation:
                return
        self._land_typed_reply()

    def _land_typed_reply(self) -> None:
        reply, self._typing_reply = self._typing_reply, None
        if reply is None:
            return
        reply_message = self._store.append(
            MessageRole.ASSISTANT,
            reply.content,
            server_id=reply.server_id,
            confidence=reply.confidence,
            sources=list(reply.sources),
            escalated_to_human=reply.escalated_to_human,
        )
        self._set_state(ChatState.IDLE, TransitionReason.REPLY_DELIVERED, reply=reply_message)

    def _on_failure(self, message_id: str, error: ChatError) -> None:
        self._store.update_status(message_id, MessageStatus.FAILED)
        self._error = error
        self._debug("warning", f"Turn {message_id} failed: {error.describe()}")

        if error.kind == ErrorKind.SESSION_INVALID:
            self._session = Session(token=self._token_factory())
            self._debug("info", "Session token reset after the backend rejected it")

        decision = self._retry_policy.decide(error, self._retry_attempts)
        if decision == RetryDecision.RECONNECT:
            self._enter_disconnected(resume_state=ChatState.ERROR, replay=True)
            return

        if decision == RetryDecision.GIVE_UP:
            self._store.append(MessageRole.SYSTEM, error.user_message)
        self._set_state(ChatState.ERROR, TransitionReason.REQUEST_FAILED)
        if decision == RetryDecision.RETRY and self._state == ChatState.ERROR:
            self._schedule_retry()

    def _resend(self, reason: TransitionReason) -> asyncio.Task | None:
        """Re-issue the held turn, unless it was already delivered."""
        message = self.held_message
        if message is None or message.status == MessageStatus.SENT:
            self._held_id = None
            self._error = None
            self._set_state(ChatState.IDLE, reason)
            return None
        self._store.update_status(message.id, MessageStatus.PENDING)
        self._error = None
        return self._dispatch(message.id, reason)

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _schedule_retry(self) -> None:
        delay = self._retry_policy.backoff_delay(self._retry_attempts)
        self._retry_attempts += 1
        self._debug(
            "info",
            f"Automatic retry {self._retry_attempts}/{self._retry_policy.max_retries} "
            f"in {delay:.2f}s"
        )
        self._timer_task = asyncio.create_task(self._retry_after(delay, self._generation))

    async def _retry_after(self, delay: float, generation: int) -> None:
        await asyncio.sleep(delay)
        if generation != self._generation or self._state != ChatState.ERROR:
            return
        self._timer_task = None
        self._resend(TransitionReason.AUTOMATIC_RETRY)

    def _enter_disconnected(self, resume_state: ChatState, replay: bool) -> None:
        self._cancel_timer()
        self._resume_state = resume_state
        self._replay_on_reconnect = replay and self._held_id is not None
        self._session.connection_status = ConnectionStatus.RECONNECTING
        self._set_state(ChatState.DISCONNECTED, TransitionReason.CONNECTIVITY_LOST)
        self._start_probing()

    def _start_probing(self) -> None:
        if not self._reconnect_policy.should_probe(0):
            self._give_up_probing()
            return
        self._timer_task = asyncio.create_task(self._probe_loop(self._generation))

    def _give_up_probing(self) -> None:
        self._session.connection_status = ConnectionStatus.DISCONNECTED
        self._set_state(ChatState.DISCONNECTED, TransitionReason.RECONNECT_EXHAUSTED)

    async def _probe_loop(self, generation: int) -> None:
        attempts = 0
        while self._reconnect_policy.should_probe(attempts):
            await asyncio.sleep(self._reconnect_policy.probe_interval)
            if generation != self._generation:
                return
            attempts += 1
            reachable = await self._transport.probe()
            if generation != self._generation or self._state != ChatState.DISCONNECTED:
                return
            if reachable:
                self._timer_task = None
                self._on_reconnected()
                return
            self._debug("debug", f"Reconnect probe {attempts} failed")

        self._timer_task = None
        self._debug("warning", f"Giving up after {attempts} reconnect probes")
        self._give_up_probing()

    def _on_reconnected(self) -> asyncio.Task | None:
        self._session.connection_status = ConnectionStatus.CONNECTED
        self._debug("info", "Connection restored")
        replay, self._replay_on_reconnect = self._replay_on_reconnect, False
        if replay:
            return self._resend(TransitionReason.RECONNECTED)

        # A turn that gave up stays failed until retried by hand
        resume = self._resume_state if self._error is not None else ChatState.IDLE
        self._set_state(resume, TransitionReason.RECONNECTED)
        return None

    def _cancel_timer(self) -> None:
        task, self._timer_task = self._timer_task, None
        if task is not None and not task.done() and not _is_current(task):
            task.cancel()

    def _cancel_request(self) -> None:
        task, self._request_task = self._request_task, None
        if task is not None and not task.done() and not _is_current(task):
            task.cancel()

    def _detach_request(self) -> None:
        task, self._request_task = self._request_task, None
        if task is not None and not task.done():
            self._stale_tasks.add(task)
            task.add_done_callback(self._stale_tasks.discard)
