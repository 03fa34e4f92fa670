"""Unit tests for the accessibility announcer."""
import pytest
from conftest import failure, reply

from civicchat.accessibility import Announcements, LiveAnnouncer
from civicchat.retry import ReconnectPolicy
from civicchat.transport import ErrorKind


class TestLiveAnnouncer:
    """Tests for LiveAnnouncer driven by a state machine."""

    @pytest.mark.asyncio
    async def test_successful_turn(self, make_machine, transport):
        """Test the announcements of a delivered turn."""
        transport.results.append(reply("Abrimos a las 8"))
        machine = make_machine()
        announcer = LiveAnnouncer()
        announcer.attach(machine)

        await machine.send_message("¿Horario?")

        assert announcer.history == (
            "Sending message",
            "Assistant is typing",
            "Assistant: Abrimos a las 8",
        )
        assert announcer.text == "Assistant: Abrimos a las 8"

    @pytest.mark.asyncio
    async def test_sending_announced_once(self, make_machine):
        """Test that SENDING and AWAITING_REPLY share one announcement."""
        machine = make_machine()
        announcer = LiveAnnouncer()
        announcer.attach(machine)

        await machine.send_message("Hola")

        assert announcer.history.count("Sending message") == 1

    @pytest.mark.asyncio
    async def test_identical_replies_announced_each_time(self, make_machine, transport):
        """Test that two equal replies are both read out."""
        transport.results.extend([reply("Sí"), reply("Sí")])
        machine = make_machine()
        announcer = LiveAnnouncer()
        announcer.attach(machine)

        await machine.send_message("uno")
        await machine.send_message("dos")

        assert announcer.history.count("Assistant: Sí") == 2

    @pytest.mark.asyncio
    async def test_failure_announced(self, make_machine, transport):
        """Test that a failed turn is announced."""
        transport.results.append(failure(ErrorKind.HTTP_STATUS, 400))
        machine = make_machine()
        announcer = LiveAnnouncer()
        announcer.attach(machine)

        await machine.send_message("Hola")

        assert announcer.text == Announcements().failure

    @pytest.mark.asyncio
    async def test_connection_changes_announced(self, make_machine, transport):
        """Test announcements while reconnecting."""
        transport.results.append(failure(ErrorKind.NETWORK_UNAVAILABLE))
        machine = make_machine(reconnect_policy=ReconnectPolicy(probe_interval=0.05, max_probe_attempts=3))
        announcer = LiveAnnouncer()
        announcer.attach(machine)

        await machine.send_message("Hola")
        assert announcer.text == "Connection lost. Reconnecting"

        await machine.wait_until_settled()

        assert "Connection restored" in announcer.history
        assert announcer.text == "Assistant: echo: Hola"

    @pytest.mark.asyncio
    async def test_clear_empties_region(self, make_machine):
        """Test that clearing the conversation empties the live region."""
        machine = make_machine()
        announcer = LiveAnnouncer()
        announcer.attach(machine)
        await machine.send_message("Hola")

        machine.clear_messages()

        assert announcer.text == ""

    @pytest.mark.asyncio
    async def test_sinks_and_detach(self, make_machine):
        """Test forwarding to sinks and stopping after detach."""
        machine = make_machine()
        announcer = LiveAnnouncer(Announcements(sending="Enviando"))
        received = []
        announcer.add_sink(received.append)
        announcer.attach(machine)

        await machine.send_message("uno")
        assert received[0] == "Enviando"

        announcer.detach()
        count = len(received)
        await machine.send_message("dos")
        assert len(received) == count

    @pytest.mark.asyncio
    async def test_reconnect_after_failed_turn(self, make_machine, transport):
        """Test that restoring the connection does not repeat the failure notice."""
        transport.results.append(failure(ErrorKind.HTTP_STATUS, 400))
        machine = make_machine()
        announcer = LiveAnnouncer()
        announcer.attach(machine)
        await machine.send_message("Hola")

        machine.mark_connectivity_lost()
        await machine.wait_until_settled()

        assert announcer.text == "Connection restored"
        assert announcer.history.count(Announcements().failure) == 1
