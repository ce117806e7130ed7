"""test_relay.py: tests for ring-wide message propagation."""
from typing import Dict, List, Optional, Tuple
from unittest.mock import Mock

import pytest

from chordchat._relay import _MessageRelay
from chordchat._ring import RingState
from chordchat._wire import MSG
from chordchat.address import Address


class _LoopbackNet:
    """Delivers msg requests straight to the target node's relay."""

    def __init__(self) -> None:
        self.relays: Dict[int, _MessageRelay] = {}
        self.hops: List[int] = []

    def send_oneway(self, dest: Address, command: str, *args: object,
                    payload: Optional[str] = None) -> bool:
        assert command == MSG
        assert payload is not None
        self.hops.append(dest.key)
        self.relays[dest.key].handle(int(str(args[0])), payload)
        return True


def _build_ring(
    keys: List[int]
) -> Tuple[_LoopbackNet, Dict[int, _MessageRelay], List[Tuple[int, int, str]]]:
    """Links relays for the given keys into a ring, in order.

    Returns:
        The shared loopback transport, relays by key, and a log of
        (receiving key, sender key, payload) deliveries.
    """
    net = _LoopbackNet()
    delivered: List[Tuple[int, int, str]] = []
    addresses = [Address(f"10.0.0.{k}", 5000, key=k) for k in keys]
    for i, addr in enumerate(addresses):
        ring = RingState(addr)
        ring.successor = addresses[(i + 1) % len(addresses)]

        def record(sender: int, payload: str, me: int = addr.key) -> None:
            delivered.append((me, sender, payload))

        net.relays[addr.key] = _MessageRelay(ring, net, record)  # type: ignore
    return net, net.relays, delivered


def test_message_visits_every_other_node_once() -> None:
    """On ring 1 -> 7 -> 12, a message from 7 stops after 12 and 1."""
    net, relays, delivered = _build_ring([1, 7, 12])

    assert relays[7].send("hello") is True

    assert delivered == [(12, 7, "hello"), (1, 7, "hello")]
    # the last hop brings it home to 7, which drops it
    assert net.hops == [12, 1, 7]


def test_message_on_two_node_ring() -> None:
    net, relays, delivered = _build_ring([100, 200])

    relays[200].send("ping")

    assert delivered == [(100, 200, "ping")]
    assert net.hops == [100, 200]


def test_payload_is_carried_verbatim() -> None:
    _, relays, delivered = _build_ring([1, 7, 12])
    payload = '{"name": "阿華", "msg": "  spaced  out  "}'

    relays[1].send(payload)

    assert [d[2] for d in delivered] == [payload, payload]


def test_singleton_send_goes_nowhere() -> None:
    me = Address("10.0.0.1", 5000, key=5)
    net = Mock()
    relay = _MessageRelay(RingState(me), net)

    assert relay.send("alone") is False
    net.send_oneway.assert_not_called()


def test_send_rejects_multiline_text() -> None:
    relay = _MessageRelay(RingState(Address("10.0.0.1", 5000)), Mock())
    with pytest.raises(ValueError, match="single line"):
        relay.send("one\ntwo")


def test_handle_drops_own_message() -> None:
    me = Address("10.0.0.1", 5000, key=5)
    ring = RingState(me)
    ring.successor = Address("10.0.0.2", 5000, key=9)
    net, callback = Mock(), Mock()
    relay = _MessageRelay(ring, net, callback)

    relay.handle(5, "back home")

    callback.assert_not_called()
    net.send_oneway.assert_not_called()


def test_handle_forwards_with_original_sender() -> None:
    me = Address("10.0.0.1", 5000, key=5)
    successor = Address("10.0.0.2", 5000, key=9)
    ring = RingState(me)
    ring.successor = successor
    net, callback = Mock(), Mock()
    relay = _MessageRelay(ring, net, callback)

    relay.handle(30, "hi")

    callback.assert_called_once_with(30, "hi")
    net.send_oneway.assert_called_once_with(successor, MSG, 30, payload="hi")


def test_callback_failure_does_not_stop_forwarding(
        log_messages: List[str]) -> None:
    """A broken display callback is logged; the ring still gets the message.

    Args:
        log_messages: Captured log output.
    """
    ring = RingState(Address("10.0.0.1", 5000, key=5))
    ring.successor = Address("10.0.0.2", 5000, key=9)
    net = Mock()
    relay = _MessageRelay(ring, net, Mock(side_effect=RuntimeError("boom")))

    relay.handle(30, "hi")

    net.send_oneway.assert_called_once()
    assert any("Message callback failed" in m for m in log_messages)


def test_handle_without_callback_still_forwards() -> None:
    ring = RingState(Address("10.0.0.1", 5000, key=5))
    ring.successor = Address("10.0.0.2", 5000, key=9)
    net = Mock()
    relay = _MessageRelay(ring, net)

    relay.handle(30, "hi")

    net.send_oneway.assert_called_once()
