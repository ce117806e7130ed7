"""_node.py: a single participant in a chord chat ring."""
from typing import List, Optional

from loguru import logger

from ._net import _Net
from ._relay import MessageCallback, _MessageRelay
from ._ring import RingSnapshot, RingState, is_between
from ._stabilizer import _Stabilizer
from ._wire import (
    FIND_PRED,
    FIND_SUCC,
    MSG,
    NOTIFY,
    PRED_LEAVE,
    SUCC_LEAVE,
    ProtocolError,
    Request,
    format_address,
    parse_address,
    parse_key,
    request_address,
)
from .address import Address


class JoinError(ConnectionError):
    """Raised when a node cannot join a ring through its bootstrap peer."""


class _Node:
    """
    Implements a Chord node with chat relay on top.

    The node owns its ring state, the TCP server that answers peers, the
    stabilizer that repairs the ring in the background, and the message
    relay. Lookups are answered recursively: a node that cannot answer
    asks the closest preceding finger and passes the reply back.

    Attributes:
        address (Address): This node's address and key.
    """
    address: Address
    _ring: RingState
    _net: _Net
    _relay: _MessageRelay
    _stabilizer: _Stabilizer

    def __init__(self,
                 ip: str,
                 port: int,
                 interval: float = 1.0,
                 timeout: float = 5.0,
                 on_message: Optional[MessageCallback] = None,
                 key: Optional[int] = None,
    ) -> None:
        """
        Initializes a node. Nothing touches the network until start().

        Args:
            ip: IP address peers can reach this node on.
            port: Port number to listen on.
            interval: Seconds between stabilizer ticks.
            timeout: Seconds allowed for each outbound peer call.
            on_message: Called with (sender_key, payload) for every relayed
                message that reaches this node.
            key: Overrides the derived identifier (simulations and tests).
        """
        self.address = Address(ip, port, key=key)
        self._ring = RingState(self.address)
        self._net = _Net(ip, port, self._process_request, timeout=timeout)
        self._relay = _MessageRelay(self._ring, self._net, on_message)
        self._stabilizer = _Stabilizer(
            self.stabilize, self.fix_fingers, interval=interval)

    @property
    def successor(self) -> Address:
        return self._ring.successor

    @property
    def predecessor(self) -> Optional[Address]:
        return self._ring.predecessor

    @property
    def finger_table(self) -> List[Address]:
        return self._ring.fingers()

    @property
    def on_message(self) -> Optional[MessageCallback]:
        return self._relay.on_message

    @on_message.setter
    def on_message(self, callback: Optional[MessageCallback]) -> None:
        self._relay.on_message = callback

    def start(self) -> None:
        """Starts answering peers and running the stabilizer."""
        self._net.start()
        self._stabilizer.start()

    def stop(self) -> None:
        """Stops the stabilizer and the server without telling any peer."""
        self._stabilizer.stop()
        self._net.stop()

    def tick(self) -> None:
        """Runs one stabilizer round synchronously."""
        self._stabilizer.tick()

    def create(self) -> None:
        """Creates a new ring with this node as its only member."""
        self._ring.create()
        self.start()
        logger.info(f"{self.address}: created ring")

    def join(self, known_ip: str, known_port: int) -> None:
        """
        Joins an existing ring through any of its members.

        Only the successor is set here; the predecessor arrives with the
        next notify and the fingers with the next fix_fingers.

        Raises:
            JoinError: if the bootstrap peer cannot be reached or answers
                with something that is not a node address.
        """
        known = Address(known_ip, known_port)
        reply = self._net.send_request(known, FIND_SUCC, self.address.key)
        if not reply:
            raise JoinError(f"Failed to find successor via {known_ip}:"
                            f"{known_port}. Join failed")
        try:
            successor = parse_address(reply)
        except ProtocolError as e:
            raise JoinError(f"Bad reply from {known_ip}:{known_port}: "
                            f"{e}") from e
        if successor is None:
            raise JoinError(f"No successor from {known_ip}:{known_port}")

        self._ring.successor = successor
        logger.info(f"{self.address}: joined ring via {known_ip}:{known_port}")

    def leave(self) -> None:
        """
        Leaves the ring gracefully and shuts down.

        The predecessor is handed our successor and the successor is told
        its predecessor is gone. Either notice may fail; the ring then
        repairs itself through stabilization on the side that was reached.
        """
        self._stabilizer.stop()
        snapshot = self._ring.snapshot()
        successor = snapshot.successor
        predecessor = snapshot.predecessor

        if predecessor is not None and predecessor != self.address:
            self._net.send_oneway(predecessor, SUCC_LEAVE, successor.key,
                                  successor.ip, successor.port)
        if successor != self.address:
            self._net.send_oneway(successor, PRED_LEAVE)

        self._net.stop()
        logger.info(f"{self.address}: left ring")

    def send_message(self, text: str) -> bool:
        """Sends a chat message around the ring."""
        return self._relay.send(text)

    def inspect(self) -> RingSnapshot:
        return self._ring.snapshot()

    def find_successor(self, key: int) -> Optional[Address]:
        """
        Finds the node responsible for a key.

        Args:
            key: Identifier to look up.

        Returns:
            The successor of key, or None if the next hop failed. A hop
            that cannot be reached is evicted from the finger table. A hop
            that accepts the connection but gives no usable answer is kept.
        """
        successor = self._ring.successor
        if key == successor.key or is_between(
                self.address.key, successor.key, key):
            return successor

        closest = self.closest_preceding_finger(key)
        if closest == self.address:
            return successor

        reply = self._net.send_request(closest, FIND_SUCC, key)
        if reply is None:
            self._ring.evict(closest)
            return None
        if not reply:
            return None
        try:
            return parse_address(reply)
        except ProtocolError as e:
            logger.warning(f"Bad find_succ reply from {closest}: {e}")
            return None

    def closest_preceding_finger(self, key: int) -> Address:
        """
        Finds the farthest finger that still precedes key.

        Returns:
            The finger, or this node's address if none qualifies.
        """
        for finger in reversed(self._ring.fingers()):
            if is_between(self.address.key, key, finger.key):
                return finger
        return self.address

    def stabilize(self) -> None:
        """
        Verifies the successor and tells it about this node.

        If the successor's predecessor sits between us and the successor,
        it becomes our successor.
        """
        successor = self._ring.successor
        if successor == self.address:
            candidate = self._ring.predecessor
        else:
            candidate = None
            reply = self._net.send_request(successor, FIND_PRED)
            if reply:
                try:
                    candidate = parse_address(reply)
                except ProtocolError as e:
                    logger.warning(f"Bad find_pred reply from {successor}: {e}")

        if candidate is not None:
            self._ring.adopt_successor_if_closer(candidate)

        self.notify(self._ring.successor)

    def notify(self, potential_successor: Optional[Address]) -> bool:
        """
        Tells a node that we might be its predecessor.

        Returns:
            True if the notice was delivered.
        """
        if potential_successor is None or potential_successor == self.address:
            return False
        return self._net.send_oneway(potential_successor, NOTIFY,
                                     self.address.key, self.address.ip,
                                     self.address.port)

    def _be_notified(self, notifying_node: Address) -> bool:
        """
        Handles a notify from a node that may be our predecessor.

        Returns:
            True if notifying_node became the predecessor.
        """
        if notifying_node == self.address:
            return False
        return self._ring.adopt_predecessor_if_closer(notifying_node)

    def fix_fingers(self) -> None:
        """Recomputes every finger. Failed lookups keep the old entry."""
        for i in range(Address._M):
            start = (self.address.key + 2 ** i) % Address._SPACE
            found = self.find_successor(start)
            if found is not None:
                self._ring.set_finger(i, found)

    def _process_request(self, request: Request) -> Optional[str]:
        """
        Answers one peer request.

        Returns:
            The reply line, or None for commands without a reply.
        """
        command, args = request.command, request.args
        logger.debug(f"{self.address.key}: {command} {' '.join(args)}")

        if command == FIND_SUCC:
            found = self.find_successor(parse_key(args[0]))
            return None if found is None else format_address(found)

        if command == FIND_PRED:
            return format_address(self._ring.predecessor)

        if command == NOTIFY:
            self._be_notified(request_address(request))
            return None

        if command == SUCC_LEAVE:
            departed = self._ring.successor
            replacement = request_address(request)
            self._ring.successor = replacement
            if departed not in (self.address, replacement):
                self._ring.evict(departed)
            return None

        if command == PRED_LEAVE:
            departed = self._ring.predecessor
            self._ring.predecessor = None
            if departed is not None and departed != self.address:
                self._ring.evict(departed)
            return None

        if command == MSG:
            self._relay.handle(parse_key(args[0]), request.payload or "")
            return None

        raise ProtocolError(f"Unknown command: {command!r}")

    def __repr__(self) -> str:
        return f"ChordNode(key={self.address.key})"
