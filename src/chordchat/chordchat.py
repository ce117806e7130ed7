"""chordchat.py: chordchat api."""
from typing import Optional

from ._node import _Node
from ._relay import MessageCallback
from ._ring import RingSnapshot
from .address import Address


class ChordChat:
    """Interface for chatting over a Chord ring."""
    _node: _Node

    def __init__(self,
                 ip: str,
                 port: int,
                 on_message: Optional[MessageCallback] = None,
                 interval: float = 1.0,
                 timeout: float = 5.0,
    ) -> None:
        """Initializes a new chat node.

        Args:
            ip: IP address for the node. This should be the public IP
                (unless the whole ring is local, it is unlikely to be 127.0.0.1)
            port: Port number to listen on.
            on_message: called as on_message(sender_key, payload) whenever
                a message from another node reaches this one.
            interval: daemon interval (how often to 'sync' with the network)
            timeout: seconds to wait on an unresponsive peer
        """
        self._node = _Node(ip, port, interval=interval, timeout=timeout,
                           on_message=on_message)

    @property
    def address(self) -> Address:
        return self._node.address

    def start(self) -> None:
        """Start the node as the only member of a new ring.

        The node answers peers from here on; call join() afterwards to
        merge into an existing ring instead.
        """
        self._node.create()

    def join(self, known_ip: str, known_port: int) -> None:
        """Joins an existing ring through any node already on it.

        Args:
            known_ip: IP address of an existing node in the ring.
            known_port: Port number of the existing node.

        Raises:
            JoinError: if the known node could not be reached. The node
                stays in its own ring and join() can be retried.
        """
        self._node.join(known_ip, known_port)

    def send(self, text: str) -> None:
        """Send a single-line chat message to every other node on the ring."""
        self._node.send_message(text)

    def leave(self) -> None:
        """Leave the ring and shut the node down.

        Neighbours are told so the ring can recover faster. The ring can
        still recover from a failed notice through stabilization.
        """
        self._node.leave()

    def stop(self) -> None:
        """Shut the node down without telling the ring."""
        self._node.stop()

    def inspect(self) -> RingSnapshot:
        """Current key, successor, predecessor and finger table."""
        return self._node.inspect()
