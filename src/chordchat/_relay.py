"""_relay.py: ring-wide chat message propagation."""
from typing import Callable, Optional

from loguru import logger

from ._net import _Net
from ._ring import RingState
from ._wire import MSG

MessageCallback = Callable[[int, str], None]


class _MessageRelay:
    """Floods chat payloads around the ring, one successor hop at a time.

    A message carries the key of the node that authored it. Every other
    node delivers it to the local callback and passes it on; when it comes
    back to its author the circuit is complete and it is dropped.
    """

    def __init__(self,
                 ring: RingState,
                 net: _Net,
                 on_message: Optional[MessageCallback] = None,
    ) -> None:
        self._ring = ring
        self._net = net
        self.on_message = on_message

    def send(self, text: str) -> bool:
        """Authors a message and hands it to the successor.

        Raises:
            ValueError: if text spans more than one line.
        """
        if "\n" in text or "\r" in text:
            raise ValueError("Chat messages must be a single line")
        return self._forward(self._ring.node.key, text)

    def handle(self, sender_key: int, payload: str) -> None:
        """Handles an inbound msg: deliver and forward, or stop at origin."""
        if sender_key == self._ring.node.key:
            logger.debug(f"{sender_key}: message completed the ring")
            return
        if self.on_message is not None:
            try:
                self.on_message(sender_key, payload)
            except Exception:
                logger.exception("Message callback failed")
        self._forward(sender_key, payload)

    def _forward(self, sender_key: int, payload: str) -> bool:
        successor = self._ring.successor
        if successor == self._ring.node:
            return False
        return self._net.send_oneway(successor, MSG, sender_key,
                                     payload=payload)
