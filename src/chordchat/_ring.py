"""_ring.py: lock-guarded ring state for a single node."""
import threading
from dataclasses import dataclass
from typing import List, Optional, Tuple

from loguru import logger

from .address import Address


def is_between(start: int, end: int, key: int) -> bool:
    """Checks whether key lies in the open ring interval (start, end).

    The interval walks clockwise from start and wraps past the top of the
    identifier space. When start == end the interval is the whole ring
    except that single point.

    Args:
        start: Exclusive lower bound.
        end: Exclusive upper bound.
        key: Identifier to test.

    Returns:
        True if key is strictly inside the interval.
    """
    if start == end:
        return key != start
    if start < end:
        return start < key < end
    return key > start or key < end


@dataclass(frozen=True)
class RingSnapshot:
    """Consistent point-in-time view of a node's ring state."""
    key: int
    node: Address
    successor: Address
    predecessor: Optional[Address]
    finger_table: Tuple[Address, ...]


class RingState:
    """Successor, predecessor and finger table of one node.

    Every read and write goes through a single lock so concurrent request
    handlers and the stabilizer never observe a half-updated view. Callers
    must not hold the lock across network calls; each method takes it only
    for the duration of the state access.
    """

    def __init__(self, node: Address) -> None:
        self._lock = threading.Lock()
        self._node = node
        self._successor: Address = node
        self._predecessor: Optional[Address] = None
        self._fingers: List[Address] = [node] * Address._M

    @property
    def node(self) -> Address:
        return self._node

    @property
    def successor(self) -> Address:
        with self._lock:
            return self._successor

    @successor.setter
    def successor(self, address: Address) -> None:
        with self._lock:
            if address != self._successor:
                logger.info(f"{self._node.key}: successor -> {address}")
            self._successor = address

    @property
    def predecessor(self) -> Optional[Address]:
        with self._lock:
            return self._predecessor

    @predecessor.setter
    def predecessor(self, address: Optional[Address]) -> None:
        with self._lock:
            if address != self._predecessor:
                logger.info(f"{self._node.key}: predecessor -> {address}")
            self._predecessor = address

    def create(self) -> None:
        """Resets to a singleton ring: this node is its own successor."""
        with self._lock:
            self._successor = self._node
            self._predecessor = None
            self._fingers = [self._node] * Address._M

    def finger(self, i: int) -> Address:
        with self._lock:
            return self._fingers[i]

    def fingers(self) -> List[Address]:
        with self._lock:
            return list(self._fingers)

    def set_finger(self, i: int, address: Address) -> None:
        with self._lock:
            self._fingers[i] = address

    def adopt_successor_if_closer(self, candidate: Address) -> bool:
        """Adopts candidate as successor if it sits between us and it.

        The check and the write happen under one lock acquisition.
        """
        with self._lock:
            if not is_between(self._node.key, self._successor.key,
                              candidate.key):
                return False
            logger.info(f"{self._node.key}: successor -> {candidate}")
            self._successor = candidate
            return True

    def adopt_predecessor_if_closer(self, candidate: Address) -> bool:
        """Adopts candidate as predecessor if none is set or it is closer."""
        with self._lock:
            current = self._predecessor
            if current is not None and not is_between(
                    current.key, self._node.key, candidate.key):
                return False
            if candidate != current:
                logger.info(f"{self._node.key}: predecessor -> {candidate}")
            self._predecessor = candidate
            return True

    def evict(self, departed: Address) -> None:
        """Replaces finger entries that point at a node known to be gone.

        Entries fall back to the current successor, or to this node when
        the departed node is the successor itself.
        """
        with self._lock:
            fallback = self._successor
            if fallback == departed:
                fallback = self._node
            self._fingers = [fallback if f == departed else f
                             for f in self._fingers]

    def snapshot(self) -> RingSnapshot:
        with self._lock:
            return RingSnapshot(
                key=self._node.key,
                node=self._node,
                successor=self._successor,
                predecessor=self._predecessor,
                finger_table=tuple(self._fingers),
            )
