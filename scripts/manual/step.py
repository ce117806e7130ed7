"""step.py: helpers for manual scripts."""

from chordchat import ChatMessage
from chordchat._node import _Node as ChordNode


def step(node: ChordNode) -> None:
    """Runs the periodic tasks for the node once."""
    node.tick()

    print(f"pred: {node.predecessor} succ: {node.successor}")
    print(node.finger_table)


def say(node: ChordNode, name: str, text: str) -> None:
    """Sends a named chat message from the node."""
    node.send_message(ChatMessage(name, text).encode())
