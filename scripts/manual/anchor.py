"""anchor.py: creates and starts an anchor node for testing."""
import sys

import bpython

from chordchat import ChatMessage
from chordchat._node import _Node as ChordNode


def show(sender_key: int, payload: str) -> None:
    """Prints a relayed message."""
    message = ChatMessage.decode(payload)
    print(f"[{sender_key}] {message.name}> {message.text}")


def main() -> None:
    """Creates a new ring with this computer as the only node."""
    if len(sys.argv) != 3:
        print("usage: [uv run] python anchor.py ip_addr port_no")
        exit(1)

    ip = sys.argv[1]
    port = int(sys.argv[2])

    # a long interval leaves stabilization to step()
    node = ChordNode(ip, port, interval=3600, on_message=show)
    node.create()
    print(f"Node created as \"node\": {node.address}", file=sys.stderr)
    bpython.embed(locals_=locals())
    node.stop()


if __name__ == '__main__':
    main()
