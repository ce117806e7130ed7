"""joiner.py: creates a joining node for debugging."""
import sys

import bpython
from anchor import show  #type: ignore
from step import say, step  #type: ignore

from chordchat._node import _Node as ChordNode


def main() -> None:
    """Joins an existing ring through the target node."""
    if len(sys.argv) != 5:
        print("usage: [uv run] python " \
              "joiner.py this_ip this_port target_ip target_port")
        exit(1)

    ip = sys.argv[1]
    port = int(sys.argv[2])
    target_ip = sys.argv[3]
    target_port = int(sys.argv[4])

    node = ChordNode(ip, port, interval=3600, on_message=show)
    node.create()
    node.join(target_ip, target_port)
    repl_locals = {
        'node': node,
        'step': step,
        'say': say,
    }
    print("starting repl. access `node`, advance with `step(node)`, "
          "chat with `say(node, name, text)`")
    bpython.embed(locals_=repl_locals)
    node.stop()


if __name__ == '__main__':
    main()
