# address.py

import hashlib
from typing import Any, Optional

_M: int = 16
_SPACE: int = 2 ** _M


def derive_key(ip: str, port: int) -> int:
    """
    Generates a consistent ring identifier for a network address.

    Args:
        ip (str): IP address of the node.
        port (int): Port the node listens on.

    Returns:
        int: SHA-1 of "ip:port" reduced into the identifier space.
    """
    digest = hashlib.sha1(f"{ip}:{port}".encode()).hexdigest()
    return int(digest, 16) % _SPACE


class Address:
    """
    Represents a node on the ring: a network address plus its identifier.

    Addresses are immutable values. A locally created address derives its
    key from ip and port; an address received from a peer carries the key
    the peer reported.

    Attributes:
        key (int): The node's identifier in [0, 2**_M).
        ip (str): The IP address of the node.
        port (int): The network port number of the node.
    """
    __slots__= ('key', 'ip', 'port')
    _M: int = _M
    _SPACE: int = _SPACE


    def __init__(self, ip: str, port: int, key: Optional[int] = None) -> None:
        self.key = derive_key(ip, port) if key is None else key
        self.ip = ip
        self.port = port



    def __setattr__(self, name: str, value: Any) -> None:
        if hasattr(self, name):
            raise AttributeError(f"Address is immutable, cannot set {name}")
        super().__setattr__(name, value)



    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Address):
            return False
        return (self.ip == other.ip and
                self.port == other.port and
                self.key == other.key)



    def __hash__(self) -> int:
        return hash((self.key, self.ip, self.port))



    def __repr__(self) -> str:
        return f"{self.key}:{self.ip}:{self.port}"
