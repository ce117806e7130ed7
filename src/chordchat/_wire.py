"""_wire.py: line-based peer protocol.

Every exchange is one request per connection. A request is a single line of
space-separated fields; ``msg`` is followed by one payload line. Only
``find_succ`` and ``find_pred`` get a reply line.
"""
from typing import List, NamedTuple, Optional

from .address import Address

FIND_SUCC = "find_succ"
FIND_PRED = "find_pred"
NOTIFY = "notify"
SUCC_LEAVE = "succ_leave"
PRED_LEAVE = "pred_leave"
MSG = "msg"

NIL = "nil"
_MAX_PORT = 65535

# command -> number of fields after the command word
_ARITY = {
    FIND_SUCC: 1,
    FIND_PRED: 0,
    NOTIFY: 3,
    SUCC_LEAVE: 3,
    PRED_LEAVE: 0,
    MSG: 1,
}


class ProtocolError(ValueError):
    """Raised for malformed requests or replies."""


class Request(NamedTuple):
    command: str
    args: List[str]
    payload: Optional[str] = None


def has_payload(command: str) -> bool:
    return command == MSG


def parse_key(field: str) -> int:
    """Parses an identifier field, rejecting values outside the ring."""
    try:
        key = int(field)
    except ValueError:
        raise ProtocolError(f"Invalid identifier: {field!r}") from None
    if not 0 <= key < Address._SPACE:
        raise ProtocolError(f"Identifier out of range: {key}")
    return key


def format_address(address: Optional[Address]) -> str:
    if address is None:
        return NIL
    return f"{address.key} {address.ip} {address.port}"


def parse_address(line: str) -> Optional[Address]:
    """Parses a ``<id> <ip> <port>`` line into an Address.

    Returns:
        The address, or None for ``nil``.

    Raises:
        ProtocolError: if the line is not a well-formed node reference.
    """
    line = line.strip()
    if line == NIL:
        return None
    return _address_from_fields(line.split())


def _address_from_fields(fields: List[str]) -> Address:
    if len(fields) != 3:
        raise ProtocolError(f"Invalid node address format: {fields!r}")
    key = parse_key(fields[0])
    try:
        port = int(fields[2])
    except ValueError:
        raise ProtocolError(f"Invalid port: {fields[2]!r}") from None
    if not 0 <= port <= _MAX_PORT:
        raise ProtocolError(f"Port out of range: {port}")
    return Address(fields[1], port, key=key)


def request_address(request: Request) -> Address:
    """Extracts the node reference carried by notify / succ_leave."""
    return _address_from_fields(request.args)


def encode_request(command: str, *args: object,
                   payload: Optional[str] = None) -> bytes:
    """Encodes a request (and its payload line, for msg) for the wire."""
    if command not in _ARITY:
        raise ProtocolError(f"Unknown command: {command!r}")
    fields = [command] + [str(a) for a in args]
    if len(fields) - 1 != _ARITY[command]:
        raise ProtocolError(
            f"{command} takes {_ARITY[command]} fields, got {len(args)}")
    text = " ".join(fields) + "\n"
    if has_payload(command):
        if payload is None or "\n" in payload:
            raise ProtocolError(f"{command} needs a single-line payload")
        text += payload + "\n"
    return text.encode()


def parse_request(line: str) -> Request:
    """Decodes a request line. The msg payload is attached by the caller."""
    fields = line.strip().split()
    if not fields:
        raise ProtocolError("Empty request")
    command, args = fields[0], fields[1:]
    if command not in _ARITY:
        raise ProtocolError(f"Unknown command: {command!r}")
    if len(args) != _ARITY[command]:
        raise ProtocolError(
            f"{command} takes {_ARITY[command]} fields, got {len(args)}")
    if command in (FIND_SUCC, MSG):
        parse_key(args[0])
    elif command in (NOTIFY, SUCC_LEAVE):
        _address_from_fields(args)
    return Request(command, args)
