"""test_address.py: tests for identifiers and the Address value type."""
import hashlib

import pytest

from chordchat.address import Address, derive_key


def test_derive_key_matches_sha1() -> None:
    """Verifies the key is SHA-1 of "ip:port" reduced into the ring."""
    expected = int(hashlib.sha1(b"1.2.3.4:5").hexdigest(), 16) % (2**16)
    assert derive_key("1.2.3.4", 5) == expected
    assert 0 <= derive_key("1.2.3.4", 5) < Address._SPACE


def test_derive_key_is_deterministic() -> None:
    """Same address, same key; a different port gives a different key."""
    assert derive_key("127.0.0.1", 2001) == derive_key("127.0.0.1", 2001)
    assert derive_key("127.0.0.1", 2001) != derive_key("127.0.0.1", 2002)


def test_address_derives_key() -> None:
    addr = Address("1.2.3.4", 5)
    assert addr.key == derive_key("1.2.3.4", 5)
    assert addr.ip == "1.2.3.4"
    assert addr.port == 5


def test_address_keeps_reported_key() -> None:
    """An address received from a peer keeps the key the peer reported."""
    addr = Address("1.2.3.4", 5, key=42)
    assert addr.key == 42


def test_address_is_immutable() -> None:
    addr = Address("1.2.3.4", 5)
    with pytest.raises(AttributeError):
        addr.key = 7
    with pytest.raises(AttributeError):
        addr.port = 6


def test_address_equality_and_hash() -> None:
    """Equality covers key, ip and port; equal addresses hash alike."""
    a = Address("1.2.3.4", 5, key=10)
    b = Address("1.2.3.4", 5, key=10)
    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b}) == 1

    assert a != Address("1.2.3.4", 5, key=11)
    assert a != Address("1.2.3.4", 6, key=10)
    assert a != "10:1.2.3.4:5"


def test_address_repr() -> None:
    assert repr(Address("1.2.3.4", 5, key=10)) == "10:1.2.3.4:5"
