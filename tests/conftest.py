"""conftest.py: shared fixtures."""
import socket
from typing import Callable, Generator, List

import pytest
from loguru import logger

import chordchat  # noqa: F401  (import first so its logger.disable runs before enable)

logger.enable("chordchat")


def get_free_port() -> int:
    """Asks the OS for a port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def log_messages() -> Generator[List[str], None, None]:
    """Collects the text of every log record emitted during a test."""
    messages: List[str] = []
    handler_id = logger.add(
        lambda message: messages.append(message.record["message"]),
        level="DEBUG",
    )
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def free_port() -> int:
    """A single unused local port."""
    return get_free_port()


@pytest.fixture
def port_factory() -> Callable[[], int]:
    """Hands out unused local ports on demand."""
    return get_free_port
