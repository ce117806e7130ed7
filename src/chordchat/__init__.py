"""Peer-to-peer chat over a Chord ring.

.. include:: ../../README.md
"""
from loguru import logger

from ._node import JoinError
from ._ring import RingSnapshot
from ._wire import ProtocolError
from .address import Address
from .chat import ChatMessage
from .chordchat import ChordChat

logger.disable("chordchat")

__all__=['Address', 'ChatMessage', 'ChordChat', 'JoinError', 'ProtocolError',
         'RingSnapshot']
