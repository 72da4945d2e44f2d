""" This module contains the framing strategies and their registry. """

import abc
import logging
import struct
from typing import Dict, Iterator, Optional

from . import codec
from .errors import (
    EncodeError,
    EndOfStream,
    TrailingDataError,
    TruncatedError,
    UnexpectedSeparatorError,
    UnexpectedTerminatorError,
)
from .source import IByteSource, MemoryByteSource

logger = logging.getLogger(__name__)


FRAMING_NETSTRING = "netstring"
FRAMING_BINARY = "binary"

BINARY_HEADER_FORMAT = "<I"
BINARY_HEADER_SIZE = struct.calcsize(BINARY_HEADER_FORMAT)
BINARY_MAX_LENGTH = 2 ** 32 - 1


class IFramer(abc.ABC):
    """
    This class represents the base interface for a framing strategy.
    """

    @abc.abstractmethod  # pragma: no branch
    def encode(self, payload: bytes) -> bytes:
        """ Returns the payload wrapped in a frame """

    @abc.abstractmethod  # pragma: no branch
    def decode(self, source: IByteSource) -> bytes:
        """ Consumes one frame from source and returns its payload """


class FramingRegistry(object):
    """ This registry keeps track of framing strategies.

    A convenience name is mapped to an object that can wrap a payload in a
    frame and extract a payload from a byte source.
    """

    def __init__(self) -> None:
        self._framers = {}  # type: Dict[str, IFramer]
        self._default_framer = None  # type: Optional[str]

    def register(self, name: str, framer: IFramer) -> None:
        """ Register a new framing strategy.

        :param name: A convenience name for the framing strategy.

        :param framer: An object that implements the IFramer interface.
        """
        if not isinstance(framer, IFramer):
            raise Exception(f"Invalid framer '{name}'. Expected an instance of IFramer")

        self._framers[name] = framer

    def set_default(self, name: str) -> None:
        """ Set the default framing strategy used by this library.

        Raises:
            Exception: If the framing strategy requested is not available.
        """
        self._resolve(name)
        self._default_framer = name

    @property
    def default(self) -> Optional[str]:
        """ Return the name of the default framing strategy """
        return self._default_framer

    @property
    def framers(self) -> Dict[str, IFramer]:
        """ Return a dict of the available framing strategies """
        return self._framers

    def get_framer(self, name: Optional[str] = None) -> IFramer:
        """ Return a specific framing strategy.

        :param name: The convenience name of the framing strategy. Defaults
          to the registry default.
        """
        return self._framers[self._resolve(name)]

    def dumps(self, payload: bytes, name: Optional[str] = None) -> bytes:
        """ Wrap a payload in a frame.

        :param payload: The message data to send.

        :param name: The framing strategy to use. Defaults to the registry
          default.

        :returns: The frame as a bytes object.
        """
        return self.get_framer(name).encode(payload)

    def loads(self, data: bytes, name: Optional[str] = None) -> bytes:
        """ Extract the payload from a buffer holding exactly one frame.

        Raises:
            DecodeError: If the frame is malformed or bytes remain after it.
        """
        source = MemoryByteSource(data)
        payload = self.get_framer(name).decode(source)
        if source.remaining:
            raise TrailingDataError(source.remaining)
        return payload

    def iter_loads(self, data: bytes, name: Optional[str] = None) -> Iterator[bytes]:
        """ Yield the payload of each frame held in a buffer.

        Raises:
            Exception: If the framing strategy requested is not available.
        """
        return self.iter_decode(MemoryByteSource(data), name)

    def iter_decode(
        self, source: IByteSource, name: Optional[str] = None
    ) -> Iterator[bytes]:
        """ Yield payloads from source until it ends on a frame boundary.

        The framer is resolved when this method is called, not on the first
        iteration.
        """
        framer = self.get_framer(name)
        return codec.iter_decode(source, framer.decode)

    def _resolve(self, name: Optional[str]) -> str:
        """ Resolve a framing name, falling back to the default.

        Raises:
            Exception: If the framing strategy requested is not available.
        """
        if name is None:
            name = self._default_framer
        if name not in self._framers:
            raise Exception(f"Invalid framing '{name}'")
        return name


def register_netstring(registry: FramingRegistry) -> None:
    """ Register the decimal length netstring framing. """

    class NetstringFramer(IFramer):
        def encode(self, payload: bytes) -> bytes:
            return codec.encode(payload)

        def decode(self, source: IByteSource) -> bytes:
            return codec.decode(source)

    registry.register(FRAMING_NETSTRING, NetstringFramer())


def register_binary(registry: FramingRegistry) -> None:
    """ Register a framing that uses a fixed width binary length field.

    The header is a single little-endian uint32 holding the payload size. The
    separator and terminator are the same as the decimal netstring.

    .. code-block:: console

        +----------------+-----------+--------------+------------+
        |  length        | separator |  payload     | terminator |
        +----------------+-----------+--------------+------------+
        |  uint32 (LE)   |    ":"    |  DATA ....   |    ","     |
        +----------------+-----------+--------------+------------+
    """

    class BinaryFramer(IFramer):
        def encode(self, payload: bytes) -> bytes:
            """ Wrap payload in a binary length frame.

            :raises: EncodeError if the payload is too large for the header.
            """
            if not isinstance(payload, (bytes, bytearray, memoryview)):
                raise TypeError(f"payload must be bytes-like, got {type(payload)}")

            payload = bytes(payload)
            if len(payload) > BINARY_MAX_LENGTH:
                raise EncodeError(
                    f"payload of {len(payload)} bytes exceeds the binary framing "
                    f"maximum of {BINARY_MAX_LENGTH} bytes"
                )

            header = struct.pack(BINARY_HEADER_FORMAT, len(payload))
            return header + bytes([codec.SEPARATOR]) + payload + bytes([codec.TERMINATOR])

        def decode(self, source: IByteSource) -> bytes:
            try:
                header = source.read_exact(BINARY_HEADER_SIZE)
            except EndOfStream:
                raise TruncatedError("length", expected=BINARY_HEADER_SIZE) from None
            (length,) = struct.unpack(BINARY_HEADER_FORMAT, header)

            try:
                separator = source.read_byte()
            except EndOfStream:
                raise TruncatedError("separator") from None
            if separator != codec.SEPARATOR:
                raise UnexpectedSeparatorError(separator, codec.SEPARATOR)

            try:
                payload = source.read_exact(length)
            except EndOfStream:
                raise TruncatedError("payload", expected=length) from None

            try:
                terminator = source.read_byte()
            except EndOfStream:
                raise TruncatedError("terminator") from None
            if terminator != codec.TERMINATOR:
                raise UnexpectedTerminatorError(terminator, codec.TERMINATOR)

            logger.debug(f"Decoded binary frame with {length} byte payload")

            return payload

    registry.register(FRAMING_BINARY, BinaryFramer())


def initialize(registry: FramingRegistry) -> None:
    """ Register framing strategies and set a default """
    register_netstring(registry)
    register_binary(registry)

    registry.set_default(FRAMING_NETSTRING)


"""
.. data:: registry

Global registry of framing strategies.
"""
registry = FramingRegistry()

dumps = registry.dumps

loads = registry.loads

iter_loads = registry.iter_loads

initialize(registry)
