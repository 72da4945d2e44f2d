"""
Byte sources supply the decoder with input. A source is an ordered,
consumable sequence of bytes with a cursor that only moves forward. The
decoder needs three primitives from it:

- read one byte,
- peek at the next byte without consuming it,
- read exactly N bytes.

Each primitive raises :class:`~netstring.errors.EndOfStream` when the source
can not deliver what was asked for.
"""

import abc
import io
from typing import Union

from .errors import EndOfStream


READ_CHUNK_SIZE = io.DEFAULT_BUFFER_SIZE * 16  # bounds the memory reserved per read


class IByteSource(abc.ABC):
    """
    This class represents the interface the decoder expects from a byte source.
    """

    @abc.abstractmethod  # pragma: no branch
    def read_byte(self) -> int:
        """ Consume and return the next byte value """

    @abc.abstractmethod  # pragma: no branch
    def peek_byte(self) -> int:
        """ Return the next byte value without consuming it """

    @abc.abstractmethod  # pragma: no branch
    def read_exact(self, n: int) -> bytes:
        """ Consume and return exactly n bytes.

        Any partial data is discarded when the source ends early.
        """


class BufferedByteSource(IByteSource):
    """ A byte source backed by a buffered binary stream.

    Typical streams are ``sys.stdin.buffer``, a file opened in ``rb`` mode or
    the object returned by ``socket.makefile("rb")``. Reads block for as long
    as the underlying stream blocks.
    """

    def __init__(self, stream):
        """
        :param stream: A readable binary file object. If it does not support
          ``peek`` it is wrapped in an :class:`io.BufferedReader`.
        """
        if not hasattr(stream, "peek"):
            stream = io.BufferedReader(stream)
        self._stream = stream

    def read_byte(self) -> int:
        b = self._stream.read(1)
        if not b:
            raise EndOfStream("no more bytes available to read")
        return b[0]

    def peek_byte(self) -> int:
        # peek may return more than was asked for, or nothing at end of stream
        b = self._stream.peek(1)[:1]
        if not b:
            raise EndOfStream("no more bytes available to peek")
        return b[0]

    def read_exact(self, n: int) -> bytes:
        chunks = []
        remaining = n
        while remaining > 0:
            chunk = self._stream.read(min(remaining, READ_CHUNK_SIZE))
            if not chunk:
                raise EndOfStream(f"stream ended after {n - remaining} of {n} bytes")
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)


class MemoryByteSource(IByteSource):
    """ A byte source that reads from an in-memory buffer.

    The buffer is referenced, not copied. A caller that accumulates stream
    data in a :class:`bytearray` can decode from it and then discard the
    consumed prefix using :attr:`position`.
    """

    def __init__(self, data: Union[bytes, bytearray]):
        self._data = data
        self._position = 0

    @property
    def position(self) -> int:
        """ Return the number of bytes consumed so far """
        return self._position

    @property
    def remaining(self) -> int:
        """ Return the number of bytes not yet consumed """
        return len(self._data) - self._position

    def read_byte(self) -> int:
        value = self.peek_byte()
        self._position += 1
        return value

    def peek_byte(self) -> int:
        if self._position >= len(self._data):
            raise EndOfStream("no more bytes available in buffer")
        return self._data[self._position]

    def read_exact(self, n: int) -> bytes:
        end = self._position + n
        if end > len(self._data):
            raise EndOfStream(
                f"buffer holds {self.remaining} bytes, {n} bytes were requested"
            )
        data = bytes(self._data[self._position : end])
        self._position = end
        return data
