"""
The netstring codec encodes a byte string into a self-delimiting frame and
decodes one such frame back out of a byte source.

.. code-block:: console

    +-----------+-----------+----------------------+------------+
    |  length   | separator |  payload             | terminator |
    +-----------+-----------+----------------------+------------+
    |  "8"      |    ":"    |  "sunshine"          |    ","     |
    |  ASCII    |  1 byte   |  length bytes        |   1 byte   |
    +-----------+-----------+----------------------+------------+

The length is the decimal ASCII representation of the payload size with no
leading zeros. The digit ``0`` is only valid as the entire length field.
Payload bytes are not escaped.
"""

import enum
import logging
import sys
from typing import Callable, Iterator, Optional, Union

from .errors import (
    EndOfStream,
    InvalidDigitError,
    InvalidLengthError,
    LeadingZeroError,
    LengthOverflowError,
    TruncatedError,
    UnexpectedTerminatorError,
)
from .source import IByteSource

logger = logging.getLogger(__name__)


SEPARATOR = ord(":")
TERMINATOR = ord(",")
DIGIT_ZERO = ord("0")
DIGIT_NINE = ord("9")

MAX_LENGTH = sys.maxsize  # the largest payload the host can address


BytesLike = Union[bytes, bytearray, memoryview]


class DecoderStates(enum.Enum):
    READ_DIGIT = 0
    READ_SEPARATOR = 1
    READ_PAYLOAD = 2
    READ_TERMINATOR = 3


def encode(payload: BytesLike) -> bytes:
    """ Return *payload* wrapped in a netstring frame.

    :param payload: a bytes-like object containing the message payload.

    :raises: TypeError if payload is not a bytes-like object.
    """
    if not isinstance(payload, (bytes, bytearray, memoryview)):
        raise TypeError(f"payload must be bytes-like, got {type(payload)}")

    payload = bytes(payload)
    return b"%d:%s," % (len(payload), payload)


def decode(source: IByteSource) -> bytes:
    """ Consume exactly one netstring frame from *source* and return its payload.

    The length field is parsed one byte at a time. A leading ``0`` is only
    accepted when a peek shows the separator immediately after it, so the
    decoder never needs to push a byte back into the source.

    :param source: A byte source positioned at the start of a frame.

    :returns: the payload as a bytes object.

    :raises: DecodeError (one of its subclasses) if the frame is malformed or
      the source ends before the frame is complete.
    """
    length = 0
    digits = 0
    state = DecoderStates.READ_DIGIT

    while state == DecoderStates.READ_DIGIT:
        try:
            byte = source.read_byte()
        except EndOfStream:
            raise TruncatedError("length") from None

        if byte == SEPARATOR:
            if digits == 0:
                raise InvalidLengthError()
            state = DecoderStates.READ_PAYLOAD

        elif byte == DIGIT_ZERO and digits == 0:
            try:
                following = source.peek_byte()
            except EndOfStream:
                raise LeadingZeroError(None) from None
            if following != SEPARATOR:
                raise LeadingZeroError(following)
            digits = 1
            state = DecoderStates.READ_SEPARATOR

        elif DIGIT_ZERO <= byte <= DIGIT_NINE:
            length = length * 10 + (byte - DIGIT_ZERO)
            digits += 1
            if length > MAX_LENGTH:
                raise LengthOverflowError(MAX_LENGTH)

        else:
            raise InvalidDigitError(byte)

    if state == DecoderStates.READ_SEPARATOR:
        # The lookahead has already confirmed this byte is the separator
        source.read_byte()
        state = DecoderStates.READ_PAYLOAD

    payload = b""
    if length:
        try:
            payload = source.read_exact(length)
        except EndOfStream:
            raise TruncatedError("payload", expected=length) from None
    state = DecoderStates.READ_TERMINATOR

    try:
        byte = source.read_byte()
    except EndOfStream:
        raise TruncatedError("terminator") from None

    if byte != TERMINATOR:
        raise UnexpectedTerminatorError(byte, TERMINATOR)

    logger.debug(f"Decoded netstring frame with {length} byte payload")

    return payload


def iter_decode(
    source: IByteSource,
    decode_frame: Optional[Callable[[IByteSource], bytes]] = None,
) -> Iterator[bytes]:
    """ Yield the payload of each frame in *source* until it is exhausted.

    The source must end on a frame boundary. A frame that is cut short raises
    a TruncatedError like any other decode.

    :param decode_frame: The function that extracts one frame from the source.
      Defaults to the decimal netstring :func:`decode`.
    """
    decode_frame = decode_frame if decode_frame else decode
    while True:
        try:
            source.peek_byte()
        except EndOfStream:
            return
        yield decode_frame(source)
