""" This module contains the exceptions raised by the netstring codec. """

from typing import Optional


def _describe(value: Optional[int]) -> str:
    if value is None:
        return "end of stream"
    return repr(bytes([value]))


class NetstringError(Exception):
    """ Base class for all errors raised by this library. """


class EndOfStream(NetstringError, EOFError):
    """ Raised by a byte source when it has no more bytes to deliver. """


class EncodeError(NetstringError):
    """ Raised when a payload can not be represented by a framing strategy. """


class DecodeError(NetstringError):
    """ Base class for framing violations detected while decoding.

    A decode error is fatal for the stream it was raised on. The position of
    the source's cursor after a failed decode is undefined.
    """


class TruncatedError(DecodeError):
    """ The stream ended before a complete frame was read.

    :param stage: The part of the frame being read when the stream ended. One
      of ``length``, ``separator``, ``payload`` or ``terminator``.

    :param expected: The number of bytes that were required, when known.
    """

    def __init__(self, stage: str, expected: Optional[int] = None):
        self.stage = stage
        self.expected = expected
        msg = f"stream ended while reading netstring {stage}"
        if expected is not None:
            msg += f", wanted {expected} bytes"
        super().__init__(msg)


class InvalidDigitError(DecodeError):
    """ A byte in the length field is not a decimal digit. """

    def __init__(self, found: int):
        self.found = found
        super().__init__(
            f"length byte {_describe(found)} (0x{found:02x}) is not in the range of 0-9"
        )


class LeadingZeroError(DecodeError):
    """ The length field starts with ``0`` but is not exactly ``0``.

    :param found: The byte that followed the zero, or None when the stream
      ended before the lookahead byte was available.
    """

    def __init__(self, found: Optional[int]):
        self.found = found
        super().__init__(
            f"leading zeros at the front of length are prohibited, "
            f"zero followed by {_describe(found)}"
        )


class InvalidLengthError(DecodeError):
    """ The separator was found before any length digit. """

    def __init__(self):
        super().__init__("netstring length field contains no digits")


class LengthOverflowError(DecodeError):
    """ The declared length exceeds the largest supported payload size. """

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"netstring length exceeds the maximum of {limit} bytes")


class UnexpectedSeparatorError(DecodeError):
    """ The byte following a fixed width length field is not the separator. """

    def __init__(self, found: int, expected: int):
        self.found = found
        self.expected = expected
        super().__init__(
            f"got unexpected netstring separator {_describe(found)}, "
            f"wanted {_describe(expected)}"
        )


class UnexpectedTerminatorError(DecodeError):
    """ The byte following the payload is not the terminator. """

    def __init__(self, found: int, expected: int):
        self.found = found
        self.expected = expected
        super().__init__(
            f"got unexpected netstring terminator {_describe(found)}, "
            f"wanted {_describe(expected)}"
        )


class TrailingDataError(DecodeError):
    """ Bytes remain in a buffer that was expected to hold exactly one frame. """

    def __init__(self, remaining: int):
        self.remaining = remaining
        super().__init__(f"{remaining} bytes remain after the netstring frame")
