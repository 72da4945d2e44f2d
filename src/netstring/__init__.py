__version__ = "1.0.0"

from .codec import decode, encode, iter_decode
from .errors import (
    DecodeError,
    EncodeError,
    EndOfStream,
    InvalidDigitError,
    InvalidLengthError,
    LeadingZeroError,
    LengthOverflowError,
    NetstringError,
    TrailingDataError,
    TruncatedError,
    UnexpectedSeparatorError,
    UnexpectedTerminatorError,
)
from .source import BufferedByteSource, IByteSource, MemoryByteSource
