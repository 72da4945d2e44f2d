import asyncio
import binascii
import logging
import os

from typing import Optional, Tuple

from netstring import framing
from netstring.errors import DecodeError, LeadingZeroError, TruncatedError
from netstring.source import MemoryByteSource


logger = logging.getLogger(__name__)


class NetstringStreamProtocol(asyncio.Protocol):
    """
    The netstring protocol implements a message framing strategy for
    sending and receiving network messages. Each message is wrapped in a
    netstring frame when sent, and the frame is removed again when the
    message is extracted from the stream.

    .. code-block:: console

        +-----------+---+----------------------+---+
        |  length   | : |  payload             | , |
        +-----------+---+----------------------+---+
        |  decimal  |   |  DATA ....           |   |
        +-----------+---+----------------------+---+

    Upon extracting a message from the stream the protocol passes the message
    payload data to the on_message handler. A malformed frame is treated as a
    fatal framing violation and the connection is closed.
    """

    def __init__(
        self,
        on_message=None,
        on_peer_available=None,
        on_peer_unavailable=None,
        framing_name: Optional[str] = None,
        **kwargs,
    ):
        """

        :param on_message: A callback function that will be passed each message
          that the protocol extracts from the stream.

        :param on_peer_available: A callback function that will be called when
          the protocol is connected with a transport. In this state the protocol
          can send and receive messages.

        :param on_peer_unavailable: A callback function that will be called when
          the protocol has lost the connection with its transport. In this state
          the protocol can not send or receive messages.

        :param framing_name: The name of a registered framing strategy. Defaults
          to the registry default which is the decimal netstring.
        """
        self._on_message_handler = on_message
        self._on_peer_available_handler = on_peer_available
        self._on_peer_unavailable_handler = on_peer_unavailable
        self._framer = framing.registry.get_framer(framing_name)
        self._remote_address = None  # type: Optional[Tuple[str, int]]
        self._local_address = None  # type: Optional[Tuple[str, int]]
        self._identity = b""
        self._buffer = bytearray()

        self.transport = None

    @property
    def raddr(self) -> Optional[Tuple[str, int]]:
        """ Return the (host, port) of the peer """
        return self._remote_address

    @property
    def laddr(self) -> Optional[Tuple[str, int]]:
        """ Return the local (host, port) of the connection """
        return self._local_address

    @property
    def identity(self) -> bytes:
        """ Return the hex identifier passed to callbacks for this connection """
        return self._identity

    def connection_made(self, transport):
        self.transport = transport
        self._remote_address = _host_port(transport.get_extra_info("peername"))
        self._local_address = _host_port(transport.get_extra_info("sockname"))
        self._identity = binascii.hexlify(os.urandom(5))

        logger.debug(
            f"Peer {self._identity} connected from {self._remote_address} "
            f"to {self._local_address}"
        )

        try:
            if self._on_peer_available_handler:
                self._on_peer_available_handler(self, self._identity)
        except Exception:
            logger.exception("Error in on_peer_available callback method")

    def connection_lost(self, exc):
        logger.debug(f"Peer {self._identity} disconnected, reason={exc}")

        try:
            if self._on_peer_unavailable_handler:
                self._on_peer_unavailable_handler(self, self._identity)
        except Exception:
            logger.exception("Error in on_peer_unavailable callback method")

        # A partial frame from this peer can never be completed
        self._buffer.clear()
        self.transport = None
        self._remote_address = None
        self._local_address = None

    def close(self):
        """ Close the connection to the peer """
        logger.debug(f"Closing connection to peer {self._identity}")

        if self.transport:
            self.transport.close()

    def send(self, data: bytes, **kwargs):
        """ Sends a message by writing it to the transport.

        :param data: a bytes object containing the message payload.
        """
        if not isinstance(data, bytes):
            logger.error(f"data must be bytes - can't send message. data={type(data)}")
            return

        msg = self._framer.encode(data)

        logger.debug(f"Sending msg with {len(msg)} bytes")

        self.transport.write(msg)

    def data_received(self, data):
        """ Process some bytes received from the transport.

        Upon receiving some bytes from the stream they are added to a buffer
        and then every complete frame in the buffer is extracted. An
        incomplete frame stays in the buffer until more bytes arrive.

        This method should support the worst case scenario of receiving a
        single byte at a time, however, a more likely scenario is receiving
        one or more messages at once.
        """
        self._buffer.extend(data)

        while self._buffer:
            source = MemoryByteSource(self._buffer)
            try:
                msg = self._framer.decode(source)
            except TruncatedError:
                # There are not enough bytes to extract a frame yet.
                break
            except LeadingZeroError as exc:
                if exc.found is None:
                    # The byte after the zero has not arrived yet.
                    break
                self._abort(exc)
                break
            except DecodeError as exc:
                self._abort(exc)
                break

            del self._buffer[: source.position]

            # Don't let user code break the library
            try:
                if self._on_message_handler:
                    self._on_message_handler(self, self._identity, msg)
            except Exception:
                logger.exception("Error in on_message callback method")

    def _abort(self, exc: DecodeError):
        logger.error(
            f"Invalid frame received ({exc}). Disconnecting peer {self._identity}."
        )
        self._buffer.clear()
        self.close()


def _host_port(info) -> Optional[Tuple[str, int]]:
    # AF_INET6 sockets report (host, port, flowinfo, scopeid)
    if info and len(info) == 4:
        return info[0], info[1]
    return info
