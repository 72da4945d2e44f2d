"""
Command line wrapper that frames stdin into stdout, or extracts the payloads
of the frames on stdin into stdout.

.. code-block:: console

    $ printf 'hello' | python -m netstring encode
    5:hello,
    $ printf '5:hello,5:world,' | python -m netstring decode
    helloworld
"""

import argparse
import logging
import sys

from netstring import framing
from netstring.errors import DecodeError, EncodeError
from netstring.source import BufferedByteSource

logger = logging.getLogger("netstring")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="netstring", description="Netstring encoder and decoder"
    )
    parser.add_argument(
        "command",
        choices=["encode", "decode"],
        help="encode stdin into one frame, or decode the frames on stdin",
    )
    parser.add_argument(
        "--framing",
        type=str,
        choices=sorted(framing.registry.framers),
        default=framing.registry.default,
        help=f"Framing strategy. Default is '{framing.registry.default}'.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "error"],
        default="error",
        help="Logging level. Default is 'error'.",
    )
    return parser


def main(argv=None, stdin=None, stdout=None) -> int:
    """ Run the command line tool.

    :param argv: Command line arguments, excluding the program name.

    :param stdin: A binary stream to read from. Defaults to stdin.

    :param stdout: A binary stream to write to. Defaults to stdout.

    :returns: the process exit status.
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        format="%(asctime)s.%(msecs)03.0f [%(levelname)s] [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        level=getattr(logging, args.log_level.upper()),
    )

    stdin = stdin if stdin is not None else sys.stdin.buffer
    stdout = stdout if stdout is not None else sys.stdout.buffer

    if args.command == "encode":
        data = stdin.read()
        try:
            stdout.write(framing.dumps(data, args.framing))
        except EncodeError as exc:
            logger.error(f"Unable to encode input: {exc}")
            return 1
        logger.info(f"Encoded {len(data)} bytes")

    else:
        source = BufferedByteSource(stdin)
        count = 0
        try:
            for payload in framing.registry.iter_decode(source, args.framing):
                stdout.write(payload)
                count += 1
        except DecodeError as exc:
            logger.error(f"Invalid frame after {count} good frames: {exc}")
            return 1
        logger.info(f"Decoded {count} frames")

    stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
