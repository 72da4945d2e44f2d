import unittest
import unittest.mock

from netstring import framing
from netstring.errors import (
    EncodeError,
    TrailingDataError,
    TruncatedError,
    UnexpectedSeparatorError,
    UnexpectedTerminatorError,
)
from netstring.source import MemoryByteSource


TEST_DATA = b"The Quick Brown Fox Jumps Over The Lazy Dog"


class FramingRegistryTestCase(unittest.TestCase):
    def tearDown(self):
        framing.registry.set_default(framing.FRAMING_NETSTRING)

    def test_expected_framers_are_present(self):
        framers = framing.registry.framers
        for name in (framing.FRAMING_NETSTRING, framing.FRAMING_BINARY):
            with self.subTest(f"Check that {name} is present"):
                self.assertIn(name, framers)
                self.assertIsInstance(framers[name], framing.IFramer)

    def test_default_framer(self):
        self.assertEqual(framing.registry.default, framing.FRAMING_NETSTRING)
        self.assertEqual(framing.dumps(b"hello"), b"5:hello,")

        framing.registry.set_default(framing.FRAMING_BINARY)
        self.assertEqual(framing.dumps(b"hello"), b"\x05\x00\x00\x00:hello,")

    def test_register_invalid_framer(self):
        class InvalidFramer(object):
            pass

        with self.assertRaises(Exception) as cm:
            framing.registry.register("invalid", InvalidFramer())
        self.assertIn("Expected an instance of IFramer", str(cm.exception))

    def test_fetch_framer_with_invalid_name(self):
        with self.assertRaises(Exception) as cm:
            framing.registry.get_framer("invalid")
        self.assertIn("Invalid framing", str(cm.exception))

        with self.assertRaises(Exception) as cm:
            framing.registry.set_default("invalid")
        self.assertIn("Invalid framing", str(cm.exception))

    def test_dumps_and_loads_with_invalid_name(self):
        with self.assertRaises(Exception) as cm:
            framing.dumps(TEST_DATA, "invalid")
        self.assertIn("Invalid framing", str(cm.exception))

        with self.assertRaises(Exception) as cm:
            framing.loads(b"5:hello,", "invalid")
        self.assertIn("Invalid framing", str(cm.exception))

    def test_iter_loads_with_invalid_name_fails_immediately(self):
        # The framer is resolved before any frame is requested
        with self.assertRaises(Exception) as cm:
            framing.iter_loads(b"5:hello,", "invalid")
        self.assertIn("Invalid framing", str(cm.exception))

        with self.assertRaises(Exception) as cm:
            framing.registry.iter_decode(MemoryByteSource(b""), "invalid")
        self.assertIn("Invalid framing", str(cm.exception))

    def test_roundtrip(self):
        for name in framing.registry.framers:
            for payload in (b"", b":,", TEST_DATA, bytes(range(256))):
                with self.subTest(f"Check {name} round trip of {payload[:8]!r}"):
                    frame = framing.dumps(payload, name)
                    self.assertEqual(framing.loads(frame, name), payload)

    def test_register_custom_framer(self):
        class LineFramer(framing.IFramer):
            def encode(self, payload):
                return payload + b"\n"

            def decode(self, source):
                data = bytearray()
                while True:
                    b = source.read_byte()
                    if b == ord("\n"):
                        return bytes(data)
                    data.append(b)

        registry = framing.FramingRegistry()
        registry.register("line", LineFramer())
        registry.set_default("line")
        self.assertEqual(registry.dumps(b"abc"), b"abc\n")
        self.assertEqual(list(registry.iter_loads(b"a\nb\n")), [b"a", b"b"])

    def test_loads_rejects_trailing_data(self):
        with self.assertRaises(TrailingDataError) as cm:
            framing.loads(b"5:hello,5:world,")
        self.assertEqual(cm.exception.remaining, 8)

    def test_iter_loads(self):
        data = b"".join(framing.dumps(p) for p in (b"a", b"", b"bc"))
        self.assertEqual(list(framing.iter_loads(data)), [b"a", b"", b"bc"])

        data = b"".join(framing.dumps(p, "binary") for p in (b"a", b"bc"))
        self.assertEqual(list(framing.iter_loads(data, "binary")), [b"a", b"bc"])

    def test_iter_decode_leaves_source_at_frame_boundary(self):
        source = MemoryByteSource(b"1:a,1:b,")
        frames = framing.registry.iter_decode(source)
        self.assertEqual(next(frames), b"a")
        self.assertEqual(source.position, 4)


class BinaryFramerTestCase(unittest.TestCase):
    def test_encode(self):
        self.assertEqual(framing.dumps(b"", "binary"), b"\x00\x00\x00\x00:,")
        self.assertEqual(
            framing.dumps(b"sunshine", "binary"), b"\x08\x00\x00\x00:sunshine,"
        )

    def test_encode_rejects_text(self):
        with self.assertRaises(TypeError):
            framing.dumps("sunshine", "binary")

    def test_encode_payload_too_large(self):
        with unittest.mock.patch("netstring.framing.BINARY_MAX_LENGTH", 4):
            with self.assertRaises(EncodeError) as cm:
                framing.dumps(b"sunshine", "binary")
        self.assertIn("exceeds the binary framing maximum", str(cm.exception))

    def test_decode_invalid_frames(self):
        sub_tests = (
            # frame, expected exception, description
            (b"", TruncatedError, "Frame is empty"),
            (b"\x08\x00", TruncatedError, "Header is incomplete"),
            (b"\x08\x00\x00\x00", TruncatedError, "Separator is missing"),
            (b"\x08\x00\x00\x00;sunshine,", UnexpectedSeparatorError, "Wrong separator"),
            (b"\x08\x00\x00\x00:sun", TruncatedError, "Payload is incomplete"),
            (b"\x08\x00\x00\x00:sunshine", TruncatedError, "Terminator is missing"),
            (b"\x08\x00\x00\x00:sunshine:", UnexpectedTerminatorError, "Wrong terminator"),
        )
        for frame, exc_class, subtest_description in sub_tests:
            with self.subTest(subtest_description):
                with self.assertRaises(exc_class):
                    framing.loads(frame, "binary")

    def test_unexpected_separator_reports_found_and_expected(self):
        with self.assertRaises(UnexpectedSeparatorError) as cm:
            framing.loads(b"\x01\x00\x00\x00;a,", "binary")
        self.assertEqual(cm.exception.found, ord(";"))
        self.assertEqual(cm.exception.expected, ord(":"))


if __name__ == "__main__":
    unittest.main()
