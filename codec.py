import struct
from typing import Callable, Dict, Optional, Tuple

from bitops import BitWriter, BitReader, unpack_bits
from errors import (
    CorruptHeaderError,
    EmptyInputError,
    MalformedContainerError,
    TreeBuildError,
    UnmatchedResidualBitsError,
)
from huffman import build_tree, count_frequencies, generate_codes, is_prefix_free

LENGTH_PREFIX = struct.Struct("<I")  #: header_len in front of every container
HEADER_FIXED = struct.Struct("<BQH")  #: version, original bit count, entry count
MAX_SYMBOLS = 256


def encode_header(codes: Dict[int, str], bit_count: int, version: int = 1) -> bytes:
    """Serialize a code table and the payload bit count.

    Layout (little-endian): version (uint8), original bit count (uint64),
    entry count (uint16), then for every symbol in ascending order a
    bit-packed record of symbol (8 bits), code length (8 bits) and the code
    bits themselves, zero padded to a whole byte at the end.

    :param codes: Mapping from byte value to ``'0'``/``'1'`` code.
    :type codes: Dict[int, str]
    :param bit_count: Number of meaningful payload bits.
    :type bit_count: int
    :param version: Header format version.
    :type version: int
    :returns: Serialized header.
    :rtype: bytes
    """
    entries = BitWriter()
    for symbol in sorted(codes):
        code = codes[symbol]
        entries.write_bits(symbol, 8)
        entries.write_bits(len(code), 8)
        entries.write_bits(int(code, 2), len(code))
    return HEADER_FIXED.pack(version, bit_count, len(codes)) + entries.flush()


def decode_header(header: bytes, version: int = 1) -> Tuple[Dict[int, str], int]:
    """Parse a header produced by :func:`encode_header`.

    :param header: Serialized header bytes, exactly as framed.
    :type header: bytes
    :param version: Header format version this decoder understands.
    :type version: int
    :returns: Tuple ``(codes, bit_count)``.
    :rtype: Tuple[Dict[int, str], int]
    :raises CorruptHeaderError: If the header is truncated, has trailing
        bytes, uses another version or describes an invalid code table.
    """
    try:
        found_version, bit_count, count = HEADER_FIXED.unpack_from(header, 0)
    except struct.error as e:
        raise CorruptHeaderError(f"Header too short: {len(header)} bytes") from e
    if found_version != version:
        raise CorruptHeaderError(f"Unsupported version: {found_version}")
    if not 0 < count <= MAX_SYMBOLS:
        raise CorruptHeaderError(f"Invalid code table size: {count}")

    body = header[HEADER_FIXED.size:]
    reader = BitReader(body)
    codes: Dict[int, str] = {}
    try:
        for _ in range(count):
            symbol = reader.read_bits(8)
            length = reader.read_bits(8)
            if length == 0:
                raise CorruptHeaderError(f"Empty code for symbol {symbol}")
            if symbol in codes:
                raise CorruptHeaderError(f"Duplicate symbol {symbol}")
            codes[symbol] = format(reader.read_bits(length), f"0{length}b")
    except EOFError as e:
        raise CorruptHeaderError("Truncated code table") from e
    if reader.pos != len(body):
        raise CorruptHeaderError(
            f"Trailing bytes in header: {len(body) - reader.pos}"
        )
    if reader.read_bits(reader.bit_count):
        raise CorruptHeaderError("Nonzero padding bits in header")
    if not is_prefix_free(codes):
        raise CorruptHeaderError("Code table is not prefix-free")
    return codes, bit_count


class HuffmanCodec:
    """Static Huffman compressor producing a self-describing container.

    Container layout::

        uint32 LE  header_len
        header     see encode_header
        payload    packed code bits, MSB first, zero padded

    :ivar VERSION: Header format version written and accepted.
    :type VERSION: int
    :ivar PROGRESS_STEP: Granularity of progress callbacks, in input bytes.
    :type PROGRESS_STEP: int
    :ivar codes: Code table used by the last compress/decompress call.
    :type codes: Dict[int, str]
    """

    VERSION = 1
    PROGRESS_STEP = 64 * 1024

    def __init__(self):
        self.codes: Dict[int, str] = {}

    def compress(
        self,
        data: bytes,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> bytes:
        """Compress ``data`` into a Huffman container.

        :param data: Input bytes to compress, must be non-empty.
        :type data: bytes
        :param on_progress: Optional callback ``on_progress(done, total)``
                            reporting input bytes encoded so far.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Container bytes.
        :rtype: bytes
        :raises EmptyInputError: If ``data`` is empty.
        :raises TreeBuildError: If no code tree could be built.
        """
        if not data:
            raise EmptyInputError()

        root = build_tree(count_frequencies(data))
        if root is None:
            raise TreeBuildError()
        self.codes = generate_codes(root)

        table = {sym: (int(code, 2), len(code)) for sym, code in self.codes.items()}
        total = len(data)
        payload = BitWriter()
        for done, byte in enumerate(data, 1):
            code, length = table[byte]
            payload.write_bits(code, length)
            if on_progress is not None and done % self.PROGRESS_STEP == 0:
                on_progress(done, total)

        header = encode_header(self.codes, payload.bits_written, self.VERSION)
        if on_progress is not None:
            on_progress(total, total)
        return LENGTH_PREFIX.pack(len(header)) + header + payload.flush()

    def decompress(
        self,
        data: bytes,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> bytes:
        """Decompress a container produced by ``compress``.

        :param data: Container bytes.
        :type data: bytes
        :param on_progress: Optional callback ``on_progress(done, total)``
                            reporting payload bits decoded so far.
        :type on_progress: Optional[Callable[[int, int], None]]
        :returns: Original bytes.
        :rtype: bytes
        :raises MalformedContainerError: If the framing is too short or the
            recorded bit count does not fit the payload.
        :raises CorruptHeaderError: If the header cannot be parsed.
        :raises UnmatchedResidualBitsError: If payload bits do not match
            any code.
        """
        if len(data) < LENGTH_PREFIX.size:
            raise MalformedContainerError(
                f"Container too short: {len(data)} bytes"
            )
        (header_len,) = LENGTH_PREFIX.unpack_from(data, 0)
        payload_start = LENGTH_PREFIX.size + header_len
        if len(data) < payload_start:
            raise MalformedContainerError(
                f"Header length {header_len} exceeds container size {len(data)}"
            )

        codes, bit_count = decode_header(
            data[LENGTH_PREFIX.size:payload_start], self.VERSION
        )
        payload = data[payload_start:]
        available = len(payload) * 8
        if bit_count > available:
            raise MalformedContainerError(
                f"Payload holds {available} bits, header claims {bit_count}"
            )
        if available - bit_count >= 8:
            raise MalformedContainerError(
                f"Payload has {available - bit_count} padding bits"
            )

        self.codes = codes
        return self._decode_payload(payload, bit_count, on_progress)

    def _decode_payload(
        self,
        payload: bytes,
        bit_count: int,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> bytes:
        """Greedily match the first ``bit_count`` payload bits against ``codes``.

        :raises UnmatchedResidualBitsError: If a candidate outgrows the
            longest code, or bits are left over at the end.
        """
        decode_table = {
            (int(code, 2), len(code)): sym for sym, code in self.codes.items()
        }
        max_length = max(len(code) for code in self.codes.values())
        step = self.PROGRESS_STEP * 8

        output = bytearray()
        code = 0
        length = 0
        for done, bit in enumerate(unpack_bits(payload, bit_count), 1):
            code = (code << 1) | bit
            length += 1
            symbol = decode_table.get((code, length))
            if symbol is not None:
                output.append(symbol)
                code = 0
                length = 0
            elif length >= max_length:
                raise UnmatchedResidualBitsError(
                    f"No code matches {length} bits ending at bit {done}"
                )
            if on_progress is not None and done % step == 0:
                on_progress(done, bit_count)

        if length:
            raise UnmatchedResidualBitsError(
                f"{length} residual bits do not form a code"
            )
        if on_progress is not None:
            on_progress(bit_count, bit_count)
        return bytes(output)


def compress(data: bytes) -> bytes:
    """Compress ``data`` with a fresh :class:`HuffmanCodec`."""
    return HuffmanCodec().compress(data)


def decompress(data: bytes) -> bytes:
    """Decompress ``data`` with a fresh :class:`HuffmanCodec`."""
    return HuffmanCodec().decompress(data)
