from typing import Iterable, Iterator, Optional, Union


class BitWriter:
    """Bit-packing writer.

    Accumulates individual bits into bytes, most significant bit first, and
    buffers them until flushed.

    :ivar buffer: Internal byte buffer holding fully written bytes.
    :type buffer: bytearray
    :ivar bit_buffer: 8-bit scratch register for accumulating pending bits.
    :type bit_buffer: int
    :ivar bit_count: Number of valid bits currently stored in ``bit_buffer`` (0-7).
    :type bit_count: int
    """

    def __init__(self):
        """Initialize an empty bit writer.

        :returns: None
        :rtype: None
        """
        self.buffer = bytearray()
        self.bit_buffer = 0
        self.bit_count = 0
        self._logical_bits = 0

    @property
    def bits_written(self) -> int:
        """Number of meaningful bits written so far, excluding any padding.

        Always equals the sum of ``nbits`` over every :meth:`write_bits`
        call, so it can be stored as a payload's true bit count.

        :returns: Logical bit count.
        :rtype: int
        """
        return self._logical_bits

    def write_bits(self, value: int, nbits: int):
        """Write the lowest ``nbits`` of ``value`` to the buffer, MSB first.

        :param value: Integer whose bits will be written.
        :type value: int
        :param nbits: Number of bits from ``value`` to write.
        :type nbits: int
        :returns: None
        :rtype: None
        """
        for i in range(nbits - 1, -1, -1):
            self.bit_buffer = (self.bit_buffer << 1) | ((value >> i) & 1)
            self.bit_count += 1
            if self.bit_count == 8:
                self.buffer.append(self.bit_buffer)
                self.bit_buffer = 0
                self.bit_count = 0
        if nbits > 0:
            self._logical_bits += nbits

    def flush(self) -> bytes:
        """Flush remaining bits (if any) and return the full byte buffer.

        Any partial byte in ``bit_buffer`` is padded with zeros at its
        low-order end before being appended.

        :returns: The accumulated bytes written so far.
        :rtype: bytes
        """
        self._align()
        return bytes(self.buffer)

    def _align(self):
        """Pad the pending partial byte with low-order zeros and append it.

        Padding is not counted in :attr:`bits_written`.

        :returns: None
        :rtype: None
        """
        if self.bit_count > 0:
            self.bit_buffer <<= (8 - self.bit_count)
            self.buffer.append(self.bit_buffer)
            self.bit_buffer = 0
            self.bit_count = 0


class BitReader:
    """Bit-unpacking reader.

    Reads arbitrary bit lengths from a bytes-like object.

    :ivar data: Input data to read bits/bytes from.
    :type data: bytes
    :ivar pos: Current position in ``data`` (byte index).
    :type pos: int
    :ivar bit_buffer: Scratch register holding the current source byte.
    :type bit_buffer: int
    :ivar bit_count: Number of unread bits remaining in ``bit_buffer`` (0-8).
    :type bit_count: int
    """

    def __init__(self, data: bytes):
        """Create a bit reader for the given input ``data``.

        :param data: Source data to read from.
        :type data: bytes
        :returns: None
        :rtype: None
        """
        self.data = data
        self.pos = 0
        self.bit_buffer = 0
        self.bit_count = 0

    def read_bits(self, nbits: int) -> int:
        """Read ``nbits`` bits from the stream and return them as an integer.

        Bits are returned MSB-first in the integer.

        :param nbits: Number of bits to read.
        :type nbits: int
        :returns: The integer value composed of the next ``nbits`` bits.
        :rtype: int
        :raises EOFError: If the end of data is reached before reading ``nbits``.
        """
        result = 0
        for _ in range(nbits):
            if self.bit_count == 0:
                if self.pos >= len(self.data):
                    raise EOFError("Unexpected end of data")
                self.bit_buffer = self.data[self.pos]
                self.pos += 1
                self.bit_count = 8
            result = (result << 1) | ((self.bit_buffer >> (self.bit_count - 1)) & 1)
            self.bit_count -= 1
        return result


def pack_bits(bits: Iterable[Union[int, str]]) -> bytes:
    """Pack a sequence of logical bits into bytes, MSB first.

    Accepts ints (``0``/``1``) or characters (``'0'``/``'1'``), so a
    ``"0110"`` string works as well as a list. The final byte is padded with
    zero bits; the number of meaningful bits is not recorded.

    :param bits: Ordered bit symbols.
    :type bits: Iterable[int | str]
    :returns: ``ceil(len(bits) / 8)`` bytes.
    :rtype: bytes
    :raises ValueError: If a symbol is neither 0 nor 1.
    """
    writer = BitWriter()
    for bit in bits:
        if bit in (1, "1"):
            writer.write_bits(1, 1)
        elif bit in (0, "0"):
            writer.write_bits(0, 1)
        else:
            raise ValueError(f"Invalid bit symbol: {bit!r}")
    return writer.flush()


def unpack_bits(data: bytes, nbits: Optional[int] = None) -> Iterator[int]:
    """Yield the bits of ``data`` MSB first.

    Without ``nbits`` every bit is produced (``len(data) * 8`` of them),
    padding included. With ``nbits`` the sequence stops after that many.

    :param data: Packed bytes.
    :type data: bytes
    :param nbits: Optional number of bits after which to stop.
    :type nbits: int | None
    :returns: Iterator over ``0``/``1`` ints.
    :rtype: Iterator[int]
    """
    remaining = len(data) * 8 if nbits is None else min(nbits, len(data) * 8)
    for byte in data:
        for shift in range(7, -1, -1):
            if remaining <= 0:
                return
            yield (byte >> shift) & 1
            remaining -= 1
