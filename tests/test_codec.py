import os
import random
import struct

import pytest

from bitops import pack_bits
from codec import (
    HEADER_FIXED,
    LENGTH_PREFIX,
    HuffmanCodec,
    compress,
    decode_header,
    decompress,
    encode_header,
)
from errors import (
    CorruptHeaderError,
    EmptyInputError,
    HuffmanError,
    MalformedContainerError,
    TreeBuildError,
    UnmatchedResidualBitsError,
)


def _split(container):
    (header_len,) = struct.unpack_from("<I", container, 0)
    header = container[4:4 + header_len]
    payload = container[4 + header_len:]
    return header, payload


def _container(codes, bits):
    header = encode_header(codes, len(bits))
    return LENGTH_PREFIX.pack(len(header)) + header + pack_bits(bits)


SAMPLES = [
    b"a",
    b"ab",
    b"aaaabbbcc",
    b"The quick brown fox jumps over the lazy dog. " * 5,
    bytes(range(256)) * 3,
    bytes([0, 255]) * 17,
]


@pytest.mark.parametrize("data", SAMPLES)
def test_roundtrip(data):
    assert decompress(compress(data)) == data


def test_roundtrip_random_buffers():
    rng = random.Random(1234)
    for size in (1, 7, 8, 9, 100, 1000):
        data = bytes(rng.randrange(256) for _ in range(size))
        assert decompress(compress(data)) == data


def test_roundtrip_with_progress(progress_recorder):
    data = os.urandom(3000) + b"x" * 2000
    codec = HuffmanCodec()
    codec.PROGRESS_STEP = 512
    on_prog, calls = progress_recorder

    comp = codec.compress(data, on_progress=on_prog)
    assert (len(data), len(data)) in calls
    assert (512, len(data)) in calls

    calls.clear()
    out = codec.decompress(comp, on_progress=on_prog)
    assert out == data
    done, total = calls[-1]
    assert done == total
    assert len(calls) > 1


def test_single_symbol_input():
    data = b"\x41" * 1000
    codec = HuffmanCodec()
    comp = codec.compress(data)
    assert codec.codes == {0x41: "0"}
    assert codec.decompress(comp) == data

    header, payload = _split(comp)
    codes, bit_count = decode_header(header)
    assert codes == {0x41: "0"}
    assert bit_count == 1000
    assert payload == bytes(125)


def test_empty_input_rejected():
    with pytest.raises(EmptyInputError) as exc_info:
        compress(b"")
    assert str(exc_info.value) == "empty input"


def test_tree_build_failure_is_reported(monkeypatch):
    monkeypatch.setattr("codec.build_tree", lambda freqs: None)
    with pytest.raises(TreeBuildError):
        compress(b"abc")


def test_example_scenario_layout():
    data = b"aaaabbbcc"
    comp = compress(data)
    header, payload = _split(comp)
    codes, bit_count = decode_header(header)
    assert codes == {ord("a"): "0", ord("b"): "11", ord("c"): "10"}
    assert bit_count == 4 * 1 + 3 * 2 + 2 * 2
    assert payload == pack_bits("0000" + "111111" + "1010")
    assert decompress(comp) == data


@pytest.mark.parametrize("data", SAMPLES)
def test_bit_count_accounting(data):
    header, payload = _split(compress(data))
    _, bit_count = decode_header(header)
    assert 0 <= len(payload) * 8 - bit_count < 8


def test_determinism():
    data = b"mississippi river banks" * 11
    first = compress(data)
    second = compress(data)
    assert first == second
    assert HuffmanCodec().compress(data) == first


def test_header_roundtrip():
    codes = {0: "0", 7: "10", 255: "110", 128: "111"}
    header = encode_header(codes, 12345)
    assert header[0] == HuffmanCodec.VERSION
    assert decode_header(header) == (codes, 12345)


def test_decode_header_rejects_bad_headers():
    good = encode_header({1: "0", 2: "1"}, 4)
    with pytest.raises(CorruptHeaderError):
        decode_header(good[:HEADER_FIXED.size - 1])
    with pytest.raises(CorruptHeaderError):
        decode_header(good[:-1])
    with pytest.raises(CorruptHeaderError):
        decode_header(good + b"\x00")
    with pytest.raises(CorruptHeaderError):
        decode_header(encode_header({1: "0"}, 1, version=99))
    with pytest.raises(CorruptHeaderError):
        decode_header(encode_header({}, 0))
    with pytest.raises(CorruptHeaderError):
        decode_header(encode_header({1: "01", 2: "01"}, 4))
    with pytest.raises(CorruptHeaderError):
        decode_header(encode_header({1: "0", 2: "01"}, 4))


def test_decode_header_rejects_nonzero_padding_bits():
    header = encode_header({1: "0", 2: "1"}, 4)
    assert header[-1] & 0b111111 == 0
    assert decode_header(header) == ({1: "0", 2: "1"}, 4)
    with pytest.raises(CorruptHeaderError):
        decode_header(header[:-1] + bytes([header[-1] | 1]))


def test_rejected_container_keeps_previous_codes():
    codec = HuffmanCodec()
    codec.compress(b"xyzzy")
    previous = dict(codec.codes)
    with pytest.raises(MalformedContainerError):
        codec.decompress(compress(b"aaaabbbcc")[:-1])
    assert codec.codes == previous


def test_decode_header_rejects_zero_length_code():
    header = HEADER_FIXED.pack(1, 1, 1) + bytes([65, 0])
    with pytest.raises(CorruptHeaderError):
        decode_header(header)


def test_decompress_corrupt_header_in_container():
    header = b"garbage"
    with pytest.raises(CorruptHeaderError):
        decompress(LENGTH_PREFIX.pack(len(header)) + header + b"\x00")


@pytest.mark.parametrize("container", [
    b"",
    b"\x01\x00",
    LENGTH_PREFIX.pack(100) + b"\x00" * 10,
])
def test_decompress_malformed_framing(container):
    with pytest.raises(MalformedContainerError):
        decompress(container)


def test_decompress_rejects_truncated_payload():
    comp = compress(b"aaaabbbcc")
    with pytest.raises(MalformedContainerError):
        decompress(comp[:-1])


def test_decompress_rejects_extra_payload_bytes():
    comp = compress(b"aaaabbbcc")
    with pytest.raises(MalformedContainerError):
        decompress(comp + b"\x00")


def test_every_truncation_fails_cleanly():
    comp = compress(b"The quick brown fox jumps over the lazy dog.")
    for cut in range(len(comp)):
        try:
            out = decompress(comp[:cut])
        except HuffmanError:
            continue
        assert isinstance(out, bytes)


def test_flipped_payload_bits_never_crash():
    comp = bytearray(compress(b"abracadabra" * 10))
    header, _ = _split(bytes(comp))
    start = 4 + len(header)
    for pos in range(start, len(comp)):
        damaged = bytearray(comp)
        damaged[pos] ^= 0xA5
        try:
            decompress(bytes(damaged))
        except UnmatchedResidualBitsError:
            pass


def test_unmatched_bits_mid_stream():
    container = _container({97: "0", 98: "10"}, "11")
    with pytest.raises(UnmatchedResidualBitsError):
        decompress(container)


def test_residual_bits_at_end():
    container = _container({97: "0", 98: "10"}, "001")
    with pytest.raises(UnmatchedResidualBitsError):
        decompress(container)
