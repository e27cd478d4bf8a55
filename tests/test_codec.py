import io
import random
import struct

import pytest

import codec


def _roundtrip_file(tmp_path, data):
    source = tmp_path / "source.bin"
    packed = tmp_path / "packed.huf"
    restored = tmp_path / "restored.bin"
    source.write_bytes(data)
    comp = codec.compress(source, packed)
    decomp = codec.decompress(packed, restored)
    return comp, decomp, packed.read_bytes(), restored.read_bytes()


def test_roundtrip_random_10kb(tmp_path):
    rng = random.Random(1)
    data = bytes(rng.getrandbits(8) for _ in range(10 * 1024))
    comp, decomp, _, restored = _roundtrip_file(tmp_path, data)
    assert restored == data
    assert comp.original_size == len(data)
    assert decomp.decoded_symbols == decomp.expected_symbols == len(data)


def test_roundtrip_all_bytes_once(tmp_path):
    data = bytes(range(256))
    comp, _, packed, restored = _roundtrip_file(tmp_path, data)
    assert restored == data
    assert comp.unique_symbols == 256
    assert len(packed) == codec.HEADER_SIZE + 256


@pytest.mark.parametrize("data", [b"x", b"xy", b"\x00\xff\x00", b"hello, world\n" * 40])
def test_roundtrip_small_inputs(tmp_path, data):
    _, _, _, restored = _roundtrip_file(tmp_path, data)
    assert restored == data


def test_single_symbol_file_layout(tmp_path):
    comp, _, packed, restored = _roundtrip_file(tmp_path, b"AAAA")
    assert restored == b"AAAA"

    header = struct.unpack("<256I", packed[:codec.HEADER_SIZE])
    assert header[65] == 4
    assert sum(header) == 4
    # four "0" bits padded into a single byte
    assert packed[codec.HEADER_SIZE:] == b"\x00"
    assert comp.payload_bits == 4
    assert comp.pad_bits == 4
    assert comp.compressed_size == codec.HEADER_SIZE + 1


def test_three_symbol_scenario(tmp_path):
    data = b"AAAAABBC"
    comp, _, packed, restored = _roundtrip_file(tmp_path, data)
    assert restored == data
    # A=1, B=01, C=00 -> 1 1 1 1 1 01 01 00 -> 11111010 100(00000)
    assert packed[codec.HEADER_SIZE:] == bytes([0b11111010, 0b10000000])
    assert comp.payload_bits == 11


def test_empty_input_creates_no_output(tmp_path):
    source = tmp_path / "empty.bin"
    source.write_bytes(b"")
    target = tmp_path / "out.huf"
    with pytest.raises(codec.EmptyInputError):
        codec.compress(source, target)
    assert not target.exists()


def test_missing_source_does_not_touch_target(tmp_path):
    target = tmp_path / "out.huf"
    target.write_bytes(b"keep me")
    with pytest.raises(OSError):
        codec.compress(tmp_path / "missing.bin", target)
    with pytest.raises(OSError):
        codec.decompress(tmp_path / "missing.huf", target)
    assert target.read_bytes() == b"keep me"


def test_short_header_is_format_error(tmp_path):
    packed = tmp_path / "short.huf"
    packed.write_bytes(b"\x01" * 100)
    target = tmp_path / "out.bin"
    with pytest.raises(codec.FormatError):
        codec.decompress(packed, target)
    assert not target.exists()


def test_zero_symbol_header_is_format_error():
    with pytest.raises(codec.FormatError):
        codec.decompress_bytes(bytes(codec.HEADER_SIZE) + b"\xff")


def test_truncated_payload_reports_counts(tmp_path):
    data = b"This is a test" * 100
    source = tmp_path / "source.bin"
    packed = tmp_path / "packed.huf"
    restored = tmp_path / "restored.bin"
    source.write_bytes(data)
    codec.compress(source, packed)
    packed.write_bytes(packed.read_bytes()[:-3])

    with pytest.raises(codec.TruncatedPayloadError) as excinfo:
        codec.decompress(packed, restored)
    assert excinfo.value.expected == len(data)
    assert 0 < excinfo.value.decoded < len(data)
    # the partial output is left behind and matches the original prefix
    partial = restored.read_bytes()
    assert len(partial) == excinfo.value.decoded
    assert data.startswith(partial)


def test_header_only_payload_is_truncated():
    blob = codec.compress_bytes(b"abc")
    with pytest.raises(codec.TruncatedPayloadError) as excinfo:
        codec.decompress_bytes(blob[:codec.HEADER_SIZE])
    assert excinfo.value.decoded == 0
    assert excinfo.value.expected == 3


def test_invalid_path_at_synthetic_root_is_format_error():
    blob = codec.compress_bytes(b"ZZZ")
    corrupted = blob[:codec.HEADER_SIZE] + b"\x80"
    with pytest.raises(codec.FormatError):
        codec.decompress_bytes(corrupted)


def test_trailing_bytes_after_last_symbol_are_ignored():
    data = b"banana"
    blob = codec.compress_bytes(data)
    assert codec.decompress_bytes(blob + b"\xff\xff") == data


def test_in_memory_matches_file_format(tmp_path):
    data = b"abracadabra"
    source = tmp_path / "source.bin"
    packed = tmp_path / "packed.huf"
    source.write_bytes(data)
    codec.compress(source, packed)
    assert codec.compress_bytes(data) == packed.read_bytes()
    assert codec.decompress_bytes(packed.read_bytes()) == data


def test_compress_bytes_empty_raises():
    with pytest.raises(codec.EmptyInputError):
        codec.compress_bytes(b"")


def test_histogram_header_roundtrip_and_overflow():
    histogram = [0] * 256
    histogram[3] = 7
    histogram[200] = codec.MAX_COUNT
    out = io.BytesIO()
    codec.write_histogram(out, histogram)
    assert len(out.getvalue()) == codec.HEADER_SIZE
    out.seek(0)
    assert codec.read_histogram(out) == histogram

    histogram[0] = codec.MAX_COUNT + 1
    with pytest.raises(ValueError):
        codec.write_histogram(io.BytesIO(), histogram)


def test_compression_result_ratio():
    result = codec.CompressionResult(
        original_size=2000, compressed_size=1500, unique_symbols=3, payload_bits=3800, pad_bits=0)
    assert result.compression_ratio == pytest.approx(0.75)
    assert result.efficiency == pytest.approx(25.0)


def test_compress_onto_itself_keeps_the_original(tmp_path):
    path = tmp_path / "data.bin"
    data = b"hello huffman world" * 10
    path.write_bytes(data)
    with pytest.raises(codec.HuffmanError):
        codec.compress(path, path)
    assert path.read_bytes() == data


def test_decompress_onto_itself_keeps_the_archive(tmp_path):
    path = tmp_path / "data.huf"
    blob = codec.compress_bytes(b"abcabc")
    path.write_bytes(blob)
    with pytest.raises(codec.HuffmanError):
        codec.decompress(path, path)
    assert path.read_bytes() == blob


def test_input_shrinking_between_passes_is_an_error():
    data = b"hello huffman world" * 10
    histogram = codec.count_frequencies(io.BytesIO(data))
    codes = codec.generate_huffman_codes(codec.build_huffman_tree(histogram))
    with pytest.raises(codec.HuffmanError, match="changed between passes"):
        codec._write_encoded(io.BytesIO(data[:-5]), io.BytesIO(), histogram, codes)


def test_missing_code_entry_is_an_invariant_violation():
    data = b"aabbc"
    histogram = codec.count_frequencies(io.BytesIO(data))
    codes = codec.generate_huffman_codes(codec.build_huffman_tree(histogram))
    del codes[ord("c")]
    with pytest.raises(RuntimeError):
        codec._write_encoded(io.BytesIO(data), io.BytesIO(), histogram, codes)


def test_count_overflow_rejected_before_output_is_opened(tmp_path, monkeypatch):
    source = tmp_path / "source.bin"
    source.write_bytes(b"abc")
    target = tmp_path / "out.huf"

    def oversized(stream):
        histogram = [0] * 256
        histogram[ord("a")] = codec.MAX_COUNT + 1
        return histogram

    monkeypatch.setattr(codec, "count_frequencies", oversized)
    with pytest.raises(codec.HuffmanError):
        codec.compress(source, target)
    assert not target.exists()
