from pathlib import Path
import sys

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from m8.errors import MalformedString, TruncatedInput  # noqa: E402
from m8.reader import Reader, Writer  # noqa: E402


@pytest.mark.parametrize(
    "raw, expected",
    [
        (b"KICK\x00\x00\x00\x00", "KICK"),
        (b"SNARE\xff\xff\xff", "SNARE"),
        (b"HAT\x00JUNK", "HAT"),
        (b"\xff" * 8, ""),
        (b"FULLNAME", "FULLNAME"),
    ],
)
def test_read_string_stops_at_terminator(raw: bytes, expected: str) -> None:
    reader = Reader(raw)
    assert reader.read_string(len(raw)) == expected
    # the whole field is always consumed
    assert reader.tell() == len(raw)


def test_read_string_rejects_invalid_utf8() -> None:
    reader = Reader(b"AB\xc3\x28\x00\x00", position=0)
    with pytest.raises(MalformedString) as excinfo:
        reader.read_string(6)
    assert excinfo.value.offset == 0


def test_read_past_end_reports_offset() -> None:
    reader = Reader(b"\x01\x02")
    reader.read_bytes(2)
    with pytest.raises(TruncatedInput) as excinfo:
        reader.read()
    assert excinfo.value.offset == 2
    assert "0x00002" in str(excinfo.value)


def test_truncated_input_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        Reader(b"\x00").read_u16()


def test_seek_is_absolute_in_both_directions() -> None:
    reader = Reader(bytes(range(16)))
    reader.seek(10)
    assert reader.read() == 10
    reader.seek(3)
    assert reader.read() == 3
    assert reader.remaining() == 12
    with pytest.raises(ValueError):
        reader.seek(-1)


def test_little_endian_scalars() -> None:
    writer = Writer()
    writer.write_u16(0x0FFF)
    writer.write_f32(120.0)
    data = writer.to_bytes()
    assert data[:2] == b"\xff\x0f"
    reader = Reader(data)
    assert reader.read_u16() == 0x0FFF
    assert reader.read_f32() == 120.0


def test_write_string_pads_with_zero() -> None:
    writer = Writer()
    writer.write_string("BD", 6)
    assert writer.to_bytes() == b"BD\x00\x00\x00\x00"


def test_write_string_truncates_on_character_boundary() -> None:
    writer = Writer()
    writer.write_string("É" * 7, 5)
    data = writer.to_bytes()
    assert len(data) == 5
    assert data == "ÉÉ".encode("utf-8") + b"\x00"
    assert Reader(data).read_string(5) == "ÉÉ"


def test_fill_till_pads_and_refuses_overflow() -> None:
    writer = Writer()
    writer.write_bytes(b"\x01\x02")
    writer.fill_till(0xFF, 5)
    assert writer.to_bytes() == b"\x01\x02\xff\xff\xff"
    writer.fill_till(0xFF, 5)
    assert len(writer) == 5
    with pytest.raises(ValueError, match="slot overflow"):
        writer.fill_till(0xFF, 4)


@pytest.mark.parametrize("value", [-1, 0x100, 0x12C])
def test_write_refuses_values_outside_a_byte(value: int) -> None:
    writer = Writer()
    with pytest.raises(ValueError, match="out of range"):
        writer.write(value)
    assert len(writer) == 0


@pytest.mark.parametrize("value", [-1, 0x10000])
def test_write_u16_refuses_values_outside_16_bits(value: int) -> None:
    with pytest.raises(ValueError, match="out of range"):
        Writer().write_u16(value)


def test_string_tail_after_terminator_is_not_kept() -> None:
    raw = b"KICK\xff\xff\x00\x41"
    reader = Reader(raw)
    name = reader.read_string(8)
    assert name == "KICK"
    writer = Writer()
    writer.write_string(name, 8)
    assert writer.to_bytes() == b"KICK\x00\x00\x00\x00"


@pytest.mark.parametrize("raw, expected", [(b"\x00", False), (b"\x01", True), (b"\x02", False), (b"\xff", False)])
def test_read_bool_only_accepts_one(raw: bytes, expected: bool) -> None:
    assert Reader(raw).read_bool() is expected
