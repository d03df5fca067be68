"""Positioned byte cursors used by every record codec.

``Reader`` walks an immutable buffer and supports absolute seeks in both
directions, which the instrument codecs need: a slot is decoded
field-by-field and the cursor is then forced onto the slot boundary no
matter how many bytes the variant consumed.

``Writer`` mirrors it for encoding.  ``fill_till`` is the only way to
finish a fixed-size slot whose variant did not write every byte.
"""

from __future__ import annotations

import struct

from .errors import MalformedString, TruncatedInput

STRING_TERMINATORS = (0x00, 0xFF)


class Reader:
    def __init__(self, buffer: bytes, position: int = 0) -> None:
        self.buffer = bytes(buffer)
        self.position = position

    def __len__(self) -> int:
        return len(self.buffer)

    def tell(self) -> int:
        return self.position

    def seek(self, position: int) -> None:
        if position < 0:
            raise ValueError(f"cannot seek to negative offset {position}")
        self.position = position

    def remaining(self) -> int:
        return max(0, len(self.buffer) - self.position)

    def read(self) -> int:
        pos = self.position
        if pos >= len(self.buffer):
            raise TruncatedInput("unexpected end of buffer", offset=pos)
        self.position = pos + 1
        return self.buffer[pos]

    def read_bytes(self, n: int) -> bytes:
        pos = self.position
        end = pos + n
        if end > len(self.buffer):
            raise TruncatedInput(
                f"need {n} bytes, only {self.remaining()} left", offset=pos
            )
        self.position = end
        return self.buffer[pos:end]

    def read_bool(self) -> bool:
        return self.read() == 1

    def read_u16(self) -> int:
        return struct.unpack("<H", self.read_bytes(2))[0]

    def read_f32(self) -> float:
        return struct.unpack("<f", self.read_bytes(4))[0]

    def read_string(self, n: int) -> str:
        """Consume ``n`` bytes and return the text before the first 0x00/0xFF."""
        start = self.position
        raw = self.read_bytes(n)
        end = next(
            (i for i, b in enumerate(raw) if b in STRING_TERMINATORS), len(raw)
        )
        try:
            return raw[:end].decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedString(
                f"invalid utf-8 in {n}-byte string field: {raw[:end].hex()}",
                offset=start,
            ) from exc


class Writer:
    def __init__(self) -> None:
        self.buffer = bytearray()

    def __len__(self) -> int:
        return len(self.buffer)

    def tell(self) -> int:
        return len(self.buffer)

    def write(self, value: int) -> None:
        if not 0 <= value <= 0xFF:
            raise ValueError(f"byte value out of range: {value}")
        self.buffer.append(value)

    def write_bytes(self, data: bytes) -> None:
        self.buffer.extend(data)

    def write_bool(self, flag: bool) -> None:
        self.write(1 if flag else 0)

    def write_u16(self, value: int) -> None:
        if not 0 <= value <= 0xFFFF:
            raise ValueError(f"u16 value out of range: {value}")
        self.buffer.extend(struct.pack("<H", value))

    def write_f32(self, value: float) -> None:
        self.buffer.extend(struct.pack("<f", value))

    def write_string(self, text: str, n: int) -> None:
        """Emit ``text`` as UTF-8, truncated to ``n`` bytes and 0x00 padded.

        Whatever followed the terminator in a decoded field is not kept, so
        0xFF padding or a stale tail comes back as 0x00 padding.
        """
        data = text.encode("utf-8")
        if len(data) > n:
            # never split a multi-byte character
            data = data[:n].decode("utf-8", "ignore").encode("utf-8")
        self.buffer.extend(data)
        self.buffer.extend(b"\x00" * (n - len(data)))

    def fill_till(self, value: int, until: int) -> None:
        """Pad with ``value`` up to the absolute offset ``until``."""
        pos = len(self.buffer)
        if pos > until:
            raise ValueError(
                f"slot overflow: wrote up to 0x{pos:05X}, slot ends at 0x{until:05X}"
            )
        self.buffer.extend(bytes([value & 0xFF]) * (until - pos))

    def to_bytes(self) -> bytes:
        return bytes(self.buffer)
