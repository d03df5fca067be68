from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from .errors import UnsupportedVersion
from .reader import Reader, Writer


DEVICE_MAGIC = b"M8VERSION\x00"
MIN_MAJOR = 1
MAX_MAJOR = 6


@dataclass(frozen=True)
class Version:
    """Format revision written at the start of every standalone file.

    Two header shapes exist:
      compact: ``[major, minor]`` (2 bytes)
      device:  ``M8VERSION\\0`` + ``minor<<4|patch`` + ``major`` + 2 reserved (14 bytes)

    The header shape is remembered so a decoded file re-encodes the same
    way; it takes no part in comparisons.
    """

    major: int
    minor: int
    patch: int = 0
    device_header: bool = field(default=False, compare=False)

    COMPACT_SIZE: ClassVar[int] = 2
    DEVICE_SIZE: ClassVar[int] = 14

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    @property
    def size(self) -> int:
        return self.DEVICE_SIZE if self.device_header else self.COMPACT_SIZE

    def key(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def at_least(self, major: int, minor: int, patch: int = 0) -> bool:
        return self.key() >= (major, minor, patch)

    @classmethod
    def from_reader(cls, reader: Reader) -> "Version":
        start = reader.tell()
        head = reader.buffer[start : start + len(DEVICE_MAGIC)]
        if head == DEVICE_MAGIC:
            reader.read_bytes(len(DEVICE_MAGIC))
            lsb = reader.read()
            msb = reader.read()
            reader.read_bytes(2)
            version = cls(
                major=msb & 0x0F,
                minor=(lsb >> 4) & 0x0F,
                patch=lsb & 0x0F,
                device_header=True,
            )
        else:
            major = reader.read()
            minor = reader.read()
            version = cls(major=major, minor=minor)

        if not MIN_MAJOR <= version.major <= MAX_MAJOR:
            raise UnsupportedVersion(
                f"unsupported format version {version} "
                f"(supported {MIN_MAJOR}.x to {MAX_MAJOR}.x)",
                offset=start,
            )
        return version

    @classmethod
    def from_bytes(cls, data: bytes) -> "Version":
        return cls.from_reader(Reader(data))

    def write(self, writer: Writer) -> None:
        if self.device_header:
            writer.write_bytes(DEVICE_MAGIC)
            writer.write(((self.minor & 0x0F) << 4) | (self.patch & 0x0F))
            writer.write(self.major & 0x0F)
            writer.write_bytes(b"\x00\x00")
        else:
            writer.write(self.major)
            writer.write(self.minor)

    def to_bytes(self) -> bytes:
        writer = Writer()
        self.write(writer)
        return writer.to_bytes()
