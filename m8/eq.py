from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from .reader import Reader, Writer
from .version import Version


@dataclass
class EqBand:
    mode: int = 0
    freq_fine: int = 0
    freq: int = 0
    level_fine: int = 0
    level: int = 0
    q: int = 0

    SIZE: ClassVar[int] = 6

    @classmethod
    def from_reader(cls, reader: Reader) -> "EqBand":
        mode = reader.read()
        freq_fine = reader.read()
        freq = reader.read()
        level_fine = reader.read()
        level = reader.read()
        q = reader.read()
        return cls(mode, freq_fine, freq, level_fine, level, q)

    def write(self, writer: Writer) -> None:
        for value in (self.mode, self.freq_fine, self.freq, self.level_fine, self.level, self.q):
            writer.write(value)


@dataclass
class Equalizer:
    """Three band EQ (format 4.0+), referenced by instruments and EQI commands."""

    number: int = field(default=0, compare=False)
    low: EqBand = field(default_factory=EqBand)
    mid: EqBand = field(default_factory=EqBand)
    high: EqBand = field(default_factory=EqBand)

    SIZE: ClassVar[int] = 3 * EqBand.SIZE

    def is_default(self) -> bool:
        return self == Equalizer()

    @classmethod
    def from_reader(cls, reader: Reader, version: Version, number: int = 0) -> "Equalizer":
        low = EqBand.from_reader(reader)
        mid = EqBand.from_reader(reader)
        high = EqBand.from_reader(reader)
        return cls(number=number, low=low, mid=mid, high=high)

    def write(self, writer: Writer, version: Version) -> None:
        self.low.write(writer)
        self.mid.write(writer)
        self.high.write(writer)
