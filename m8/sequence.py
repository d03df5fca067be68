"""Phrases, chains, tables and grooves.

All four are fixed-length arrays of small records; a primary byte of
0xFF marks an empty cell.

  Step       note velocity instrument fx1 fx2 fx3      9 bytes
  Phrase     16 steps                                 144 bytes
  ChainStep  phrase transpose                           2 bytes
  Chain      16 chain steps                            32 bytes
  TableStep  transpose velocity fx1 fx2 fx3             8 bytes
  Table      16 table steps                           128 bytes
  Groove     16 tick counts (0xFF ends the groove)     16 bytes
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, List

from .fx import EMPTY, FX
from .reader import Reader, Writer
from .version import Version

STEP_COUNT = 16
FX_PER_STEP = 3


def _empty_fx() -> List[FX]:
    return [FX() for _ in range(FX_PER_STEP)]


def _read_fx(reader: Reader) -> List[FX]:
    return [FX.from_reader(reader) for _ in range(FX_PER_STEP)]


def _write_fx(writer: Writer, cells: List[FX]) -> None:
    if len(cells) != FX_PER_STEP:
        raise ValueError(f"a step holds {FX_PER_STEP} FX cells, got {len(cells)}")
    for cell in cells:
        cell.write(writer)


@dataclass
class Step:
    note: int = EMPTY
    velocity: int = EMPTY
    instrument: int = EMPTY
    fx: List[FX] = field(default_factory=_empty_fx)

    SIZE: ClassVar[int] = 9

    def is_empty(self) -> bool:
        return (
            self.note == EMPTY
            and self.velocity == EMPTY
            and self.instrument == EMPTY
            and all(cell.is_empty() for cell in self.fx)
        )

    @classmethod
    def from_reader(cls, reader: Reader) -> "Step":
        note = reader.read()
        velocity = reader.read()
        instrument = reader.read()
        return cls(note=note, velocity=velocity, instrument=instrument, fx=_read_fx(reader))

    def write(self, writer: Writer) -> None:
        writer.write(self.note)
        writer.write(self.velocity)
        writer.write(self.instrument)
        _write_fx(writer, self.fx)


def _empty_steps() -> List[Step]:
    return [Step() for _ in range(STEP_COUNT)]


@dataclass
class Phrase:
    number: int = field(default=0, compare=False)
    steps: List[Step] = field(default_factory=_empty_steps)

    SIZE: ClassVar[int] = STEP_COUNT * 9

    def is_empty(self) -> bool:
        return all(step.is_empty() for step in self.steps)

    @classmethod
    def from_reader(cls, reader: Reader, version: Version, number: int = 0) -> "Phrase":
        return cls(number=number, steps=[Step.from_reader(reader) for _ in range(STEP_COUNT)])

    def write(self, writer: Writer, version: Version) -> None:
        if len(self.steps) != STEP_COUNT:
            raise ValueError(f"a phrase holds {STEP_COUNT} steps, got {len(self.steps)}")
        for step in self.steps:
            step.write(writer)


@dataclass
class ChainStep:
    phrase: int = EMPTY
    transpose: int = 0

    SIZE: ClassVar[int] = 2

    def is_empty(self) -> bool:
        return self.phrase == EMPTY


def _empty_chain_steps() -> List[ChainStep]:
    return [ChainStep() for _ in range(STEP_COUNT)]


@dataclass
class Chain:
    number: int = field(default=0, compare=False)
    steps: List[ChainStep] = field(default_factory=_empty_chain_steps)

    SIZE: ClassVar[int] = STEP_COUNT * 2

    def is_empty(self) -> bool:
        return all(step.is_empty() for step in self.steps)

    @classmethod
    def from_reader(cls, reader: Reader, version: Version, number: int = 0) -> "Chain":
        steps = []
        for _ in range(STEP_COUNT):
            phrase = reader.read()
            transpose = reader.read()
            steps.append(ChainStep(phrase=phrase, transpose=transpose))
        return cls(number=number, steps=steps)

    def write(self, writer: Writer, version: Version) -> None:
        if len(self.steps) != STEP_COUNT:
            raise ValueError(f"a chain holds {STEP_COUNT} steps, got {len(self.steps)}")
        for step in self.steps:
            writer.write(step.phrase)
            writer.write(step.transpose)


@dataclass
class TableStep:
    transpose: int = 0
    velocity: int = EMPTY
    fx: List[FX] = field(default_factory=_empty_fx)

    SIZE: ClassVar[int] = 8

    def is_empty(self) -> bool:
        return (
            self.transpose == 0
            and self.velocity == EMPTY
            and all(cell.is_empty() for cell in self.fx)
        )

    @classmethod
    def from_reader(cls, reader: Reader) -> "TableStep":
        transpose = reader.read()
        velocity = reader.read()
        return cls(transpose=transpose, velocity=velocity, fx=_read_fx(reader))

    def write(self, writer: Writer) -> None:
        writer.write(self.transpose)
        writer.write(self.velocity)
        _write_fx(writer, self.fx)


def _empty_table_steps() -> List[TableStep]:
    return [TableStep() for _ in range(STEP_COUNT)]


@dataclass
class Table:
    number: int = field(default=0, compare=False)
    steps: List[TableStep] = field(default_factory=_empty_table_steps)

    SIZE: ClassVar[int] = STEP_COUNT * 8

    def is_empty(self) -> bool:
        return all(step.is_empty() for step in self.steps)

    @classmethod
    def from_reader(cls, reader: Reader, version: Version, number: int = 0) -> "Table":
        return cls(
            number=number, steps=[TableStep.from_reader(reader) for _ in range(STEP_COUNT)]
        )

    def write(self, writer: Writer, version: Version) -> None:
        if len(self.steps) != STEP_COUNT:
            raise ValueError(f"a table holds {STEP_COUNT} steps, got {len(self.steps)}")
        for step in self.steps:
            step.write(writer)


def _default_groove() -> List[int]:
    return [6, 6] + [EMPTY] * (STEP_COUNT - 2)


@dataclass
class Groove:
    number: int = field(default=0, compare=False)
    steps: List[int] = field(default_factory=_default_groove)

    SIZE: ClassVar[int] = STEP_COUNT

    def active_steps(self) -> List[int]:
        """Tick counts up to (excluding) the first 0xFF."""
        out = []
        for ticks in self.steps:
            if ticks == EMPTY:
                break
            out.append(ticks)
        return out

    @classmethod
    def from_reader(cls, reader: Reader, version: Version, number: int = 0) -> "Groove":
        return cls(number=number, steps=list(reader.read_bytes(STEP_COUNT)))

    def write(self, writer: Writer, version: Version) -> None:
        if len(self.steps) != STEP_COUNT:
            raise ValueError(f"a groove holds {STEP_COUNT} steps, got {len(self.steps)}")
        writer.write_bytes(bytes(self.steps))
