from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, List

from .reader import Reader, Writer
from .version import Version

NOTES_PER_OCTAVE = 12
SCALE_NAME_SIZE = 16
ALL_NOTES_MASK = 0x0FFF


@dataclass
class NoteOffset:
    semitones: int = 0
    cents: int = 0


def _default_offsets() -> List[NoteOffset]:
    return [NoteOffset() for _ in range(NOTES_PER_OCTAVE)]


@dataclass
class Scale:
    """User scale: enabled-note mask, per-note tuning offsets and a name.

    Layout (42 bytes): note mask u16 LE, 12 x (semitones, cents), name (16).
    """

    number: int = field(default=0, compare=False)
    note_mask: int = ALL_NOTES_MASK
    offsets: List[NoteOffset] = field(default_factory=_default_offsets)
    name: str = ""

    SIZE: ClassVar[int] = 2 + NOTES_PER_OCTAVE * 2 + SCALE_NAME_SIZE

    def enabled_notes(self) -> List[int]:
        return [n for n in range(NOTES_PER_OCTAVE) if self.note_mask & (1 << n)]

    @classmethod
    def from_reader(cls, reader: Reader, version: Version, number: int = 0) -> "Scale":
        note_mask = reader.read_u16()
        offsets = []
        for _ in range(NOTES_PER_OCTAVE):
            semitones = reader.read()
            cents = reader.read()
            offsets.append(NoteOffset(semitones=semitones, cents=cents))
        name = reader.read_string(SCALE_NAME_SIZE)
        return cls(number=number, note_mask=note_mask, offsets=offsets, name=name)

    def write(self, writer: Writer, version: Version) -> None:
        if len(self.offsets) != NOTES_PER_OCTAVE:
            raise ValueError(f"a scale holds {NOTES_PER_OCTAVE} note offsets")
        writer.write_u16(self.note_mask)
        for offset in self.offsets:
            writer.write(offset.semitones)
            writer.write(offset.cents)
        writer.write_string(self.name, SCALE_NAME_SIZE)
