"""Pieces shared by every instrument variant.

Instrument slot layout (offsets from the slot start):

  0x00       kind tag
  0x01-0x0C  name (12)
  0x0D       transpose / EQ packed byte
  0x0E       table tick
  0x0F-0x11  volume, pitch, fine tune   (absent on MIDI out)
  0x12...    variant body, then synth parameters

From 3.0 every synth variant places its four modulators at 0x3F; the
distance from the end of the synth parameters to that point is the
per-variant "mod gap" held in ``MOD_OFFSETS``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, NamedTuple

from .modulators import (
    V2_MOD_LAYOUT,
    Mod,
    default_mods,
    read_mod,
    read_mod_v2,
    write_mod,
    write_mod_v2,
)
from .reader import Reader, Writer
from .version import Version

EMPTY = 0xFF
INSTRUMENT_SLOT = 215
NAME_SIZE = 12

KIND_WAVSYNTH = 0x00
KIND_MACROSYNTH = 0x01
KIND_SAMPLER = 0x02
KIND_MIDIOUT = 0x03
KIND_FMSYNTH = 0x04
KIND_HYPERSYNTH = 0x05
KIND_EXTERNAL = 0x06
KIND_NONE = EMPTY

MOD_OFFSETS: Dict[int, int] = {
    KIND_WAVSYNTH: 30,
    KIND_MACROSYNTH: 30,
    KIND_SAMPLER: 29,
    KIND_FMSYNTH: 2,
    KIND_HYPERSYNTH: 23,
    KIND_EXTERNAL: 22,
}


@dataclass(frozen=True)
class TranspEq:
    """The packed transpose flag / EQ number byte."""

    transpose: bool = True
    eq: int = 0

    @classmethod
    def from_byte(cls, version: Version, value: int) -> "TranspEq":
        if version.at_least(3, 0):
            return cls(transpose=(value & 1) != 0, eq=value >> 1)
        return cls(transpose=value != 0, eq=0)

    def to_byte(self, version: Version) -> int:
        if version.at_least(3, 0):
            if not 0 <= self.eq <= 0x7F:
                raise ValueError(f"EQ number out of range: {self.eq}")
            return (self.eq << 1) | (1 if self.transpose else 0)
        return 1 if self.transpose else 0


@dataclass
class ControlChange:
    number: int = 0
    value: int = 0

    SIZE: ClassVar[int] = 2

    @classmethod
    def from_reader(cls, reader: Reader) -> "ControlChange":
        number = reader.read()
        value = reader.read()
        return cls(number=number, value=value)

    def write(self, writer: Writer) -> None:
        writer.write(self.number)
        writer.write(self.value)


class InstrumentHeader(NamedTuple):
    name: str
    transp_eq: TranspEq
    table_tick: int
    volume: int
    pitch: int
    fine_tune: int


def read_header(reader: Reader, version: Version) -> InstrumentHeader:
    name = reader.read_string(NAME_SIZE)
    transp_eq = TranspEq.from_byte(version, reader.read())
    table_tick = reader.read()
    volume = reader.read()
    pitch = reader.read()
    fine_tune = reader.read()
    return InstrumentHeader(name, transp_eq, table_tick, volume, pitch, fine_tune)


def write_header(writer: Writer, version: Version, instrument) -> None:
    writer.write_string(instrument.name, NAME_SIZE)
    writer.write(instrument.transp_eq.to_byte(version))
    writer.write(instrument.table_tick)
    writer.write(instrument.synth_params.volume)
    writer.write(instrument.synth_params.pitch)
    writer.write(instrument.synth_params.fine_tune)


@dataclass
class SynthParams:
    volume: int = 0
    pitch: int = 0
    fine_tune: int = 0x80

    filter_type: int = 0
    filter_cutoff: int = 0xFF
    filter_res: int = 0

    amp: int = 0
    limit: int = 0

    mixer_pan: int = 0x80
    mixer_dry: int = 0xC0
    mixer_chorus: int = 0
    mixer_delay: int = 0
    mixer_reverb: int = 0

    mods: List[Mod] = field(default_factory=default_mods)
    # Bytes between the mixer block and the modulators (3.0+), kept verbatim.
    mod_gap: bytes = b""

    @classmethod
    def from_reader(
        cls,
        reader: Reader,
        version: Version,
        header: InstrumentHeader,
        mod_offset: int,
    ) -> "SynthParams":
        params = cls(
            volume=header.volume,
            pitch=header.pitch,
            fine_tune=header.fine_tune,
            filter_type=reader.read(),
            filter_cutoff=reader.read(),
            filter_res=reader.read(),
            amp=reader.read(),
            limit=reader.read(),
            mixer_pan=reader.read(),
            mixer_dry=reader.read(),
            mixer_chorus=reader.read(),
            mixer_delay=reader.read(),
            mixer_reverb=reader.read(),
        )
        if version.at_least(3, 0):
            gap = reader.read_bytes(mod_offset)
            # an all-zero gap is what the encoder emits for an empty one
            params.mod_gap = gap if any(gap) else b""
            params.mods = [read_mod(reader) for _ in range(4)]
        else:
            params.mods = [read_mod_v2(reader, kind) for kind in V2_MOD_LAYOUT]
        return params

    def write(self, writer: Writer, version: Version, mod_offset: int) -> None:
        for value in (
            self.filter_type,
            self.filter_cutoff,
            self.filter_res,
            self.amp,
            self.limit,
            self.mixer_pan,
            self.mixer_dry,
            self.mixer_chorus,
            self.mixer_delay,
            self.mixer_reverb,
        ):
            writer.write(value)

        if len(self.mods) != 4:
            raise ValueError(f"synth params need 4 modulators, got {len(self.mods)}")

        if version.at_least(3, 0):
            gap_end = writer.tell() + mod_offset
            writer.write_bytes(self.mod_gap[:mod_offset])
            writer.fill_till(0x00, gap_end)
            for mod in self.mods:
                write_mod(writer, mod)
        else:
            for mod, kind in zip(self.mods, V2_MOD_LAYOUT):
                if not isinstance(mod, kind):
                    raise ValueError(
                        f"pre-3.0 modulator bank expects {kind.__name__}, "
                        f"got {type(mod).__name__}"
                    )
                write_mod_v2(writer, mod)
