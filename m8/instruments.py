"""Instrument slots and the kind-byte dispatch.

Every instrument, whatever its kind, occupies ``INSTRUMENT_SLOT`` bytes.
Decoding always realigns the cursor on the slot boundary and encoding
always pads the slot with 0xFF, so variants never need their byte counts
to add up to the slot size.

Kinds 0x00-0x04 exist in every supported version; HyperSynth (0x05) and
External (0x06) arrived with 3.0.  Kind 0xFF is an empty slot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Type, Union

from .common import (
    EMPTY,
    INSTRUMENT_SLOT,
    KIND_MACROSYNTH,
    KIND_MIDIOUT,
    KIND_NONE,
    KIND_SAMPLER,
    KIND_WAVSYNTH,
    MOD_OFFSETS,
    NAME_SIZE,
    ControlChange,
    SynthParams,
    TranspEq,
    read_header,
    write_header,
)
from .errors import TruncatedInput, UnknownTag
from .external import ExternalInst
from .fmsynth import FMSynth
from .fx import CommandPack, instrument_commands
from .hypersynth import HyperSynth
from .modulators import AHDEnv, Mod
from .reader import Reader, Writer
from .version import Version

logger = logging.getLogger(__name__)

SAMPLE_PATH_OFFSET = 0x57
SAMPLE_PATH_SIZE = 128
MIDI_CC_COUNT = 8

SYNTH_TAIL_COMMANDS = ("FLT", "CUT", "RES", "AMP", "LIM", "PAN", "DRY", "SCH", "SDL", "SRV")

WAVSYNTH_COMMANDS = instrument_commands(
    ("VOL", "PIT", "FIN", "OSC", "SIZ", "MUL", "WRP", "MIR") + SYNTH_TAIL_COMMANDS
)
MACROSYNTH_COMMANDS = instrument_commands(
    ("VOL", "PIT", "FIN", "OSC", "TBR", "COL", "DEG", "RED") + SYNTH_TAIL_COMMANDS,
    ("TRG",),
)
SAMPLER_COMMANDS = instrument_commands(
    ("VOL", "PIT", "FIN", "PLY", "STA", "LOP", "LEN", "DEG") + SYNTH_TAIL_COMMANDS,
    ("SLI",),
)
MIDIOUT_COMMANDS = instrument_commands(
    (
        "VOL",
        "PIT",
        "MPB",
        "MPG",
        "CCA",
        "CCB",
        "CCC",
        "CCD",
        "CCE",
        "CCF",
        "CCG",
        "CCH",
        "CCI",
        "CCJ",
        "PRG",
        "SCH",
        "SDL",
        "SRV",
    ),
    ("ADD", "CHD"),
)


@dataclass
class WavSynth:
    number: int = field(default=0, compare=False)
    name: str = ""
    transp_eq: TranspEq = field(default_factory=TranspEq)
    table_tick: int = 1
    synth_params: SynthParams = field(default_factory=SynthParams)

    shape: int = 0
    size: int = 0x20
    mult: int = 0x80
    warp: int = 0
    mirror: int = 0

    KIND: ClassVar[int] = KIND_WAVSYNTH

    def command_pack(self, version: Version) -> CommandPack:
        return CommandPack(WAVSYNTH_COMMANDS)

    @classmethod
    def from_reader(
        cls, reader: Reader, version: Version, number: int, slot_start: int
    ) -> "WavSynth":
        header = read_header(reader, version)
        shape = reader.read()
        size = reader.read()
        mult = reader.read()
        warp = reader.read()
        mirror = reader.read()
        synth_params = SynthParams.from_reader(
            reader, version, header, MOD_OFFSETS[KIND_WAVSYNTH]
        )
        return cls(
            number=number,
            name=header.name,
            transp_eq=header.transp_eq,
            table_tick=header.table_tick,
            synth_params=synth_params,
            shape=shape,
            size=size,
            mult=mult,
            warp=warp,
            mirror=mirror,
        )

    def write(self, writer: Writer, version: Version, slot_start: int) -> None:
        write_header(writer, version, self)
        for value in (self.shape, self.size, self.mult, self.warp, self.mirror):
            writer.write(value)
        self.synth_params.write(writer, version, MOD_OFFSETS[KIND_WAVSYNTH])


@dataclass
class MacroSynth:
    number: int = field(default=0, compare=False)
    name: str = ""
    transp_eq: TranspEq = field(default_factory=TranspEq)
    table_tick: int = 1
    synth_params: SynthParams = field(default_factory=SynthParams)

    shape: int = 0
    timbre: int = 0x80
    color: int = 0x80
    degrade: int = 0
    redux: int = 0

    KIND: ClassVar[int] = KIND_MACROSYNTH

    def command_pack(self, version: Version) -> CommandPack:
        return CommandPack(MACROSYNTH_COMMANDS)

    @classmethod
    def from_reader(
        cls, reader: Reader, version: Version, number: int, slot_start: int
    ) -> "MacroSynth":
        header = read_header(reader, version)
        shape = reader.read()
        timbre = reader.read()
        color = reader.read()
        degrade = reader.read()
        redux = reader.read()
        synth_params = SynthParams.from_reader(
            reader, version, header, MOD_OFFSETS[KIND_MACROSYNTH]
        )
        return cls(
            number=number,
            name=header.name,
            transp_eq=header.transp_eq,
            table_tick=header.table_tick,
            synth_params=synth_params,
            shape=shape,
            timbre=timbre,
            color=color,
            degrade=degrade,
            redux=redux,
        )

    def write(self, writer: Writer, version: Version, slot_start: int) -> None:
        write_header(writer, version, self)
        for value in (self.shape, self.timbre, self.color, self.degrade, self.redux):
            writer.write(value)
        self.synth_params.write(writer, version, MOD_OFFSETS[KIND_MACROSYNTH])


@dataclass
class Sampler:
    """Sample player.

    The sample path always lives at slot offset 0x57.  From 3.0 the
    modulators end exactly there; older layouts leave a gap which is
    carried in ``path_gap`` untouched.
    """

    number: int = field(default=0, compare=False)
    name: str = ""
    transp_eq: TranspEq = field(default_factory=TranspEq)
    table_tick: int = 1
    synth_params: SynthParams = field(default_factory=SynthParams)

    sample_path: str = ""
    play_mode: int = 0
    slice: int = 0
    start: int = 0
    loop_start: int = 0
    length: int = 0xFF
    degrade: int = 0
    path_gap: bytes = b""

    KIND: ClassVar[int] = KIND_SAMPLER

    def command_pack(self, version: Version) -> CommandPack:
        return CommandPack(SAMPLER_COMMANDS)

    @classmethod
    def from_reader(
        cls, reader: Reader, version: Version, number: int, slot_start: int
    ) -> "Sampler":
        header = read_header(reader, version)
        play_mode = reader.read()
        slice_ = reader.read()
        start = reader.read()
        loop_start = reader.read()
        length = reader.read()
        degrade = reader.read()
        synth_params = SynthParams.from_reader(
            reader, version, header, MOD_OFFSETS[KIND_SAMPLER]
        )

        path_start = slot_start + SAMPLE_PATH_OFFSET
        path_gap = b""
        if reader.tell() < path_start:
            path_gap = reader.read_bytes(path_start - reader.tell())
            if path_gap.count(EMPTY) == len(path_gap):
                path_gap = b""
        reader.seek(path_start)
        sample_path = reader.read_string(SAMPLE_PATH_SIZE)

        return cls(
            number=number,
            name=header.name,
            transp_eq=header.transp_eq,
            table_tick=header.table_tick,
            synth_params=synth_params,
            sample_path=sample_path,
            play_mode=play_mode,
            slice=slice_,
            start=start,
            loop_start=loop_start,
            length=length,
            degrade=degrade,
            path_gap=path_gap,
        )

    def write(self, writer: Writer, version: Version, slot_start: int) -> None:
        write_header(writer, version, self)
        for value in (
            self.play_mode,
            self.slice,
            self.start,
            self.loop_start,
            self.length,
            self.degrade,
        ):
            writer.write(value)
        self.synth_params.write(writer, version, MOD_OFFSETS[KIND_SAMPLER])

        path_start = slot_start + SAMPLE_PATH_OFFSET
        gap = max(0, path_start - writer.tell())
        writer.write_bytes(self.path_gap[:gap])
        writer.fill_till(EMPTY, path_start)
        writer.write_string(self.sample_path, SAMPLE_PATH_SIZE)


def _default_ccs() -> List[ControlChange]:
    return [ControlChange() for _ in range(MIDI_CC_COUNT)]


def _midi_mods() -> List[Mod]:
    return [AHDEnv() for _ in range(4)]


@dataclass
class MIDIOut:
    """MIDI output instrument.

    Carries no volume/pitch/fine-tune bytes and no modulators on disk;
    ``mods`` is always four default AHD envelopes.
    """

    number: int = field(default=0, compare=False)
    name: str = ""
    transp_eq: TranspEq = field(default_factory=TranspEq)
    table_tick: int = 1

    port: int = 0
    channel: int = 0
    bank_select: int = 0xFF
    program_change: int = 0xFF
    reserved: bytes = b"\xff\xff\xff"
    custom_cc: List[ControlChange] = field(default_factory=_default_ccs)
    mods: List[Mod] = field(default_factory=_midi_mods)

    KIND: ClassVar[int] = KIND_MIDIOUT

    def command_pack(self, version: Version) -> CommandPack:
        return CommandPack(MIDIOUT_COMMANDS)

    @classmethod
    def from_reader(
        cls, reader: Reader, version: Version, number: int, slot_start: int
    ) -> "MIDIOut":
        name = reader.read_string(NAME_SIZE)
        transp_eq = TranspEq.from_byte(version, reader.read())
        table_tick = reader.read()

        port = reader.read()
        channel = reader.read()
        bank_select = reader.read()
        program_change = reader.read()
        reserved = reader.read_bytes(3)
        custom_cc = [ControlChange.from_reader(reader) for _ in range(MIDI_CC_COUNT)]

        return cls(
            number=number,
            name=name,
            transp_eq=transp_eq,
            table_tick=table_tick,
            port=port,
            channel=channel,
            bank_select=bank_select,
            program_change=program_change,
            reserved=reserved,
            custom_cc=custom_cc,
        )

    def write(self, writer: Writer, version: Version, slot_start: int) -> None:
        if len(self.custom_cc) != MIDI_CC_COUNT:
            raise ValueError(f"MIDI out needs {MIDI_CC_COUNT} control changes")

        writer.write_string(self.name, NAME_SIZE)
        writer.write(self.transp_eq.to_byte(version))
        writer.write(self.table_tick)

        writer.write(self.port)
        writer.write(self.channel)
        writer.write(self.bank_select)
        writer.write(self.program_change)
        reserved_end = writer.tell() + 3
        writer.write_bytes(self.reserved[:3])
        writer.fill_till(EMPTY, reserved_end)
        for cc in self.custom_cc:
            cc.write(writer)


@dataclass
class NoInstrument:
    """An unused instrument slot (kind 0xFF)."""

    number: int = field(default=0, compare=False)

    KIND: ClassVar[int] = KIND_NONE

    def command_pack(self, version: Version) -> CommandPack:
        return CommandPack()

    def write(self, writer: Writer, version: Version, slot_start: int) -> None:
        pass


Instrument = Union[
    WavSynth, MacroSynth, Sampler, MIDIOut, FMSynth, HyperSynth, ExternalInst, NoInstrument
]

_V2_KINDS: Dict[int, Type] = {
    cls.KIND: cls for cls in (WavSynth, MacroSynth, Sampler, MIDIOut, FMSynth)
}
_V3_KINDS: Dict[int, Type] = {
    **_V2_KINDS,
    HyperSynth.KIND: HyperSynth,
    ExternalInst.KIND: ExternalInst,
}


def instrument_kinds(version: Version) -> Dict[int, Type]:
    """Return the kind byte -> class table valid for ``version``."""
    return _V3_KINDS if version.at_least(3, 0) else _V2_KINDS


def read_instrument(reader: Reader, version: Version, number: int = 0) -> Instrument:
    """Decode one instrument slot and leave the cursor on the slot boundary."""
    start = reader.tell()
    kind = reader.read()
    logger.debug("instrument %02X: kind 0x%02X at 0x%05X", number, kind, start)

    if kind == KIND_NONE:
        instrument: Instrument = NoInstrument(number=number)
    else:
        cls = instrument_kinds(version).get(kind)
        if cls is None:
            raise UnknownTag(
                f"instrument kind 0x{kind:02X} not supported in format {version}",
                offset=start,
            )
        instrument = cls.from_reader(reader, version, number, start)

    reader.seek(start + INSTRUMENT_SLOT)
    return instrument


def write_instrument(writer: Writer, version: Version, instrument: Instrument) -> None:
    start = writer.tell()
    writer.write(instrument.KIND)
    instrument.write(writer, version, start)
    writer.fill_till(EMPTY, start + INSTRUMENT_SLOT)


def encode_instrument(version: Version, instrument: Instrument) -> bytes:
    """Encode a single instrument slot (no version header)."""
    writer = Writer()
    write_instrument(writer, version, instrument)
    return writer.to_bytes()


@dataclass
class InstrumentFile:
    """A standalone instrument file: version header followed by one slot."""

    version: Version
    instrument: Instrument

    @classmethod
    def from_bytes(cls, data: bytes) -> "InstrumentFile":
        reader = Reader(data)
        version = Version.from_reader(reader)
        needed = version.size + INSTRUMENT_SLOT
        if len(data) < needed:
            raise TruncatedInput(
                f"file too short for an instrument ({len(data)} bytes, need {needed})"
            )
        instrument = read_instrument(reader, version)
        return cls(version=version, instrument=instrument)

    def to_bytes(self) -> bytes:
        writer = Writer()
        self.version.write(writer)
        write_instrument(writer, self.version, self.instrument)
        return writer.to_bytes()
