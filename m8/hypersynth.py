from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, List

from .common import (
    EMPTY,
    KIND_HYPERSYNTH,
    MOD_OFFSETS,
    SynthParams,
    TranspEq,
    read_header,
    write_header,
)
from .fx import CommandPack, instrument_commands
from .reader import Reader, Writer
from .version import Version

CHORD_COUNT = 0x10
CHORD_SIZE = 6

HYPERSYNTH_COMMANDS = instrument_commands(
    (
        "VOL",
        "PIT",
        "FIN",
        "CRD",
        "SHF",
        "SWM",
        "WID",
        "SUB",
        "FLT",
        "CUT",
        "RES",
        "AMP",
        "LIM",
        "PAN",
        "DRY",
        "SCH",
        "SDL",
        "SRV",
    ),
    ("CVO", "SNC"),
)


def _default_chords() -> List[List[int]]:
    return [[0] * CHORD_SIZE for _ in range(CHORD_COUNT)]


@dataclass
class HyperSynth:
    """Chord synth (format 3.0+).

    The 16 user chords follow the modulators, each stored as a 0xFF
    marker byte and six note offsets.
    """

    number: int = field(default=0, compare=False)
    name: str = ""
    transp_eq: TranspEq = field(default_factory=TranspEq)
    table_tick: int = 1
    synth_params: SynthParams = field(default_factory=SynthParams)

    default_chord: List[int] = field(default_factory=lambda: [0] * 7)
    scale: int = 0
    shift: int = 0
    swarm: int = 0
    width: int = 0
    subosc: int = 0
    chords: List[List[int]] = field(default_factory=_default_chords)

    KIND: ClassVar[int] = KIND_HYPERSYNTH

    def command_pack(self, version: Version) -> CommandPack:
        return CommandPack(HYPERSYNTH_COMMANDS)

    @classmethod
    def from_reader(
        cls, reader: Reader, version: Version, number: int, slot_start: int
    ) -> "HyperSynth":
        header = read_header(reader, version)

        default_chord = list(reader.read_bytes(7))
        scale = reader.read()
        shift = reader.read()
        swarm = reader.read()
        width = reader.read()
        subosc = reader.read()

        synth_params = SynthParams.from_reader(
            reader, version, header, MOD_OFFSETS[KIND_HYPERSYNTH]
        )

        chords = []
        for _ in range(CHORD_COUNT):
            reader.read()  # marker
            chords.append(list(reader.read_bytes(CHORD_SIZE)))

        return cls(
            number=number,
            name=header.name,
            transp_eq=header.transp_eq,
            table_tick=header.table_tick,
            synth_params=synth_params,
            default_chord=default_chord,
            scale=scale,
            shift=shift,
            swarm=swarm,
            width=width,
            subosc=subosc,
            chords=chords,
        )

    def write(self, writer: Writer, version: Version, slot_start: int) -> None:
        if not version.at_least(3, 0):
            raise ValueError(f"HyperSynth cannot be stored in format {version}")
        if len(self.default_chord) != 7 or len(self.chords) != CHORD_COUNT:
            raise ValueError("HyperSynth needs a 7 note default chord and 16 chords")

        write_header(writer, version, self)
        for note in self.default_chord:
            writer.write(note)
        writer.write(self.scale)
        writer.write(self.shift)
        writer.write(self.swarm)
        writer.write(self.width)
        writer.write(self.subosc)

        self.synth_params.write(writer, version, MOD_OFFSETS[KIND_HYPERSYNTH])

        for chord in self.chords:
            if len(chord) != CHORD_SIZE:
                raise ValueError(f"HyperSynth chords hold {CHORD_SIZE} notes")
            writer.write(EMPTY)
            for note in chord:
                writer.write(note)
