"""FM synth instrument.

Operator parameters are stored transposed: all four shapes, then the
(ratio, ratio_fine) pairs, then the (level, feedback) pairs, then mod_a
and mod_b, each group ordered op A..D.  Firmware before 1.4 has no
operator shapes at all.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import ClassVar, List, Tuple

from .common import (
    KIND_FMSYNTH,
    MOD_OFFSETS,
    SynthParams,
    TranspEq,
    read_header,
    write_header,
)
from .errors import InvalidEnumValue
from .fx import CommandPack, instrument_commands
from .reader import Reader, Writer
from .version import Version

FM_ALGO_NAMES: Tuple[str, ...] = (
    "A>B>C>D",
    "[A+B]>C>D",
    "[A>B+C]>D",
    "[A>B+A>C]>D",
    "[A+B+C]>D",
    "[A>B>C]+D",
    "[A>B>C]+[A>B>D]",
    "[A>B]+[C>D]",
    "[A>B]+[A>C]+[A>D]",
    "[A>B]+[A>C]+D",
    "[A>B]+C+D",
    "A+B+C+D",
)

# 0x00-0x0F are the original waves, the W09..W45 bank arrived with 4.1.
FM_WAVE_NAMES: Tuple[str, ...] = (
    "SIN", "SW2", "SW3", "SW4", "SW5", "SW6", "TRI", "SAW",
    "SQR", "PUL", "IMP", "NOI", "NLP", "NHP", "NBP", "CLK",
) + tuple(f"W{i:02X}" for i in range(0x09, 0x46))

FMWave = IntEnum("FMWave", [(name, i) for i, name in enumerate(FM_WAVE_NAMES)])

FM_WAVE_MAX = len(FM_WAVE_NAMES) - 1

FM_BASE_COMMANDS = (
    "VOL",
    "PIT",
    "FIN",
    "ALG",
    "FM1",
    "FM2",
    "FM3",
    "FM4",
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
)

FM_COMMANDS_UPTO_5 = instrument_commands(FM_BASE_COMMANDS, ("FMP",))
FM_COMMANDS_FROM_6 = instrument_commands(FM_BASE_COMMANDS, ("SNC", "ERR"))


def fm_algo_name(algo: int) -> str:
    return FM_ALGO_NAMES[algo]


@dataclass
class Operator:
    shape: FMWave = FMWave.SIN
    ratio: int = 0x01
    ratio_fine: int = 0
    level: int = 0
    feedback: int = 0
    mod_a: int = 0
    mod_b: int = 0


def _default_operators() -> List[Operator]:
    return [Operator() for _ in range(4)]


@dataclass
class FMSynth:
    number: int = field(default=0, compare=False)
    name: str = ""
    transp_eq: TranspEq = field(default_factory=TranspEq)
    table_tick: int = 1
    synth_params: SynthParams = field(default_factory=SynthParams)

    algo: int = 0
    operators: List[Operator] = field(default_factory=_default_operators)
    mod1: int = 0
    mod2: int = 0
    mod3: int = 0
    mod4: int = 0

    KIND: ClassVar[int] = KIND_FMSYNTH

    def command_pack(self, version: Version) -> CommandPack:
        if version.at_least(6, 0):
            return CommandPack(FM_COMMANDS_FROM_6)
        return CommandPack(FM_COMMANDS_UPTO_5)

    @classmethod
    def from_reader(
        cls, reader: Reader, version: Version, number: int, slot_start: int
    ) -> "FMSynth":
        header = read_header(reader, version)

        algo_pos = reader.tell()
        algo = reader.read()
        if algo >= len(FM_ALGO_NAMES):
            raise InvalidEnumValue(f"invalid FM algorithm {algo}", offset=algo_pos)

        operators = _default_operators()
        if version.at_least(1, 4):
            for op in operators:
                wave_pos = reader.tell()
                wave = reader.read()
                if wave > FM_WAVE_MAX:
                    raise InvalidEnumValue(f"invalid FM wave {wave}", offset=wave_pos)
                op.shape = FMWave(wave)
        for op in operators:
            op.ratio = reader.read()
            op.ratio_fine = reader.read()
        for op in operators:
            op.level = reader.read()
            op.feedback = reader.read()
        for op in operators:
            op.mod_a = reader.read()
        for op in operators:
            op.mod_b = reader.read()

        mod1 = reader.read()
        mod2 = reader.read()
        mod3 = reader.read()
        mod4 = reader.read()

        synth_params = SynthParams.from_reader(
            reader, version, header, MOD_OFFSETS[KIND_FMSYNTH]
        )

        return cls(
            number=number,
            name=header.name,
            transp_eq=header.transp_eq,
            table_tick=header.table_tick,
            synth_params=synth_params,
            algo=algo,
            operators=operators,
            mod1=mod1,
            mod2=mod2,
            mod3=mod3,
            mod4=mod4,
        )

    def write(self, writer: Writer, version: Version, slot_start: int) -> None:
        if len(self.operators) != 4:
            raise ValueError(f"FM synth needs 4 operators, got {len(self.operators)}")

        write_header(writer, version, self)
        writer.write(self.algo)

        if version.at_least(1, 4):
            for op in self.operators:
                writer.write(int(op.shape))
        for op in self.operators:
            writer.write(op.ratio)
            writer.write(op.ratio_fine)
        for op in self.operators:
            writer.write(op.level)
            writer.write(op.feedback)
        for op in self.operators:
            writer.write(op.mod_a)
        for op in self.operators:
            writer.write(op.mod_b)

        writer.write(self.mod1)
        writer.write(self.mod2)
        writer.write(self.mod3)
        writer.write(self.mod4)

        self.synth_params.write(writer, version, MOD_OFFSETS[KIND_FMSYNTH])
