from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from .common import (
    KIND_EXTERNAL,
    MOD_OFFSETS,
    ControlChange,
    SynthParams,
    TranspEq,
    read_header,
    write_header,
)
from .fx import CommandPack, instrument_commands
from .reader import Reader, Writer
from .version import Version

EXTERNAL_INST_COMMANDS = instrument_commands(
    (
        "VOL",
        "PIT",
        "MPB",
        "MPG",
        "CCA",
        "CCB",
        "CCC",
        "CCD",
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
    ("ADD", "CHD"),
)


@dataclass
class ExternalInst:
    """Audio input routed through the synth chain, with MIDI control (3.0+)."""

    number: int = field(default=0, compare=False)
    name: str = ""
    transp_eq: TranspEq = field(default_factory=TranspEq)
    table_tick: int = 1
    synth_params: SynthParams = field(default_factory=SynthParams)

    input: int = 0
    port: int = 0
    channel: int = 0
    bank: int = 0xFF
    program: int = 0xFF
    cca: ControlChange = field(default_factory=ControlChange)
    ccb: ControlChange = field(default_factory=ControlChange)
    ccc: ControlChange = field(default_factory=ControlChange)
    ccd: ControlChange = field(default_factory=ControlChange)

    KIND: ClassVar[int] = KIND_EXTERNAL

    def command_pack(self, version: Version) -> CommandPack:
        return CommandPack(EXTERNAL_INST_COMMANDS)

    @classmethod
    def from_reader(
        cls, reader: Reader, version: Version, number: int, slot_start: int
    ) -> "ExternalInst":
        header = read_header(reader, version)

        input_ = reader.read()
        port = reader.read()
        channel = reader.read()
        bank = reader.read()
        program = reader.read()
        cca = ControlChange.from_reader(reader)
        ccb = ControlChange.from_reader(reader)
        ccc = ControlChange.from_reader(reader)
        ccd = ControlChange.from_reader(reader)

        synth_params = SynthParams.from_reader(
            reader, version, header, MOD_OFFSETS[KIND_EXTERNAL]
        )

        return cls(
            number=number,
            name=header.name,
            transp_eq=header.transp_eq,
            table_tick=header.table_tick,
            synth_params=synth_params,
            input=input_,
            port=port,
            channel=channel,
            bank=bank,
            program=program,
            cca=cca,
            ccb=ccb,
            ccc=ccc,
            ccd=ccd,
        )

    def write(self, writer: Writer, version: Version, slot_start: int) -> None:
        if not version.at_least(3, 0):
            raise ValueError(f"External instrument cannot be stored in format {version}")

        write_header(writer, version, self)
        writer.write(self.input)
        writer.write(self.port)
        writer.write(self.channel)
        writer.write(self.bank)
        writer.write(self.program)
        for cc in (self.cca, self.ccb, self.ccc, self.ccd):
            cc.write(writer)

        self.synth_params.write(writer, version, MOD_OFFSETS[KIND_EXTERNAL])
