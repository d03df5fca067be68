"""FX cells and the per-version FX command tables.

Command ids below 0x80 index the sequencer/mixer table of the file's
version.  Ids from 0x80 up address the command table of the instrument
playing the step (see ``CommandPack``).

Table order is the contract: the id of a command is its index.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Iterable, List, Optional, Sequence, Tuple

from .reader import Reader, Writer
from .version import Version

EMPTY = 0xFF
INSTRUMENT_COMMAND_OFFSET = 0x80
BASE_INSTRUMENT_COMMAND_COUNT = 18


@dataclass
class FX:
    command: int = EMPTY
    value: int = 0x00

    SIZE: ClassVar[int] = 2

    def is_empty(self) -> bool:
        return self.command == EMPTY

    @classmethod
    def from_reader(cls, reader: Reader) -> "FX":
        command = reader.read()
        value = reader.read()
        return cls(command=command, value=value)

    def write(self, writer: Writer) -> None:
        writer.write(self.command)
        writer.write(self.value)


SEQ_COMMANDS_V2: Tuple[str, ...] = (
    "ARP",
    "CHA",
    "DEL",
    "GRV",
    "HOP",
    "KIL",
    "RAN",
    "RET",
    "REP",
    "NTH",
    "PSL",
    "PSN",
    "PVB",
    "PVX",
    "SCA",
    "SCG",
    "SED",
    "SNG",
    "TBL",
    "THO",
    "TIC",
    "TPO",
    "TSP",
)

FX_MIXER_COMMANDS_V2: Tuple[str, ...] = (
    "VMV",
    "XCM",
    "XCF",
    "XCW",
    "XCR",
    "XDT",
    "XDF",
    "XDW",
    "XDR",
    "XRS",
    "XRD",
    "XRM",
    "XRF",
    "XRW",
    "XRZ",
    "VCH",
    "VCD",
    "VRE",
    "VT1",
    "VT2",
    "VT3",
    "VT4",
    "VT5",
    "VT6",
    "VT7",
    "VT8",
    "DJF",
    "IVO",
    "ICH",
    "IDE",
    "IRE",
    "IV2",
    "IC2",
    "ID2",
    "IR2",
    "USB",
)

SEQ_COMMANDS_V3: Tuple[str, ...] = (
    "ARP",
    "CHA",
    "DEL",
    "GRV",
    "HOP",
    "KIL",
    "RND",
    "RNL",
    "RET",
    "REP",
    "RMX",
    "NTH",
    "PSL",
    "PBN",
    "PVB",
    "PVX",
    "SCA",
    "SCG",
    "SED",
    "SNG",
    "TBL",
    "THO",
    "TIC",
    "TBX",
    "TPO",
    "TSP",
    "OFF",
)

# Unchanged from V2.
FX_MIXER_COMMANDS_V3: Tuple[str, ...] = FX_MIXER_COMMANDS_V2

FX_MIXER_COMMANDS_V4: Tuple[str, ...] = (
    "VMV",
    "XCM",
    "XCF",
    "XCW",
    "XCR",
    "XDT",
    "XDF",
    "XDW",
    "XDR",
    "XRS",
    "XRD",
    "XRM",
    "XRF",
    "XRW",
    "XRZ",
    "VCH",
    "VDE",
    "VRE",
    "VT1",
    "VT2",
    "VT3",
    "VT4",
    "VT5",
    "VT6",
    "VT7",
    "VT8",
    "DJC",
    "VIN",
    "ICH",
    "IDE",
    "IRE",
    "VI2",
    "IC2",
    "ID2",
    "IR2",
    "USB",
    "DJR",  # 0x3F
    "DJT",  # 0x40
    "EQM",  # 0x41
    "EQI",  # 0x42
    "INS",  # 0x43
    "RTO",  # 0x44
    "ARC",  # 0x45
    "GGR",  # 0x46
    "NXT",  # 0x47
)

COMMANDS_V2 = SEQ_COMMANDS_V2 + FX_MIXER_COMMANDS_V2
COMMANDS_V3 = SEQ_COMMANDS_V3 + FX_MIXER_COMMANDS_V3
COMMANDS_V4 = SEQ_COMMANDS_V3 + FX_MIXER_COMMANDS_V4


@dataclass(frozen=True)
class FxCommands:
    """Sequencer/mixer command names valid for one format version."""

    commands: Tuple[str, ...]

    def __len__(self) -> int:
        return len(self.commands)

    def try_render(self, command: int) -> Optional[str]:
        if 0 <= command < len(self.commands):
            return self.commands[command]
        return None

    def find_indices(self, names: Iterable[str]) -> List[int]:
        """Return the ids of every command whose mnemonic is in ``names``."""
        wanted = set(names)
        return [i for i, name in enumerate(self.commands) if name in wanted]

    def index_of(self, name: str) -> int:
        try:
            return self.commands.index(name)
        except ValueError:
            raise ValueError(f"unknown FX command {name!r}") from None


def fx_command_names(version: Version) -> FxCommands:
    """Retrieve the sequencer/mixer command table for ``version``."""
    if version.at_least(4, 0):
        return FxCommands(COMMANDS_V4)
    if version.at_least(3, 0):
        return FxCommands(COMMANDS_V3)
    return FxCommands(COMMANDS_V2)


@dataclass(frozen=True)
class CommandPack:
    """Instrument-specific command names, addressed from id 0x80 upward."""

    commands: Tuple[str, ...] = ()

    def accepts(self, command: int) -> bool:
        return command >= INSTRUMENT_COMMAND_OFFSET

    def try_render(self, command: int) -> Optional[str]:
        if not self.accepts(command):
            return None
        index = command - INSTRUMENT_COMMAND_OFFSET
        if index < len(self.commands):
            return self.commands[index]
        return None

    def index_of(self, name: str) -> Optional[int]:
        if name in self.commands:
            return INSTRUMENT_COMMAND_OFFSET + self.commands.index(name)
        return None


def render_command(command: int, fx_commands: FxCommands, pack: CommandPack) -> str:
    """Render a command id as its three letter mnemonic."""
    name = fx_commands.try_render(command)
    if name is not None:
        return name
    if pack.accepts(command):
        name = pack.try_render(command)
        if name is not None:
            return name
        return f"I{command - INSTRUMENT_COMMAND_OFFSET:02X}"
    return f"?{command:02x}"


def parse_command(text: str, fx_commands: FxCommands, pack: CommandPack) -> int:
    """Inverse of ``render_command``."""
    if text in fx_commands.commands:
        return fx_commands.commands.index(text)
    instrument_id = pack.index_of(text)
    if instrument_id is not None:
        return instrument_id
    if len(text) == 3 and text[0] in "I?":
        try:
            raw = int(text[1:], 16)
        except ValueError:
            raw = None
        if raw is not None:
            if text[0] == "I" and raw < INSTRUMENT_COMMAND_OFFSET:
                return INSTRUMENT_COMMAND_OFFSET + raw
            if text[0] == "?" and len(fx_commands) <= raw < INSTRUMENT_COMMAND_OFFSET:
                return raw
    raise ValueError(f"unknown FX command {text!r}")


def instrument_commands(
    base: Sequence[str], extra: Sequence[str] = ()
) -> Tuple[str, ...]:
    """Concatenate the 18 shared instrument commands with variant extras."""
    if len(base) != BASE_INSTRUMENT_COMMAND_COUNT:
        raise ValueError(
            f"instrument command base must hold {BASE_INSTRUMENT_COMMAND_COUNT} names"
        )
    return tuple(base) + tuple(extra)
