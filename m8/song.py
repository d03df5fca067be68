"""Song files.

A song file is the version header followed by a fixed-layout body.
Offsets below are relative to the end of the header:

  0x00000  directory (128)           0x000E0  32 grooves
  0x00080  transpose                 0x002E0  song grid, 256 rows x 8 tracks
  0x00081  tempo (f32 LE)            0x00AE0  255 phrases
  0x00085  quantize                  0x09A50  255 chains
  0x00086  name (12)                 0x0BA30  256 tables
  0x00092  MIDI settings (27)        0x13A30  128 instruments
  0x000AD  key                       0x1A5B0  effects block (64)
  0x000AE  reserved (18)             0x1A5F0  MIDI mapping block (1152)
  0x000C0  mixer settings (32)       0x1AA70  16 scales          (2.5+)
                                     0x1AD10  128 EQs            (4.0+)

Regions the codec does not interpret (reserved, effects, MIDI mappings,
anything after the body) are carried as raw bytes so re-encoding a
decoded song is byte exact, apart from string fields (the bytes after
the terminator come back as 0x00 padding) and boolean bytes (read as
``== 1``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import ClassVar, List

from .common import INSTRUMENT_SLOT
from .eq import Equalizer
from .errors import TruncatedInput
from .instruments import Instrument, NoInstrument, read_instrument, write_instrument
from .reader import Reader, Writer
from .scale import Scale
from .sequence import Chain, Groove, Phrase, Table
from .version import Version

logger = logging.getLogger(__name__)

EMPTY = 0xFF

N_GROOVES = 32
N_SONG_ROWS = 256
N_TRACKS = 8
N_PHRASES = 255
N_CHAINS = 255
N_TABLES = 256
N_INSTRUMENTS = 128
N_SCALES = 16
N_EQS = 128

DIRECTORY_SIZE = 128
SONG_NAME_SIZE = 12
RESERVED_SIZE = 18
EFFECTS_SIZE = 64
MIDI_MAPPINGS_SIZE = 128 * 9

DIRECTORY_OFFSET = 0x00000
TRANSPOSE_OFFSET = 0x00080
TEMPO_OFFSET = 0x00081
QUANTIZE_OFFSET = 0x00085
NAME_OFFSET = 0x00086
MIDI_SETTINGS_OFFSET = 0x00092
KEY_OFFSET = 0x000AD
RESERVED_OFFSET = 0x000AE
MIXER_SETTINGS_OFFSET = 0x000C0
GROOVES_OFFSET = 0x000E0
SONG_STEPS_OFFSET = 0x002E0
PHRASES_OFFSET = 0x00AE0
CHAINS_OFFSET = 0x09A50
TABLES_OFFSET = 0x0BA30
INSTRUMENTS_OFFSET = 0x13A30
EFFECTS_OFFSET = 0x1A5B0
MIDI_MAPPINGS_OFFSET = 0x1A5F0
SCALES_OFFSET = 0x1AA70
EQS_OFFSET = 0x1AD10

BODY_SIZE_BEFORE_2_5 = SCALES_OFFSET
BODY_SIZE_BEFORE_4_0 = EQS_OFFSET
BODY_SIZE = EQS_OFFSET + N_EQS * Equalizer.SIZE


def song_body_size(version: Version) -> int:
    if version.at_least(4, 0):
        return BODY_SIZE
    if version.at_least(2, 5):
        return BODY_SIZE_BEFORE_4_0
    return BODY_SIZE_BEFORE_2_5


@dataclass
class MidiSettings:
    receive_sync: bool = False
    receive_transport: int = 0
    send_sync: bool = False
    send_transport: int = 0
    record_note_channel: int = 0
    record_note_velocity: bool = True
    record_note_delay_kill_commands: int = 0
    control_map_channel: int = 0
    song_row_cue_channel: int = 0
    track_input_channel: List[int] = field(default_factory=lambda: list(range(1, N_TRACKS + 1)))
    track_input_instrument: List[int] = field(default_factory=lambda: [0] * N_TRACKS)
    track_input_program_change: bool = True
    track_input_mode: int = 0

    SIZE: ClassVar[int] = 27

    @classmethod
    def from_reader(cls, reader: Reader) -> "MidiSettings":
        return cls(
            receive_sync=reader.read_bool(),
            receive_transport=reader.read(),
            send_sync=reader.read_bool(),
            send_transport=reader.read(),
            record_note_channel=reader.read(),
            record_note_velocity=reader.read_bool(),
            record_note_delay_kill_commands=reader.read(),
            control_map_channel=reader.read(),
            song_row_cue_channel=reader.read(),
            track_input_channel=list(reader.read_bytes(N_TRACKS)),
            track_input_instrument=list(reader.read_bytes(N_TRACKS)),
            track_input_program_change=reader.read_bool(),
            track_input_mode=reader.read(),
        )

    def write(self, writer: Writer) -> None:
        writer.write_bool(self.receive_sync)
        writer.write(self.receive_transport)
        writer.write_bool(self.send_sync)
        writer.write(self.send_transport)
        writer.write(self.record_note_channel)
        writer.write_bool(self.record_note_velocity)
        writer.write(self.record_note_delay_kill_commands)
        writer.write(self.control_map_channel)
        writer.write(self.song_row_cue_channel)
        writer.write_bytes(bytes(self.track_input_channel))
        writer.write_bytes(bytes(self.track_input_instrument))
        writer.write_bool(self.track_input_program_change)
        writer.write(self.track_input_mode)


@dataclass
class MixerSettings:
    master_volume: int = 0xE0
    master_limit: int = 0
    track_volume: List[int] = field(default_factory=lambda: [0xE0] * N_TRACKS)
    chorus_volume: int = 0xE0
    delay_volume: int = 0xE0
    reverb_volume: int = 0xE0
    # Input/DJ filter settings, not interpreted.
    extra: bytes = b"\xff" * 19

    SIZE: ClassVar[int] = 32

    @classmethod
    def from_reader(cls, reader: Reader) -> "MixerSettings":
        return cls(
            master_volume=reader.read(),
            master_limit=reader.read(),
            track_volume=list(reader.read_bytes(N_TRACKS)),
            chorus_volume=reader.read(),
            delay_volume=reader.read(),
            reverb_volume=reader.read(),
            extra=reader.read_bytes(19),
        )

    def write(self, writer: Writer) -> None:
        start = writer.tell()
        writer.write(self.master_volume)
        writer.write(self.master_limit)
        writer.write_bytes(bytes(self.track_volume))
        writer.write(self.chorus_volume)
        writer.write(self.delay_volume)
        writer.write(self.reverb_volume)
        writer.write_bytes(self.extra[:19])
        writer.fill_till(EMPTY, start + self.SIZE)


def _empty_song_steps() -> List[List[int]]:
    return [[EMPTY] * N_TRACKS for _ in range(N_SONG_ROWS)]


@dataclass
class Song:
    version: Version
    directory: str = "/Songs/"
    transpose: int = 0
    tempo: float = 120.0
    quantize: int = 0
    name: str = ""
    midi_settings: MidiSettings = field(default_factory=MidiSettings)
    key: int = 0
    reserved: bytes = b"\xff" * RESERVED_SIZE
    mixer_settings: MixerSettings = field(default_factory=MixerSettings)

    grooves: List[Groove] = field(
        default_factory=lambda: [Groove(number=i) for i in range(N_GROOVES)]
    )
    song_steps: List[List[int]] = field(default_factory=_empty_song_steps)
    phrases: List[Phrase] = field(
        default_factory=lambda: [Phrase(number=i) for i in range(N_PHRASES)]
    )
    chains: List[Chain] = field(
        default_factory=lambda: [Chain(number=i) for i in range(N_CHAINS)]
    )
    tables: List[Table] = field(
        default_factory=lambda: [Table(number=i) for i in range(N_TABLES)]
    )
    instruments: List[Instrument] = field(
        default_factory=lambda: [NoInstrument(number=i) for i in range(N_INSTRUMENTS)]
    )
    effects_settings: bytes = b"\xff" * EFFECTS_SIZE
    midi_mappings: bytes = b"\xff" * MIDI_MAPPINGS_SIZE
    scales: List[Scale] = field(
        default_factory=lambda: [Scale(number=i) for i in range(N_SCALES)]
    )
    eqs: List[Equalizer] = field(
        default_factory=lambda: [Equalizer(number=i) for i in range(N_EQS)]
    )
    tail: bytes = b""

    @classmethod
    def from_bytes(cls, data: bytes) -> "Song":
        reader = Reader(data)
        version = Version.from_reader(reader)
        base = reader.tell()
        needed = base + song_body_size(version)
        if len(data) < needed:
            raise TruncatedInput(
                f"file too short for a {version} song ({len(data)} bytes, need {needed})"
            )
        logger.debug("decoding %s song body at 0x%X", version, base)

        def at(offset: int) -> Reader:
            reader.seek(base + offset)
            return reader

        directory = at(DIRECTORY_OFFSET).read_string(DIRECTORY_SIZE)
        transpose = at(TRANSPOSE_OFFSET).read()
        tempo = at(TEMPO_OFFSET).read_f32()
        quantize = at(QUANTIZE_OFFSET).read()
        name = at(NAME_OFFSET).read_string(SONG_NAME_SIZE)
        midi_settings = MidiSettings.from_reader(at(MIDI_SETTINGS_OFFSET))
        key = at(KEY_OFFSET).read()
        reserved = at(RESERVED_OFFSET).read_bytes(RESERVED_SIZE)
        mixer_settings = MixerSettings.from_reader(at(MIXER_SETTINGS_OFFSET))

        at(GROOVES_OFFSET)
        grooves = [Groove.from_reader(reader, version, i) for i in range(N_GROOVES)]

        at(SONG_STEPS_OFFSET)
        song_steps = [list(reader.read_bytes(N_TRACKS)) for _ in range(N_SONG_ROWS)]

        at(PHRASES_OFFSET)
        phrases = [Phrase.from_reader(reader, version, i) for i in range(N_PHRASES)]

        at(CHAINS_OFFSET)
        chains = [Chain.from_reader(reader, version, i) for i in range(N_CHAINS)]

        at(TABLES_OFFSET)
        tables = [Table.from_reader(reader, version, i) for i in range(N_TABLES)]

        at(INSTRUMENTS_OFFSET)
        instruments = [read_instrument(reader, version, i) for i in range(N_INSTRUMENTS)]

        effects_settings = at(EFFECTS_OFFSET).read_bytes(EFFECTS_SIZE)
        midi_mappings = at(MIDI_MAPPINGS_OFFSET).read_bytes(MIDI_MAPPINGS_SIZE)

        if version.at_least(2, 5):
            at(SCALES_OFFSET)
            scales = [Scale.from_reader(reader, version, i) for i in range(N_SCALES)]
        else:
            scales = [Scale(number=i) for i in range(N_SCALES)]

        if version.at_least(4, 0):
            at(EQS_OFFSET)
            eqs = [Equalizer.from_reader(reader, version, i) for i in range(N_EQS)]
        else:
            eqs = [Equalizer(number=i) for i in range(N_EQS)]

        tail = data[needed:]

        return cls(
            version=version,
            directory=directory,
            transpose=transpose,
            tempo=tempo,
            quantize=quantize,
            name=name,
            midi_settings=midi_settings,
            key=key,
            reserved=reserved,
            mixer_settings=mixer_settings,
            grooves=grooves,
            song_steps=song_steps,
            phrases=phrases,
            chains=chains,
            tables=tables,
            instruments=instruments,
            effects_settings=effects_settings,
            midi_mappings=midi_mappings,
            scales=scales,
            eqs=eqs,
            tail=tail,
        )

    def to_bytes(self) -> bytes:
        self._check_counts()
        version = self.version
        writer = Writer()
        version.write(writer)
        base = writer.tell()
        logger.debug("encoding %s song body", version)

        def align(offset: int) -> None:
            writer.fill_till(EMPTY, base + offset)

        writer.write_string(self.directory, DIRECTORY_SIZE)
        writer.write(self.transpose)
        writer.write_f32(self.tempo)
        writer.write(self.quantize)
        writer.write_string(self.name, SONG_NAME_SIZE)
        self.midi_settings.write(writer)
        align(KEY_OFFSET)
        writer.write(self.key)
        writer.write_bytes(self.reserved[:RESERVED_SIZE])
        align(MIXER_SETTINGS_OFFSET)
        self.mixer_settings.write(writer)

        align(GROOVES_OFFSET)
        for groove in self.grooves:
            groove.write(writer, version)

        align(SONG_STEPS_OFFSET)
        for row in self.song_steps:
            if len(row) != N_TRACKS:
                raise ValueError(f"song rows hold {N_TRACKS} chain references")
            writer.write_bytes(bytes(row))

        align(PHRASES_OFFSET)
        for phrase in self.phrases:
            phrase.write(writer, version)

        align(CHAINS_OFFSET)
        for chain in self.chains:
            chain.write(writer, version)

        align(TABLES_OFFSET)
        for table in self.tables:
            table.write(writer, version)

        align(INSTRUMENTS_OFFSET)
        for instrument in self.instruments:
            write_instrument(writer, version, instrument)

        align(EFFECTS_OFFSET)
        writer.write_bytes(self.effects_settings[:EFFECTS_SIZE])
        align(MIDI_MAPPINGS_OFFSET)
        writer.write_bytes(self.midi_mappings[:MIDI_MAPPINGS_SIZE])
        align(SCALES_OFFSET)

        if version.at_least(2, 5):
            for scale in self.scales:
                scale.write(writer, version)
            align(EQS_OFFSET)

        if version.at_least(4, 0):
            for eq in self.eqs:
                eq.write(writer, version)
            align(BODY_SIZE)

        writer.write_bytes(self.tail)
        return writer.to_bytes()

    def _check_counts(self) -> None:
        for label, items, expected in (
            ("grooves", self.grooves, N_GROOVES),
            ("song rows", self.song_steps, N_SONG_ROWS),
            ("phrases", self.phrases, N_PHRASES),
            ("chains", self.chains, N_CHAINS),
            ("tables", self.tables, N_TABLES),
            ("instruments", self.instruments, N_INSTRUMENTS),
            ("scales", self.scales, N_SCALES),
            ("eqs", self.eqs, N_EQS),
        ):
            if len(items) != expected:
                raise ValueError(f"song needs {expected} {label}, got {len(items)}")


# Keep the instrument block size tied to the slot size.
assert INSTRUMENTS_OFFSET + N_INSTRUMENTS * INSTRUMENT_SLOT == EFFECTS_OFFSET
