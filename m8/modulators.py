"""Synth modulators (envelopes and LFOs).

Every modulator occupies a 6-byte record.

From format 3.0 the first byte packs the modulator type in its high
nibble and the destination in its low nibble; the next five bytes are
variant specific:

  type 0  AHDEnv       amount attack hold decay pad
  type 1  ADSREnv      amount attack decay sustain release
  type 2  DrumEnv      amount peak body decay pad
  type 3  LFO          amount shape trigger_mode freq pad
  type 4  TrigEnv      amount attack hold decay src
  type 5  TrackingEnv  amount src lval hval pad

Before 3.0 only AHD envelopes and LFOs exist; their type is implied by
the slot position and the destination has its own byte:

  AHDEnv  dest amount attack hold decay pad
  LFO     shape dest trigger_mode freq amount pad
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Dict, Tuple, Type, Union

from .errors import UnknownTag
from .reader import Reader, Writer

MOD_SIZE = 6
MOD_PAD = 0x00


@dataclass
class AHDEnv:
    dest: int = 0
    amount: int = 0xFF
    attack: int = 0
    hold: int = 0
    decay: int = 0x80

    TYPE_ID: ClassVar[int] = 0
    FIELDS: ClassVar[Tuple[str, ...]] = ("amount", "attack", "hold", "decay")


@dataclass
class ADSREnv:
    dest: int = 0
    amount: int = 0xFF
    attack: int = 0
    decay: int = 0x80
    sustain: int = 0x80
    release: int = 0x80

    TYPE_ID: ClassVar[int] = 1
    FIELDS: ClassVar[Tuple[str, ...]] = ("amount", "attack", "decay", "sustain", "release")


@dataclass
class DrumEnv:
    dest: int = 0
    amount: int = 0xFF
    peak: int = 0
    body: int = 0x10
    decay: int = 0x80

    TYPE_ID: ClassVar[int] = 2
    FIELDS: ClassVar[Tuple[str, ...]] = ("amount", "peak", "body", "decay")


@dataclass
class LFO:
    dest: int = 0
    amount: int = 0xFF
    shape: int = 0
    trigger_mode: int = 0
    freq: int = 0x10

    TYPE_ID: ClassVar[int] = 3
    FIELDS: ClassVar[Tuple[str, ...]] = ("amount", "shape", "trigger_mode", "freq")


@dataclass
class TrigEnv:
    dest: int = 0
    amount: int = 0xFF
    attack: int = 0
    hold: int = 0
    decay: int = 0x40
    src: int = 0

    TYPE_ID: ClassVar[int] = 4
    FIELDS: ClassVar[Tuple[str, ...]] = ("amount", "attack", "hold", "decay", "src")


@dataclass
class TrackingEnv:
    dest: int = 0
    amount: int = 0xFF
    src: int = 0
    lval: int = 0
    hval: int = 0x7F

    TYPE_ID: ClassVar[int] = 5
    FIELDS: ClassVar[Tuple[str, ...]] = ("amount", "src", "lval", "hval")


Mod = Union[AHDEnv, ADSREnv, DrumEnv, LFO, TrigEnv, TrackingEnv]

MOD_TYPES: Dict[int, Type[Mod]] = {
    cls.TYPE_ID: cls
    for cls in (AHDEnv, ADSREnv, DrumEnv, LFO, TrigEnv, TrackingEnv)
}

# Slot order of the fixed pre-3.0 modulator bank.
V2_MOD_LAYOUT: Tuple[Type[Mod], ...] = (AHDEnv, AHDEnv, LFO, LFO)


def read_mod(reader: Reader) -> Mod:
    """Decode one nibble-tagged (3.0+) modulator record."""
    start = reader.tell()
    first = reader.read()
    type_id = first >> 4
    dest = first & 0x0F

    cls = MOD_TYPES.get(type_id)
    if cls is None:
        raise UnknownTag(f"unknown modulator type {type_id}", offset=start)

    values = {name: reader.read() for name in cls.FIELDS}
    mod = cls(dest=dest, **values)

    reader.seek(start + MOD_SIZE)
    return mod


def write_mod(writer: Writer, mod: Mod) -> None:
    if not 0 <= mod.dest <= 0x0F:
        raise ValueError(f"modulator destination out of range: {mod.dest}")
    start = writer.tell()
    writer.write((mod.TYPE_ID << 4) | mod.dest)
    for name in mod.FIELDS:
        writer.write(getattr(mod, name))
    writer.fill_till(MOD_PAD, start + MOD_SIZE)


def read_mod_v2(reader: Reader, cls: Type[Mod]) -> Mod:
    """Decode one positional pre-3.0 modulator record of type ``cls``."""
    start = reader.tell()
    if cls is AHDEnv:
        mod: Mod = AHDEnv(
            dest=reader.read(),
            amount=reader.read(),
            attack=reader.read(),
            hold=reader.read(),
            decay=reader.read(),
        )
    elif cls is LFO:
        mod = LFO(
            shape=reader.read(),
            dest=reader.read(),
            trigger_mode=reader.read(),
            freq=reader.read(),
            amount=reader.read(),
        )
    else:
        raise ValueError(f"{cls.__name__} has no pre-3.0 layout")
    reader.seek(start + MOD_SIZE)
    return mod


def write_mod_v2(writer: Writer, mod: Mod) -> None:
    start = writer.tell()
    if isinstance(mod, AHDEnv):
        for value in (mod.dest, mod.amount, mod.attack, mod.hold, mod.decay):
            writer.write(value)
    elif isinstance(mod, LFO):
        for value in (mod.shape, mod.dest, mod.trigger_mode, mod.freq, mod.amount):
            writer.write(value)
    else:
        raise ValueError(
            f"{type(mod).__name__} cannot be stored before format 3.0"
        )
    writer.fill_till(MOD_PAD, start + MOD_SIZE)


def default_mods() -> list:
    return [AHDEnv(), AHDEnv(), LFO(), LFO()]
