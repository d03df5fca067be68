"""Renumbering of instruments, tables, EQs, phrases and chains.

A mapping is an ``old -> new`` list.  References held in phrase rows,
chain steps and the song grid are looked up directly; references held in
FX cells are only rewritten when the command id is one of the mapping's
``tracking_commands``.  A mapped value of 0xFF drops the reference: the
cell is cleared.

``Remapper.create`` plans a splice of chains from one song into another
and ``Remapper.apply`` carries it out.  Every instrument owns the table
with its own number, so instruments and their tables always move
together.
"""

from __future__ import annotations

import copy
import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Callable, ClassVar, Iterable, List, Optional, Sequence, Set, Tuple

from .errors import RemapError
from .fx import EMPTY, FX, fx_command_names
from .instruments import Instrument, NoInstrument
from .sequence import Chain, ChainStep, Phrase, Table
from .song import N_CHAINS, N_EQS, N_INSTRUMENTS, N_PHRASES, N_TABLES, Song
from .version import Version

logger = logging.getLogger(__name__)


def _translate(mapping: Sequence[int], value: int) -> int:
    if value < len(mapping):
        return mapping[value]
    return value


@dataclass
class _Mapping:
    mapping: List[int]
    to_move: List[int] = field(default_factory=list)

    SIZE: ClassVar[int] = 0

    def is_identity(self) -> bool:
        return all(new == old for old, new in enumerate(self.mapping))

    def translate(self, value: int) -> int:
        return _translate(self.mapping, value)


@dataclass
class PhraseMapping(_Mapping):
    SIZE: ClassVar[int] = N_PHRASES

    @classmethod
    def identity(cls) -> "PhraseMapping":
        return cls(mapping=list(range(cls.SIZE)))


@dataclass
class ChainMapping(_Mapping):
    SIZE: ClassVar[int] = N_CHAINS

    @classmethod
    def identity(cls) -> "ChainMapping":
        return cls(mapping=list(range(cls.SIZE)))


@dataclass
class _TrackedMapping(_Mapping):
    """Mapping whose targets can also be addressed from FX cells."""

    tracking_commands: List[int] = field(default_factory=list)

    DEFAULT_TRACKING: ClassVar[Tuple[str, ...]] = ()

    @classmethod
    def identity(cls, version: Version, command_names: Optional[Iterable[str]] = None):
        return cls(
            mapping=list(range(cls.SIZE)),
            tracking_commands=cls.tracking_for(version, command_names),
        )

    @classmethod
    def tracking_for(
        cls, version: Version, command_names: Optional[Iterable[str]] = None
    ) -> List[int]:
        names = cls.DEFAULT_TRACKING if command_names is None else tuple(command_names)
        return fx_command_names(version).find_indices(names)


@dataclass
class InstrumentMapping(_TrackedMapping):
    SIZE: ClassVar[int] = N_INSTRUMENTS
    DEFAULT_TRACKING: ClassVar[Tuple[str, ...]] = ("INS", "NXT")


@dataclass
class TableMapping(_TrackedMapping):
    SIZE: ClassVar[int] = N_TABLES
    DEFAULT_TRACKING: ClassVar[Tuple[str, ...]] = ("TBX",)


@dataclass
class EqMapping(_TrackedMapping):
    SIZE: ClassVar[int] = N_EQS
    DEFAULT_TRACKING: ClassVar[Tuple[str, ...]] = ("EQI",)


def remap_fx(
    cell: FX, instruments: InstrumentMapping, tables: TableMapping, eqs: EqMapping
) -> FX:
    """Return ``cell`` with its value renumbered.

    The first mapping that tracks the command and covers the value
    decides; 0xFF clears the cell.
    """
    for tracked in (instruments, tables, eqs):
        if cell.command not in tracked.tracking_commands:
            continue
        if cell.value >= len(tracked.mapping):
            continue
        new = tracked.translate(cell.value)
        if new == cell.value:
            return cell
        if new == EMPTY:
            return FX()
        return FX(command=cell.command, value=new)
    return cell


@dataclass
class Remapper:
    instruments: InstrumentMapping
    tables: TableMapping
    eqs: EqMapping
    phrases: PhraseMapping = field(default_factory=PhraseMapping.identity)
    chains: ChainMapping = field(default_factory=ChainMapping.identity)

    @classmethod
    def identity(cls, version: Version) -> "Remapper":
        return cls(
            instruments=InstrumentMapping.identity(version),
            tables=TableMapping.identity(version),
            eqs=EqMapping.identity(version),
        )

    def _remap_cells(self, cells: List[FX]) -> List[FX]:
        return [remap_fx(cell, self.instruments, self.tables, self.eqs) for cell in cells]

    def remap_phrase(self, phrase: Phrase) -> None:
        for step in phrase.steps:
            step.instrument = self.instruments.translate(step.instrument)
            step.fx = self._remap_cells(step.fx)

    def remap_chain(self, chain: Chain) -> None:
        for i, step in enumerate(chain.steps):
            new = self.phrases.translate(step.phrase)
            if new == step.phrase:
                continue
            chain.steps[i] = ChainStep() if new == EMPTY else ChainStep(new, step.transpose)

    def remap_table(self, table: Table) -> None:
        for step in table.steps:
            step.fx = self._remap_cells(step.fx)

    def remap_instrument(self, instrument: Instrument) -> None:
        if isinstance(instrument, NoInstrument):
            return
        eq = instrument.transp_eq.eq
        new = self.eqs.translate(eq)
        if new != eq:
            # a dropped EQ falls back to EQ 0
            instrument.transp_eq = dataclasses.replace(
                instrument.transp_eq, eq=0 if new == EMPTY else new
            )

    def remap_song(self, song: Song) -> None:
        """Rewrite every reference held by ``song`` in place."""
        for row in song.song_steps:
            for track, chain in enumerate(row):
                row[track] = self.chains.translate(chain)
        for chain in song.chains:
            self.remap_chain(chain)
        for phrase in song.phrases:
            self.remap_phrase(phrase)
        for table in song.tables:
            self.remap_table(table)
        for instrument in song.instruments:
            self.remap_instrument(instrument)

    @classmethod
    def create(cls, from_song: Song, to_song: Song, chains: Iterable[int]) -> "Remapper":
        """Plan copying ``chains`` of ``from_song`` into ``to_song``.

        Everything the chains reach is collected.  Records already present
        in the destination with identical content are reused; the rest go
        to empty destination slots.  ``to_move`` lists what ``apply`` has
        to copy.
        """
        if fx_command_names(from_song.version) != fx_command_names(to_song.version):
            raise RemapError(
                f"cannot splice between {from_song.version} and {to_song.version}: "
                "FX command tables differ"
            )

        remapper = cls.identity(from_song.version)
        chain_ids = _unique(c for c in chains if c != EMPTY)
        for number in chain_ids:
            if number >= N_CHAINS:
                raise RemapError(f"chain {number:02X} out of range")

        phrase_ids, instrument_ids, table_ids, eq_ids = remapper._collect(from_song, chain_ids)
        logger.debug(
            "splice reaches %d phrases, %d instruments, %d tables, %d EQs",
            len(phrase_ids),
            len(instrument_ids),
            len(table_ids),
            len(eq_ids),
        )

        taken_eqs: Set[int] = set()
        for old in eq_ids:
            new = _reuse(from_song.eqs[old], to_song.eqs, taken_eqs, None)
            reused = new is not None
            if new is None:
                new = _allocate(
                    "EQ",
                    range(N_EQS),
                    lambda j: to_song.eqs[j].is_default(),
                    taken_eqs,
                )
            remapper._assign(remapper.eqs, old, new, not reused)

        taken_instruments: Set[int] = set()
        taken_tables: Set[int] = set()
        for old in instrument_ids:
            source = copy.deepcopy(from_song.instruments[old])
            remapper.remap_instrument(source)
            new = None
            if not remapper._has_tracked_refs(from_song.tables[old]):
                for j, candidate in enumerate(to_song.instruments):
                    if (
                        j not in taken_instruments
                        and candidate == source
                        and to_song.tables[j] == from_song.tables[old]
                    ):
                        new = j
                        taken_instruments.add(j)
                        break
            reused = new is not None
            if new is None:
                new = _allocate(
                    "instrument",
                    range(N_INSTRUMENTS),
                    lambda j: isinstance(to_song.instruments[j], NoInstrument)
                    and j not in taken_tables
                    and to_song.tables[j].is_empty(),
                    taken_instruments,
                )
            taken_tables.add(new)
            remapper._assign(remapper.instruments, old, new, not reused)
            remapper._assign(remapper.tables, old, new, not reused)

        # tables reached through TBX only, never shared with an instrument slot
        for old in table_ids:
            if old in instrument_ids:
                continue
            if not remapper._has_tracked_refs(from_song.tables[old]):
                new = _reuse(
                    from_song.tables[old], to_song.tables, taken_tables, lambda t: not t.is_empty()
                )
                if new is not None:
                    remapper._assign(remapper.tables, old, new, False)
                    continue
            order = list(range(N_INSTRUMENTS, N_TABLES)) + list(range(N_INSTRUMENTS))
            new = _allocate(
                "table",
                order,
                lambda j: to_song.tables[j].is_empty()
                and (
                    j >= N_INSTRUMENTS
                    or (
                        j not in taken_instruments
                        and isinstance(to_song.instruments[j], NoInstrument)
                    )
                ),
                taken_tables,
            )
            remapper._assign(remapper.tables, old, new, True)

        taken_phrases: Set[int] = set()
        for old in phrase_ids:
            source = copy.deepcopy(from_song.phrases[old])
            remapper.remap_phrase(source)
            new = _reuse(source, to_song.phrases, taken_phrases, lambda p: not p.is_empty())
            reused = new is not None
            if new is None:
                new = _allocate(
                    "phrase",
                    range(N_PHRASES),
                    lambda j: to_song.phrases[j].is_empty(),
                    taken_phrases,
                )
            remapper._assign(remapper.phrases, old, new, not reused)

        taken_chains: Set[int] = set()
        for old in chain_ids:
            source = copy.deepcopy(from_song.chains[old])
            remapper.remap_chain(source)
            new = _reuse(source, to_song.chains, taken_chains, lambda c: not c.is_empty())
            reused = new is not None
            if new is None:
                new = _allocate(
                    "chain",
                    range(N_CHAINS),
                    lambda j: to_song.chains[j].is_empty(),
                    taken_chains,
                )
            remapper._assign(remapper.chains, old, new, not reused)

        return remapper

    def apply(self, from_song: Song, to_song: Song) -> None:
        """Copy every planned record into ``to_song`` with references rewritten."""
        for old in self.eqs.to_move:
            new = self.eqs.mapping[old]
            eq = copy.deepcopy(from_song.eqs[old])
            eq.number = new
            to_song.eqs[new] = eq

        for old in self.instruments.to_move:
            new = self.instruments.mapping[old]
            instrument = copy.deepcopy(from_song.instruments[old])
            self.remap_instrument(instrument)
            instrument.number = new
            to_song.instruments[new] = instrument

        for old in self.tables.to_move:
            new = self.tables.mapping[old]
            table = copy.deepcopy(from_song.tables[old])
            self.remap_table(table)
            table.number = new
            to_song.tables[new] = table

        for old in self.phrases.to_move:
            new = self.phrases.mapping[old]
            phrase = copy.deepcopy(from_song.phrases[old])
            self.remap_phrase(phrase)
            phrase.number = new
            to_song.phrases[new] = phrase

        for old in self.chains.to_move:
            new = self.chains.mapping[old]
            chain = copy.deepcopy(from_song.chains[old])
            self.remap_chain(chain)
            chain.number = new
            to_song.chains[new] = chain

    def _assign(self, mapping: _Mapping, old: int, new: int, move: bool) -> None:
        mapping.mapping[old] = new
        if move:
            mapping.to_move.append(old)
            logger.info("%s %02X -> %02X", type(mapping).__name__, old, new)
        else:
            logger.debug("%s %02X reuses %02X", type(mapping).__name__, old, new)

    def _has_tracked_refs(self, table: Table) -> bool:
        tracked = set(self.instruments.tracking_commands) | set(self.tables.tracking_commands)
        return any(cell.command in tracked for step in table.steps for cell in step.fx)

    def _collect(
        self, song: Song, chain_ids: List[int]
    ) -> Tuple[List[int], List[int], List[int], List[int]]:
        phrases: List[int] = []
        instruments: List[int] = []
        tables: List[int] = []
        eqs: List[int] = []
        pending_tables: List[int] = []

        def add(items: List[int], value: int, limit: int) -> bool:
            if value < limit and value not in items:
                items.append(value)
                return True
            return False

        def add_instrument(number: int) -> None:
            if isinstance(song.instruments[number], NoInstrument):
                return
            if add(instruments, number, N_INSTRUMENTS):
                add_eq(song.instruments[number].transp_eq.eq)
                add_table(number)

        def add_table(number: int) -> None:
            if add(tables, number, N_TABLES):
                pending_tables.append(number)

        def add_eq(number: int) -> None:
            add(eqs, number, N_EQS)

        def scan(cells: List[FX]) -> None:
            for cell in cells:
                if cell.command in self.instruments.tracking_commands and cell.value < N_INSTRUMENTS:
                    add_instrument(cell.value)
                elif cell.command in self.tables.tracking_commands and cell.value < N_TABLES:
                    add_table(cell.value)
                elif cell.command in self.eqs.tracking_commands and cell.value < N_EQS:
                    add_eq(cell.value)

        for number in chain_ids:
            for step in song.chains[number].steps:
                if step.phrase != EMPTY:
                    add(phrases, step.phrase, N_PHRASES)

        for number in phrases:
            for step in song.phrases[number].steps:
                if step.instrument < N_INSTRUMENTS:
                    add_instrument(step.instrument)
                scan(step.fx)

        while pending_tables:
            number = pending_tables.pop()
            for step in song.tables[number].steps:
                scan(step.fx)

        return phrases, sorted(instruments), sorted(tables), sorted(eqs)


def _unique(values: Iterable[int]) -> List[int]:
    seen: List[int] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


def _reuse(record, candidates: Sequence, taken: Set[int], usable: Optional[Callable]) -> Optional[int]:
    for j, candidate in enumerate(candidates):
        if j in taken or candidate != record:
            continue
        if usable is not None and not usable(candidate):
            continue
        taken.add(j)
        return j
    return None


def _allocate(label: str, order: Iterable[int], is_free: Callable[[int], bool], taken: Set[int]) -> int:
    for j in order:
        if j not in taken and is_free(j):
            taken.add(j)
            return j
    raise RemapError(f"no free {label} slot in destination song")


def splice_chains(from_song: Song, to_song: Song, chains: Iterable[int]) -> List[int]:
    """Copy ``chains`` (and all they reach) into ``to_song``; return their new numbers."""
    chain_list = [c for c in chains if c != EMPTY]
    remapper = Remapper.create(from_song, to_song, chain_list)
    remapper.apply(from_song, to_song)
    return [remapper.chains.mapping[c] for c in chain_list]
