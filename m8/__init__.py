"""Codec for M8 tracker song and instrument files."""

from .errors import (  # noqa: F401
    InvalidEnumValue,
    M8Error,
    MalformedString,
    ParseError,
    RemapError,
    TruncatedInput,
    UnknownTag,
    UnsupportedVersion,
)
from .reader import Reader, Writer  # noqa: F401
from .version import Version  # noqa: F401
from .fx import (  # noqa: F401
    FX,
    CommandPack,
    FxCommands,
    fx_command_names,
    parse_command,
    render_command,
)
from .modulators import (  # noqa: F401
    ADSREnv,
    AHDEnv,
    DrumEnv,
    LFO,
    Mod,
    TrackingEnv,
    TrigEnv,
)
from .common import ControlChange, SynthParams, TranspEq  # noqa: F401
from .fmsynth import FMSynth, Operator  # noqa: F401
from .hypersynth import HyperSynth  # noqa: F401
from .external import ExternalInst  # noqa: F401
from .instruments import (  # noqa: F401
    Instrument,
    InstrumentFile,
    MacroSynth,
    MIDIOut,
    NoInstrument,
    Sampler,
    WavSynth,
    encode_instrument,
    read_instrument,
    write_instrument,
)
from .sequence import Chain, ChainStep, Groove, Phrase, Step, Table, TableStep  # noqa: F401
from .scale import NoteOffset, Scale  # noqa: F401
from .eq import EqBand, Equalizer  # noqa: F401
from .song import MidiSettings, MixerSettings, Song  # noqa: F401
from .remapper import (  # noqa: F401
    ChainMapping,
    EqMapping,
    InstrumentMapping,
    PhraseMapping,
    Remapper,
    TableMapping,
    remap_fx,
    splice_chains,
)
