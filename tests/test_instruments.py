from pathlib import Path
import sys

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from m8.common import INSTRUMENT_SLOT, ControlChange, SynthParams, TranspEq  # noqa: E402
from m8.errors import InvalidEnumValue, TruncatedInput, UnknownTag  # noqa: E402
from m8.external import ExternalInst  # noqa: E402
from m8.fmsynth import FM_WAVE_MAX, FMSynth, FMWave, Operator, fm_algo_name  # noqa: E402
from m8.hypersynth import HyperSynth  # noqa: E402
from m8.instruments import (  # noqa: E402
    SAMPLE_PATH_OFFSET,
    InstrumentFile,
    MacroSynth,
    MIDIOut,
    NoInstrument,
    Sampler,
    WavSynth,
    encode_instrument,
    read_instrument,
)
from m8.modulators import ADSREnv, AHDEnv, LFO, TrackingEnv  # noqa: E402
from m8.reader import Reader  # noqa: E402
from m8.version import DEVICE_MAGIC, Version  # noqa: E402

V2 = Version(2, 7)
V4 = Version(4, 0)


def _roundtrip(version: Version, instrument):
    data = InstrumentFile(version, instrument).to_bytes()
    assert len(data) == version.size + INSTRUMENT_SLOT
    decoded = InstrumentFile.from_bytes(data)
    assert decoded.to_bytes() == data
    return decoded.instrument


def _params(**overrides) -> SynthParams:
    params = SynthParams(volume=0x10, pitch=0x02, fine_tune=0x7F, filter_type=2, filter_cutoff=0x90)
    for key, value in overrides.items():
        setattr(params, key, value)
    return params


def test_empty_slot_file() -> None:
    data = bytes([3, 0]) + b"\xff" * INSTRUMENT_SLOT
    parsed = InstrumentFile.from_bytes(data)
    assert isinstance(parsed.instrument, NoInstrument)
    assert parsed.to_bytes() == data


SYNTHS = [
    WavSynth(name="PAD", shape=3, size=0x40, mult=0x81, warp=2, mirror=1, synth_params=_params()),
    MacroSynth(name="MACRO", shape=12, timbre=0x10, color=0x20, degrade=3, redux=4),
    Sampler(name="BREAK", sample_path="/Samples/amen.wav", play_mode=1, slice=4, length=0x80),
    FMSynth(
        name="BELL",
        algo=11,
        operators=[
            Operator(shape=FMWave.TRI, ratio=2, level=0x80),
            Operator(shape=FMWave(FM_WAVE_MAX), ratio=3),
            Operator(shape=FMWave.NOI, feedback=0x10),
            Operator(mod_a=1, mod_b=2),
        ],
        mod1=1,
        mod4=4,
    ),
    HyperSynth(name="CHORDS", default_chord=[0, 4, 7, 11, 14, 0, 0], swarm=3, chords=[[1, 2, 3, 4, 5, 6]] * 16),
    ExternalInst(name="EXT", input=1, port=2, channel=3, cca=ControlChange(7, 100)),
    MIDIOut(name="OUT", port=1, channel=9, bank_select=2, program_change=5, custom_cc=[ControlChange(i, i * 2) for i in range(8)]),
]


@pytest.mark.parametrize("instrument", SYNTHS, ids=lambda inst: type(inst).__name__)
def test_fresh_instrument_roundtrip_v4(instrument) -> None:
    decoded = _roundtrip(V4, instrument)
    assert decoded == instrument


@pytest.mark.parametrize(
    "instrument",
    [SYNTHS[0], SYNTHS[1], SYNTHS[2], SYNTHS[3], SYNTHS[6]],
    ids=lambda inst: type(inst).__name__,
)
def test_fresh_instrument_roundtrip_v2(instrument) -> None:
    decoded = _roundtrip(V2, instrument)
    assert decoded == instrument


def test_v3_mods_are_free_form() -> None:
    params = _params(mods=[ADSREnv(dest=1), TrackingEnv(dest=2, src=1), LFO(dest=3, shape=2), AHDEnv()])
    decoded = _roundtrip(V4, WavSynth(name="MODS", synth_params=params))
    assert [type(mod) for mod in decoded.synth_params.mods] == [ADSREnv, TrackingEnv, LFO, AHDEnv]


def test_v2_mod_bank_rejects_other_types() -> None:
    params = _params(mods=[ADSREnv(), AHDEnv(), LFO(), LFO()])
    with pytest.raises(ValueError):
        encode_instrument(V2, WavSynth(synth_params=params))


def test_mods_sit_at_slot_offset_0x3f() -> None:
    mods = [AHDEnv(dest=9), AHDEnv(), LFO(), LFO()]
    for instrument in (
        WavSynth(synth_params=_params(mods=mods)),
        Sampler(synth_params=_params(mods=mods)),
        FMSynth(synth_params=_params(mods=mods)),
        HyperSynth(synth_params=_params(mods=mods)),
        ExternalInst(synth_params=_params(mods=mods)),
    ):
        slot = encode_instrument(V4, instrument)
        assert slot[0x3F] == 0x09, type(instrument).__name__


def test_sample_path_position() -> None:
    data = InstrumentFile(V4, Sampler(sample_path="/kick.wav")).to_bytes()
    start = V4.size + SAMPLE_PATH_OFFSET
    assert data[start : start + 9] == b"/kick.wav"


def test_v2_sampler_gap_is_preserved() -> None:
    data = bytearray(InstrumentFile(V2, Sampler(sample_path="/a.wav")).to_bytes())
    # pre-3.0 modulators end before the path; poke a byte into the gap
    data[V2.size + SAMPLE_PATH_OFFSET - 1] = 0x42
    parsed = InstrumentFile.from_bytes(bytes(data))
    assert parsed.instrument.path_gap[-1] == 0x42
    assert parsed.to_bytes() == bytes(data)


def test_mod_gap_is_preserved() -> None:
    data = bytearray(InstrumentFile(V4, WavSynth()).to_bytes())
    # first byte after the mixer block of a WavSynth
    data[V4.size + 33] = 0x12
    parsed = InstrumentFile.from_bytes(bytes(data))
    assert parsed.instrument.synth_params.mod_gap[0] == 0x12
    assert parsed.to_bytes() == bytes(data)


def test_midi_out_reserved_bytes_are_preserved() -> None:
    data = bytearray(InstrumentFile(V4, MIDIOut()).to_bytes())
    data[V4.size + 19] = 0x05
    parsed = InstrumentFile.from_bytes(bytes(data))
    assert parsed.instrument.reserved[0] == 0x05
    assert parsed.to_bytes() == bytes(data)


def test_midi_out_has_default_mods() -> None:
    parsed = _roundtrip(V4, MIDIOut())
    assert parsed.mods == [AHDEnv(), AHDEnv(), AHDEnv(), AHDEnv()]


def test_device_header_file_roundtrip() -> None:
    version = Version(4, 1, 0, device_header=True)
    data = InstrumentFile(version, WavSynth(name="DEV")).to_bytes()
    assert data.startswith(DEVICE_MAGIC)
    parsed = InstrumentFile.from_bytes(data)
    assert parsed.version.device_header
    assert parsed.instrument.name == "DEV"


@pytest.mark.parametrize(
    "version, value, expected",
    [
        (V4, 0x05, TranspEq(transpose=True, eq=2)),
        (V4, 0x04, TranspEq(transpose=False, eq=2)),
        (V2, 0x02, TranspEq(transpose=True, eq=0)),
        (V2, 0x00, TranspEq(transpose=False, eq=0)),
    ],
)
def test_transp_eq_byte(version: Version, value: int, expected: TranspEq) -> None:
    assert TranspEq.from_byte(version, value) == expected


def test_device_name_padding_comes_back_as_zero() -> None:
    clean = encode_instrument(V4, WavSynth(name="PAD", synth_params=_params()))
    device = bytearray(clean)
    # firmware leaves 0xFF after the terminator
    device[1 + 3 : 1 + 12] = b"\xff" * 9
    decoded = read_instrument(Reader(bytes(device)), V4)
    assert decoded.name == "PAD"
    assert encode_instrument(V4, decoded) == clean


def test_pre_3_0_transpose_byte_is_normalised() -> None:
    data = bytearray(encode_instrument(V2, WavSynth(transp_eq=TranspEq(transpose=True))))
    assert data[13] == 1
    data[13] = 0x02
    decoded = read_instrument(Reader(bytes(data)), V2)
    assert decoded.transp_eq.transpose
    assert encode_instrument(V2, decoded)[13] == 1


@pytest.mark.parametrize(
    "instrument",
    [
        WavSynth(transp_eq=TranspEq(transpose=True, eq=200)),
        WavSynth(table_tick=300),
        WavSynth(synth_params=_params(volume=-1)),
    ],
)
def test_out_of_range_fields_are_rejected(instrument) -> None:
    with pytest.raises(ValueError, match="out of range"):
        encode_instrument(V4, instrument)


def test_unknown_kind_is_rejected() -> None:
    data = bytes([4, 0, 0x07]) + b"\xff" * (INSTRUMENT_SLOT - 1)
    with pytest.raises(UnknownTag) as excinfo:
        InstrumentFile.from_bytes(data)
    assert excinfo.value.offset == 2


def test_v3_kinds_are_unknown_before_3_0() -> None:
    data = bytes([2, 7, 0x05]) + b"\xff" * (INSTRUMENT_SLOT - 1)
    with pytest.raises(UnknownTag):
        InstrumentFile.from_bytes(data)
    with pytest.raises(ValueError):
        encode_instrument(V2, HyperSynth())
    with pytest.raises(ValueError):
        encode_instrument(V2, ExternalInst())


def test_truncated_instrument_file() -> None:
    with pytest.raises(TruncatedInput):
        InstrumentFile.from_bytes(bytes([3, 0]) + b"\xff" * 100)


class TestFMValidation:
    ALGO_AT = V4.size + 18
    WAVE_AT = V4.size + 19

    def _data(self) -> bytearray:
        return bytearray(InstrumentFile(V4, FMSynth()).to_bytes())

    def test_invalid_algorithm(self) -> None:
        data = self._data()
        data[self.ALGO_AT] = 12
        with pytest.raises(InvalidEnumValue) as excinfo:
            InstrumentFile.from_bytes(bytes(data))
        assert excinfo.value.offset == self.ALGO_AT

    def test_algorithm_names(self) -> None:
        assert fm_algo_name(0) == "A>B>C>D"
        assert fm_algo_name(11) == "A+B+C+D"

    def test_invalid_wave(self) -> None:
        data = self._data()
        data[self.WAVE_AT] = FM_WAVE_MAX + 1
        with pytest.raises(InvalidEnumValue):
            InstrumentFile.from_bytes(bytes(data))

    def test_last_wave_is_valid(self) -> None:
        data = self._data()
        data[self.WAVE_AT] = FM_WAVE_MAX
        parsed = InstrumentFile.from_bytes(bytes(data))
        assert parsed.instrument.operators[0].shape == FM_WAVE_MAX

    def test_shapes_absent_before_1_4(self) -> None:
        version = Version(1, 3)
        fm = FMSynth(algo=2, operators=[Operator(ratio=i + 1) for i in range(4)])
        decoded = _roundtrip(version, fm)
        assert [op.ratio for op in decoded.operators] == [1, 2, 3, 4]
        assert all(op.shape == FMWave.SIN for op in decoded.operators)


def test_fm_operator_bytes_are_grouped_by_field() -> None:
    fm = FMSynth(operators=[Operator(shape=FMWave.SIN, ratio=i + 1, ratio_fine=0) for i in range(4)])
    slot = encode_instrument(Version(1, 5), fm)
    last_shape = 18 + 4
    assert [slot[last_shape + k] for k in (1, 3, 5, 7)] == [1, 2, 3, 4]
    assert [slot[last_shape + k] for k in (2, 4, 6, 8)] == [0, 0, 0, 0]


def test_first_mod_packs_type_and_dest() -> None:
    mod = AHDEnv(dest=0x0A, amount=0x20, attack=0x00, hold=0x40, decay=0x00)
    params = _params(mods=[mod, AHDEnv(), LFO(), LFO()])
    slot = encode_instrument(Version(3, 0), WavSynth(synth_params=params))
    assert slot[0x3F : 0x3F + 6] == bytes([0x0A, 0x20, 0x00, 0x40, 0x00, 0x00])


def test_sampler_path_read_from_fixed_offset() -> None:
    slot = bytearray(encode_instrument(V4, Sampler()))
    slot[SAMPLE_PATH_OFFSET : SAMPLE_PATH_OFFSET + 9] = b"kick.wav\x00"
    reader = Reader(bytes(slot))
    sampler = read_instrument(reader, V4)
    assert sampler.sample_path == "kick.wav"
    assert reader.tell() == INSTRUMENT_SLOT
