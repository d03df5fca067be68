from itertools import product
from pathlib import Path
import sys

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from m8.errors import TruncatedInput, UnsupportedVersion  # noqa: E402
from m8.version import DEVICE_MAGIC, Version  # noqa: E402


def test_compact_header() -> None:
    version = Version.from_bytes(b"\x04\x00rest")
    assert version == Version(4, 0)
    assert version.size == 2
    assert version.to_bytes() == b"\x04\x00"
    assert str(version) == "4.0.0"


def test_device_header_roundtrip() -> None:
    data = DEVICE_MAGIC + bytes([0x12, 0x04, 0x00, 0x00])
    version = Version.from_bytes(data)
    assert (version.major, version.minor, version.patch) == (4, 1, 2)
    assert version.device_header is True
    assert version.size == 14
    assert version.to_bytes() == data


def test_header_shape_does_not_affect_equality() -> None:
    assert Version(3, 0, device_header=True) == Version(3, 0)


@pytest.mark.parametrize(
    "major, minor, patch, expected",
    [
        (2, 5, 0, True),
        (2, 4, 9, False),
        (3, 0, 0, True),
        (4, 1, 0, True),
        (1, 4, 0, False),
    ],
)
def test_at_least(major: int, minor: int, patch: int, expected: bool) -> None:
    assert Version(major, minor, patch).at_least(2, 5) is expected


GRID = [(1, 4, 0), (2, 5, 0), (2, 5, 1), (2, 7, 0), (3, 0, 0), (4, 0, 0), (4, 1, 2), (6, 0, 0)]


@pytest.mark.parametrize("current, required", list(product(GRID, GRID)))
def test_at_least_follows_version_order(current: tuple, required: tuple) -> None:
    assert Version(*current).at_least(*required) is (required <= current)


@pytest.mark.parametrize("data", [b"\x00\x09", b"\x07\x00", b"\xff\xff"])
def test_unsupported_versions_are_rejected(data: bytes) -> None:
    with pytest.raises(UnsupportedVersion):
        Version.from_bytes(data)


def test_short_header_is_truncated() -> None:
    with pytest.raises(TruncatedInput):
        Version.from_bytes(b"\x04")
