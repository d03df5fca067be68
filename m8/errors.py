"""Exceptions raised while decoding, encoding or remapping M8 files.

Every exception derives from ``ValueError`` so callers that only care
about "the bytes were bad" can keep catching that.
"""

from __future__ import annotations

from typing import Optional


class M8Error(ValueError):
    """Base class for all errors raised by this package."""


class ParseError(M8Error):
    """The byte image could not be decoded."""

    def __init__(self, message: str, offset: Optional[int] = None) -> None:
        self.offset = offset
        if offset is not None:
            message = f"{message} (at 0x{offset:05X})"
        super().__init__(message)


class TruncatedInput(ParseError):
    """The buffer ended before a required field."""


class UnsupportedVersion(ParseError):
    """The format version is outside the supported range."""


class UnknownTag(ParseError):
    """An instrument kind or modulator type is not known at this version."""


class InvalidEnumValue(ParseError):
    """An enumerated field (FM wave, FM algorithm) holds an unknown id."""


class MalformedString(ParseError):
    """A fixed-width string field holds invalid UTF-8."""


class RemapError(M8Error):
    """A splice could not be planned (no free slot, incompatible songs)."""
