from __future__ import annotations

from dataclasses import dataclass


# ======================================================
# Error taxonomy
# ======================================================

class PatternError(Exception):
    """Base para todos los errores del motor de patrones."""

    kind = "pattern"

    def __init__(self, message: str, *, key: str | None = None):
        super().__init__(message)
        self.message = message
        self.key = key


class DecodeError(PatternError, ValueError):
    """An image handle could not be decoded. Non-fatal for motifs and covers."""

    kind = "decode"


class EmptyInputError(PatternError, ValueError):
    kind = "empty_input"


class InvalidPaletteError(PatternError, ValueError):
    kind = "invalid_palette"


class EncodingError(PatternError, RuntimeError):
    """Output raster could not be serialized. Fatal for one size only."""

    kind = "encoding"


ERRORS_BY_KIND = {
    cls.kind: cls
    for cls in (PatternError, DecodeError, EmptyInputError, InvalidPaletteError, EncodingError)
}


@dataclass(frozen=True)
class SizeFailure:
    key: str
    kind: str
    message: str

    @classmethod
    def from_exception(cls, key: str, exc: BaseException) -> "SizeFailure":
        kind = getattr(exc, "kind", type(exc).__name__)
        return cls(key=key, kind=str(kind), message=str(exc))


def rebuild_error(kind: str | None, message: str, key: str | None = None) -> Exception:
    """Reconstruye la excepción enviada por un worker (kind -> clase)."""
    cls = ERRORS_BY_KIND.get(kind or "")
    if cls is None:
        return RuntimeError(message)
    return cls(message, key=key)
