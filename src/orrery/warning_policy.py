"""Diagnostics raised while evaluating Orrery documents.

Each diagnostic has a stable code registered in ``WARNING_CODES``:

- ``W01`` an astro body sets a property that has no meaning for it.
- ``W02`` a definition reuses the name of a builtin constant, which always
  wins the lookup, so the definition is dead.
- ``W03`` a property gets the wrong kind of value, an expression where a
  quoted string is expected or the other way round.

A ``WarningPolicy`` decides per code whether the diagnostic is issued as an
``OrreryWarning``, dropped, or escalated to a ``ValidationError``.
"""

from __future__ import annotations

import warnings
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from orrery.errors import ValidationError

WARNING_CODES: Mapping[str, str] = MappingProxyType(
    {
        "W01": "unknown astro-body property",
        "W02": "definition shadows a builtin constant",
        "W03": "property value has the wrong kind",
    }
)

KNOWN_CODES: frozenset[str] = frozenset(WARNING_CODES)


def describe_codes() -> str:
    """One-line summary of every registered code, for help and error text."""
    return ", ".join(f"{code} ({text})" for code, text in WARNING_CODES.items())


class OrreryWarning(UserWarning):
    """A registered diagnostic; ``code`` and ``description`` come from ``WARNING_CODES``."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.description = WARNING_CODES[code]
        super().__init__(f"[{code}] {message}")


@dataclass(frozen=True)
class WarningPolicy:
    """Per-code handling of diagnostics.

    A code may be escalated or suppressed, not both.
    """

    warn_as_error: frozenset[str] = frozenset()
    suppress: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        unknown = (self.warn_as_error | self.suppress) - KNOWN_CODES
        if unknown:
            raise ValueError(_unknown_codes_message(unknown))
        both = self.warn_as_error & self.suppress
        if both:
            raise ValueError(
                f"Warning codes both escalated and suppressed: {', '.join(sorted(both))}"
            )

    @classmethod
    def from_options(
        cls, warn_as_error: str | None, suppress: str | None
    ) -> WarningPolicy | None:
        """Build a policy from comma-separated code lists, or None if both are unset.

        Raises ``ValueError`` for unknown or conflicting codes.
        """
        if warn_as_error is None and suppress is None:
            return None
        return cls(
            warn_as_error=parse_code_list(warn_as_error or ""),
            suppress=parse_code_list(suppress or ""),
        )


def emit_warning(code: str, message: str, *, policy: WarningPolicy | None = None) -> None:
    """Report diagnostic ``code`` according to ``policy``.

    Suppressed codes are dropped, escalated codes raise ``ValidationError``,
    anything else is issued through ``warnings.warn`` as an ``OrreryWarning``.
    """
    if code not in WARNING_CODES:
        raise ValueError(_unknown_codes_message({code}))
    if policy is not None:
        if code in policy.suppress:
            return
        if code in policy.warn_as_error:
            raise ValidationError(f"[{code}] {message}")

    warnings.warn(OrreryWarning(code, message), stacklevel=3)


def parse_code_list(raw: str) -> frozenset[str]:
    """Parse a comma-separated list such as ``"W01, W03"``.

    Codes are matched case-insensitively. Raises ``ValueError`` for codes
    that are not registered.
    """
    codes = {token.strip().upper() for token in raw.split(",") if token.strip()}
    unknown = codes - KNOWN_CODES
    if unknown:
        raise ValueError(_unknown_codes_message(unknown))
    return frozenset(codes)


def _unknown_codes_message(codes) -> str:
    listed = ", ".join(repr(code) for code in sorted(codes))
    return f"Unknown warning code: {listed} (known: {describe_codes()})"
