"""State fingerprints.

A Fingerprint is the ordered list of per-category digests of one location.
Equality is positional: both sides must come from the same Warehouse so the
handler registration order matches.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class PartialFingerprint:
    """Digest of one category at one location.

    Attributes:
        key: Category key (e.g. "settings").
        digest: Hex digest, empty when the category has no data there.
    """

    key: str
    digest: str = ""

    @property
    def is_empty(self) -> bool:
        return self.digest == ""


class Fingerprint:
    """Ordered collection of PartialFingerprints."""

    def __init__(self, *partials: PartialFingerprint) -> None:
        self._partials: tuple[PartialFingerprint, ...] = tuple(partials)

    @property
    def partials(self) -> tuple[PartialFingerprint, ...]:
        return self._partials

    def __iter__(self) -> Iterator[PartialFingerprint]:
        return iter(self._partials)

    def __len__(self) -> int:
        return len(self._partials)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fingerprint):
            return NotImplemented
        return len(self._partials) == len(other._partials) and all(
            a == b for a, b in zip(self._partials, other._partials)
        )

    def __hash__(self) -> int:
        return hash(self._partials)

    def __repr__(self) -> str:
        inner = ", ".join(f"{p.key}={p.digest[:12] or '-'}" for p in self._partials)
        return f"Fingerprint({inner})"

    def differing_keys(self, other: Fingerprint) -> list[str]:
        """Return keys whose digests differ from *other* (positional)."""
        keys = [a.key for a, b in zip(self._partials, other._partials) if a != b]
        longer = self._partials if len(self._partials) > len(other._partials) else other._partials
        keys.extend(p.key for p in longer[min(len(self._partials), len(other._partials)):])
        return keys
