# MIT License
#
# Copyright (c) 2025 Quandela
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""Fock basis kets for partially distinguishable photons.

A :class:`ModeKey` labels one basis ket of the multi-photon state: it maps a
mode pair ``(spatial_mode, dmode)`` to the number of photons occupying it. The
spatial mode is the physical path or polarisation; the distinguishability mode
(``dmode``) indexes an orthonormal wave-function class. Keys are immutable and
hashable so they can index the sparse amplitude map of
:class:`~pdfock.core.quantum_state.QuantumState`.

All operators below act on the implicit state ``1.0 * |key>`` and either return
a new key, a scalar factor, or a sparse ``{ModeKey: amplitude}`` branch map.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Mapping, Sequence
from itertools import chain

from ..utils.combinatorics import binomial, factorial

ModePair = tuple[int, int]
OccupationPattern = Mapping[int, int]
Amplitude = complex | float


class DistinguishabilityMappingError(KeyError):
    """Raised when a collapse mapping has no target for a present dmode."""


class ModeKey(Mapping[ModePair, int]):
    """Immutable sorted mapping ``(spatial_mode, dmode) -> occupation``.

    Construction merges repeated mode pairs by summing their occupations and
    drops pairs whose resulting occupation is zero or negative, so every
    exposed count is strictly positive.

    Args:
        entries: A mapping or an iterable of ``((spatial_mode, dmode), count)``
            items.
    """

    __slots__ = ("_entries", "_lookup", "_hash")

    def __init__(
        self,
        entries: Mapping[ModePair, int] | Iterable[tuple[ModePair, int]] = (),
    ) -> None:
        items = entries.items() if isinstance(entries, Mapping) else entries
        merged: dict[ModePair, int] = {}
        for (spatial, dmode), count in items:
            pair = (int(spatial), int(dmode))
            merged[pair] = merged.get(pair, 0) + int(count)
        self._entries: tuple[tuple[ModePair, int], ...] = tuple(
            sorted((pair, count) for pair, count in merged.items() if count > 0)
        )
        self._lookup = dict(self._entries)
        self._hash = hash(self._entries)

    @classmethod
    def single(cls, spatial_mode: int, dmode: int, count: int = 1) -> ModeKey:
        """Key holding ``count`` photons in one mode pair."""
        return cls({(spatial_mode, dmode): count})

    @classmethod
    def from_occupations(cls, occupations: Sequence[int], dmode: int = 0) -> ModeKey:
        """Key from a per-spatial-mode occupation list sharing one dmode."""
        return cls(((mode, dmode), int(n)) for mode, n in enumerate(occupations))

    # ------------------------------------------------------------------
    # Mapping protocol
    # ------------------------------------------------------------------

    def __getitem__(self, pair: ModePair) -> int:
        return self._lookup[pair]

    def __iter__(self) -> Iterator[ModePair]:
        return (pair for pair, _ in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __hash__(self) -> int:
        return self._hash

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ModeKey):
            return self._entries == other._entries
        if isinstance(other, Mapping):
            return self._lookup == dict(other.items())
        return NotImplemented

    def __lt__(self, other: ModeKey) -> bool:
        if not isinstance(other, ModeKey):
            return NotImplemented
        return self._entries < other._entries

    def __add__(self, other: Mapping[ModePair, int]) -> ModeKey:
        """Bosonic composition: occupations add on matching mode pairs."""
        if not isinstance(other, Mapping):
            return NotImplemented
        return ModeKey(chain(self._entries, other.items()))

    def __repr__(self) -> str:
        return f"ModeKey({self._lookup!r})"

    def __str__(self) -> str:
        body = ", ".join(f"{m}.{d}:{n}" for (m, d), n in self._entries)
        return f"|{body}>"

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    def spatial_occupations(self) -> dict[int, int]:
        """Total occupation per spatial mode, summed over dmodes."""
        totals: dict[int, int] = {}
        for (mode, _), count in self._entries:
            totals[mode] = totals.get(mode, 0) + count
        return totals

    def spatial_occupation(self, mode: int) -> int:
        return sum(count for (m, _), count in self._entries if m == mode)

    def spatial_modes(self) -> tuple[int, ...]:
        return tuple(sorted({mode for (mode, _), _ in self._entries}))

    def dmodes(self) -> tuple[int, ...]:
        return tuple(sorted({dmode for (_, dmode), _ in self._entries}))

    def total_photons(self) -> int:
        return sum(count for _, count in self._entries)

    def with_photons(self, spatial_mode: int, dmode: int, count: int) -> ModeKey:
        """Copy of this key with ``count`` extra photons in one mode pair."""
        return ModeKey(chain(self._entries, [((spatial_mode, dmode), count)]))

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def normalization_factor(self, modes: Iterable[int] | None = None) -> float:
        """Bosonic symmetrisation factor ``sqrt(prod n!)``.

        Args:
            modes: If given, only entries on these spatial modes contribute.
        """
        selected = None if modes is None else set(modes)
        product = 1
        for (mode, _), count in self._entries:
            if selected is None or mode in selected:
                product *= factorial(count)
        return math.sqrt(product)

    def apply_two_mode_unitary(
        self,
        unitary: Sequence[Amplitude],
        modes: Sequence[int],
        tol: float = 0.0,
    ) -> dict[ModeKey, Amplitude]:
        """Apply a two-mode unitary given in line format.

        ``unitary = [U00, U01, U10, U11]`` maps the creation operators of the
        spatial modes ``a, b = modes`` as ``a+ -> U00 a+ + U10 b+`` and
        ``b+ -> U01 a+ + U11 b+``, independently for every dmode. Entries on
        other spatial modes are carried along unchanged.

        Returns:
            Sparse branch map; branches with ``|amplitude| <= tol`` are dropped.
        """
        if len(modes) != 2:
            raise ValueError(f"Expected exactly two modes, got {list(modes)}")
        a, b = int(modes[0]), int(modes[1])
        if a == b:
            raise ValueError(f"Unitary modes must differ, got ({a}, {b})")
        u = list(unitary)
        if len(u) != 4:
            raise ValueError(f"Unitary must have 4 entries in line format, got {len(u)}")

        branches: dict[ModeKey, Amplitude] = {ModeKey(): 1.0}
        spectators: list[tuple[ModePair, int]] = []
        for (mode, dmode), count in self._entries:
            if mode != a and mode != b:
                spectators.append(((mode, dmode), count))
                continue
            i = 0 if mode == a else 1
            root = math.sqrt(factorial(count))
            expansion: dict[ModeKey, Amplitude] = {}
            for j in range(count + 1):
                amp = u[i] ** j * binomial(count, j) * u[i + 2] ** (count - j) / root
                if amp == 0:
                    continue
                expansion[ModeKey({(a, dmode): j, (b, dmode): count - j})] = amp

            convolved: dict[ModeKey, Amplitude] = {}
            for key, amp in expansion.items():
                for previous, previous_amp in branches.items():
                    merged = key + previous
                    convolved[merged] = convolved.get(merged, 0.0) + amp * previous_amp
            branches = convolved

        rest = ModeKey(spectators)
        result: dict[ModeKey, Amplitude] = {}
        for key, amp in branches.items():
            amp = amp * key.normalization_factor((a, b))
            if abs(amp) > tol:
                result[key + rest] = amp
        return result

    def apply_single_phase(self, phase: Amplitude, mode: int) -> Amplitude:
        """Amplitude factor of a diagonal one-mode operator: ``phase ** n``."""
        return phase ** self.spatial_occupation(mode)

    def swap_spatial_modes(self, a: int, b: int) -> ModeKey:
        """Relabel spatial modes ``a`` and ``b`` (a waveguide crossing)."""

        def relabel(mode: int) -> int:
            if mode == a:
                return b
            if mode == b:
                return a
            return mode

        return ModeKey(((relabel(m), d), n) for (m, d), n in self._entries)

    def apply_loss(
        self, modes: Sequence[int], loss_floor: int
    ) -> tuple[dict[ModeKey, Amplitude], int]:
        """Lose exactly one photon, chosen uniformly among those on ``modes``.

        The lost photon keeps its dmode and moves to the environment mode
        ``loss_floor + modes.index(spatial_mode)``.

        Returns:
            The branch map and the next free spatial mode (one past the highest
            environment mode used, or ``loss_floor`` when nothing was lost).
            With no photon on ``modes`` the branch map is ``{self: 1.0}``.
        """
        modes = list(modes)
        branches: dict[ModeKey, Amplitude] = {}
        total = 0
        next_free = loss_floor
        for (mode, dmode), count in self._entries:
            if mode not in modes:
                continue
            environment = loss_floor + modes.index(mode)
            lossy = ModeKey(
                chain(
                    self._entries,
                    [((mode, dmode), -1), ((environment, dmode), 1)],
                )
            )
            branches[lossy] = branches.get(lossy, 0.0) + math.sqrt(count)
            total += count
            next_free = max(next_free, environment + 1)

        if total == 0:
            return {self: 1.0}, loss_floor
        scale = 1.0 / math.sqrt(total)
        return {key: amp * scale for key, amp in branches.items()}, next_free

    def overlaps_with_pattern(self, pattern: OccupationPattern) -> bool:
        """True if every spatial mode in ``pattern`` holds exactly that many photons."""
        occupations = self.spatial_occupations()
        return all(
            occupations.get(mode, 0) == required for mode, required in pattern.items()
        )

    def has_occupation_in_any_group(self, groups: Sequence[Iterable[int]]) -> bool:
        """Heralding test: some group has every one of its modes occupied.

        Vacuously true when ``groups`` is empty.
        """
        if len(groups) == 0:
            return True
        occupations = self.spatial_occupations()
        return any(
            all(occupations.get(mode, 0) > 0 for mode in group) for group in groups
        )

    def collapse_distinguishability(
        self, mapping: Mapping[int, int]
    ) -> tuple[ModeKey, float]:
        """Relabel dmodes through ``mapping`` and merge coinciding entries.

        Returns:
            The collapsed key and the factor by which its amplitude must be
            multiplied to keep the bosonic normalisation consistent.

        Raises:
            DistinguishabilityMappingError: If a present dmode is not mapped.
        """
        before = self.normalization_factor()
        try:
            collapsed = ModeKey(((m, mapping[d]), n) for (m, d), n in self._entries)
        except KeyError as exc:
            raise DistinguishabilityMappingError(
                f"No target label for distinguishability mode {exc.args[0]}"
            ) from None
        return collapsed, collapsed.normalization_factor() / before

    def project_same_label_and_strip(self, modes: Sequence[int]) -> ModeKey | None:
        """Strip ``modes`` if they are all occupied in one common dmode.

        Returns:
            The key without the entries on ``modes``, or ``None`` when the
            occupied entries on ``modes`` carry different dmodes or do not
            cover every mode in ``modes``.
        """
        label: int | None = None
        found = 0
        kept: list[tuple[ModePair, int]] = []
        for (mode, dmode), count in self._entries:
            if mode in modes:
                if label is None:
                    label = dmode
                elif dmode != label:
                    return None
                found += 1
            else:
                kept.append(((mode, dmode), count))
        if found != len(modes):
            return None
        return ModeKey(kept)


__all__ = [
    "Amplitude",
    "DistinguishabilityMappingError",
    "ModeKey",
    "ModePair",
    "OccupationPattern",
]
