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

"""Sparse superpositions of partially distinguishable photon states.

:class:`QuantumState` stores ``sum_k amplitude_k |key_k>`` as a dictionary
from :class:`~pdfock.core.mode_key.ModeKey` to amplitude, together with the
orthonormal wave-function basis that gives meaning to the distinguishability
labels of its keys. Every operator fans out over the current terms, collects
the results in a fresh accumulator and swaps it in once complete, pruning
amplitudes whose magnitude does not exceed the configured tolerance.
"""

from __future__ import annotations

import logging
import math
from collections.abc import ItemsView, Iterable, Iterator, Mapping, Sequence
from types import MappingProxyType
from typing import Any

import torch

from ..utils.normalization import joint_rescale_factor
from .mode_key import Amplitude, ModeKey, OccupationPattern
from .optics import as_line_unitary
from .wave_functions import OverlapFunction, inner_product, overlap_with_descriptor

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 1e-9


def _accumulate(
    target: dict[ModeKey, Amplitude], key: ModeKey, amplitude: Amplitude
) -> None:
    target[key] = target.get(key, 0.0) + amplitude


def _unit(coefficients: list[Amplitude]) -> list[Amplitude]:
    norm_sq = sum(abs(c) ** 2 for c in coefficients)
    if norm_sq == 0:
        return coefficients
    scale = 1.0 / math.sqrt(norm_sq)
    return [c * scale for c in coefficients]


class QuantumState:
    """Superposition of Fock kets over spatial and distinguishability modes.

    Args:
        overlap_fn: Callable giving ``<first|second>`` for two wave-function
            descriptors. Only needed once photons with different descriptors
            are injected.
        tolerance: Amplitudes with magnitude at or below this value are
            dropped after every operation.
        loss_mode_floor: First spatial mode available for environment modes
            created by :meth:`loss`. Raised automatically past every spatial
            mode that receives a photon.
    """

    def __init__(
        self,
        overlap_fn: OverlapFunction | None = None,
        *,
        tolerance: float = DEFAULT_TOLERANCE,
        loss_mode_floor: int = 0,
    ) -> None:
        self._terms: dict[ModeKey, Amplitude] = {}
        self._wave_functions: list[Any] = []
        self._basis: list[list[Amplitude]] = []
        self.overlap_fn = overlap_fn
        self.tolerance = tolerance
        self.loss_mode_floor = loss_mode_floor

    @classmethod
    def from_key(
        cls, key: ModeKey, amplitude: Amplitude = 1.0, **kwargs: Any
    ) -> QuantumState:
        """State holding a single ket."""
        return cls.from_amplitudes({key: amplitude}, **kwargs)

    @classmethod
    def from_amplitudes(
        cls, amplitudes: Mapping[ModeKey, Amplitude], **kwargs: Any
    ) -> QuantumState:
        """State built from an explicit ``{ModeKey: amplitude}`` mapping.

        The loss-mode floor is raised past every spatial mode in use.
        """
        state = cls(**kwargs)
        for key, amplitude in amplitudes.items():
            state.set_amplitude(key, amplitude)
        used = [mode for key in state._terms for mode in key.spatial_modes()]
        if used:
            state.loss_mode_floor = max(state.loss_mode_floor, max(used) + 1)
        return state

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def overlap_fn(self) -> OverlapFunction | None:
        return self._overlap_fn

    @overlap_fn.setter
    def overlap_fn(self, value: OverlapFunction | None) -> None:
        if value is not None and not callable(value):
            raise TypeError(f"overlap_fn must be callable, got {type(value)}")
        self._overlap_fn = value

    @property
    def tolerance(self) -> float:
        return self._tolerance

    @tolerance.setter
    def tolerance(self, value: float) -> None:
        value = float(value)
        if value < 0:
            raise ValueError(f"tolerance must be non-negative, got {value}")
        self._tolerance = value

    @property
    def loss_mode_floor(self) -> int:
        return self._loss_mode_floor

    @loss_mode_floor.setter
    def loss_mode_floor(self, value: int) -> None:
        if value < 0:
            raise ValueError(f"loss_mode_floor must be non-negative, got {value}")
        self._loss_mode_floor = int(value)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def amplitudes(self) -> Mapping[ModeKey, Amplitude]:
        """Read-only view of the sparse ``{ModeKey: amplitude}`` map."""
        return MappingProxyType(self._terms)

    @property
    def wave_functions(self) -> tuple[Any, ...]:
        """Descriptors of the basis, indexed by distinguishability mode."""
        return tuple(self._wave_functions)

    @property
    def basis(self) -> tuple[tuple[Amplitude, ...], ...]:
        """Orthonormal basis vectors as coefficients over :attr:`wave_functions`."""
        return tuple(tuple(vector) for vector in self._basis)

    def items(self) -> ItemsView[ModeKey, Amplitude]:
        """Live view of the ``(ModeKey, amplitude)`` pairs."""
        return self._terms.items()

    def __len__(self) -> int:
        return len(self._terms)

    def __iter__(self) -> Iterator[ModeKey]:
        return iter(self._terms)

    def __contains__(self, key: object) -> bool:
        return key in self._terms

    def __getitem__(self, key: ModeKey) -> Amplitude:
        return self._terms.get(key, 0.0)

    def __bool__(self) -> bool:
        return bool(self._terms)

    def __repr__(self) -> str:
        return (
            f"QuantumState(terms={len(self._terms)}, "
            f"wave_functions={len(self._wave_functions)}, "
            f"norm={self.norm():.6g}, loss_mode_floor={self._loss_mode_floor})"
        )

    def copy(self) -> QuantumState:
        """Independent copy sharing configuration, basis and terms."""
        clone = self._empty_like()
        clone._terms = dict(self._terms)
        return clone

    def _empty_like(self) -> QuantumState:
        clone = QuantumState(
            self._overlap_fn,
            tolerance=self._tolerance,
            loss_mode_floor=self._loss_mode_floor,
        )
        clone._wave_functions = list(self._wave_functions)
        clone._basis = [list(vector) for vector in self._basis]
        return clone

    # ------------------------------------------------------------------
    # Sparse-vector arithmetic
    # ------------------------------------------------------------------

    def set_amplitude(self, key: ModeKey, amplitude: Amplitude) -> None:
        """Assign the amplitude of one ket, removing it when below tolerance."""
        if not isinstance(key, ModeKey):
            raise TypeError(f"Expected a ModeKey, got {type(key)}")
        if abs(amplitude) > self._tolerance:
            self._terms[key] = amplitude
        else:
            self._terms.pop(key, None)

    def norm(self) -> float:
        return math.sqrt(sum(abs(amp) ** 2 for amp in self._terms.values()))

    def probability(self) -> float:
        """Squared norm: the probability weight carried by this branch."""
        return sum(abs(amp) ** 2 for amp in self._terms.values())

    def clean(self) -> None:
        """Drop every term with ``|amplitude| <= tolerance``."""
        kept = {
            key: amp for key, amp in self._terms.items() if abs(amp) > self._tolerance
        }
        removed = len(self._terms) - len(kept)
        if removed:
            logger.debug(
                "Pruned %d terms below tolerance %g", removed, self._tolerance
            )
        self._terms = kept

    def _replace(self, terms: dict[ModeKey, Amplitude]) -> None:
        self._terms = terms
        self.clean()

    def mul(self, factor: Amplitude) -> None:
        """Scale every amplitude in place."""
        self._replace({key: amp * factor for key, amp in self._terms.items()})

    def normalize(self) -> None:
        """Rescale to unit norm; a zero state is left untouched."""
        norm = self.norm()
        if norm == 0:
            return
        self._replace({key: amp / norm for key, amp in self._terms.items()})

    def add(
        self,
        other: QuantumState | Mapping[ModeKey, Amplitude],
        factor: Amplitude = 1.0,
    ) -> None:
        """Accumulate ``factor * other`` into this state."""
        source = other.amplitudes if isinstance(other, QuantumState) else other
        terms = dict(self._terms)
        for key, amp in source.items():
            if not isinstance(key, ModeKey):
                raise TypeError(f"Expected a ModeKey, got {type(key)}")
            _accumulate(terms, key, factor * amp)
        self._replace(terms)

    # ------------------------------------------------------------------
    # Photon injection and the wave-function basis
    # ------------------------------------------------------------------

    def _require_overlap_fn(self) -> OverlapFunction:
        if self._overlap_fn is None:
            raise ValueError(
                "An overlap function is required to compare wave functions; "
                "set QuantumState.overlap_fn first"
            )
        return self._overlap_fn

    def _identical_index(self, wave_function: Any) -> int | None:
        overlap_fn = self._require_overlap_fn()
        for index, known in enumerate(self._wave_functions):
            if abs(abs(overlap_fn(wave_function, known)) - 1.0) <= self._tolerance:
                return index
        return None

    def extend_basis(self, wave_function: Any) -> list[Amplitude]:
        """Gram-Schmidt step for a new descriptor.

        Orthogonalises ``wave_function`` against the current basis, appends the
        normalised remainder as a new basis vector and records the descriptor.
        A descriptor lying in the span of the basis (squared remainder norm at
        or below tolerance) leaves the basis unchanged.

        Returns:
            list: Unit-norm coefficients of ``wave_function`` over the basis,
            one per distinguishability mode.
        """
        if not self._basis:
            self._wave_functions.append(wave_function)
            self._basis.append([1.0])
            return [1.0]
        overlap_fn = self._require_overlap_fn()
        waves = self._wave_functions
        decomposition = [
            overlap_with_descriptor(vector, wave_function, overlap_fn, waves)
            for vector in self._basis
        ]
        candidate: list[Amplitude] = [0.0] * len(waves)
        for coefficient, vector in zip(decomposition, self._basis):
            for j, component in enumerate(vector):
                candidate[j] -= coefficient * component
        candidate.append(1.0)

        extended = [*waves, wave_function]
        residual = abs(inner_product(candidate, candidate, overlap_fn, extended))
        if residual <= self._tolerance:
            logger.debug(
                "Wave function lies in the span of the %d-element basis",
                len(self._basis),
            )
            return _unit(decomposition)

        scale = 1.0 / math.sqrt(residual)
        vector = [component * scale for component in candidate]
        self._wave_functions.append(wave_function)
        self._basis.append(vector)
        decomposition.append(
            overlap_with_descriptor(vector, wave_function, overlap_fn, extended)
        )
        logger.debug("Basis grown to %d wave functions", len(self._basis))
        return _unit(decomposition)

    def add_photon(self, wave_function: Any, spatial_mode: int, count: int = 1) -> None:
        """Inject ``count`` photons with the given wave function into a mode.

        A descriptor identical to a known one (overlap of magnitude 1) reuses
        its distinguishability mode. Otherwise the basis is extended and every
        term branches over the basis elements the descriptor decomposes into.
        """
        if count <= 0:
            raise ValueError(f"Photon count must be positive, got {count}")
        if spatial_mode < 0:
            raise ValueError(f"Spatial mode must be non-negative, got {spatial_mode}")
        if spatial_mode >= self._loss_mode_floor:
            self._loss_mode_floor = spatial_mode + 1

        if not self._wave_functions:
            self.extend_basis(wave_function)
            source = self._terms or {ModeKey(): 1.0}
            self._terms = {
                key.with_photons(spatial_mode, 0, count): amp
                for key, amp in source.items()
            }
            return

        index = self._identical_index(wave_function)
        if index is not None:
            self._terms = {
                key.with_photons(spatial_mode, index, count): amp
                for key, amp in self._terms.items()
            }
            return

        decomposition = self.extend_basis(wave_function)
        terms: dict[ModeKey, Amplitude] = {}
        for key, amp in self._terms.items():
            for dmode, coefficient in enumerate(decomposition):
                if abs(coefficient) <= self._tolerance:
                    continue
                _accumulate(
                    terms, key.with_photons(spatial_mode, dmode, count), amp * coefficient
                )
        self._replace(terms)

    # ------------------------------------------------------------------
    # Circuit operators
    # ------------------------------------------------------------------

    def _reserve_modes(self, modes: Iterable[int]) -> None:
        highest = max(modes, default=-1)
        if highest >= self._loss_mode_floor:
            self._loss_mode_floor = highest + 1

    def apply_two_mode_unitary(self, unitary: Any, modes: Sequence[int]) -> None:
        """Apply a two-mode unitary (see :func:`~pdfock.core.optics.as_line_unitary`)."""
        line = as_line_unitary(unitary)
        terms: dict[ModeKey, Amplitude] = {}
        for key, amp in self._terms.items():
            for branch, branch_amp in key.apply_two_mode_unitary(
                line, modes, self._tolerance
            ).items():
                _accumulate(terms, branch, amp * branch_amp)
        self._reserve_modes(modes)
        self._replace(terms)

    def apply_single_phase(self, phase: Amplitude, mode: int) -> None:
        """Multiply each term by ``phase ** n`` for ``n`` photons on ``mode``."""
        self._replace(
            {
                key: amp * key.apply_single_phase(phase, mode)
                for key, amp in self._terms.items()
            }
        )

    def swap(self, a: int, b: int) -> None:
        """Exchange spatial modes ``a`` and ``b``."""
        terms: dict[ModeKey, Amplitude] = {}
        for key, amp in self._terms.items():
            _accumulate(terms, key.swap_spatial_modes(a, b), amp)
        self._reserve_modes((a, b))
        self._replace(terms)

    def loss(self, modes: Sequence[int]) -> None:
        """Lose one photon from ``modes`` into fresh environment modes.

        Environment modes start at :attr:`loss_mode_floor` (raised past
        ``modes`` first), one per entry of ``modes``; the floor is then raised
        past the environment modes used.
        """
        modes = list(modes)
        floor = max([self._loss_mode_floor, *(mode + 1 for mode in modes)])
        terms: dict[ModeKey, Amplitude] = {}
        next_free = floor
        for key, amp in self._terms.items():
            branches, key_next = key.apply_loss(modes, floor)
            next_free = max(next_free, key_next)
            for branch, branch_amp in branches.items():
                _accumulate(terms, branch, amp * branch_amp)
        if next_free > self._loss_mode_floor:
            logger.debug(
                "Loss on modes %s raised the environment floor from %d to %d",
                modes,
                self._loss_mode_floor,
                next_free,
            )
            self._loss_mode_floor = next_free
        self._replace(terms)

    # ------------------------------------------------------------------
    # Measurement filters
    # ------------------------------------------------------------------

    def overlap_with_filter(
        self,
        pattern: OccupationPattern,
        postselect_groups: Sequence[Iterable[int]],
        fidelity_refs: Sequence[OccupationPattern],
    ) -> QuantumState:
        """Split off the terms consistent with a measurement outcome.

        Terms matching ``pattern`` and heralded by ``postselect_groups`` stay in
        this state when they also match one of ``fidelity_refs``; the remaining
        heralded terms are moved to the returned state. All other terms are
        discarded.
        """
        kept: dict[ModeKey, Amplitude] = {}
        orthogonal: dict[ModeKey, Amplitude] = {}
        for key, amp in self._terms.items():
            if not key.overlaps_with_pattern(pattern):
                continue
            if not key.has_occupation_in_any_group(postselect_groups):
                continue
            if any(key.overlaps_with_pattern(ref) for ref in fidelity_refs):
                kept[key] = amp
            else:
                orthogonal[key] = amp
        branch = self._empty_like()
        branch._terms = orthogonal
        self._terms = kept
        return branch

    def overlap_complement(
        self,
        patterns: Sequence[OccupationPattern],
        postselect_groups: Sequence[Iterable[int]] = (),
    ) -> None:
        """Keep only the terms no filter over ``patterns`` would accept."""
        self._terms = {
            key: amp
            for key, amp in self._terms.items()
            if not any(key.overlaps_with_pattern(ref) for ref in patterns)
            or not key.has_occupation_in_any_group(postselect_groups)
        }

    def not_empty(self, groups: Sequence[Iterable[int]]) -> None:
        """Post-select on ``groups`` and renormalise."""
        self._terms = {
            key: amp
            for key, amp in self._terms.items()
            if key.has_occupation_in_any_group(groups)
        }
        self.normalize()

    def same_dmode_delete(
        self, groups: Sequence[Sequence[int]], factors: Sequence[Amplitude]
    ) -> None:
        """Project onto terms whose heralded modes share one dmode.

        For every term the groups are tried in order; the first group whose
        modes are all occupied in a single dmode is stripped from the key and
        the amplitude multiplied by the matching factor. Terms matching no
        group are dropped.
        """
        if len(groups) != len(factors):
            raise ValueError(
                f"Got {len(groups)} mode groups but {len(factors)} factors"
            )
        terms: dict[ModeKey, Amplitude] = {}
        for key, amp in self._terms.items():
            for group, factor in zip(groups, factors):
                stripped = key.project_same_label_and_strip(group)
                if stripped is not None:
                    _accumulate(terms, stripped, amp * factor)
                    break
        self._replace(terms)

    def collapse(self, template_key: ModeKey) -> None:
        """Re-project onto the distinguishability classes of ``template_key``.

        Distinguishability mode ``j`` is mapped to the dmode of the ``j``-th
        entry of ``template_key`` (in key order); kets that coincide after
        relabelling are merged.
        """
        mapping = {index: dmode for index, (_, dmode) in enumerate(template_key)}
        terms: dict[ModeKey, Amplitude] = {}
        for key, amp in self._terms.items():
            collapsed, factor = key.collapse_distinguishability(mapping)
            _accumulate(terms, collapsed, amp * factor)
        self._replace(terms)


def collapse_and_renormalize(
    template_key: ModeKey,
    states: Sequence[QuantumState],
    extra: Sequence[QuantumState] = (),
) -> float:
    """Collapse a family of branches and renormalise it jointly.

    Every state in ``states`` and ``extra`` is collapsed with ``template_key``.
    The ``states`` are then scaled by a common factor so that the total
    probability of ``states`` and ``extra`` together is one; ``extra`` keeps
    its amplitudes. A family without probability mass is left unscaled.

    Returns:
        float: The common scale factor applied to ``states``.
    """
    for state in (*states, *extra):
        state.collapse(template_key)
    norms = torch.tensor(
        [state.norm() for state in (*states, *extra)], dtype=torch.float64
    )
    factor = joint_rescale_factor(norms)
    if factor != 1.0:
        for state in states:
            state.mul(factor)
    return factor


__all__ = ["DEFAULT_TOLERANCE", "QuantumState", "collapse_and_renormalize"]
