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

"""End-to-end Hong-Ou-Mandel interference with partially distinguishable photons."""

import math

import numpy as np
import perceval as pcvl
import pytest

from pdfock import (
    GaussianOverlap,
    ModeKey,
    PhotonSource,
    beam_splitter,
    labelled_overlap,
    prepare_state,
    probability_tensor,
    to_bs_distribution,
    unitary_from_perceval,
    vector_overlap,
)


def hom_state(first, second, overlap_fn, unitary=None):
    state = prepare_state(
        [PhotonSource(0, first), PhotonSource(1, second)], overlap_fn
    )
    state.apply_two_mode_unitary(unitary or beam_splitter(), (0, 1))
    return state


def coincidence(state) -> float:
    return float(probability_tensor(state, 2)[1])


def test_identical_photons_bunch():
    state = hom_state(("a", 0.0), ("a", 0.0), labelled_overlap)
    assert ModeKey({(0, 0): 1, (1, 0): 1}) not in state
    assert abs(state[ModeKey({(0, 0): 2})]) == pytest.approx(1 / math.sqrt(2))
    assert abs(state[ModeKey({(1, 0): 2})]) == pytest.approx(1 / math.sqrt(2))


def test_orthogonal_photons_do_not_interfere():
    state = hom_state(("a", 0.0), ("b", 0.0), labelled_overlap)
    assert coincidence(state) == pytest.approx(0.5)
    assert state.norm() == pytest.approx(1.0)


@pytest.mark.parametrize("overlap", [0.0, 0.3, 0.6, 0.9, 1.0])
def test_coincidence_follows_overlap(overlap):
    state = hom_state(("a", overlap), ("b", overlap), labelled_overlap)
    assert coincidence(state) == pytest.approx((1 - overlap**2) / 2, abs=1e-9)
    assert float(probability_tensor(state, 2).sum()) == pytest.approx(1.0)


@pytest.mark.parametrize("delay", [0.0, 0.5, 2.0])
def test_time_delayed_gaussian_packets(delay):
    overlap_fn = GaussianOverlap(sigma=1.0)
    state = hom_state((0.0, 0.0), (delay, 0.0), overlap_fn)
    overlap = math.exp(-(delay**2) / 8)
    assert coincidence(state) == pytest.approx((1 - overlap**2) / 2, abs=1e-9)


def test_internal_state_vectors(random_internal_state):
    first, second = random_internal_state(4), random_internal_state(4)
    state = hom_state(first, second, vector_overlap)
    overlap = abs(np.vdot(first, second))
    assert coincidence(state) == pytest.approx((1 - overlap**2) / 2, abs=1e-9)


def test_perceval_beam_splitter():
    unitary = unitary_from_perceval(pcvl.BS())
    state = hom_state(("a", 0.0), ("a", 0.0), labelled_overlap, unitary)
    dist = to_bs_distribution(state, 2)
    probs = {tuple(int(v) for v in bs): dist[bs] for bs in dist}
    assert probs.get((1, 1), 0.0) == pytest.approx(0.0, abs=1e-9)
    assert probs[(2, 0)] == pytest.approx(0.5)
    assert probs[(0, 2)] == pytest.approx(0.5)


def test_loss_after_interference_keeps_probability():
    state = hom_state(("a", 0.5), ("b", 0.5), labelled_overlap)
    state.loss([0, 1])
    assert state.norm() == pytest.approx(1.0)
    assert state.loss_mode_floor == 4
    assert all(key.total_photons() == 2 for key in state)
    assert all(key.spatial_occupation(2) + key.spatial_occupation(3) == 1 for key in state)


def test_collapse_with_identity_template_is_noop():
    state = hom_state(("a", 0.5), ("b", 0.5), labelled_overlap)
    before = dict(state.amplitudes)
    state.collapse(ModeKey({(0, 0): 1, (1, 1): 1}))
    assert dict(state.amplitudes) == pytest.approx(before)
