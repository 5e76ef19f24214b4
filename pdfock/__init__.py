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

"""
pdfock: sparse second-quantization algebra for partially distinguishable photons.
"""

from .core.export import (
    fock_basis,
    from_perceval,
    probability_tensor,
    to_bs_distribution,
    to_perceval,
)
from .core.mode_key import DistinguishabilityMappingError, ModeKey
from .core.optics import (
    as_line_unitary,
    beam_splitter,
    phase_shifter,
    unitary_from_perceval,
    waveplate,
)
from .core.quantum_state import QuantumState, collapse_and_renormalize
from .core.sources import PhotonSource, SourceLayout, make_sources, prepare_state
from .core.wave_functions import (
    GaussianOverlap,
    labelled_overlap,
    vector_overlap,
)
from .utils.combinatorics import OccupationRangeError

__version__ = "0.1.0"

__all__ = [
    "DistinguishabilityMappingError",
    "GaussianOverlap",
    "ModeKey",
    "OccupationRangeError",
    "PhotonSource",
    "QuantumState",
    "SourceLayout",
    "as_line_unitary",
    "beam_splitter",
    "collapse_and_renormalize",
    "fock_basis",
    "from_perceval",
    "labelled_overlap",
    "make_sources",
    "phase_shifter",
    "prepare_state",
    "probability_tensor",
    "to_bs_distribution",
    "to_perceval",
    "unitary_from_perceval",
    "vector_overlap",
    "waveplate",
]
