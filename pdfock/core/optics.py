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

"""Two-mode optical elements in line format.

The state algebra takes a two-mode unitary as the flat list
``[U00, U01, U10, U11]`` of a 2x2 matrix ``U`` whose column ``j`` describes
where a photon entering mode ``j`` goes. This is the convention of the
matrices returned by Perceval components, so their unitaries can be used
directly.
"""

from __future__ import annotations

import cmath
import math
import warnings
from typing import Any

import numpy as np
import perceval as pcvl  # type: ignore
import torch

from .mode_key import Amplitude


def as_line_unitary(
    matrix: Any, *, check: bool = False, tol: float = 1e-9
) -> list[Amplitude]:
    """Coerce a two-mode unitary into line format.

    Args:
        matrix: A 4-sequence already in line format, a 2x2 nested sequence,
            a numpy array, a Perceval matrix or a torch tensor.
        check: Warn when the matrix is not unitary within ``tol``.
        tol: Absolute tolerance of the unitarity check.

    Returns:
        list: Four python numbers; real when no entry has an imaginary part.

    Raises:
        ValueError: If the input is neither 2x2 nor of length 4.
    """
    if isinstance(matrix, torch.Tensor):
        array = matrix.detach().cpu().numpy()
    else:
        array = np.asarray(matrix)
    if array.shape == (2, 2):
        flat = array.reshape(4)
    elif array.shape == (4,):
        flat = array
    else:
        raise ValueError(
            f"Two-mode unitary must be 2x2 or of length 4, got shape {array.shape}"
        )

    if np.iscomplexobj(flat) and np.any(flat.imag != 0):
        line: list[Amplitude] = [complex(x) for x in flat]
    else:
        line = [float(np.real(x)) for x in flat]

    if check and not is_unitary(line, tol):
        warnings.warn(
            f"Two-mode matrix {line} is not unitary within tolerance {tol}",
            stacklevel=2,
        )
    return line


def line_to_matrix(line: list[Amplitude]) -> np.ndarray:
    """2x2 complex matrix of a line-format unitary."""
    return np.asarray(line, dtype=np.complex128).reshape(2, 2)


def is_unitary(line: list[Amplitude], tol: float = 1e-9) -> bool:
    """Check ``U U^dagger = 1`` for a line-format matrix."""
    matrix = line_to_matrix(line)
    return bool(np.allclose(matrix @ matrix.conj().T, np.eye(2), atol=tol))


def beam_splitter(theta: float = math.pi / 4) -> list[float]:
    """Real beam splitter ``[[cos, sin], [sin, -cos]]``; balanced at ``pi/4``."""
    c, s = math.cos(theta), math.sin(theta)
    return [c, s, s, -c]


def waveplate(angle_error: float = 0.0) -> list[float]:
    """Polarisation rotation set at 45 degrees plus a calibration error.

    Args:
        angle_error: Deviation from the nominal 45 degree setting, in degrees.
    """
    return beam_splitter(math.radians(45.0 + angle_error))


def phase_shifter(phi: float) -> complex:
    """Single-mode phase factor ``exp(i phi)``."""
    return cmath.exp(1j * phi)


def unitary_from_perceval(component: pcvl.ACircuit) -> list[Amplitude]:
    """Line-format unitary of a numeric two-mode Perceval component."""
    matrix = np.asarray(component.compute_unitary(), dtype=np.complex128)
    if matrix.shape != (2, 2):
        raise ValueError(
            f"Expected a two-mode component, got a {matrix.shape[0]}-mode unitary"
        )
    return as_line_unitary(matrix)


__all__ = [
    "as_line_unitary",
    "beam_splitter",
    "is_unitary",
    "line_to_matrix",
    "phase_shifter",
    "unitary_from_perceval",
    "waveplate",
]
