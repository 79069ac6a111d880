# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: LicenseRef-NvidiaProprietary
#
# NVIDIA CORPORATION, its affiliates and licensors retain all intellectual
# property and proprietary rights in and to this material, related
# documentation and any modifications thereto. Any use, reproduction,
# disclosure or distribution of this material and related documentation
# without an express license agreement from NVIDIA CORPORATION or
# its affiliates is strictly prohibited.

"""
Hexahedron (8-node brick, trilinear) element in a 3D world.

Node ordering follows VTK convention:
    7-------6
   /|      /|
  4-------5 |
  | |     | |
  | 3-----|-2
  |/      |/
  0-------1

Local coordinates: r, s, t ∈ [-1, 1]
  Node 0: (-1, -1, -1)
  Node 1: ( 1, -1, -1)
  Node 2: ( 1,  1, -1)
  Node 3: (-1,  1, -1)
  Node 4: (-1, -1,  1)
  Node 5: ( 1, -1,  1)
  Node 6: ( 1,  1,  1)
  Node 7: (-1,  1,  1)
"""

import numpy as np
import warp as wp

NAME = "hexa_8"
NUM_NODES = 8
DIMENSION = 3

vec_t = wp.types.vector(length=DIMENSION, dtype=wp.float64)
weights_t = wp.types.vector(length=NUM_NODES, dtype=wp.float64)
derivatives_t = wp.types.matrix(shape=(NUM_NODES, DIMENSION), dtype=wp.float64)

REFERENCE_NODES = np.array(
    [
        [-1.0, -1.0, -1.0],
        [1.0, -1.0, -1.0],
        [1.0, 1.0, -1.0],
        [-1.0, 1.0, -1.0],
        [-1.0, -1.0, 1.0],
        [1.0, -1.0, 1.0],
        [1.0, 1.0, 1.0],
        [-1.0, 1.0, 1.0],
    ]
)
CENTER = np.array([0.0, 0.0, 0.0])
GAUSS_NODES = REFERENCE_NODES / np.sqrt(3.0)
GAUSS_WEIGHTS = np.ones(8)


@wp.func
def shape_functions(xi: vec_t) -> weights_t:
    """
    Compute trilinear shape functions for hexahedron.

    Args:
        xi: Local coordinates (r, s, t) in [-1, 1]³

    Returns:
        Shape function values at each of the 8 nodes
    """
    rm = wp.float64(1.0) - xi[0]
    rp = wp.float64(1.0) + xi[0]
    sm = wp.float64(1.0) - xi[1]
    sp = wp.float64(1.0) + xi[1]
    tm = wp.float64(1.0) - xi[2]
    tp = wp.float64(1.0) + xi[2]
    e = wp.float64(0.125)

    weights = weights_t()
    weights[0] = e * rm * sm * tm
    weights[1] = e * rp * sm * tm
    weights[2] = e * rp * sp * tm
    weights[3] = e * rm * sp * tm
    weights[4] = e * rm * sm * tp
    weights[5] = e * rp * sm * tp
    weights[6] = e * rp * sp * tp
    weights[7] = e * rm * sp * tp
    return weights


@wp.func
def shape_derivatives(xi: vec_t) -> derivatives_t:
    """
    Compute derivatives of shape functions with respect to local coordinates.

    Args:
        xi: Local coordinates (r, s, t) in [-1, 1]³

    Returns:
        8x3 matrix where row i contains [dN_i/dr, dN_i/ds, dN_i/dt]
    """
    rm = wp.float64(1.0) - xi[0]
    rp = wp.float64(1.0) + xi[0]
    sm = wp.float64(1.0) - xi[1]
    sp = wp.float64(1.0) + xi[1]
    tm = wp.float64(1.0) - xi[2]
    tp = wp.float64(1.0) + xi[2]
    e = wp.float64(0.125)

    derivs = derivatives_t()

    # Node 0: (-1, -1, -1)
    derivs[0, 0] = -e * sm * tm
    derivs[0, 1] = -e * rm * tm
    derivs[0, 2] = -e * rm * sm

    # Node 1: (1, -1, -1)
    derivs[1, 0] = e * sm * tm
    derivs[1, 1] = -e * rp * tm
    derivs[1, 2] = -e * rp * sm

    # Node 2: (1, 1, -1)
    derivs[2, 0] = e * sp * tm
    derivs[2, 1] = e * rp * tm
    derivs[2, 2] = -e * rp * sp

    # Node 3: (-1, 1, -1)
    derivs[3, 0] = -e * sp * tm
    derivs[3, 1] = e * rm * tm
    derivs[3, 2] = -e * rm * sp

    # Node 4: (-1, -1, 1)
    derivs[4, 0] = -e * sm * tp
    derivs[4, 1] = -e * rm * tp
    derivs[4, 2] = e * rm * sm

    # Node 5: (1, -1, 1)
    derivs[5, 0] = e * sm * tp
    derivs[5, 1] = -e * rp * tp
    derivs[5, 2] = e * rp * sm

    # Node 6: (1, 1, 1)
    derivs[6, 0] = e * sp * tp
    derivs[6, 1] = e * rp * tp
    derivs[6, 2] = e * rp * sp

    # Node 7: (-1, 1, 1)
    derivs[7, 0] = -e * sp * tp
    derivs[7, 1] = e * rm * tp
    derivs[7, 2] = e * rm * sp

    return derivs


@wp.func
def center() -> vec_t:
    return vec_t(wp.float64(0.0), wp.float64(0.0), wp.float64(0.0))


@wp.func
def is_inside(xi: vec_t, tolerance: wp.float64) -> bool:
    """
    Check if local coordinates are inside the hexahedron.

    Args:
        xi: Local coordinates (r, s, t)
        tolerance: Tolerance for boundary checking

    Returns:
        True if inside, False otherwise
    """
    bound = wp.float64(1.0) + tolerance
    return wp.abs(xi[0]) <= bound and wp.abs(xi[1]) <= bound and wp.abs(xi[2]) <= bound
