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
Quadrangle (4-node, bilinear) element in a 2D world.

Node ordering is counter-clockwise:

  3-----------2
  |           |
  |           |
  |           |
  0-----------1

Local coordinates: u, v ∈ [-1, 1]
  Node 0: (-1, -1)
  Node 1: ( 1, -1)
  Node 2: ( 1,  1)
  Node 3: (-1,  1)
"""

import numpy as np
import warp as wp

NAME = "quad_4"
NUM_NODES = 4
DIMENSION = 2

vec_t = wp.types.vector(length=DIMENSION, dtype=wp.float64)
weights_t = wp.types.vector(length=NUM_NODES, dtype=wp.float64)
derivatives_t = wp.types.matrix(shape=(NUM_NODES, DIMENSION), dtype=wp.float64)

REFERENCE_NODES = np.array([[-1.0, -1.0], [1.0, -1.0], [1.0, 1.0], [-1.0, 1.0]])
CENTER = np.array([0.0, 0.0])

_g = 1.0 / np.sqrt(3.0)
GAUSS_NODES = np.array([[-_g, -_g], [_g, -_g], [_g, _g], [-_g, _g]])
GAUSS_WEIGHTS = np.array([1.0, 1.0, 1.0, 1.0])


@wp.func
def shape_functions(xi: vec_t) -> weights_t:
    """
    Compute bilinear shape functions.

    Args:
        xi: Local coordinates (u, v) in [-1, 1]²

    Returns:
        Shape function values at each of the 4 nodes
    """
    um = wp.float64(1.0) - xi[0]
    up = wp.float64(1.0) + xi[0]
    vm = wp.float64(1.0) - xi[1]
    vp = wp.float64(1.0) + xi[1]
    q = wp.float64(0.25)

    weights = weights_t()
    weights[0] = q * um * vm
    weights[1] = q * up * vm
    weights[2] = q * up * vp
    weights[3] = q * um * vp
    return weights


@wp.func
def shape_derivatives(xi: vec_t) -> derivatives_t:
    """
    Compute derivatives of the shape functions with respect to (u, v).

    Returns:
        4x2 matrix where row i contains [dN_i/du, dN_i/dv]
    """
    um = wp.float64(1.0) - xi[0]
    up = wp.float64(1.0) + xi[0]
    vm = wp.float64(1.0) - xi[1]
    vp = wp.float64(1.0) + xi[1]
    q = wp.float64(0.25)

    derivs = derivatives_t()
    derivs[0, 0] = -q * vm
    derivs[0, 1] = -q * um
    derivs[1, 0] = q * vm
    derivs[1, 1] = -q * up
    derivs[2, 0] = q * vp
    derivs[2, 1] = q * up
    derivs[3, 0] = -q * vp
    derivs[3, 1] = q * um
    return derivs


@wp.func
def center() -> vec_t:
    return vec_t(wp.float64(0.0), wp.float64(0.0))


@wp.func
def is_inside(xi: vec_t, tolerance: wp.float64) -> bool:
    bound = wp.float64(1.0) + tolerance
    return wp.abs(xi[0]) <= bound and wp.abs(xi[1]) <= bound
