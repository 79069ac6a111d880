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
Tetrahedron (4-node, linear) element in a 3D world.

Node ordering follows VTK convention:
       3
      /|\\
     / | \\
    /  |  \\
   /   |   \\
  0----|----2
   \\   |   /
    \\  |  /
     \\ | /
      \\|/
       1

Local coordinates are barycentric (r, s, t); the fourth coordinate is
implicit: 1 - r - s - t.

  Node 0: r=0, s=0, t=0
  Node 1: r=1, s=0, t=0
  Node 2: r=0, s=1, t=0
  Node 3: r=0, s=0, t=1
"""

import numpy as np
import warp as wp

NAME = "tetra_4"
NUM_NODES = 4
DIMENSION = 3

vec_t = wp.types.vector(length=DIMENSION, dtype=wp.float64)
weights_t = wp.types.vector(length=NUM_NODES, dtype=wp.float64)
derivatives_t = wp.types.matrix(shape=(NUM_NODES, DIMENSION), dtype=wp.float64)

REFERENCE_NODES = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]])
CENTER = np.array([0.25, 0.25, 0.25])

_a = 0.1381966011250105
_b = 0.5854101966249685
GAUSS_NODES = np.array([[_a, _a, _a], [_b, _a, _a], [_a, _b, _a], [_a, _a, _b]])
GAUSS_WEIGHTS = np.full(4, 1.0 / 24.0)


@wp.func
def shape_functions(xi: vec_t) -> weights_t:
    """
    Compute barycentric shape functions for tetrahedron.

    Args:
        xi: Local coordinates (r, s, t)

    Returns:
        Shape function values at each of the 4 nodes
    """
    weights = weights_t()
    weights[0] = wp.float64(1.0) - xi[0] - xi[1] - xi[2]
    weights[1] = xi[0]
    weights[2] = xi[1]
    weights[3] = xi[2]
    return weights


@wp.func
def shape_derivatives(xi: vec_t) -> derivatives_t:
    """
    Compute derivatives of shape functions with respect to local coordinates.

    For tetrahedron, the derivatives are constant (linear shape functions).

    Returns:
        4x3 matrix where row i contains [dN_i/dr, dN_i/ds, dN_i/dt]
    """
    derivs = derivatives_t()

    # Node 0: N0 = 1 - r - s - t
    derivs[0, 0] = wp.float64(-1.0)
    derivs[0, 1] = wp.float64(-1.0)
    derivs[0, 2] = wp.float64(-1.0)

    # Node 1: N1 = r
    derivs[1, 0] = wp.float64(1.0)

    # Node 2: N2 = s
    derivs[2, 1] = wp.float64(1.0)

    # Node 3: N3 = t
    derivs[3, 2] = wp.float64(1.0)

    return derivs


@wp.func
def center() -> vec_t:
    q = wp.float64(0.25)
    return vec_t(q, q, q)


@wp.func
def is_inside(xi: vec_t, tolerance: wp.float64) -> bool:
    """
    Check if barycentric coordinates are inside the tetrahedron.

    Args:
        xi: Local coordinates (r, s, t)
        tolerance: Tolerance for boundary checking

    Returns:
        True if inside, False otherwise
    """
    w = wp.float64(1.0) - xi[0] - xi[1] - xi[2]
    return xi[0] >= -tolerance and xi[1] >= -tolerance and xi[2] >= -tolerance and w >= -tolerance
