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
Triangle (3-node, linear) element in a 2D world.

  2
  |\\
  | \\
  |  \\
  0---1

Local coordinates are barycentric (u, v); the third coordinate is 1 - u - v.
  Node 0: (0, 0)
  Node 1: (1, 0)
  Node 2: (0, 1)
"""

import numpy as np
import warp as wp

NAME = "tri_3"
NUM_NODES = 3
DIMENSION = 2

vec_t = wp.types.vector(length=DIMENSION, dtype=wp.float64)
weights_t = wp.types.vector(length=NUM_NODES, dtype=wp.float64)
derivatives_t = wp.types.matrix(shape=(NUM_NODES, DIMENSION), dtype=wp.float64)

REFERENCE_NODES = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
CENTER = np.array([1.0 / 3.0, 1.0 / 3.0])
GAUSS_NODES = np.array([[1.0 / 6.0, 1.0 / 6.0], [2.0 / 3.0, 1.0 / 6.0], [1.0 / 6.0, 2.0 / 3.0]])
GAUSS_WEIGHTS = np.array([1.0 / 6.0, 1.0 / 6.0, 1.0 / 6.0])


@wp.func
def shape_functions(xi: vec_t) -> weights_t:
    weights = weights_t()
    weights[0] = wp.float64(1.0) - xi[0] - xi[1]
    weights[1] = xi[0]
    weights[2] = xi[1]
    return weights


@wp.func
def shape_derivatives(xi: vec_t) -> derivatives_t:
    """Constant gradients of the linear shape functions (xi is unused)."""
    derivs = derivatives_t()
    derivs[0, 0] = wp.float64(-1.0)
    derivs[0, 1] = wp.float64(-1.0)
    derivs[1, 0] = wp.float64(1.0)
    derivs[1, 1] = wp.float64(0.0)
    derivs[2, 0] = wp.float64(0.0)
    derivs[2, 1] = wp.float64(1.0)
    return derivs


@wp.func
def center() -> vec_t:
    third = wp.float64(1.0) / wp.float64(3.0)
    return vec_t(third, third)


@wp.func
def is_inside(xi: vec_t, tolerance: wp.float64) -> bool:
    w = wp.float64(1.0) - xi[0] - xi[1]
    return xi[0] >= -tolerance and xi[1] >= -tolerance and w >= -tolerance
