# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: LicenseRef-NvidiaProprietary
#
# NVIDIA CORPORATION, its affiliates and licensors retain all intellectual
# property and proprietary rights in and to this material, related
# documentation and any modifications thereto. Any use, reproduction,
# disclosure or distribution of this material and related documentation
# without an express license agreement from NVIDIA CORPORATION or
# its affiliates is strictly prohibited.

"""Small meshes shared by the tests."""

import numpy as np
from meshlocate import Mesh
from meshlocate.elements import hexa_8, quad_4, tetra_4, tri_3

GRID_CONNECTIVITY = [[0, 1, 4, 3], [1, 2, 5, 4], [3, 4, 7, 6], [4, 5, 8, 7]]
"""Four quads over a 3x3 node grid, nodes numbered row by row."""


def grid_positions(size: float = 5.0) -> np.ndarray:
    """Nodes of a 3x3 grid spanning [-size, size]^2, numbered row by row from the bottom left."""
    coords = np.array([-size, 0.0, size])
    return np.array([[x, y] for y in coords for x in coords])


def quad_grid(size: float = 5.0) -> Mesh:
    mesh = Mesh(grid_positions(size))
    mesh.add_domain(quad_4, GRID_CONNECTIVITY)
    return mesh


def distorted_quad_grid() -> Mesh:
    """The 3x3 quad grid over [-5, 5]^2 with its middle node moved off center (non-affine elements)."""
    positions = grid_positions()
    positions[4] = [0.7, -0.4]
    mesh = Mesh(positions)
    mesh.add_domain(quad_4, GRID_CONNECTIVITY)
    return mesh


def tri_grid() -> Mesh:
    """The 3x3 grid over [-5, 5]^2 with every quad split along its 0-2 diagonal."""
    connectivity = []
    for a, b, c, d in GRID_CONNECTIVITY:
        connectivity.append([a, b, c])
        connectivity.append([a, c, d])
    mesh = Mesh(grid_positions())
    mesh.add_domain(tri_3, connectivity)
    return mesh


def unit_cube_positions() -> np.ndarray:
    return np.array(
        [
            [0.0, 0.0, 0.0],
            [1.0, 0.0, 0.0],
            [1.0, 1.0, 0.0],
            [0.0, 1.0, 0.0],
            [0.0, 0.0, 1.0],
            [1.0, 0.0, 1.0],
            [1.0, 1.0, 1.0],
            [0.0, 1.0, 1.0],
        ]
    )


def tetra_cube() -> Mesh:
    """The unit cube split into six tetrahedra around its 0-6 diagonal."""
    mesh = Mesh(unit_cube_positions())
    mesh.add_domain(
        tetra_4,
        [[0, 1, 2, 6], [0, 1, 5, 6], [0, 3, 2, 6], [0, 3, 7, 6], [0, 4, 5, 6], [0, 4, 7, 6]],
    )
    return mesh


def hexa_grid(n: int = 2, size: float = 1.0) -> Mesh:
    """A regular n x n x n hexahedral grid over [0, size]^3."""
    coords = np.linspace(0.0, size, n + 1)
    positions = np.array([[x, y, z] for z in coords for y in coords for x in coords])

    def node(i, j, k):
        return i + (n + 1) * (j + (n + 1) * k)

    connectivity = []
    for k in range(n):
        for j in range(n):
            for i in range(n):
                connectivity.append(
                    [
                        node(i, j, k),
                        node(i + 1, j, k),
                        node(i + 1, j + 1, k),
                        node(i, j + 1, k),
                        node(i, j, k + 1),
                        node(i + 1, j, k + 1),
                        node(i + 1, j + 1, k + 1),
                        node(i, j + 1, k + 1),
                    ]
                )
    mesh = Mesh(positions)
    mesh.add_domain(hexa_8, connectivity)
    return mesh


def linear_field(positions: np.ndarray) -> np.ndarray:
    """A field every element type reproduces exactly: one affine scalar per node."""
    coefficients = np.array([1.5, -2.0, 0.5])[: positions.shape[1]]
    return positions @ coefficients + 3.0
