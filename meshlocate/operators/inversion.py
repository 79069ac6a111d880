# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: LicenseRef-NvidiaProprietary
#
# NVIDIA CORPORATION, its affiliates and licensors retain all intellectual
# property and proprietary rights in and to this material, related
# documentation and any modifications thereto. Any use, reproduction,
# disclosure or distribution of this material and related documentation
# without an express license agreement from NVIDIA CORPORATION or
# its affiliates is strictly prohibited.
r"""
This module inverts the isoparametric map for batches of (point, element) candidate pairs.

Every pair runs an independent Newton-Raphson iteration seeded at the
element's reference centroid. A pair is accepted when the residual
``|W(xi) - x|`` converged below the absolute tolerance and the converged
coordinates pass the element's membership test. A singular Jacobian, a
diverging iteration or an exhausted iteration budget only reject the pair.

Far from the origin the absolute tolerance can be finer than the spacing of
float64 values around the point, so it is floored at a few units in the last
place of the largest coordinate involved (query point or element node).
"""

from logging import getLogger

import numpy as np
import warp as wp

from .._helpers import cached
from ..timer import scoped_timer
from .mapping import get_mapping

logger = getLogger(__name__)

ROUNDOFF = 16.0 * float(np.finfo(np.float64).eps)
"""Relative floor of the residual tolerance, in units of the largest coordinate magnitude."""


@cached
def get_kernel(element_type):
    mapping = get_mapping(element_type)
    dimension = element_type.DIMENSION
    num_nodes = element_type.NUM_NODES
    vec_t = element_type.vec_t

    @wp.kernel(enable_backward=False)
    def invert_mapping(
        nodes: wp.array2d(dtype=wp.float64),
        connectivity: wp.array2d(dtype=wp.int32),
        points: wp.array2d(dtype=wp.float64),
        pair_points: wp.array(dtype=wp.int32),
        pair_elements: wp.array(dtype=wp.int32),
        tolerance: wp.float64,
        roundoff: wp.float64,
        inclusion_tolerance: wp.float64,
        max_iterations: wp.int32,
        local_coordinates: wp.array2d(dtype=wp.float64),
        inside: wp.array(dtype=wp.int32),
    ):
        tid = wp.tid()
        point_idx = pair_points[tid]
        element_id = pair_elements[tid]

        scale = wp.float64(0.0)
        target = vec_t()
        for d in range(dimension):
            target[d] = points[point_idx, d]
            scale = wp.max(scale, wp.abs(target[d]))
        for n in range(num_nodes):
            node_id = connectivity[element_id, n]
            for d in range(dimension):
                scale = wp.max(scale, wp.abs(nodes[node_id, d]))
        limit = wp.max(tolerance, roundoff * scale)

        xi = element_type.center()
        converged = wp.int32(0)
        # one extra pass so that the last update is checked too
        for it in range(max_iterations + 1):
            residual = target - mapping.world_coordinates(nodes, connectivity, element_id, xi)
            if wp.length(residual) <= limit:
                converged = wp.int32(1)
                break
            if it == max_iterations:
                break

            jacobian = mapping.jacobian(nodes, connectivity, element_id, xi)
            if wp.abs(wp.determinant(jacobian)) < wp.float64(1.0e-300):
                break

            # Solve jacobian * delta = residual
            inverse = wp.inverse(jacobian)
            delta = vec_t()
            for i in range(dimension):
                for j in range(dimension):
                    delta[i] = delta[i] + inverse[i, j] * residual[j]
            xi = xi + delta

        for d in range(dimension):
            local_coordinates[tid, d] = xi[d]

        if converged == 1 and element_type.is_inside(xi, inclusion_tolerance):
            inside[tid] = 1
        else:
            inside[tid] = 0

    return invert_mapping


def compute(
    domain,
    points: np.ndarray,
    pair_points: np.ndarray,
    pair_elements: np.ndarray,
    tolerance: float,
    inclusion_tolerance: float,
    max_iterations: int,
    device=None,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Invert the isoparametric map of candidate elements at query points.

    Args:
        domain (meshlocate.Domain): The container domain.
        points (np.ndarray): Query points, shape (n, D), float64.
        pair_points (np.ndarray): Index into ``points`` for every candidate pair, shape (m,).
        pair_elements (np.ndarray): Element id for every candidate pair, shape (m,).
        tolerance (float): Absolute residual tolerance in world units, floored at
            ``ROUNDOFF`` times the largest coordinate magnitude of the pair.
        inclusion_tolerance (float): Reference-domain expansion used by the membership test.
        max_iterations (int): Newton-Raphson iteration budget per pair.
        device: Warp device to run on (default: current device).

    Returns:
        tuple[np.ndarray, np.ndarray]: Local coordinates per pair, shape (m, D), and a
        boolean mask, shape (m,), of the pairs whose element contains its point.
    """
    element_type = domain.element_type
    dimension = element_type.DIMENSION
    nb_pairs = pair_points.shape[0]
    if nb_pairs == 0:
        return np.empty((0, dimension)), np.empty((0,), dtype=bool)

    nodes, connectivity = domain.get_device_arrays(device)
    device = nodes.device

    with scoped_timer("inversion.allocate"):
        points_wp = wp.array(np.ascontiguousarray(points, dtype=np.float64), dtype=wp.float64, device=device)
        pair_points_wp = wp.array(pair_points, dtype=wp.int32, device=device)
        pair_elements_wp = wp.array(pair_elements, dtype=wp.int32, device=device)
        local_coordinates = wp.empty((nb_pairs, dimension), dtype=wp.float64, device=device)
        inside = wp.zeros((nb_pairs,), dtype=wp.int32, device=device)

    with scoped_timer("inversion.get_kernel"):
        kernel = get_kernel(element_type)

    with scoped_timer("inversion.launch", cuda_filter=wp.TIMING_ALL):
        wp.launch(
            kernel,
            dim=nb_pairs,
            inputs=[
                nodes,
                connectivity,
                points_wp,
                pair_points_wp,
                pair_elements_wp,
                wp.float64(tolerance),
                wp.float64(ROUNDOFF),
                wp.float64(inclusion_tolerance),
                wp.int32(max_iterations),
                local_coordinates,
                inside,
            ],
            device=device,
        )

    logger.debug(f"Inverted {nb_pairs} candidate pairs for {points.shape[0]} points")
    return local_coordinates.numpy(), inside.numpy().astype(bool)
