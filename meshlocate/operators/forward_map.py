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
This module provides the forward isoparametric map for batches of (element, local coordinates) pairs.
"""

import numpy as np
import warp as wp

from .._helpers import cached
from ..errors import DimensionMismatchError
from ..timer import scoped_timer
from .mapping import get_mapping


@cached
def get_kernel(element_type):
    mapping = get_mapping(element_type)
    dimension = element_type.DIMENSION
    vec_t = element_type.vec_t

    @wp.kernel(enable_backward=False)
    def forward_map(
        nodes: wp.array2d(dtype=wp.float64),
        connectivity: wp.array2d(dtype=wp.int32),
        element_ids: wp.array(dtype=wp.int32),
        local_coordinates: wp.array2d(dtype=wp.float64),
        world_coordinates: wp.array2d(dtype=wp.float64),
    ):
        tid = wp.tid()
        xi = vec_t()
        for d in range(dimension):
            xi[d] = local_coordinates[tid, d]
        x = mapping.world_coordinates(nodes, connectivity, element_ids[tid], xi)
        for d in range(dimension):
            world_coordinates[tid, d] = x[d]

    return forward_map


def compute(domain, element_ids, local_coordinates, device=None) -> np.ndarray:
    """
    Map local coordinates to world coordinates through the elements of a domain.

    Args:
        domain (meshlocate.Domain): The domain owning the elements.
        element_ids: Element id per sample, shape (m,).
        local_coordinates: Local coordinates per sample, shape (m, D).
        device: Warp device to run on (default: current device).

    Returns:
        np.ndarray: World coordinates, shape (m, D).

    Raises:
        DimensionMismatchError: If the local coordinates do not match the element dimension.
        IndexError: If an element id is out of range.
    """
    element_type = domain.element_type
    dimension = element_type.DIMENSION
    element_ids = np.ascontiguousarray(element_ids, dtype=np.int32).reshape(-1)
    local_coordinates = np.ascontiguousarray(local_coordinates, dtype=np.float64)
    if local_coordinates.ndim != 2 or local_coordinates.shape != (element_ids.shape[0], dimension):
        raise DimensionMismatchError(
            f"Expected local coordinates of shape ({element_ids.shape[0]}, {dimension}), got {local_coordinates.shape}"
        )
    if np.any(element_ids < 0) or np.any(element_ids >= domain.number_of_elements()):
        raise IndexError(f"Element id out of range [0, {domain.number_of_elements()})")

    nb_samples = element_ids.shape[0]
    if nb_samples == 0:
        return np.empty((0, dimension))

    nodes, connectivity = domain.get_device_arrays(device)
    device = nodes.device
    with scoped_timer("forward_map.launch", cuda_filter=wp.TIMING_ALL):
        world = wp.empty((nb_samples, dimension), dtype=wp.float64, device=device)
        wp.launch(
            get_kernel(element_type),
            dim=nb_samples,
            inputs=[
                nodes,
                connectivity,
                wp.array(element_ids, dtype=wp.int32, device=device),
                wp.array(local_coordinates, dtype=wp.float64, device=device),
                world,
            ],
            device=device,
        )
    return world.numpy()
