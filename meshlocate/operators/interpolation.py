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
This module interpolates nodal fields of a container domain at located samples.

Each sample carries the id of its containing element (or -1) and its local
coordinates. The value written for a located sample is the shape-function
weighted sum of the nodal values of its element. Rows of unlocated samples are
not written.
"""

import numpy as np
import warp as wp

from .._helpers import cached
from ..timer import scoped_timer


@cached
def get_kernel(element_type):
    num_nodes = element_type.NUM_NODES
    dimension = element_type.DIMENSION
    vec_t = element_type.vec_t

    @wp.kernel(enable_backward=False)
    def interpolate(
        connectivity: wp.array2d(dtype=wp.int32),
        element_ids: wp.array(dtype=wp.int32),
        local_coordinates: wp.array2d(dtype=wp.float64),
        values: wp.array2d(dtype=wp.float64),
        field_out: wp.array2d(dtype=wp.float64),
    ):
        sample_idx = wp.tid()
        element_id = element_ids[sample_idx]
        if element_id < 0:
            return

        xi = vec_t()
        for d in range(dimension):
            xi[d] = local_coordinates[sample_idx, d]
        weights = element_type.shape_functions(xi)

        for c in range(values.shape[1]):
            value = wp.float64(0.0)
            for n in range(num_nodes):
                value = value + weights[n] * values[connectivity[element_id, n], c]
            field_out[sample_idx, c] = value

    return interpolate


def compute(domain, element_ids: np.ndarray, local_coordinates: np.ndarray, values: np.ndarray, out: np.ndarray, device=None):
    """
    Interpolate nodal values at located samples, writing into ``out`` in place.

    Args:
        domain (meshlocate.Domain): The container domain the samples were located in.
        element_ids (np.ndarray): Containing element id per sample (-1 when not found), shape (m,).
        local_coordinates (np.ndarray): Local coordinates per sample, shape (m, D).
        values (np.ndarray): Values per container node, shape (N, c), float64.
        out (np.ndarray): Destination, shape (m, c), float64. Rows of unlocated samples keep their content.
        device: Warp device to run on (default: current device).

    Returns:
        np.ndarray: ``out``.
    """
    nb_samples = element_ids.shape[0]
    if nb_samples == 0 or values.shape[1] == 0:
        return out

    _, connectivity = domain.get_device_arrays(device)
    device = connectivity.device

    with scoped_timer("interpolation.allocate"):
        element_ids_wp = wp.array(np.ascontiguousarray(element_ids, dtype=np.int32), dtype=wp.int32, device=device)
        local_wp = wp.array(np.ascontiguousarray(local_coordinates, dtype=np.float64), dtype=wp.float64, device=device)
        values_wp = wp.array(np.ascontiguousarray(values, dtype=np.float64), dtype=wp.float64, device=device)
        # start from the caller's buffer so that unlocated rows come back unchanged
        field_out = wp.array(np.ascontiguousarray(out, dtype=np.float64), dtype=wp.float64, device=device)

    with scoped_timer("interpolation.launch", cuda_filter=wp.TIMING_ALL):
        wp.launch(
            get_kernel(domain.element_type),
            dim=nb_samples,
            inputs=[connectivity, element_ids_wp, local_wp, values_wp, field_out],
            device=device,
        )

    out[...] = field_out.numpy()
    return out
