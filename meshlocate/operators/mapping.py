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
This module generates the isoparametric mapping functions of an element type.

For an element type, `get_mapping` returns a class of Warp functions that
evaluate the forward map W(xi) = sum_n N_n(xi) x_n and its Jacobian
dW/dxi for one element of a domain. Nodes are passed as a (num_nodes, D)
float64 array and connectivity as a (num_elements, NUM_NODES) int32 array.
"""

import warp as wp

from .._helpers import cached


@cached
def get_mapping(element_type):
    num_nodes = element_type.NUM_NODES
    dimension = element_type.DIMENSION
    vec_t = element_type.vec_t
    jacobian_t = wp.types.matrix(shape=(dimension, dimension), dtype=wp.float64)

    class MappingAPI:
        @staticmethod
        @wp.func
        def world_coordinates(
            nodes: wp.array2d(dtype=wp.float64),
            connectivity: wp.array2d(dtype=wp.int32),
            element_id: wp.int32,
            xi: vec_t,
        ) -> vec_t:
            weights = element_type.shape_functions(xi)
            x = vec_t()
            for n in range(num_nodes):
                node_id = connectivity[element_id, n]
                for d in range(dimension):
                    x[d] = x[d] + weights[n] * nodes[node_id, d]
            return x

        @staticmethod
        @wp.func
        def jacobian(
            nodes: wp.array2d(dtype=wp.float64),
            connectivity: wp.array2d(dtype=wp.int32),
            element_id: wp.int32,
            xi: vec_t,
        ) -> jacobian_t:
            derivs = element_type.shape_derivatives(xi)
            jac = jacobian_t()
            for n in range(num_nodes):
                node_id = connectivity[element_id, n]
                for i in range(dimension):
                    for j in range(dimension):
                        jac[i, j] = jac[i, j] + nodes[node_id, i] * derivs[n, j]
            return jac

    return MappingAPI
