# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: LicenseRef-NvidiaProprietary
#
# NVIDIA CORPORATION, its affiliates and licensors retain all intellectual
# property and proprietary rights in and to this material, related
# documentation and any modifications thereto. Any use, reproduction,
# disclosure or distribution of this material and related documentation
# without an express license agreement from NVIDIA CORPORATION or
# its affiliates is strictly prohibited.
__all__ = ["EmptyMeshError", "DimensionMismatchError"]


class EmptyMeshError(ValueError):
    """Raised when a container mesh has no nodes or a container domain has no elements."""


class DimensionMismatchError(ValueError):
    """Raised when array shapes disagree with the mesh they are used with.

    Typical causes are query points whose dimension differs from the container
    mesh, or nodal values whose row count is not the container node count.
    """
