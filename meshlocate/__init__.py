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
meshlocate - Point location and field transfer between finite element meshes

Locates world points inside the elements of a container mesh domain (element
and local coordinates) and transfers nodal fields of the container onto the
nodes of embedded meshes through the container's isoparametric shape
functions. Heavy lifting runs in Warp kernels; element geometries are plugged
in through a capability-based element type protocol.
"""

__version__ = "0.1.0"

from . import config, elements, operators
from ._helpers import cached
from .barycentric import NOT_FOUND, BarycentricLocator, BarycentricPoint, BarycentricPoints
from .elements import ElementType, hexa_8, quad_4, tetra_4, tri_3
from .errors import DimensionMismatchError, EmptyMeshError
from .locators import CellLinks, SpatialIndex, build_cell_links
from .mesh import Domain, Element, Mesh
from .timer import scoped_timer

__all__ = [
    # Config
    "config",
    "scoped_timer",
    "cached",
    # Mesh and element types
    "Mesh",
    "Domain",
    "Element",
    "ElementType",
    "tri_3",
    "quad_4",
    "tetra_4",
    "hexa_8",
    # Spatial index
    "CellLinks",
    "SpatialIndex",
    "build_cell_links",
    # Locator
    "NOT_FOUND",
    "BarycentricLocator",
    "BarycentricPoint",
    "BarycentricPoints",
    # Errors
    "EmptyMeshError",
    "DimensionMismatchError",
    # Submodules
    "elements",
    "operators",
]
