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
Element Types Package

Each module in this package is an element type: the capability set the
locator needs from a finite element geometry (see `typing.ElementType`).
Every module provides:
  - shape_functions: Evaluate shape functions at local coordinates
  - shape_derivatives: Evaluate shape function derivatives
  - center: Local coordinates of the reference-domain centroid
  - is_inside: Test if local coordinates are inside the reference domain
plus host-side numpy constants (reference nodes, centroid, quadrature rule).

Module naming follows the CGNS style with a node count suffix:
  - tri_3: 3-node triangle (2D)
  - quad_4: 4-node quadrangle (2D)
  - tetra_4: 4-node tetrahedron (3D)
  - hexa_8: 8-node hexahedron (3D)
"""

from . import hexa_8, quad_4, tetra_4, tri_3, validation
from .typing import ElementType

ELEMENT_TYPES = {module.NAME: module for module in (tri_3, quad_4, tetra_4, hexa_8)}
"""Built-in element types keyed by name."""

__all__ = ["ELEMENT_TYPES", "ElementType", "hexa_8", "quad_4", "tetra_4", "tri_3", "validation"]
