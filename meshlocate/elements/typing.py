# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: LicenseRef-NvidiaProprietary
#
# NVIDIA CORPORATION, its affiliates and licensors retain all intellectual
# property and proprietary rights in and to this material, related
# documentation and any modifications thereto. Any use, reproduction,
# disclosure or distribution of this material and related documentation
# without an express license agreement from NVIDIA CORPORATION or
# its affiliates is strictly prohibited.
from typing import Any, Protocol

import numpy as np
import warp as wp


class LocalCoordinates(Protocol):
    """Opaque Warp float64 vector of length DIMENSION (local coordinates inside kernels)."""

    ...


class ShapeWeights(Protocol):
    """Opaque Warp float64 vector of length NUM_NODES (shape function values)."""

    ...


class ShapeDerivatives(Protocol):
    """Opaque Warp float64 matrix of shape (NUM_NODES, DIMENSION)."""

    ...


class ElementType(Protocol):
    """Capability set an element type exposes to the locator.

    Element types are plain modules. The locator, the operators and the mesh
    layer are generic over this protocol and never test for a concrete element
    type. Device functions are `wp.func` and are only called from kernels; the
    upper-case attributes are host-side numpy constants.
    """

    NAME: str
    """Short name of the element type (e.g. ``"quad_4"``)."""

    NUM_NODES: int
    """Number of nodes per element."""

    DIMENSION: int
    """Dimension of both the world space and the reference domain."""

    vec_t: Any
    """Warp vector type of local (and world) coordinates."""

    weights_t: Any
    """Warp vector type returned by `shape_functions`."""

    derivatives_t: Any
    """Warp matrix type returned by `shape_derivatives`."""

    REFERENCE_NODES: np.ndarray
    """Local coordinates of the element nodes, shape (NUM_NODES, DIMENSION)."""

    CENTER: np.ndarray
    """Local coordinates of the reference-domain centroid, shape (DIMENSION,)."""

    GAUSS_NODES: np.ndarray
    """Local coordinates of the quadrature points, shape (n_gauss, DIMENSION)."""

    GAUSS_WEIGHTS: np.ndarray
    """Quadrature weights, shape (n_gauss,)."""

    @staticmethod
    def shape_functions(xi: LocalCoordinates) -> ShapeWeights:
        """Evaluate the shape functions at local coordinates.

        Args:
            xi: Local coordinates (vec_t)

        Returns:
            ShapeWeights: One value per node, summing to one
        """
        ...

    @staticmethod
    def shape_derivatives(xi: LocalCoordinates) -> ShapeDerivatives:
        """Evaluate the shape function derivatives at local coordinates.

        Args:
            xi: Local coordinates (vec_t)

        Returns:
            ShapeDerivatives: Row i holds the gradient of node i's shape function
        """
        ...

    @staticmethod
    def center() -> LocalCoordinates:
        """Local coordinates of the reference-domain centroid.

        Returns:
            LocalCoordinates: The centroid (vec_t)
        """
        ...

    @staticmethod
    def is_inside(xi: LocalCoordinates, tolerance: wp.float64) -> wp.bool:
        """Reference-domain membership test.

        Args:
            xi: Local coordinates (vec_t)
            tolerance: Expansion of the reference domain (wp.float64)

        Returns:
            wp.bool: True if xi lies in the reference domain expanded by tolerance
        """
        ...
