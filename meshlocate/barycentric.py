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
Barycentric point location and field transfer between meshes.

A `BarycentricLocator` binds to one domain of a *container* mesh. It maps
world points to the element that contains them together with their local
coordinates in that element, and transfers nodal fields of the container onto
the nodes of *embedded* meshes through the container's shape functions.

Location of a batch of points proceeds in rounds:

1. points outside the padded bounding box of the domain (or non-finite) are
   not found;
2. the candidate elements of a point are the elements incident to its ``k``
   nearest nodes, tried in ascending element id order;
3. every (point, candidate) pair is inverted on the device with
   Newton-Raphson; the first candidate that converges inside its reference
   domain wins;
4. unresolved points start another round with ``k`` multiplied by the growth
   factor, until every node (hence every element) has been tried.
"""

__all__ = ["NOT_FOUND", "BarycentricLocator", "BarycentricPoint", "BarycentricPoints"]

import threading
import weakref
from dataclasses import dataclass
from logging import getLogger
from typing import Any

import numpy as np
import warp as wp

from . import config
from .errors import DimensionMismatchError
from .locators import SpatialIndex
from .mesh import Domain, Mesh
from .operators import interpolation, inversion
from .timer import scoped_timer

logger = getLogger(__name__)

NOT_FOUND = -1
"""Element index of a point that is not inside any element of the container domain."""


@dataclass(frozen=True)
class BarycentricPoint:
    """Location of one world point: containing element and local coordinates."""

    element_index: int
    local_coordinates: np.ndarray

    @property
    def found(self) -> bool:
        return self.element_index != NOT_FOUND


@dataclass(frozen=True)
class BarycentricPoints:
    """Locations of a batch of world points.

    element_indices holds NOT_FOUND for points outside the container domain;
    their local coordinates are zero.
    """

    element_indices: np.ndarray
    local_coordinates: np.ndarray

    def __len__(self) -> int:
        return self.element_indices.shape[0]

    def __getitem__(self, index: int) -> BarycentricPoint:
        return BarycentricPoint(int(self.element_indices[index]), self.local_coordinates[index])

    def found(self) -> np.ndarray:
        """Boolean mask of the located points."""
        return self.element_indices != NOT_FOUND

    def outside(self) -> np.ndarray:
        """Ascending indices of the points that were not found."""
        return np.flatnonzero(self.element_indices == NOT_FOUND)


class BarycentricLocator:
    """
    Point locator and field interpolator over one container domain.

    The locator holds a non-owning reference to its domain and builds the
    spatial index eagerly. Locations of embedded mesh nodes are cached per mesh
    once the mesh is registered; the cache entry lives as long as the mesh.
    All queries are read-only and may run from several threads at once.
    """

    domain: Domain
    index: SpatialIndex
    device: str

    def __init__(
        self,
        domain: Domain,
        device: str | None = None,
        *,
        tolerance: float | None = None,
        inclusion_tolerance: float | None = None,
        max_iterations: int | None = None,
        initial_candidates: int | None = None,
        growth_factor: int | None = None,
    ):
        """Initialize a BarycentricLocator.

        Args:
            domain: The container domain.
            device: Warp device for the kernels. If None, uses the current Warp device.
            tolerance: Absolute Newton residual tolerance (default: config.tolerance).
            inclusion_tolerance: Reference-domain expansion of the membership test
                (default: config.inclusion_tolerance).
            max_iterations: Newton iteration budget (default: config.max_iterations).
            initial_candidates: Nearest nodes tried first (default: config.initial_candidates).
            growth_factor: Multiplier of the nearest node count per escalation round
                (default: config.growth_factor).

        Raises:
            EmptyMeshError: If the container mesh has no nodes or the domain no elements.
        """
        self.domain = domain
        self.device = wp.get_device(device).alias
        self.tolerance = config.tolerance if tolerance is None else float(tolerance)
        self.inclusion_tolerance = (
            config.inclusion_tolerance if inclusion_tolerance is None else float(inclusion_tolerance)
        )
        self.max_iterations = config.max_iterations if max_iterations is None else int(max_iterations)
        self.initial_candidates = max(1, config.initial_candidates if initial_candidates is None else initial_candidates)
        self.growth_factor = max(2, config.growth_factor if growth_factor is None else growth_factor)

        with scoped_timer("barycentric_locator.build_index"):
            self.index = SpatialIndex(domain, self.device, padding=2.0 * self.inclusion_tolerance)
        domain.get_device_arrays(self.device)

        self._registry = weakref.WeakKeyDictionary()
        self._registration_locks = weakref.WeakKeyDictionary()
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"BarycentricLocator(domain={self.domain!r}, device='{self.device}')"

    @property
    def dimension(self) -> int:
        return self.domain.mesh.dimension

    # -- location ------------------------------------------------------------

    def barycentric_points(self, points: Any) -> BarycentricPoints:
        """Locate a batch of world points.

        Args:
            points: World points, shape (n, D).

        Returns:
            BarycentricPoints: Containing element (or NOT_FOUND) and local coordinates per point.

        Raises:
            DimensionMismatchError: If the points are not (n, D) with D the container dimension.
        """
        points = np.asarray(points, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != self.dimension:
            raise DimensionMismatchError(f"Expected points of shape (n, {self.dimension}), got {points.shape}")
        return self._locate(points)

    def barycentric_point(self, point: Any) -> BarycentricPoint:
        """Locate a single world point.

        Args:
            point: World coordinates, shape (D,).

        Returns:
            BarycentricPoint: element_index is NOT_FOUND if the point is outside the container domain.

        Raises:
            DimensionMismatchError: If the point dimension differs from the container dimension.
        """
        point = np.asarray(point, dtype=np.float64)
        if point.shape != (self.dimension,):
            raise DimensionMismatchError(f"Expected a point of shape ({self.dimension},), got {point.shape}")
        return self._locate(point[np.newaxis, :])[0]

    def _locate(self, points: np.ndarray) -> BarycentricPoints:
        nb_points = points.shape[0]
        element_type = self.domain.element_type
        element_indices = np.full(nb_points, NOT_FOUND, dtype=np.int32)
        local_coordinates = np.zeros((nb_points, element_type.DIMENSION))

        pending = np.flatnonzero(self.index.may_contain(points))
        candidates = self.initial_candidates
        nb_nodes = self.index.number_of_nodes
        while pending.size:
            candidates = min(candidates, nb_nodes)
            with scoped_timer("barycentric_locator.candidates"):
                pair_points, pair_elements = self.index.candidate_elements(points[pending], candidates)
            xi, inside = inversion.compute(
                self.domain,
                points[pending],
                pair_points,
                pair_elements,
                self.tolerance,
                self.inclusion_tolerance,
                self.max_iterations,
                self.device,
            )

            # Pairs are grouped by point in ascending element id order: the first
            # accepted pair of a point is its lowest containing element
            accepted = np.flatnonzero(inside)
            located, first = np.unique(pair_points[accepted], return_index=True)
            chosen = accepted[first]
            element_indices[pending[located]] = pair_elements[chosen]
            local_coordinates[pending[located]] = xi[chosen]

            unresolved = np.ones(pending.shape[0], dtype=bool)
            unresolved[located] = False
            pending = pending[unresolved]
            if candidates >= nb_nodes:
                break
            if pending.size:
                logger.debug(
                    f"{pending.size} points not found among the elements of their {candidates} nearest nodes, "
                    f"retrying with {min(candidates * self.growth_factor, nb_nodes)}"
                )
            candidates *= self.growth_factor

        if pending.size:
            logger.debug(
                f"{pending.size} points inside the bounds of domain '{self.domain.name}' "
                f"were not found in any of its elements"
            )

        return BarycentricPoints(element_indices, local_coordinates)

    # -- embedded meshes -----------------------------------------------------

    def _registration_lock(self, mesh: Mesh) -> threading.Lock:
        with self._lock:
            lock = self._registration_locks.get(mesh)
            if lock is None:
                lock = threading.Lock()
                self._registration_locks[mesh] = lock
            return lock

    def _check_mesh(self, mesh: Mesh):
        if mesh.dimension != self.dimension:
            raise DimensionMismatchError(
                f"Embedded mesh is {mesh.dimension}D but the container domain '{self.domain.name}' "
                f"is {self.dimension}D"
            )

    def embedded_points(self, mesh: Mesh) -> BarycentricPoints:
        """Get the locations of all nodes of an embedded mesh, registering the mesh if needed.

        Raises:
            DimensionMismatchError: If the mesh dimension differs from the container dimension.
        """
        self._check_mesh(mesh)
        with self._lock:
            results = self._registry.get(mesh)
        if results is not None:
            logger.debug(f"Reusing registered locations of {mesh!r}")
            return results

        with self._registration_lock(mesh):
            # another thread may have registered the mesh while we waited
            with self._lock:
                results = self._registry.get(mesh)
            if results is None:
                with scoped_timer("barycentric_locator.add_embedded_mesh"):
                    results = self._locate(mesh.positions)
                with self._lock:
                    self._registry[mesh] = results
                logger.info(
                    f"Registered embedded {mesh!r}: {len(results) - results.outside().size} nodes located, "
                    f"{results.outside().size} outside domain '{self.domain.name}'"
                )
        return results

    def add_embedded_mesh(self, mesh: Mesh) -> list[int]:
        """Locate and register every node of an embedded mesh.

        Args:
            mesh: The embedded mesh. It is referenced weakly: its registration ends
                when the mesh is garbage collected or `remove_embedded_mesh` is called.

        Returns:
            list[int]: Ascending ids of the nodes lying outside the container domain.

        Raises:
            DimensionMismatchError: If the mesh dimension differs from the container dimension.
        """
        return self.embedded_points(mesh).outside().tolist()

    def is_registered(self, mesh: Mesh) -> bool:
        with self._lock:
            return mesh in self._registry

    def remove_embedded_mesh(self, mesh: Mesh):
        """Drop the cached locations of an embedded mesh (no-op if it is not registered)."""
        with self._lock:
            self._registry.pop(mesh, None)

    def barycentric_point_of_node(self, mesh: Mesh, node_id: int) -> BarycentricPoint:
        """Get the location of one node of an embedded mesh.

        Uses the registered locations of the mesh when available; otherwise the
        node is located on the fly without registering the mesh.

        Raises:
            DimensionMismatchError: If the mesh dimension differs from the container dimension.
            IndexError: If the node id is outside the mesh.
        """
        self._check_mesh(mesh)
        if node_id < 0 or node_id >= mesh.number_of_nodes():
            raise IndexError(f"Node id {node_id} out of range [0, {mesh.number_of_nodes()})")
        with self._lock:
            results = self._registry.get(mesh)
        if results is not None:
            return results[node_id]
        return self.barycentric_point(mesh.position(node_id))

    # -- field transfer ------------------------------------------------------

    def interpolate_field(self, mesh: Mesh, values: Any, out: np.ndarray | None = None) -> np.ndarray:
        """Interpolate a nodal field of the container mesh at the nodes of an embedded mesh.

        For every located embedded node i, ``out[i] = sum_j N_j(xi_i) * values[element.node_j]``.
        Rows of nodes outside the container domain are left untouched; when ``out``
        is not given it is allocated filled with NaN, so those rows read as NaN.

        Args:
            mesh: The embedded mesh (registered on first use).
            values: One value per container mesh node, shape (N,) or (N, c).
            out: Destination, shape (M,) or (M, c) matching ``values``, with M the
                number of embedded nodes. Must be a float64 numpy array.

        Returns:
            np.ndarray: ``out``.

        Raises:
            DimensionMismatchError: If ``values`` does not have one row per container node,
                or ``out`` does not have one row per embedded node and the width of ``values``.
            TypeError: If ``out`` is not a float64 numpy array.
        """
        self._check_mesh(mesh)
        values = np.asarray(values, dtype=np.float64)
        nb_container_nodes = self.domain.mesh.number_of_nodes()
        if values.ndim not in (1, 2) or values.shape[0] != nb_container_nodes:
            raise DimensionMismatchError(
                f"Expected one value row per container node ({nb_container_nodes}), got array of shape {values.shape}"
            )

        expected_shape = (mesh.number_of_nodes(),) + values.shape[1:]
        if out is None:
            out = np.full(expected_shape, np.nan)
        elif not isinstance(out, np.ndarray) or out.dtype != np.float64:
            raise TypeError(
                f"Expected a float64 numpy array as destination, got {getattr(out, 'dtype', type(out).__name__)}"
            )
        elif out.shape != expected_shape:
            raise DimensionMismatchError(f"Expected a destination of shape {expected_shape}, got {out.shape}")

        results = self.embedded_points(mesh)
        width = values.shape[1] if values.ndim == 2 else 1
        values_2d = values.reshape(nb_container_nodes, width)
        out_2d = out.reshape(mesh.number_of_nodes(), width)
        interpolation.compute(
            self.domain, results.element_indices, results.local_coordinates, values_2d, out_2d, self.device
        )
        if not np.shares_memory(out_2d, out):
            out[...] = out_2d.reshape(out.shape)
        return out
