# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: LicenseRef-NvidiaProprietary
#
# NVIDIA CORPORATION, its affiliates and licensors retain all intellectual
# property and proprietary rights in and to this material, related
# documentation and any modifications thereto. Any use, reproduction,
# disclosure or distribution of this material and related documentation
# without an express license agreement from NVIDIA CORPORATION or
# its affiliates is strictly prohibited.
__all__ = ["Mesh", "Domain", "Element"]

import threading
from collections.abc import Iterator
from logging import getLogger
from typing import Any

import numpy as np
import warp as wp

from .elements.validation import validate_element_type
from .errors import DimensionMismatchError

logger = getLogger(__name__)


class Mesh:
    """
    Ordered node positions plus the domains built on them.

    Node ids are row indices into `positions`. Positions are copied at
    construction and stored read-only: a mesh never changes once built, which is
    what keeps spatial indices and registered locations consistent with it.
    """

    _positions: np.ndarray
    _domains: list["Domain"]

    def __init__(self, positions: Any):
        """Initialize a Mesh.

        Args:
            positions: Node world coordinates, shape (N, D) with D in {2, 3}.

        Raises:
            DimensionMismatchError: If positions is not a (N, 2) or (N, 3) array.
        """
        positions = np.array(positions, dtype=np.float64)
        if positions.ndim != 2 or positions.shape[1] not in (2, 3):
            raise DimensionMismatchError(f"Mesh positions must have shape (N, 2) or (N, 3), got {positions.shape}")
        positions.setflags(write=False)
        self._positions = positions
        self._domains = []

    def __repr__(self) -> str:
        return f"Mesh(nodes={self.number_of_nodes()}, dimension={self.dimension}, domains={len(self._domains)})"

    @property
    def dimension(self) -> int:
        """World dimension of the mesh."""
        return self._positions.shape[1]

    @property
    def positions(self) -> np.ndarray:
        """Read-only node positions, shape (N, D)."""
        return self._positions

    @property
    def domains(self) -> tuple["Domain", ...]:
        return tuple(self._domains)

    def number_of_nodes(self) -> int:
        return self._positions.shape[0]

    def position(self, node_id: int) -> np.ndarray:
        """Get the world coordinates of a node."""
        return self._positions[node_id]

    def add_domain(self, element_type: Any, connectivity: Any, name: str | None = None) -> "Domain":
        """Add a domain of elements of a single type.

        Args:
            element_type: Element type module (see `meshlocate.elements`).
            connectivity: Node ids of every element, shape (E, element_type.NUM_NODES).
            name: Optional domain name (default: the element type name, suffixed when taken).

        Returns:
            Domain: The new domain.

        Raises:
            TypeError: If the element type does not implement the element capability set.
            DimensionMismatchError: If the element dimension differs from the mesh dimension,
                or the connectivity width differs from the element node count.
            IndexError: If the connectivity references a node id outside the mesh.
            ValueError: If a domain with the same name already exists.
        """
        is_valid, errors = validate_element_type(element_type)
        if not is_valid:
            raise TypeError(f"Invalid element type {element_type!r}: " + "; ".join(errors))
        if element_type.DIMENSION != self.dimension:
            raise DimensionMismatchError(
                f"Element type '{element_type.NAME}' is {element_type.DIMENSION}D but the mesh is {self.dimension}D"
            )

        connectivity = np.array(connectivity, dtype=np.int32)
        if connectivity.size == 0:
            connectivity = connectivity.reshape(0, element_type.NUM_NODES)
        if connectivity.ndim != 2 or connectivity.shape[1] != element_type.NUM_NODES:
            raise DimensionMismatchError(
                f"Connectivity of '{element_type.NAME}' elements must have shape (E, {element_type.NUM_NODES}), "
                f"got {connectivity.shape}"
            )
        if connectivity.size and (connectivity.min() < 0 or connectivity.max() >= self.number_of_nodes()):
            raise IndexError(f"Connectivity references node ids outside [0, {self.number_of_nodes()})")

        if name is None:
            name = element_type.NAME
            suffix = 1
            while self._find_domain(name) is not None:
                name = f"{element_type.NAME}_{suffix}"
                suffix += 1
        elif self._find_domain(name) is not None:
            raise ValueError(f"Domain '{name}' already exists")

        connectivity.setflags(write=False)
        domain = Domain(self, element_type, connectivity, name)
        self._domains.append(domain)
        logger.info(f"Added domain '{name}' with {domain.number_of_elements()} {element_type.NAME} elements")
        return domain

    def domain(self, key: str | int) -> "Domain":
        """Get a domain by name or position.

        Raises:
            KeyError: If no domain has the given name.
        """
        if isinstance(key, int):
            return self._domains[key]
        domain = self._find_domain(key)
        if domain is None:
            raise KeyError(f"Domain '{key}' not found. Available domains: {[d.name for d in self._domains]}")
        return domain

    def _find_domain(self, name: str) -> "Domain | None":
        return next((d for d in self._domains if d.name == name), None)


class Domain:
    """
    Elements of a uniform type over the nodes of a mesh.

    Element ids are row indices of `connectivity` (dense, 0..E-1). The domain
    also keeps the device copies of its node positions and connectivity used by
    the kernels, one pair per Warp device.
    """

    mesh: Mesh
    element_type: Any
    connectivity: np.ndarray
    name: str
    _device_arrays: dict[str, tuple[wp.array, wp.array]]

    def __init__(self, mesh: Mesh, element_type: Any, connectivity: np.ndarray, name: str):
        self.mesh = mesh
        self.element_type = element_type
        self.connectivity = connectivity
        self.name = name
        self._device_arrays = {}
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"Domain(name='{self.name}', type={self.element_type.NAME}, elements={self.number_of_elements()})"

    def number_of_elements(self) -> int:
        return self.connectivity.shape[0]

    def element(self, element_id: int) -> "Element":
        """Get a host view of an element.

        Raises:
            IndexError: If the element id is out of range.
        """
        if element_id < 0 or element_id >= self.number_of_elements():
            raise IndexError(f"Element id {element_id} out of range [0, {self.number_of_elements()})")
        return Element(self, int(element_id))

    def elements(self) -> Iterator["Element"]:
        for element_id in range(self.number_of_elements()):
            yield Element(self, element_id)

    def node_ids(self) -> np.ndarray:
        """Get the ascending ids of the mesh nodes referenced by this domain."""
        return np.unique(self.connectivity)

    def get_device_arrays(self, device: str | None = None) -> tuple[wp.array, wp.array]:
        """Get the node positions (N, D) and connectivity (E, n) as float64/int32 Warp arrays.

        Args:
            device: Warp device. If None, uses the current Warp device.
        """
        device = wp.get_device(device).alias
        with self._lock:
            if device not in self._device_arrays:
                nodes = wp.array(self.mesh.positions, dtype=wp.float64, device=device)
                connectivity = wp.array(self.connectivity, dtype=wp.int32, device=device)
                self._device_arrays[device] = (nodes, connectivity)
            return self._device_arrays[device]


class Element:
    """Host view of one element of a domain, exposing its geometric contract."""

    def __init__(self, domain: Domain, element_id: int):
        self.domain = domain
        self.element_id = element_id

    def __repr__(self) -> str:
        return f"Element(type={self.element_type.NAME}, id={self.element_id}, nodes={self.node_indices.tolist()})"

    @property
    def element_type(self) -> Any:
        return self.domain.element_type

    @property
    def node_indices(self) -> np.ndarray:
        """Ordered mesh node ids of the element."""
        return self.domain.connectivity[self.element_id]

    @property
    def nodes(self) -> np.ndarray:
        """World coordinates of the element nodes, shape (NUM_NODES, D)."""
        return self.domain.mesh.positions[self.node_indices]

    def number_of_nodes(self) -> int:
        return self.element_type.NUM_NODES

    def center(self) -> np.ndarray:
        """Local coordinates of the reference-domain centroid."""
        return self.element_type.CENTER.copy()

    def world_center(self, device: str | None = None) -> np.ndarray:
        """World coordinates of the reference-domain centroid."""
        return self.world_coordinates(self.element_type.CENTER, device)

    def reference_nodes(self) -> np.ndarray:
        """Local coordinates of the element nodes."""
        return self.element_type.REFERENCE_NODES.copy()

    def gauss_nodes(self) -> np.ndarray:
        """Local coordinates of the element quadrature points."""
        return self.element_type.GAUSS_NODES.copy()

    def gauss_weights(self) -> np.ndarray:
        return self.element_type.GAUSS_WEIGHTS.copy()

    def world_coordinates(self, local_coordinates: Any, device: str | None = None) -> np.ndarray:
        """Map local coordinates to world coordinates.

        Args:
            local_coordinates: A single point (D,) or a batch (m, D).
            device: Warp device. If None, uses the current Warp device.

        Returns:
            np.ndarray: World coordinates with the same shape as the input.
        """
        from .operators import forward_map

        local_coordinates = np.asarray(local_coordinates, dtype=np.float64)
        single = local_coordinates.ndim == 1
        batch = np.atleast_2d(local_coordinates)
        element_ids = np.full(batch.shape[0], self.element_id, dtype=np.int32)
        world = forward_map.compute(self.domain, element_ids, batch, device)
        return world[0] if single else world
