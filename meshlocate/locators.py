# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: LicenseRef-NvidiaProprietary
#
# NVIDIA CORPORATION, its affiliates and licensors retain all intellectual
# property and proprietary rights in and to this material, related
# documentation and any modifications thereto. Any use, reproduction,
# disclosure or distribution of this material and related documentation
# without an express license agreement from NVIDIA CORPORATION or
# its affiliates is strictly prohibited.
__all__ = ["CellLinks", "SpatialIndex", "build_cell_links"]

from logging import getLogger
from typing import Any

import numpy as np
import warp as wp
from scipy.spatial import cKDTree

from .errors import DimensionMismatchError, EmptyMeshError
from .mesh import Domain
from .timer import scoped_timer

logger = getLogger(__name__)


class CellLinks:
    """
    Node-to-element incidence map of a domain, in CSR form.

    element_ids: Flat array of element ids
    offsets: For each mesh node, the starting index in element_ids;
             element_ids[offsets[i]:offsets[i + 1]] are the elements using node i,
             in ascending order
    """

    element_ids: np.ndarray
    offsets: np.ndarray

    def __init__(self, element_ids: np.ndarray, offsets: np.ndarray):
        self.element_ids = element_ids
        self.offsets = offsets

    def get_num_elements(self, node_id: int) -> int:
        return int(self.offsets[node_id + 1] - self.offsets[node_id])

    def get_elements(self, node_id: int) -> np.ndarray:
        return self.element_ids[self.offsets[node_id] : self.offsets[node_id + 1]]


@wp.kernel(enable_backward=False)
def _node_element_counts(connectivity: wp.array2d(dtype=wp.int32), counts: wp.array(dtype=wp.int32)):
    element_id = wp.tid()
    for i in range(connectivity.shape[1]):
        wp.atomic_add(counts, connectivity[element_id, i], 1)


@wp.kernel(enable_backward=False)
def _fill_cell_links(
    connectivity: wp.array2d(dtype=wp.int32),
    offsets: wp.array(dtype=wp.int32),
    counts: wp.array(dtype=wp.int32),
    element_ids: wp.array(dtype=wp.int32),
):
    element_id = wp.tid()
    for i in range(connectivity.shape[1]):
        node_id = connectivity[element_id, i]
        loc = wp.atomic_add(counts, node_id, 1)
        element_ids[offsets[node_id] + loc] = element_id


def build_cell_links(domain: Domain, device: Any = None) -> CellLinks:
    """
    Build the node-to-element incidence map of a domain.

    Args:
        domain (Domain): The domain whose connectivity is scanned.
        device: The Warp device to run the computation on.

    Returns:
        CellLinks: Offsets of size (num_nodes + 1) over all mesh nodes, and the
        incident element ids of every node sorted by ascending id.
    """
    nb_elements = domain.number_of_elements()
    nb_nodes = domain.mesh.number_of_nodes()
    _, connectivity = domain.get_device_arrays(device)
    device = connectivity.device

    # Step 1: Count how many elements use each node
    counts = wp.zeros((nb_nodes,), dtype=wp.int32, device=device)
    wp.launch(_node_element_counts, dim=nb_elements, inputs=[connectivity, counts], device=device)

    # Step 2: Convert counts to offsets (prefix sum)
    counts_np = counts.numpy()
    offsets_np = np.zeros(nb_nodes + 1, dtype=np.int32)
    np.cumsum(counts_np, out=offsets_np[1:])

    # Step 3: Reset counts to use as write positions and scatter the element ids
    offsets = wp.array(offsets_np, dtype=wp.int32, device=device)
    element_ids = wp.zeros((int(offsets_np[-1]),), dtype=wp.int32, device=device)
    counts.fill_(0)
    wp.launch(_fill_cell_links, dim=nb_elements, inputs=[connectivity, offsets, counts, element_ids], device=device)

    # Step 4: Atomics scatter in scheduling order; sort every node's run by element id
    element_ids_np = element_ids.numpy()
    owners = np.repeat(np.arange(nb_nodes, dtype=np.int32), counts_np)
    element_ids_np = element_ids_np[np.lexsort((element_ids_np, owners))]

    return CellLinks(element_ids_np, offsets_np)


class SpatialIndex:
    """
    Candidate element lookup for world points.

    Combines a k-d tree over the nodes referenced by a domain with the domain's
    node-to-element incidence map. The index reflects the domain at
    construction time; meshes are immutable, so it never needs rebuilding.
    """

    domain: Domain
    cell_links: CellLinks
    bounds: tuple[np.ndarray, np.ndarray]

    def __init__(self, domain: Domain, device: Any = None, padding: float = 0.0):
        """Build the index.

        Args:
            domain: The container domain.
            device: Warp device used to build the incidence map.
            padding: Relative padding (w.r.t. the bounding box diagonal) of the
                bounding box used by `may_contain`.

        Raises:
            EmptyMeshError: If the mesh has no nodes or the domain has no elements.
        """
        mesh = domain.mesh
        if mesh.number_of_nodes() == 0:
            raise EmptyMeshError(f"Cannot build a spatial index: mesh of domain '{domain.name}' has no nodes")
        if domain.number_of_elements() == 0:
            raise EmptyMeshError(f"Cannot build a spatial index: domain '{domain.name}' has no elements")

        self.domain = domain
        self._node_ids = domain.node_ids()
        self._positions = mesh.positions[self._node_ids]

        with scoped_timer("spatial_index.build_tree"):
            self._tree = cKDTree(self._positions)
        with scoped_timer("spatial_index.build_cell_links"):
            self.cell_links = build_cell_links(domain, device)

        lower = self._positions.min(axis=0)
        upper = self._positions.max(axis=0)
        pad = padding * float(np.linalg.norm(upper - lower))
        self.bounds = (lower - pad, upper + pad)

        logger.info(
            f"Built spatial index over {self.number_of_nodes} nodes and "
            f"{domain.number_of_elements()} elements of domain '{domain.name}'"
        )

    @property
    def number_of_nodes(self) -> int:
        """Number of indexed nodes (the nodes referenced by the domain)."""
        return self._node_ids.shape[0]

    @property
    def dimension(self) -> int:
        return self._positions.shape[1]

    def _as_points(self, points: Any) -> tuple[np.ndarray, bool]:
        points = np.asarray(points, dtype=np.float64)
        single = points.ndim == 1
        points = np.atleast_2d(points)
        if points.ndim != 2 or points.shape[1] != self.dimension:
            raise DimensionMismatchError(
                f"Expected {self.dimension}D points, got array of shape {np.shape(points)}"
            )
        return points, single

    def nearest_nodes(self, points: Any, k: int = 1) -> np.ndarray:
        """Get the k nearest indexed nodes of every point.

        Nodes are ordered by Euclidean distance, ties by ascending node id. When
        k exceeds the number of indexed nodes, all nodes are returned.

        Args:
            points: A single point (D,) or a batch (n, D).
            k: Number of nodes per point.

        Returns:
            np.ndarray: Mesh node ids, shape (k',) for a single point or (n, k') for a batch.

        Raises:
            DimensionMismatchError: If the point dimension differs from the mesh dimension.
        """
        points, single = self._as_points(points)
        k = max(1, min(int(k), self.number_of_nodes))
        result = np.empty((points.shape[0], k), dtype=np.int64)
        if points.shape[0] > 0:
            # Distance of the k-th neighbour, then every node within it, so that
            # ties at the k-th rank are resolved by node id rather than tree order
            distances, _ = self._tree.query(points, k=[k])
            radii = distances[:, 0] * (1.0 + 1.0e-12) + 1.0e-300
            neighbours = self._tree.query_ball_point(points, radii)
            for i, idx in enumerate(neighbours):
                idx = np.asarray(idx, dtype=np.int64)
                if idx.shape[0] < k:
                    idx = np.sort(np.atleast_1d(self._tree.query(points[i], k=k)[1]))
                dist = np.linalg.norm(self._positions[idx] - points[i], axis=1)
                # indexed positions are sorted by node id, so idx order is node id order
                order = np.lexsort((idx, dist))[:k]
                result[i] = self._node_ids[idx[order]]
        return result[0] if single else result

    def elements_of_node(self, node_id: int) -> np.ndarray:
        """Get the ascending ids of the elements incident to a mesh node.

        Raises:
            IndexError: If the node id is outside the mesh.
        """
        if node_id < 0 or node_id >= self.domain.mesh.number_of_nodes():
            raise IndexError(f"Node id {node_id} out of range [0, {self.domain.mesh.number_of_nodes()})")
        return self.cell_links.get_elements(node_id)

    def candidate_elements(self, points: Any, k: int = 1) -> tuple[np.ndarray, np.ndarray]:
        """Get the candidate elements of every point as flat (point, element) pairs.

        The candidates of a point are the elements incident to any of its k
        nearest nodes, in ascending element id order. Pairs are grouped by point.

        Returns:
            tuple[np.ndarray, np.ndarray]: Point index per pair and element id per pair (int32).
        """
        points, _ = self._as_points(points)
        nearest = self.nearest_nodes(points, k)
        links = self.cell_links
        pair_points = []
        pair_elements = []
        for i, node_ids in enumerate(nearest):
            elements = np.unique(np.concatenate([links.get_elements(node_id) for node_id in node_ids]))
            pair_points.append(np.full(elements.shape[0], i, dtype=np.int32))
            pair_elements.append(elements)
        if not pair_points:
            return np.empty((0,), dtype=np.int32), np.empty((0,), dtype=np.int32)
        return np.concatenate(pair_points), np.concatenate(pair_elements).astype(np.int32)

    def may_contain(self, points: Any) -> np.ndarray:
        """Get a mask of the points lying inside the (padded) bounding box of the domain nodes.

        Points outside cannot be inside any element whose geometry lies in the
        convex hull of its nodes, which holds for all linear element types.
        """
        points, _ = self._as_points(points)
        lower, upper = self.bounds
        with np.errstate(invalid="ignore"):
            return np.all(np.isfinite(points), axis=1) & np.all((points >= lower) & (points <= upper), axis=1)
