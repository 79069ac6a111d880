# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: LicenseRef-NvidiaProprietary
#
# NVIDIA CORPORATION, its affiliates and licensors retain all intellectual
# property and proprietary rights in and to this material, related
# documentation and any modifications thereto. Any use, reproduction,
# disclosure or distribution of this material and related documentation
# without an express license agreement from NVIDIA CORPORATION or
# its affiliates is strictly prohibited.

import logging
import unittest
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import warp as wp
from meshlocate import NOT_FOUND, BarycentricLocator, DimensionMismatchError, EmptyMeshError, Mesh
from meshlocate.elements import quad_4, tri_3

from .meshes import (
    GRID_CONNECTIVITY,
    distorted_quad_grid,
    grid_positions,
    hexa_grid,
    linear_field,
    quad_grid,
    tetra_cube,
    tri_grid,
)

logger = logging.getLogger(__name__)

OUTSIDE_POSITIONS = [
    [-7.5, 2.5],
    [-5.0, 2.5],
    [-2.5, 2.5],
    [-7.5, 5.0],
    [-5.0, 5.0],
    [-2.5, 5.0],
    [-7.5, 7.5],
    [-5.0, 7.5],
    [-2.5, 7.5],
]


class TestBarycentricContainer(unittest.TestCase):

    def setUp(self):
        self.device = wp.ScopedDevice("cpu")
        self.device.__enter__()

    def tearDown(self):
        self.device.__exit__(None, None, None)

    def _check_self_consistency(self, container: Mesh, atol: float = 1e-10):
        domain = container.domain(0)
        locator = BarycentricLocator(domain)

        # container nodes land in one of their incident elements and map back onto themselves
        results = locator.barycentric_points(container.positions)
        self.assertEqual(results.outside().tolist(), [])
        for node_id, position in enumerate(container.positions):
            element = domain.element(int(results.element_indices[node_id]))
            self.assertIn(node_id, element.node_indices.tolist())
            np.testing.assert_allclose(element.world_coordinates(results.local_coordinates[node_id]), position, atol=atol)

        # gauss points and centres are interior: same element, same local coordinates
        for element in domain.elements():
            for local in [*element.gauss_nodes(), element.center()]:
                point = locator.barycentric_point(element.world_coordinates(local))
                self.assertEqual(point.element_index, element.element_id)
                np.testing.assert_allclose(point.local_coordinates, local, atol=atol)

    def test_self_consistency(self):
        for name, build in (
            ("quad_4", quad_grid),
            ("quad_4 distorted", distorted_quad_grid),
            ("tri_3", tri_grid),
            ("tetra_4", tetra_cube),
            ("hexa_8", hexa_grid),
        ):
            with self.subTest(mesh=name):
                self._check_self_consistency(build())

    def test_world_center(self):
        domain = quad_grid().domain(0)
        for element in domain.elements():
            np.testing.assert_allclose(element.world_center(), element.nodes.mean(axis=0), atol=1e-12)

    def test_offset_container(self):
        # ulp of the coordinates exceeds the residual tolerance beyond about 1e6
        for offset in (1.0e4, 1.0e6, 3.0e6, 1.0e7):
            with self.subTest(offset=offset):
                container = Mesh(grid_positions() + offset)
                domain = container.add_domain(quad_4, GRID_CONNECTIVITY)
                locator = BarycentricLocator(domain)
                for element in domain.elements():
                    for local in [*element.gauss_nodes(), element.center()]:
                        point = locator.barycentric_point(element.world_coordinates(local))
                        self.assertEqual(point.element_index, element.element_id)
                        np.testing.assert_allclose(point.local_coordinates, local, atol=1e-6)

    def test_converging_on_last_iteration(self):
        # affine elements converge in a single Newton update
        domain = quad_grid().domain(0)
        locator = BarycentricLocator(domain, max_iterations=1)
        point = locator.barycentric_point([1.0, 2.0])
        self.assertEqual(point.element_index, 3)
        np.testing.assert_allclose(point.local_coordinates, [-0.6, -0.2], atol=1e-10)

    def test_embedded_mesh_inside(self):
        container = quad_grid()
        embedded = Mesh(grid_positions(2.5))
        embedded.add_domain(quad_4, GRID_CONNECTIVITY)
        locator = BarycentricLocator(container.domain(0))

        self.assertEqual(locator.add_embedded_mesh(embedded), [])
        self.assertTrue(locator.is_registered(embedded))

        # shape functions reproduce the coordinates themselves
        interpolated = locator.interpolate_field(embedded, container.positions)
        np.testing.assert_allclose(interpolated, embedded.positions, atol=1e-10)

        # the embedded node at the origin is shared by four elements; the lowest wins
        point = locator.barycentric_point_of_node(embedded, 4)
        self.assertEqual(point.element_index, 0)
        np.testing.assert_allclose(point.local_coordinates, [1.0, 1.0], atol=1e-10)

    def test_embedded_mesh_partially_outside(self):
        container = quad_grid()
        embedded = Mesh(OUTSIDE_POSITIONS)
        locator = BarycentricLocator(container.domain(0))

        outside = locator.add_embedded_mesh(embedded)
        logger.info(f"outside nodes: {outside}")
        self.assertEqual(outside, [0, 3, 6, 7, 8])
        for node_id in outside:
            self.assertEqual(locator.barycentric_point_of_node(embedded, node_id).element_index, NOT_FOUND)

        values = linear_field(container.positions)
        interpolated = locator.interpolate_field(embedded, values)
        self.assertEqual(interpolated.shape, (9,))
        self.assertTrue(np.all(np.isnan(interpolated[outside])))
        inside = [1, 2, 4, 5]
        np.testing.assert_allclose(interpolated[inside], linear_field(embedded.positions[inside]), atol=1e-10)

        # rows of nodes outside the container are left untouched
        out = np.full((9, 2), -42.0)
        locator.interpolate_field(embedded, container.positions, out)
        np.testing.assert_array_equal(out[outside], -42.0)
        np.testing.assert_allclose(out[inside], embedded.positions[inside], atol=1e-10)

    def test_shared_node_is_deterministic(self):
        container = quad_grid()
        locator = BarycentricLocator(container.domain(0))
        first = locator.barycentric_point([0.0, 0.0])
        for _ in range(10):
            point = locator.barycentric_point([0.0, 0.0])
            self.assertEqual(point.element_index, first.element_index)
            np.testing.assert_array_equal(point.local_coordinates, first.local_coordinates)
        self.assertEqual(first.element_index, 0)

    def test_concurrent_queries(self):
        container = quad_grid()
        embedded = Mesh(np.random.default_rng(7).uniform(-6.0, 6.0, size=(200, 2)))
        locator = BarycentricLocator(container.domain(0))
        expected = locator.barycentric_points(embedded.positions)

        with ThreadPoolExecutor(max_workers=4) as executor:
            registrations = list(executor.map(lambda _: locator.add_embedded_mesh(embedded), range(8)))
            batches = list(executor.map(lambda _: locator.barycentric_points(embedded.positions), range(8)))

        for outside in registrations:
            self.assertEqual(outside, expected.outside().tolist())
        for batch in batches:
            np.testing.assert_array_equal(batch.element_indices, expected.element_indices)
            np.testing.assert_array_equal(batch.local_coordinates, expected.local_coordinates)

    def test_registration_cache(self):
        container = quad_grid()
        embedded = Mesh(OUTSIDE_POSITIONS)
        locator = BarycentricLocator(container.domain(0))
        self.assertFalse(locator.is_registered(embedded))

        # lookups on an unregistered mesh do not register it
        self.assertTrue(locator.barycentric_point_of_node(embedded, 1).found)
        self.assertFalse(locator.is_registered(embedded))

        first = locator.embedded_points(embedded)
        self.assertIs(locator.embedded_points(embedded), first)

        # a structurally identical mesh is a different mesh
        twin = Mesh(OUTSIDE_POSITIONS)
        self.assertFalse(locator.is_registered(twin))

        locator.remove_embedded_mesh(embedded)
        self.assertFalse(locator.is_registered(embedded))
        locator.remove_embedded_mesh(embedded)

        # interpolation registers lazily
        locator.interpolate_field(embedded, np.zeros(9))
        self.assertTrue(locator.is_registered(embedded))

    def test_escalation(self):
        # the node nearest to the query belongs only to the element that does not contain it
        mesh = Mesh([[0.0, 0.0], [10.0, 0.0], [0.0, 1.0], [5.0, 1.5]])
        mesh.add_domain(tri_3, [[0, 1, 2], [1, 3, 2]])
        for growth_factor in (2, 8):
            locator = BarycentricLocator(mesh.domain(0), initial_candidates=1, growth_factor=growth_factor)
            np.testing.assert_array_equal(locator.index.nearest_nodes([5.0, 0.45]), [3])
            point = locator.barycentric_point([5.0, 0.45])
            self.assertEqual(point.element_index, 0)
            np.testing.assert_allclose(point.local_coordinates, [0.5, 0.45], atol=1e-10)

    def test_points_outside_and_invalid(self):
        container = quad_grid()
        locator = BarycentricLocator(container.domain(0))
        results = locator.barycentric_points([[100.0, 0.0], [np.nan, 0.0], [np.inf, np.inf], [5.0, 5.0]])
        np.testing.assert_array_equal(results.element_indices, [NOT_FOUND, NOT_FOUND, NOT_FOUND, 3])
        np.testing.assert_array_equal(results.found(), [False, False, False, True])

        # points on the boundary are inside, slightly further out is not
        self.assertTrue(locator.barycentric_point([5.0 + 1e-12, 0.0]).found)
        self.assertFalse(locator.barycentric_point([5.001, 0.0]).found)

        empty = locator.barycentric_points(np.empty((0, 2)))
        self.assertEqual(len(empty), 0)

    def test_non_affine_quads(self):
        container = distorted_quad_grid()
        domain = container.domain(0)
        locator = BarycentricLocator(domain)
        points = np.random.default_rng(11).uniform(-4.99, 4.99, size=(100, 2))
        results = locator.barycentric_points(points)
        self.assertTrue(np.all(results.found()))
        for i, point in enumerate(points):
            element = domain.element(int(results.element_indices[i]))
            np.testing.assert_allclose(element.world_coordinates(results.local_coordinates[i]), point, atol=1e-10)

        embedded = Mesh(points)
        values = linear_field(container.positions)
        np.testing.assert_allclose(locator.interpolate_field(embedded, values), linear_field(points), atol=1e-10)

    def test_triangles(self):
        container = tri_grid()
        locator = BarycentricLocator(container.domain(0))
        embedded = Mesh(np.random.default_rng(3).uniform(-5.0, 5.0, size=(50, 2)))
        self.assertEqual(locator.add_embedded_mesh(embedded), [])
        values = np.stack([linear_field(container.positions), -linear_field(container.positions)], axis=1)
        expected = np.stack([linear_field(embedded.positions), -linear_field(embedded.positions)], axis=1)
        np.testing.assert_allclose(locator.interpolate_field(embedded, values), expected, atol=1e-10)

    def test_tetrahedra(self):
        container = tetra_cube()
        locator = BarycentricLocator(container.domain(0))
        points = np.random.default_rng(5).uniform(0.0, 1.0, size=(100, 3))
        embedded = Mesh(np.vstack([points, [[2.0, 0.5, 0.5], [0.5, 0.5, -0.1]]]))
        self.assertEqual(locator.add_embedded_mesh(embedded), [100, 101])
        interpolated = locator.interpolate_field(embedded, linear_field(container.positions))
        np.testing.assert_allclose(interpolated[:100], linear_field(points), atol=1e-10)
        self.assertTrue(np.all(np.isnan(interpolated[100:])))

    def test_hexahedra(self):
        container = hexa_grid(n=2)
        domain = container.domain(0)
        locator = BarycentricLocator(domain)
        for element in domain.elements():
            for local in element.gauss_nodes():
                point = locator.barycentric_point(element.world_coordinates(local))
                self.assertEqual(point.element_index, element.element_id)
                np.testing.assert_allclose(point.local_coordinates, local, atol=1e-10)

        embedded = Mesh(np.random.default_rng(9).uniform(0.0, 1.0, size=(64, 3)))
        interpolated = locator.interpolate_field(embedded, container.positions)
        np.testing.assert_allclose(interpolated, embedded.positions, atol=1e-10)

    def test_dimension_mismatch(self):
        container = quad_grid()
        locator = BarycentricLocator(container.domain(0))
        with self.assertRaises(DimensionMismatchError):
            locator.barycentric_point([0.0, 0.0, 0.0])
        with self.assertRaises(DimensionMismatchError):
            locator.barycentric_points([0.0, 0.0])
        with self.assertRaises(DimensionMismatchError):
            locator.add_embedded_mesh(Mesh([[0.0, 0.0, 0.0]]))

        embedded = Mesh(OUTSIDE_POSITIONS)
        with self.assertRaises(DimensionMismatchError):
            locator.interpolate_field(embedded, np.zeros(8))
        with self.assertRaises(DimensionMismatchError):
            locator.interpolate_field(embedded, np.zeros((9, 2)), np.zeros((9, 3)))
        with self.assertRaises(TypeError):
            locator.interpolate_field(embedded, np.zeros(9), np.zeros(9, dtype=np.float32))
        with self.assertRaises(TypeError):
            locator.interpolate_field(embedded, np.zeros(9), [0.0] * 9)
        with self.assertRaises(IndexError):
            locator.barycentric_point_of_node(embedded, 9)

    def test_empty_container(self):
        mesh = Mesh(np.empty((0, 2)))
        domain = mesh.add_domain(quad_4, [])
        with self.assertRaises(EmptyMeshError):
            BarycentricLocator(domain)

        mesh = Mesh(grid_positions())
        domain = mesh.add_domain(quad_4, np.empty((0, 4), dtype=np.int32))
        with self.assertRaises(EmptyMeshError):
            BarycentricLocator(domain)
