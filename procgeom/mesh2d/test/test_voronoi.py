import unittest

import numpy as np
from structlog.testing import capture_logs

from procgeom.errors import InvalidGeometryError
from procgeom.mesh2d.geometry import circumcenter
from procgeom.mesh2d.sampling import random_points_in_triangle
from procgeom.mesh2d.triangle import Triangle, Triangle2D
from procgeom.mesh2d.validation import global_delaunay_check, is_connected
from procgeom.mesh2d.vertex import Vertex
from procgeom.mesh2d.voronoi import Region, Voronoi, triangulate


class TestVoronoiSites(unittest.TestCase):

    def setUp(self):
        self.voronoi = Voronoi(10000)
        self.points = [(0.0, 0.0), (10.0, 0.0), (5.0, 10.0)]

    def test_sites_keep_insertion_order(self):
        self.assertEqual(self.voronoi.add_points(self.points), 3)
        self.assertEqual(self.voronoi.get_sites(), [Vertex(*p) for p in self.points])
        self.assertEqual(len(self.voronoi), 3)

    def test_sites_are_copies(self):
        p = [1.0, 2.0]
        arr = np.array([3.0, 4.0])
        self.voronoi.add_point(p)
        self.voronoi.add_point(arr)
        p[0] = 99.0
        arr[0] = 99.0
        self.assertEqual(self.voronoi.get_sites(), [Vertex(1.0, 2.0), Vertex(3.0, 4.0)])
        # the returned list is a snapshot too
        self.voronoi.get_sites().clear()
        self.assertEqual(len(self.voronoi.get_sites()), 2)

    def test_duplicate_is_not_registered(self):
        self.assertTrue(self.voronoi.add_point((1.0, 1.0)))
        self.assertFalse(self.voronoi.add_point((1.0, 1.0)))
        self.assertEqual(self.voronoi.add_points([(1.0, 1.0), (2.0, 2.0)]), 1)
        self.assertEqual(self.voronoi.get_sites(), [Vertex(1.0, 1.0), Vertex(2.0, 2.0)])
        self.assertEqual(len(self.voronoi.get_regions()), 2)

    def test_outside_point_propagates(self):
        small = Voronoi(100)
        small.add_point((0, 0))
        with self.assertRaises(InvalidGeometryError):
            small.add_point((500, 0))
        self.assertEqual(small.get_sites(), [Vertex(0.0, 0.0)])
        self.assertEqual(len(small.triangulation), 3)

    def test_size_must_be_positive(self):
        with self.assertRaises(ValueError):
            Voronoi(0)


class TestVoronoiTriangles(unittest.TestCase):

    def setUp(self):
        self.voronoi = Voronoi()
        self.voronoi.add_points([(0.0, 0.0), (10.0, 0.0), (5.0, 10.0)])

    def test_default_view_includes_super_corners(self):
        tris = self.voronoi.get_triangles()
        self.assertEqual(len(tris), 7)
        self.assertTrue(all(isinstance(t, Triangle2D) for t in tris))
        corners = set(self.voronoi.triangulation.super_vertices)
        self.assertTrue(any(corners & set(t) for t in tris))

    def test_real_only_view(self):
        tris = self.voronoi.get_triangles(real_only=True)
        self.assertEqual(len(tris), 1)
        self.assertEqual(set(tris[0]), {Vertex(0.0, 0.0), Vertex(10.0, 0.0), Vertex(5.0, 10.0)})

    def test_queries_are_idempotent(self):
        self.assertEqual(self.voronoi.get_triangles(), self.voronoi.get_triangles())
        self.assertEqual(self.voronoi.get_triangles(True), self.voronoi.get_triangles(True))
        self.assertEqual(self.voronoi.get_regions(), self.voronoi.get_regions())


class TestVoronoiRegions(unittest.TestCase):

    def assertClosedConvex(self, region):
        self.assertGreaterEqual(len(region), 3)
        self.assertTrue(region.is_convex(), f"region of {region.site} is not convex")
        self.assertGreater(region.area(), 0)

    def test_three_sites(self):
        voronoi = Voronoi(10000)
        points = [(0.0, 0.0), (10.0, 0.0), (5.0, 10.0)]
        voronoi.add_points(points)
        regions = voronoi.get_regions()
        self.assertEqual(len(regions), 3)
        for region, p in zip(regions, points):
            self.assertEqual(region.site, Vertex(*p))
            self.assertClosedConvex(region)
            self.assertTrue(region.contains(region.site))
        # all three cells meet at the circumcenter of the sites
        shared = circumcenter(*(Vertex(*p) for p in points))
        for region in regions:
            self.assertTrue(any(v.distance_to(shared) < 1e-6 for v in region.vertices))

    def test_square_with_center(self):
        voronoi = Voronoi()
        voronoi.add_points([(0, 0), (10, 0), (10, 10), (0, 10), (5, 5)])
        self.assertEqual(len(voronoi.get_triangles(real_only=True)), 4)
        center = voronoi.get_regions()[-1]
        self.assertEqual(center.site, Vertex(5.0, 5.0))
        self.assertEqual(set(center.vertices),
                         {Vertex(5.0, 0.0), Vertex(10.0, 5.0), Vertex(5.0, 10.0), Vertex(0.0, 5.0)})
        self.assertAlmostEqual(center.area(), 50.0)
        self.assertAlmostEqual(center.centroid().x, 5.0)
        self.assertAlmostEqual(center.centroid().y, 5.0)

    def test_consecutive_vertices_come_from_adjacent_triangles(self):
        voronoi = triangulate([(0, 0), (10, 0), (10, 10), (0, 10), (5, 5)])
        tri = voronoi.triangulation
        site = tri.vertex_for((5, 5))
        fan = tri.surrounding_triangles(site, tri.incident_triangle(site))
        region = voronoi.get_regions()[-1]
        self.assertEqual(len(region), len(fan))
        for t, nxt in zip(fan, fan[1:] + fan[:1]):
            self.assertIn(nxt.index, t.neighbors)
        self.assertEqual(set(region.vertices), {t.circumcenter for t in fan})

    def test_collinear_sites_do_not_crash(self):
        self.assertTrue(Triangle(Vertex(0, 0), Vertex(5, 0), Vertex(10, 0)).is_degenerate)
        voronoi = Voronoi(10000)
        voronoi.add_points([(0, 0), (5, 0), (10, 0)])
        regions = voronoi.get_regions()
        self.assertEqual(len(regions), 3)
        for region in regions:
            self.assertClosedConvex(region)

    def test_small_scale_regions_keep_every_corner(self):
        voronoi = Voronoi(size=1e-4)
        voronoi.add_points([(0, 0), (5e-7, 0), (0, 5e-7)])
        tri = voronoi.triangulation
        self.assertEqual([t for t in tri if t.is_degenerate], [])
        self.assertTrue(global_delaunay_check(tri))

        shared = Vertex(2.5e-7, 2.5e-7)
        regions = voronoi.get_regions()
        self.assertEqual(len(regions), 3)
        for region in regions:
            self.assertEqual(len(region), 4)
            self.assertTrue(any(v.distance_to(shared) < 1e-15 for v in region.vertices))

    def test_degenerate_triangle_in_fan_is_skipped(self):
        voronoi = Voronoi(10)
        voronoi.add_point((0, 0))
        tri = voronoi.triangulation
        a, b, _ = tri.super_vertices

        # split the triangle on the bottom hull edge at a point of that edge,
        # which leaves the flat triangle (a, b, p) in the arena
        p = Vertex(0.0, -10.0)
        bottom = next(t for t in tri if t.contains_vertex(a) and t.contains_vertex(b))
        cavity = {bottom.index}
        tri._retriangulate(p, cavity, tri._boundary(cavity))
        voronoi._sites.append(p)

        flat = [t for t in tri if t.is_degenerate]
        self.assertEqual(len(flat), 1)
        self.assertTrue(flat[0].contains_vertex(p))

        with capture_logs() as logs:
            regions = voronoi.get_regions()
        self.assertIn("degenerate_triangle_skipped", [entry["event"] for entry in logs])
        self.assertEqual([r.site for r in regions], [Vertex(0.0, 0.0), p])
        self.assertEqual(len(regions[0]), 4)
        self.assertClosedConvex(regions[0])
        # three triangles around p, one of them flat
        self.assertEqual(len(regions[1]), 2)
        for region in regions:
            self.assertTrue(np.isfinite(region.as_array()).all())

    def test_random_sites(self):
        pts = random_points_in_triangle(50, (-8000, -8000), (8000, -8000), (0, 8000), seed=1)
        voronoi = triangulate(pts)
        self.assertEqual(len(voronoi.get_sites()), 50)
        self.assertTrue(global_delaunay_check(voronoi.triangulation))
        self.assertTrue(is_connected(voronoi.triangulation))

        regions = voronoi.get_regions()
        self.assertEqual(len(regions), 50)
        for region, site in zip(regions, voronoi.get_sites()):
            self.assertEqual(region.site, site)
            self.assertClosedConvex(region)
            self.assertTrue(region.contains(site))
            self.assertEqual(region.as_array().shape, (len(region), 2))

    def test_region_equidistance(self):
        # every cell corner is a circumcenter, hence equidistant to its site and two neighbors
        pts = random_points_in_triangle(20, (-50, -50), (50, -50), (0, 50), seed=5)
        voronoi = triangulate(pts, size=1000)
        sites = np.array(voronoi.get_sites())
        for region in voronoi.get_regions():
            for corner in region.vertices:
                d = np.hypot(sites[:, 0] - corner.x, sites[:, 1] - corner.y)
                own = corner.distance_to(region.site)
                self.assertGreaterEqual(d.min(), own * (1 - 1e-9) - 1e-9)

    def test_region_helpers(self):
        square = Region(Vertex(0.5, 0.5), [Vertex(0, 0), Vertex(1, 0), Vertex(1, 1), Vertex(0, 1)])
        self.assertAlmostEqual(square.area(), 1.0)
        self.assertTrue(square.is_convex())
        self.assertTrue(square.contains((0.5, 0.5)))
        self.assertFalse(square.contains((1.5, 0.5)))
        dart = Region(Vertex(0, 0), [Vertex(0, 0), Vertex(2, 0), Vertex(1, 0.2), Vertex(1, 2)])
        self.assertFalse(dart.is_convex())
        self.assertFalse(Region(Vertex(0, 0)).is_convex())
        self.assertEqual(Region(Vertex(0, 0)).area(), 0.0)


class TestLogging(unittest.TestCase):

    def test_events_are_emitted(self):
        with capture_logs() as logs:
            voronoi = Voronoi(100)
            voronoi.add_point((1, 1))
            voronoi.add_point((1, 1))
            with self.assertRaises(InvalidGeometryError):
                voronoi.add_point((1000, 1000))
        events = {entry["event"]: entry for entry in logs}
        self.assertIn("point_inserted", events)
        self.assertIn("duplicate_point_ignored", events)
        self.assertEqual(events["point_outside_coverage"]["log_level"], "warning")


if __name__ == "__main__":
    unittest.main()
