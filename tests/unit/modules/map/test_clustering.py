"""Tests for zoom-dependent clustering and center validation."""

import random

import pytest

from src.modules.map import clustering
from src.modules.map.clustering import (
    build_clusters,
    cluster_threshold,
    group_points,
    validate_center,
)
from src.modules.map.geometry import distance
from src.modules.map.models import Viewport


def pairwise_groups(points, threshold):
    claimed = [False] * len(points)
    groups = []
    for i, seed in enumerate(points):
        if claimed[i]:
            continue
        claimed[i] = True
        group = [seed]
        for j in range(i + 1, len(points)):
            if not claimed[j] and distance(seed, points[j]) <= threshold:
                claimed[j] = True
                group.append(points[j])
        groups.append(group)
    return groups


class TestThreshold:
    @pytest.mark.parametrize(
        "zoom,expected",
        [
            (0, 400_000.0),
            (3, 400_000.0),
            (4, 200_000.0),
            (7, 50_000.0),
            (8, 20_000.0),
            (10, 5_000.0),
            (13, 1_000.0),
            (15, 250.0),
            (16, 0.0),
            (20, 0.0),
        ],
    )
    def test_step_function(self, zoom, expected):
        assert cluster_threshold(zoom) == expected

    def test_never_increases_with_zoom(self):
        thresholds = [cluster_threshold(z) for z in range(0, 21)]
        assert thresholds == sorted(thresholds, reverse=True)


class TestGroupPoints:
    def test_greedy_grouping_depends_on_order(self, point_factory):
        # a and c are 80 km apart, b sits halfway between them
        a = point_factory(latitude=40.0)
        b = point_factory(latitude=40.36)
        c = point_factory(latitude=40.72)

        assert group_points([a, b, c], 50_000) == [[a, b], [c]]
        assert group_points([b, a, c], 50_000) == [[b, a, c]]

    def test_zero_threshold_keeps_points_apart(self, point_factory):
        points = [point_factory(), point_factory()]
        assert group_points(points, 0) == [[points[0]], [points[1]]]

    @pytest.mark.parametrize("threshold", [250.0, 1_000.0, 20_000.0, 400_000.0])
    def test_matches_full_pairwise_scan(self, point_factory, threshold):
        rng = random.Random(7)
        points = [
            point_factory(
                latitude=40.0 + rng.uniform(-3.0, 3.0),
                longitude=-75.0 + rng.uniform(-4.0, 4.0),
            )
            for _ in range(300)
        ] + [
            point_factory(latitude=52.0, longitude=179.999),
            point_factory(latitude=52.0, longitude=-179.999),
        ]

        assert group_points(points, threshold) == pairwise_groups(points, threshold)

    def test_spread_points_skip_far_candidates(self, point_factory, monkeypatch):
        points = [
            point_factory(
                latitude=30.0 + (i // 50) * 0.5, longitude=-120.0 + (i % 50) * 0.5
            )
            for i in range(2_000)
        ]
        calls = []

        def counting_distance(a, b):
            calls.append((a.id, b.id))
            return distance(a, b)

        monkeypatch.setattr(clustering, "distance", counting_distance)

        groups = group_points(points, 250.0)

        assert len(groups) == 2_000
        assert len(calls) < 1_000


class TestBuildClusters:
    def test_empty(self):
        assert build_clusters([], 7) == []

    def test_single_point(self, point_factory):
        point = point_factory()
        clusters = build_clusters([point], 7)

        assert len(clusters) == 1
        assert clusters[0].id == point.id
        assert clusters[0].is_singleton
        assert clusters[0].center == point.position

    def test_close_points_merge(self, point_factory):
        # roughly 5 km apart
        first = point_factory(latitude=40.0)
        second = point_factory(latitude=40.045)

        clusters = build_clusters([first, second], 7)

        assert len(clusters) == 1
        cluster = clusters[0]
        assert cluster.id == "cluster:course-0"
        assert cluster.members == (first, second)
        assert cluster.center == first.position

    def test_distant_points_stay_apart(self, point_factory):
        points = [point_factory(latitude=40.0), point_factory(latitude=48.0)]
        clusters = build_clusters(points, 7)
        assert [c.id for c in clusters] == ["course-0", "course-1"]

    def test_center_is_most_central_member(self, point_factory):
        points = [
            point_factory(latitude=40.0),
            point_factory(latitude=40.01),
            point_factory(latitude=40.02),
        ]

        clusters = build_clusters(points, 9)

        assert len(clusters) == 1
        assert clusters[0].id == "cluster:course-0"
        assert clusters[0].center == points[1].position

    def test_identical_points_form_one_cluster(self, point_factory):
        points = [point_factory() for _ in range(5)]

        clusters = build_clusters(points, 10)

        assert len(clusters) == 1
        assert clusters[0].size == 5
        assert clusters[0].center == points[0].position

    def test_no_clustering_at_max_zoom(self, point_factory):
        points = [point_factory() for _ in range(3)]
        clusters = build_clusters(points, 16)
        assert [c.size for c in clusters] == [1, 1, 1]

    def test_build_clusters_is_deterministic(self, point_factory):
        rng = random.Random(11)
        points = [
            point_factory(
                latitude=39.8 + rng.uniform(0.0, 0.4),
                longitude=-75.2 + rng.uniform(0.0, 0.4),
            )
            for _ in range(80)
        ]

        for zoom in (6, 9, 11, 14):
            first = build_clusters(points, zoom)
            second = build_clusters(list(points), zoom)
            assert first == second

    def test_every_point_in_exactly_one_cluster(self, point_factory):
        points = [
            point_factory(latitude=40.0 + i * 0.003, longitude=-75.0 + (i % 3) * 0.004)
            for i in range(30)
        ] + [point_factory(latitude=34.0, longitude=-118.0)]

        for zoom in (4, 9, 12, 14, 18):
            clusters = build_clusters(points, zoom)
            member_ids = [p.id for c in clusters for p in c.members]
            assert sorted(member_ids) == sorted(p.id for p in points)

    def test_water_center_falls_back_to_singletons(self, point_factory):
        # middle of the Gulf of Mexico, about 550 m apart
        points = [
            point_factory(latitude=25.0, longitude=-90.0),
            point_factory(latitude=25.005, longitude=-90.0),
        ]

        clusters = build_clusters(points, 10)

        assert [c.id for c in clusters] == ["course-0", "course-1"]
        assert all(c.is_singleton for c in clusters)

    def test_unsupported_area_falls_back_to_singletons(self, point_factory):
        points = [
            point_factory(latitude=48.85, longitude=2.35),
            point_factory(latitude=48.855, longitude=2.35),
        ]
        clusters = build_clusters(points, 10)
        assert len(clusters) == 2

    def test_viewport_culls_far_points(self, point_factory):
        philly = point_factory(latitude=39.95, longitude=-75.16)
        los_angeles = point_factory(latitude=34.05, longitude=-118.24)
        viewport = Viewport(south=39.0, west=-76.0, north=41.0, east=-74.0)

        clusters = build_clusters([philly, los_angeles], 12, viewport)

        assert [c.id for c in clusters] == [philly.id]

    def test_viewport_padding_keeps_points_just_outside(self, point_factory):
        nearby = point_factory(latitude=38.7, longitude=-75.0)
        viewport = Viewport(south=39.0, west=-76.0, north=41.0, east=-74.0)

        clusters = build_clusters([nearby], 12, viewport)

        assert [c.id for c in clusters] == [nearby.id]


class TestValidateCenter:
    def test_valid_center(self, point_factory):
        center = point_factory(latitude=40.0)
        near = point_factory(latitude=40.005)
        check = validate_center(center, [center, near], 5_000)
        assert check.valid

    def test_over_water(self, point_factory):
        center = point_factory(latitude=25.0, longitude=-90.0)
        check = validate_center(center, [center, center], 5_000)
        assert not check.valid
        assert check.reason == "over_water:Gulf of Mexico"

    def test_outside_supported_area(self, point_factory):
        center = point_factory(latitude=51.5, longitude=-0.12)
        check = validate_center(center, [center], 5_000)
        assert check.reason == "outside_supported_area"

    def test_member_too_far(self, point_factory):
        center = point_factory(latitude=40.0)
        # about 3.3 km, over half of the 5 km threshold
        far = point_factory(latitude=40.03)
        check = validate_center(center, [center, far], 5_000)
        assert check.reason == "member_too_far"

    def test_sparse_members(self, point_factory):
        center = point_factory(latitude=40.0)
        # about 2.2 km: inside half the threshold but not close enough
        loose = point_factory(latitude=40.02)
        check = validate_center(center, [center, loose], 5_000)
        assert check.reason == "sparse_members"


class TestViewport:
    def test_antimeridian_viewport(self):
        viewport = Viewport(south=50.0, west=170.0, north=60.0, east=-170.0)

        assert viewport.crosses_antimeridian
        assert viewport.contains(55.0, 175.0)
        assert viewport.contains(55.0, -175.0)
        assert not viewport.contains(55.0, 0.0)

    def test_padded_grows_each_side(self):
        padded = Viewport(south=39.0, west=-76.0, north=41.0, east=-74.0).padded(0.2)

        assert padded.south == pytest.approx(38.6)
        assert padded.north == pytest.approx(41.4)
        assert padded.west == pytest.approx(-76.4)
        assert padded.east == pytest.approx(-73.6)
