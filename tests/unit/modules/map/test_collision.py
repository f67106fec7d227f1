"""Tests for radial displacement of overlapping markers."""

import itertools

import pytest

from src.modules.map.collision import (
    conflict_distance_px,
    connector_for,
    resolve_collisions,
    separation_radius_px,
)
from src.modules.map.projection import pixel_distance


def test_thresholds_follow_icon_size():
    # icons are drawn at 1.25x from zoom 10 up
    assert conflict_distance_px(14) == pytest.approx(60.0)
    assert separation_radius_px(14) == pytest.approx(80.0)


def test_nothing_moves_below_collision_zoom(point_factory):
    points = [point_factory(), point_factory()]
    assert resolve_collisions(points, 11) == []


def test_single_marker_never_moves(point_factory):
    assert resolve_collisions([point_factory()], 15) == []


def test_far_apart_markers_stay_put(point_factory):
    points = [point_factory(longitude=-75.0), point_factory(longitude=-74.9)]
    assert resolve_collisions(points, 14) == []


def test_overlapping_pair_is_pushed_apart(point_factory):
    # about one pixel apart at zoom 14
    first = point_factory(longitude=-75.0)
    second = point_factory(longitude=-74.9999)

    displacements = resolve_collisions([first, second], 14)

    assert [d.marker_id for d in displacements] == [first.id, second.id]
    assert displacements[0].original_position == first.position
    assert displacements[1].original_position == second.position

    gap = pixel_distance(
        displacements[0].new_position, displacements[1].new_position, 14
    )
    assert gap >= conflict_distance_px(14)
    assert gap == pytest.approx(2 * separation_radius_px(14), rel=1e-6)


def test_first_member_keeps_its_direction(point_factory):
    west = point_factory(longitude=-75.0)
    east = point_factory(longitude=-74.9999)

    displacements = resolve_collisions([west, east], 14)

    assert displacements[0].new_position.longitude < west.longitude
    assert displacements[1].new_position.longitude > east.longitude


def test_large_stack_is_fully_separated(point_factory):
    points = [point_factory() for _ in range(8)]

    displacements = resolve_collisions(points, 15)

    assert len(displacements) == 8
    limit = conflict_distance_px(15)
    for a, b in itertools.combinations(displacements, 2):
        assert pixel_distance(a.new_position, b.new_position, 15) >= limit - 1e-6


def test_touching_chain_shares_one_pivot(point_factory):
    # about 40 px apart at zoom 14: ends conflict only through the middle one
    west = point_factory(longitude=-75.0)
    middle = point_factory(longitude=-74.99657)
    east = point_factory(longitude=-74.99314)

    displacements = resolve_collisions([west, middle, east], 14)

    assert len(displacements) == 3
    radius = separation_radius_px(14)
    for displacement in displacements:
        assert pixel_distance(
            displacement.new_position, middle.position, 14
        ) == pytest.approx(radius, rel=1e-3)

    limit = conflict_distance_px(14)
    for a, b in itertools.combinations(displacements, 2):
        assert pixel_distance(a.new_position, b.new_position, 14) >= limit - 1e-6


def test_only_conflicting_markers_move(point_factory):
    a = point_factory(longitude=-75.0)
    b = point_factory(longitude=-74.9999)
    lone = point_factory(longitude=-74.95)

    displacements = resolve_collisions([a, b, lone], 14)

    assert {d.marker_id for d in displacements} == {a.id, b.id}


def test_results_are_deterministic(point_factory):
    points = [point_factory(latitude=40.0 + i * 0.00001) for i in range(4)]
    assert resolve_collisions(points, 16) == resolve_collisions(points, 16)


def test_connector_links_origin_to_new_position(point_factory):
    points = [point_factory(), point_factory(longitude=-74.9999)]
    displacement = resolve_collisions(points, 14)[0]

    line = connector_for(displacement)

    assert line.key == "displacement:course-0"
    assert line.start == displacement.original_position
    assert line.end == displacement.new_position
