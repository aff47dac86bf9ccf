import pytest
import torch

from surfvis import InvalidConfigurationError, trs_matrix
from surfvis.core.transforms import aabb_corners, transform_points
from surfvis.sampling import build_snapshot, triangle_areas


def test_triangle_area_matches_cross_product():
    triangles = torch.tensor([
        [[0.0, 0.0, 0.0], [3.0, 0.0, 0.0], [0.0, 4.0, 0.0]],
        [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0]],
    ])
    areas = triangle_areas(triangles)
    assert areas[0].item() == pytest.approx(6.0)
    assert areas[1].item() == pytest.approx(0.0)


def test_snapshot_is_index_aligned_with_faces(cube):
    vertices, faces = cube
    snapshot = build_snapshot(vertices, faces)

    assert snapshot.triangles.shape == (12, 3, 3)
    assert snapshot.areas.shape == (12,)
    assert torch.allclose(snapshot.triangles[5], vertices[faces[5]])
    assert snapshot.total_area == pytest.approx(6.0, rel=1e-5)
    assert torch.allclose(snapshot.areas, torch.full((12,), 0.5))


def test_snapshot_applies_transform(cube):
    vertices, faces = cube
    transform = trs_matrix(translation=(1.0, 2.0, 3.0), scale=2.0)
    snapshot = build_snapshot(vertices, faces, transform)

    assert torch.allclose(snapshot.bounds[0], torch.tensor([0.0, 1.0, 2.0]))
    assert torch.allclose(snapshot.bounds[1], torch.tensor([2.0, 3.0, 4.0]))
    # area scales with the square of the scale factor
    assert snapshot.total_area == pytest.approx(24.0, rel=1e-5)


def test_snapshot_is_idempotent(cube):
    vertices, faces = cube
    transform = trs_matrix(translation=(0.3, -0.2, 0.1), scale=(1.0, 2.0, 0.5))

    first = build_snapshot(vertices, faces, transform)
    second = build_snapshot(vertices, faces, transform)

    assert torch.equal(first.triangles, second.triangles)
    assert torch.equal(first.areas, second.areas)
    assert torch.equal(first.bounds, second.bounds)


def test_snapshot_accepts_nested_lists():
    snapshot = build_snapshot(
        [[0, 0, 0], [1, 0, 0], [0, 1, 0]],
        [[0, 1, 2]]
    )
    assert snapshot.num_triangles == 1
    assert snapshot.areas[0].item() == pytest.approx(0.5)


def test_empty_mesh_gives_empty_snapshot():
    snapshot = build_snapshot(torch.zeros(0, 3), torch.zeros(0, 3, dtype=torch.int64))
    assert snapshot.num_triangles == 0
    assert snapshot.total_area == 0.0


@pytest.mark.parametrize("vertices, faces", [
    (None, [[0, 1, 2]]),
    ([[0, 0, 0], [1, 0, 0], [0, 1, 0]], None),
    ([[0, 0, 0], [1, 0, 0], [0, 1, 0]], [[0, 1, 3]]),
    ([[0, 0, 0], [1, 0, 0], [0, 1, 0]], [[0, 1]]),
    ([[0, 0], [1, 0], [0, 1]], [[0, 1, 2]]),
])
def test_invalid_mesh_rejected(vertices, faces):
    with pytest.raises(InvalidConfigurationError):
        build_snapshot(vertices, faces)


def test_invalid_transform_shape_rejected(cube):
    vertices, faces = cube
    with pytest.raises(InvalidConfigurationError):
        build_snapshot(vertices, faces, torch.eye(3))


def test_trs_rotation_then_translation():
    rot_z = torch.tensor([[0.0, -1.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 1.0]])
    matrix = trs_matrix(translation=(0.0, 0.0, 1.0), rotation=rot_z, scale=2.0)
    point = transform_points(torch.tensor([[1.0, 0.0, 0.0]]), matrix)
    assert torch.allclose(point, torch.tensor([[0.0, 2.0, 1.0]]))


def test_aabb_corners_are_distinct_box_corners():
    bounds = torch.tensor([[-1.0, -2.0, -3.0], [1.0, 2.0, 3.0]])
    corners = aabb_corners(bounds)

    assert corners.shape == (8, 3)
    assert torch.equal(corners[0], bounds[0])
    assert torch.equal(corners[1], bounds[1])
    assert len({tuple(c) for c in corners.tolist()}) == 8
    assert torch.all(corners.abs() == bounds[1].abs())
