import torch

from conftest import make_quad
from surfvis.sampling import build_snapshot, classify_triangles
from surfvis.sampling.geometry import triangle_areas


def _classify(vertices, faces, camera, **kwargs):
    snapshot = build_snapshot(vertices, faces)
    classified = classify_triangles(snapshot, camera.frustum_planes(), camera.position, **kwargs)
    return snapshot, classified


def test_only_camera_facing_cube_side_is_eligible(cube, camera):
    snapshot, classified = _classify(*cube, camera)

    assert classified.num_triangles == snapshot.num_triangles
    assert classified.num_eligible == 2

    tris = classified.triangles[classified.eligible]
    normals = torch.linalg.cross(tris[:, 1] - tris[:, 0], tris[:, 2] - tris[:, 0])
    assert torch.all(normals[:, 2] > 0)
    assert torch.all(tris[:, :, 2] == 0.5)


def test_classification_keeps_areas_and_order(cube, camera):
    snapshot, classified = _classify(*cube, camera)

    assert torch.equal(classified.areas, snapshot.areas)
    assert torch.equal(classified.triangles, snapshot.triangles)


def test_excluded_slot_reads_as_none(cube, camera):
    _, classified = _classify(*cube, camera)

    excluded = torch.where(~classified.eligible)[0][0].item()
    eligible = torch.where(classified.eligible)[0][0].item()
    assert classified.triangle(excluded) is None
    assert torch.equal(classified.triangle(eligible), classified.triangles[eligible])


def test_triangles_outside_frustum_are_excluded(camera):
    near_v, near_f = make_quad((-0.5, 0.5), (-0.5, 0.5), 0.0)
    far_v, far_f = make_quad((99.5, 100.5), (-0.5, 0.5), 0.0)
    vertices = torch.cat([near_v, far_v])
    faces = torch.cat([near_f, far_f + 4])

    _, classified = _classify(vertices, faces, camera)
    assert classified.eligible.tolist() == [True, True, False, False]


def test_centroid_box_size_controls_frustum_margin(camera):
    # just outside the right frustum plane at z=0 (half width ~2.89)
    vertices, faces = make_quad((3.0, 3.2), (-0.1, 0.1), 0.0)

    _, tight = _classify(vertices, faces, camera, bounds_size=0.0)
    _, loose = _classify(vertices, faces, camera, bounds_size=1.0)
    assert tight.num_eligible == 0
    assert loose.num_eligible == 2


def test_backfacing_quad_is_excluded(camera):
    vertices, faces = make_quad((-0.5, 0.5), (-0.5, 0.5), 0.0, facing=-1.0)
    _, classified = _classify(vertices, faces, camera)
    assert classified.num_eligible == 0


def test_degenerate_triangle_is_excluded(camera):
    vertices = torch.tensor([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
    faces = torch.tensor([[0, 1, 2]])

    snapshot, classified = _classify(vertices, faces, camera)
    assert triangle_areas(snapshot.triangles)[0].item() == 0.0
    assert classified.num_eligible == 0
