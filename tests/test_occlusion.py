import torch

from conftest import BrokenOracle, FlakyOracle, make_quad
from surfvis.apps import OcclusionRaycaster, aggregate


TARGET = torch.tensor([0.0, 0.0, 5.0])


def _scene_with_plates(scene):
    """Entity 0: plate at z=0 (the object), 1: plate at z=2, 2: plate at z=4.9."""
    scene.add_mesh(*make_quad((-1, 1), (-1, 1), 0.0), entity_id=0)
    scene.add_mesh(*make_quad((-1, 0), (-1, 1), 2.0), entity_id=1)
    scene.add_mesh(*make_quad((-1, 1), (-1, 1), 4.9), entity_id=2)
    return scene


def test_foreign_entities_occlude(scene):
    _scene_with_plates(scene)
    raycaster = OcclusionRaycaster(scene, self_id=0, viewpoint_id=2)

    points = torch.tensor([[-0.5, 0.3, -1.0], [0.5, 0.3, -1.0]])
    occluded, failed = raycaster.cast(points, TARGET)

    # first ray crosses plate 1, both cross the object and the viewpoint plate
    assert occluded.tolist() == [True, False]
    assert not failed.any()


def test_viewpoint_collider_occludes_when_not_excluded(scene):
    _scene_with_plates(scene)
    raycaster = OcclusionRaycaster(scene, self_id=0, viewpoint_id=None)

    occluded, _ = raycaster.cast(torch.tensor([[0.5, 0.3, -1.0]]), TARGET)
    assert occluded.tolist() == [True]


def test_self_hits_do_not_occlude(scene):
    _scene_with_plates(scene)
    raycaster = OcclusionRaycaster(scene, self_id=1, viewpoint_id=2)

    occluded, _ = raycaster.cast(torch.tensor([[-0.5, 0.3, 1.0]]), TARGET)
    assert occluded.tolist() == [False]


def test_failed_batch_is_retried(scene):
    _scene_with_plates(scene)
    oracle = FlakyOracle(scene, failures=1)
    raycaster = OcclusionRaycaster(oracle, self_id=0, viewpoint_id=2)

    points = torch.tensor([[-0.5, 0.3, -1.0], [0.5, 0.3, -1.0]])
    occluded, failed = raycaster.cast(points, TARGET)

    assert oracle.calls == 2
    assert occluded.tolist() == [True, False]
    assert not failed.any()


def test_batch_failure_falls_back_to_single_rays(scene):
    _scene_with_plates(scene)
    oracle = FlakyOracle(scene, max_batch=1)
    raycaster = OcclusionRaycaster(oracle, self_id=0, viewpoint_id=2)

    points = torch.tensor([[-0.5, 0.3, -1.0], [0.5, 0.3, -1.0], [-0.2, -0.6, -1.0]])
    occluded, failed = raycaster.cast(points, TARGET)

    assert occluded.tolist() == [True, False, True]
    assert not failed.any()
    # two batch attempts + one call per ray
    assert oracle.calls == 5


def test_persistent_failures_mark_samples_failed():
    oracle = BrokenOracle()
    raycaster = OcclusionRaycaster(oracle, self_id=0, max_retries=1)

    points = torch.zeros(3, 3)
    occluded, failed = raycaster.cast(points, TARGET)

    assert failed.tolist() == [True, True, True]
    assert not occluded.any()
    assert oracle.calls == 2 + 3 * 2


def test_corner_probe(scene):
    _scene_with_plates(scene)
    raycaster = OcclusionRaycaster(scene, self_id=0, viewpoint_id=2)

    blocked_corners = torch.tensor([[-0.5, 0.0, 1.0], [-0.6, 0.2, 1.5]])
    assert raycaster.probe_corners(blocked_corners, TARGET) is False

    mixed = torch.tensor([[-0.5, 0.0, 1.0], [0.5, 0.2, 1.5]])
    assert raycaster.probe_corners(mixed, TARGET) is True


def test_corner_probe_failure_does_not_short_circuit():
    raycaster = OcclusionRaycaster(BrokenOracle(), self_id=0)
    assert raycaster.probe_corners(torch.zeros(8, 3), TARGET) is True


def test_debug_rays_point_at_target():
    points = torch.tensor([[1.0, 2.0, 3.0]])
    rays = OcclusionRaycaster.debug_rays(points, TARGET)
    assert torch.equal(rays.origins, points)
    assert torch.allclose(rays.origins + rays.directions, TARGET.unsqueeze(0))


def test_aggregate_excludes_failed_samples():
    occluded = torch.tensor([True, False, False, False])
    failed = torch.tensor([False, False, True, True])
    assert aggregate(4, occluded, failed) == 0.5


def test_aggregate_all_failed_is_zero():
    assert aggregate(2, torch.zeros(2, dtype=torch.bool), torch.ones(2, dtype=torch.bool)) == 0.0


def test_aggregate_bounds():
    none = torch.zeros(5, dtype=torch.bool)
    every = torch.ones(5, dtype=torch.bool)
    assert aggregate(5, none, none) == 1.0
    assert aggregate(5, every, none) == 0.0
