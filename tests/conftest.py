import pytest
import torch
import trimesh

from surfvis import Camera, Scene


def make_quad(x_range, y_range, z, facing=1.0):
    """Axis-aligned rectangle in the plane z, normal +Z (facing=1) or -Z."""
    (x0, x1), (y0, y1) = x_range, y_range
    vertices = torch.tensor([
        [x0, y0, z],
        [x1, y0, z],
        [x1, y1, z],
        [x0, y1, z],
    ], dtype=torch.float32)
    if facing > 0:
        faces = torch.tensor([[0, 1, 2], [0, 2, 3]])
    else:
        faces = torch.tensor([[0, 2, 1], [0, 3, 2]])
    return vertices, faces


class CountingOracle:
    """Wraps an oracle and counts queried rays."""

    def __init__(self, oracle):
        self.oracle = oracle
        self.calls = 0
        self.rays = 0

    def intersect_rays_all(self, rays_o, rays_d, max_t):
        self.calls += 1
        self.rays += rays_o.shape[0]
        return self.oracle.intersect_rays_all(rays_o, rays_d, max_t)


class FlakyOracle:
    """Fails the first `failures` calls, and any batch larger than `max_batch`."""

    def __init__(self, oracle, failures=0, max_batch=None):
        self.oracle = oracle
        self.failures = failures
        self.max_batch = max_batch
        self.calls = 0

    def intersect_rays_all(self, rays_o, rays_d, max_t):
        self.calls += 1
        if self.failures > 0:
            self.failures -= 1
            raise RuntimeError("simulated oracle failure")
        if self.max_batch is not None and rays_o.shape[0] > self.max_batch:
            raise RuntimeError("batch too large")
        return self.oracle.intersect_rays_all(rays_o, rays_d, max_t)


class BrokenOracle:
    def __init__(self):
        self.calls = 0

    def intersect_rays_all(self, rays_o, rays_d, max_t):
        self.calls += 1
        raise RuntimeError("oracle offline")


@pytest.fixture
def camera():
    return Camera.look_at((0.0, 0.0, 5.0), (0.0, 0.0, 0.0), fov_y=60.0, near=0.1, far=100.0)


@pytest.fixture
def cube():
    box = trimesh.creation.box(extents=(1.0, 1.0, 1.0))
    return (
        torch.tensor(box.vertices, dtype=torch.float32),
        torch.tensor(box.faces, dtype=torch.int64),
    )


@pytest.fixture
def sphere():
    mesh = trimesh.creation.icosphere(subdivisions=2, radius=0.5)
    return (
        torch.tensor(mesh.vertices, dtype=torch.float32),
        torch.tensor(mesh.faces, dtype=torch.int64),
    )


@pytest.fixture
def scene():
    return Scene(device='cpu')
