#!/usr/bin/env python3
"""
Surface Visibility Example

Estimates how much of an icosphere a camera can see while a wall slides
in front of it, one evaluation cycle per wall position.
"""

import time

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

import torch

from surfvis import Camera, EstimatorConfig, Scene, SurfaceVisibilityEstimator, trs_matrix
from surfvis.utils import setup_logging


def create_meshes():
    """Create the target icosphere and a wall."""
    try:
        import trimesh
    except ImportError:
        raise RuntimeError("trimesh required: pip install trimesh")
    sphere = trimesh.creation.icosphere(subdivisions=3, radius=0.8)
    wall = trimesh.creation.box(extents=(1.6, 3.0, 0.1))
    return sphere, wall


def main():
    setup_logging()

    print("=" * 50)
    print("SurfVis: Surface Visibility Example")
    print("=" * 50)

    device = 'cuda' if torch.cuda.is_available() else 'cpu'
    print(f"Device: {device}")

    sphere, wall = create_meshes()
    scene = Scene(device=device)
    target_id = scene.add_mesh(sphere.vertices, sphere.faces)
    wall_id = scene.add_mesh(wall.vertices, wall.faces)
    print(f"Target: {len(sphere.vertices)} vertices, {len(sphere.faces)} faces")

    camera = Camera.look_at((0.0, 0.0, 6.0), (0.0, 0.0, 0.0), fov_y=60.0)
    config = EstimatorConfig(precision=200, seed=0)
    estimator = SurfaceVisibilityEstimator.for_scene_entity(scene, target_id, camera, config)

    print("\nWall x  | visibility | stage          | time")
    for wall_x in torch.linspace(-2.5, 2.5, 11).tolist():
        scene.set_transform(wall_id, trs_matrix(translation=(wall_x, 0.0, 2.0), device=device))

        t0 = time.time()
        result = estimator.estimate(return_details=True)
        elapsed = time.time() - t0

        print(f"{wall_x:+.2f}   | {estimator.format_label(1):>10} | {result.stage:<14} | {elapsed*1000:.1f}ms")

    print("\n" + "=" * 50)
    print("Done!")
    print("=" * 50)


if __name__ == "__main__":
    main()
