"""
PointLoader component for reading 3D sample points.
"""

import os
import logging
import numpy as np
import open3d as o3d
import trimesh

logger = logging.getLogger(__name__)

POINT_CLOUD_SUFFIXES = ('.pcd', '.ply', '.xyz', '.xyzn', '.xyzrgb', '.pts')
MESH_SUFFIXES = ('.stl', '.obj', '.off', '.glb')


class PointLoader:
    """Handles loading point collections from files or memory."""

    @staticmethod
    def validate_path(path: str) -> None:
        """Raise FileNotFoundError with descriptive message if invalid.

        Args:
            path: Path to validate.

        Raises:
            FileNotFoundError: If the path does not exist.
        """
        if not os.path.exists(path):
            raise FileNotFoundError(f"Point file not found: {path}")

    @staticmethod
    def as_points(data) -> np.ndarray:
        """Normalize an in-memory collection to a read-only (N, 3) array.

        Args:
            data: Anything array-like holding (x, y, z) triples.

        Returns:
            float64 array of shape (N, 3); N may be zero.

        Raises:
            ValueError: If the data cannot be read as 3D points.
        """
        points = np.array(data, dtype=np.float64)
        if points.size == 0:
            points = points.reshape(0, 3)
        if points.ndim != 2 or points.shape[1] != 3:
            raise ValueError(f"Expected points of shape (N, 3), got {points.shape}")
        points.setflags(write=False)
        return points

    @staticmethod
    def load_point_cloud(path: str) -> np.ndarray:
        """Load a point cloud file (PCD, PLY, XYZ, ...) with Open3D.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If no points could be read.
        """
        PointLoader.validate_path(path)
        cloud = o3d.io.read_point_cloud(path)
        if not cloud.has_points():
            raise ValueError(f"Could not read any points from file: {path}")
        return PointLoader.as_points(np.asarray(cloud.points))

    @staticmethod
    def load_mesh_vertices(path: str) -> np.ndarray:
        """Load mesh vertices (STL, OBJ, ...) as sample points.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file format is invalid.
        """
        PointLoader.validate_path(path)
        try:
            mesh = trimesh.load(path, force='mesh')
        except Exception as e:
            raise ValueError(f"Invalid mesh format in file: {path}") from e
        return PointLoader.as_points(mesh.vertices)

    @staticmethod
    def load(path: str) -> np.ndarray:
        """Load points from any supported file, dispatching on the suffix."""
        suffix = os.path.splitext(path)[1].lower()
        if suffix in POINT_CLOUD_SUFFIXES:
            points = PointLoader.load_point_cloud(path)
        elif suffix in MESH_SUFFIXES:
            points = PointLoader.load_mesh_vertices(path)
        else:
            raise ValueError(f"Unsupported point file type '{suffix}': {path}")

        logger.info("Loaded %d points from %s", len(points), path)
        return points
