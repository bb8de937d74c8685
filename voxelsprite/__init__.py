"""Render voxel objects into palette-indexed and true-colour sprite sheets."""

__version__ = "0.1.0"