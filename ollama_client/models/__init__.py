"""
Models Package - model listing and pulling

- base.py: Model, ModelSize, ModelLocation, PullModelProgress
- catalog.py: size conversion, filtering and sorting
"""

from .base import Model, ModelLocation, ModelSize, PullModelProgress
from .catalog import bytes_to_gigabytes, filter_models, pull_progress, size_bucket

__all__ = [
    "Model",
    "ModelLocation",
    "ModelSize",
    "PullModelProgress",
    "bytes_to_gigabytes",
    "filter_models",
    "pull_progress",
    "size_bucket",
]
