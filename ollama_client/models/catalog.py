"""
Client-side filtering and ordering of model lists.
"""

import re
from typing import Iterable, List, Optional

from .base import Model, ModelSize, PullModelProgress

BYTES_PER_GIGABYTE = 1024 ** 3


def bytes_to_gigabytes(size: int) -> float:
    return size / BYTES_PER_GIGABYTE


def size_bucket(size: int) -> ModelSize:
    gigabytes = bytes_to_gigabytes(size)
    if gigabytes <= 0.5:
        return ModelSize.TINY
    if gigabytes <= 2:
        return ModelSize.SMALL
    if gigabytes <= 5:
        return ModelSize.MEDIUM
    return ModelSize.LARGE


def filter_models(
    models: Iterable[Model],
    pattern: Optional[str] = None,
    size: Optional[ModelSize] = None,
) -> List[Model]:
    """
    Filter models by name and size, smallest first.

    Args:
        models: Models to filter
        pattern: Regex searched case-insensitively in the model name
        size: Keep only models in this size bucket (models of unknown
            size are dropped)

    Returns:
        Matching models sorted by size, unknown sizes first
    """
    result = list(models)

    if pattern:
        regex = re.compile(pattern, re.IGNORECASE)
        result = [m for m in result if m.name is not None and regex.search(m.name)]

    if size is not None:
        result = [m for m in result if m.size is not None and size_bucket(m.size) == size]

    return sorted(result, key=lambda m: m.size or 0)


def pull_progress(data: dict) -> PullModelProgress:
    """Turn one /api/pull stream line into a progress update."""
    progress = PullModelProgress.model_validate(data)

    if progress.total and progress.completed is not None:
        progress.percentage = round(progress.completed / progress.total * 100, 2)
    elif progress.status == "success":
        progress.percentage = 100.0

    return progress
