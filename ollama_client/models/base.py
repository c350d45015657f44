"""
Model listing and pull data structures.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ModelLocation(str, Enum):
    LOCAL = "local"    # installed on the Ollama server
    REMOTE = "remote"  # available from the public catalog


class ModelSize(str, Enum):
    """Size buckets, in GiB: tiny <= 0.5 < small <= 2 < medium <= 5 < large."""
    TINY = "tiny"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class Model(BaseModel):
    """A model as reported by /api/tags or the remote catalog."""

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    size: Optional[int] = None  # bytes
    modified_at: Optional[datetime] = None
    digest: Optional[str] = None
    location: ModelLocation = ModelLocation.LOCAL


class PullModelProgress(BaseModel):
    """One progress update while a model is being pulled."""

    model_config = ConfigDict(extra="ignore")

    status: str
    percentage: Optional[float] = None
    digest: Optional[str] = None
    total: Optional[int] = None
    completed: Optional[int] = None
