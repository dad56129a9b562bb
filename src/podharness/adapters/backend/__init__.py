"""Concrete `ContainerBackend` implementations."""

from .docker_engine import DockerBackend
from .memory import MemoryBackend

__all__ = ["DockerBackend", "MemoryBackend"]
