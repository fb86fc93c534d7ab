"""Native builder contracts and the CMake implementation."""

from .base import BuildArtifact, NativeBuilder
from .cmake import CMakeBuilder
from .orchestrate import build_library

__all__ = ["BuildArtifact", "CMakeBuilder", "NativeBuilder", "build_library"]
