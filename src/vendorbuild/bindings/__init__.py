"""Binding generator contracts and the bindgen implementation."""

from .base import BindingGenerator
from .bindgen import BindgenGenerator
from .generate import generate_bindings

__all__ = ["BindgenGenerator", "BindingGenerator", "generate_bindings"]
