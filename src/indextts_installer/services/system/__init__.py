"""System capability probing."""

from .probe import SystemProbe, parse_gpu_models

__all__ = ["SystemProbe", "parse_gpu_models"]
