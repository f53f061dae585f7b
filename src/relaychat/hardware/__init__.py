"""Hardware probing for the local engine."""

from .detect import detect_gpu, has_enough_vram

__all__ = ["detect_gpu", "has_enough_vram"]
