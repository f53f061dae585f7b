"""GPU memory detection used to check the local model's VRAM hint."""

import logging
import platform
import subprocess

logger = logging.getLogger(__name__)


def detect_gpu() -> tuple[str, float]:
    """Detect GPU type and available VRAM.

    Returns:
        Tuple of (gpu_type, vram_mb) where gpu_type is one of:
        "apple_silicon", "nvidia", "cpu"
    """
    if platform.system() == "Darwin" and platform.machine() in ("arm64", "aarch64"):
        return ("apple_silicon", _get_apple_unified_memory_mb())

    nvidia_mb = _get_nvidia_vram_mb()
    if nvidia_mb > 0:
        return ("nvidia", nvidia_mb)

    return ("cpu", 0.0)


def _get_apple_unified_memory_mb() -> float:
    """Usable share of Apple Silicon unified memory, in MB."""
    try:
        result = subprocess.run(
            ["sysctl", "-n", "hw.memsize"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            # Roughly 60% of unified memory is available to the GPU
            return int(result.stdout.strip()) / (1024**2) * 0.6
    except (FileNotFoundError, subprocess.TimeoutExpired, ValueError):
        pass

    return 8192.0


def _get_nvidia_vram_mb() -> float:
    """Total VRAM of the first NVIDIA GPU in MB, or 0 if none is found."""
    try:
        result = subprocess.run(
            ["nvidia-smi", "--query-gpu=memory.total", "--format=csv,noheader,nounits"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            return float(result.stdout.strip().split("\n")[0])
    except (FileNotFoundError, subprocess.TimeoutExpired, ValueError):
        pass

    return 0.0


def has_enough_vram(required_mb: float | None) -> bool:
    """Check the detected VRAM against a minimum requirement.

    CPU-only hosts are reported as sufficient since the local runtime
    can still serve the model, just slower.

    Args:
        required_mb: Minimum VRAM hint, or None for no requirement

    Returns:
        False only when a GPU was found with less memory than required
    """
    if not required_mb:
        return True

    gpu_type, vram_mb = detect_gpu()
    if gpu_type == "cpu":
        logger.debug("No GPU detected, skipping VRAM check")
        return True

    logger.debug("Detected %s with %.0f MB VRAM (need %.0f MB)", gpu_type, vram_mb, required_mb)
    return vram_mb >= required_mb
