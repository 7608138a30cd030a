"""
Hardware detection and device management.

Provides a unified interface for detecting available compute devices. The
GPU backend uses it to answer is_available() and to pick the torch device
its buffers and kernels live on; host backends report get_cpu_info().
"""

from dataclasses import dataclass
from typing import Literal
import platform


@dataclass(frozen=True)
class DeviceInfo:
    """
    Information about a compute device.

    Attributes:
        device_type: Type of device ('cpu', 'cuda', 'mps')
        device_index: Device index (None for CPU)
        name: Human-readable device name
        memory_bytes: Total device memory in bytes (None if unknown)
        supports_fp64: Whether the device computes in double precision
    """
    device_type: Literal['cpu', 'cuda', 'mps']
    device_index: int | None
    name: str
    memory_bytes: int | None
    supports_fp64: bool

    def __str__(self) -> str:
        if self.device_type == 'cpu':
            return f"CPU ({self.name})"
        mem_str = ""
        if self.memory_bytes is not None:
            mem_gb = self.memory_bytes / (1024**3)
            mem_str = f", {mem_gb:.1f}GB"
        return f"{self.device_type.upper()}:{self.device_index} ({self.name}{mem_str})"

    @property
    def is_gpu(self) -> bool:
        """True if this is a GPU device."""
        return self.device_type in ('cuda', 'mps')

    @property
    def torch_name(self) -> str:
        """Device string understood by torch.device()."""
        return f"{self.device_type}:{self.device_index or 0}"


def detect_gpu() -> DeviceInfo | None:
    """
    Detect available GPU, if any.

    Returns:
        DeviceInfo for the best available GPU, or None if no GPU available.

    Priority: CUDA > MPS (Apple Silicon)

    Note:
        This function imports torch lazily to avoid import overhead
        when GPU detection isn't needed.
    """
    try:
        import torch
    except ImportError:
        return None

    if torch.cuda.is_available():
        idx = torch.cuda.current_device()
        props = torch.cuda.get_device_properties(idx)
        return DeviceInfo(
            device_type='cuda',
            device_index=idx,
            name=props.name,
            memory_bytes=props.total_memory,
            supports_fp64=True,
        )

    if hasattr(torch.backends, 'mps') and torch.backends.mps.is_available():
        return DeviceInfo(
            device_type='mps',
            device_index=0,
            name='Apple Silicon GPU',
            memory_bytes=None,  # MPS doesn't expose memory info easily
            supports_fp64=False,
        )

    return None


def get_cpu_info() -> DeviceInfo:
    """
    Get CPU device info.

    Returns:
        DeviceInfo for the CPU
    """
    processor = platform.processor()
    if not processor:
        processor = platform.machine() or "Unknown CPU"

    return DeviceInfo(
        device_type='cpu',
        device_index=None,
        name=processor,
        memory_bytes=None,
        supports_fp64=True,
    )
