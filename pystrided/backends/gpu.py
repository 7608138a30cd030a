"""
GPU backend using PyTorch.

Supports CUDA (Linux/Windows) and MPS (macOS Apple Silicon). Arrays created
by this backend live in DeviceBuffers on the detected device and must be
released (DeviceBuffer.release(), or a DeviceScope) when no longer needed.

torch is imported only when the kernel is first used, so registering this
backend on a machine without torch or without a GPU costs nothing;
is_available() simply reports False there.
"""

from pystrided.backends._common import KernelBackend
from pystrided.core.backends.device import DeviceInfo, detect_gpu
from pystrided.core.config import ArrayConfig
from pystrided.core.exceptions import BackendUnavailableError
from pystrided.core.memo import Memo


class TorchBackend(KernelBackend):
    """
    Device arrays, PyTorch kernel.

    Args:
        device: torch device string ('cuda:0', 'mps:0'); a bare device type
            means index 0. None selects the GPU found by detect_gpu() on
            first use
        config: Library configuration
    """

    name = 'gpu'
    priority = 100

    def __init__(self, device: str | None = None, config: ArrayConfig | None = None):
        if device is not None and ':' not in device:
            device = f"{device}:0"
        super().__init__(device or 'cuda:0', config)
        self._requested = device
        self._gpu = Memo(detect_gpu)

    @property
    def device(self) -> str:
        if self._requested is not None:
            return self._requested
        info = self._gpu.get()
        if info is None:
            raise BackendUnavailableError(
                "No GPU available. Install PyTorch with CUDA or MPS support, "
                "or use backend='lapack'.",
                backend=self.name,
            )
        return info.torch_name

    @property
    def device_info(self) -> DeviceInfo | None:
        return self._gpu.get()

    def is_available(self) -> bool:
        info = self._gpu.get()
        if info is None:
            return False
        if self._requested is None:
            return True
        return self._requested.split(':')[0] == info.device_type

    def _create_kernel(self):
        if not self.is_available():
            raise BackendUnavailableError(
                f"GPU device {self._requested or 'auto'!r} is not available",
                backend=self.name,
            )
        from pystrided.kernel.gpu import TorchKernel
        return TorchKernel(self.device)
