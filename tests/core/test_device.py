"""
Tests for hardware detection.

Validates:
    - CPU info is always available and reports double precision
    - DeviceInfo formatting and torch device names
    - detect_gpu returns None or a GPU DeviceInfo
"""

from pystrided.core.backends.device import DeviceInfo, detect_gpu, get_cpu_info


class TestDeviceInfo:

    def test_cpu_info(self):
        info = get_cpu_info()
        assert info.device_type == 'cpu'
        assert info.device_index is None
        assert info.supports_fp64
        assert info.name

    def test_cuda_torch_name(self):
        info = DeviceInfo('cuda', 1, 'Test GPU', 8 * 1024**3, True)
        assert info.is_gpu
        assert info.torch_name == 'cuda:1'
        assert str(info) == 'CUDA:1 (Test GPU, 8.0GB)'

    def test_mps_torch_name(self):
        info = DeviceInfo('mps', 0, 'Apple Silicon GPU', None, False)
        assert info.torch_name == 'mps:0'
        assert str(info) == 'MPS:0 (Apple Silicon GPU)'

    def test_detect_gpu(self):
        info = detect_gpu()
        assert info is None or info.is_gpu
