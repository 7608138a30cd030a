"""
Hardware detection and numerical precision.

Submodules:
    device: Hardware detection
    precision: Machine epsilon and rank tolerances
"""

from pystrided.core.backends.device import (
    DeviceInfo,
    detect_gpu,
    get_cpu_info,
)
from pystrided.core.backends.precision import (
    EPSILON_64,
    EPSILON_32,
    machine_epsilon,
    default_rcond,
    numerical_rank,
)

__all__ = [
    # Device detection
    "DeviceInfo",
    "detect_gpu",
    "get_cpu_info",
    # Precision
    "EPSILON_64",
    "EPSILON_32",
    "machine_epsilon",
    "default_rcond",
    "numerical_rank",
]
