"""
Tolerance tiers for numerical validation.

Defines precision expectations for the different kernels:
- LAPACK FP64 (reference): machine-precision agreement
- Reference (pure NumPy) FP64: same expectations, unblocked algorithms
- GPU FP64 (CUDA): same as LAPACK
- GPU FP32 (MPS, or CUDA without FP64): relaxed for single precision

Used by the test suite and by backends to report the tier of their results.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerance specification for numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


LAPACK_FP64 = ToleranceTier(
    rtol=1e-10,
    atol=1e-12,
    name='lapack_fp64',
    description='LAPACK double precision',
)

REFERENCE_FP64 = ToleranceTier(
    rtol=1e-9,
    atol=1e-11,
    name='reference_fp64',
    description='Unblocked NumPy kernels, double precision',
)

GPU_FP64 = ToleranceTier(
    rtol=1e-10,
    atol=1e-12,
    name='gpu_fp64',
    description='GPU double precision, matches LAPACK',
)

GPU_FP32 = ToleranceTier(
    rtol=1e-4,
    atol=1e-5,
    name='gpu_fp32',
    description='GPU single precision',
)


def select_tolerance(kernel_name: str) -> ToleranceTier:
    """
    Select the tolerance tier for results produced by a kernel.

    Decompositions record the kernel name under ``info['kernel']``.
    """
    if kernel_name.startswith(('gpu', 'torch')):
        if 'fp32' in kernel_name:
            return GPU_FP32
        return GPU_FP64
    if kernel_name == 'reference':
        return REFERENCE_FP64
    return LAPACK_FP64
