"""
Shared implementation of the Backend protocol for kernel-backed backends.

A backend here is (kernel, device, config). The element factory and the two
routine objects are built on first use and reused afterwards, so asking a
backend for its routines repeatedly is cheap.
"""

from typing import Any

from pystrided.array.factory import ArrayFactory
from pystrided.array.routines import ArrayRoutines
from pystrided.core.backends.device import DeviceInfo, get_cpu_info
from pystrided.core.config import ArrayConfig
from pystrided.core.memo import Memo
from pystrided.linalg.routines import LinearAlgebraRoutines


class KernelBackend:
    """
    Backend serving arrays on one device through one NumericKernel.

    Subclasses provide ``name``, ``priority``, ``is_available()`` and
    ``_create_kernel()``.

    Args:
        device: Device the backend's arrays live on
        config: Library configuration (memory order, mixed-operand policy,
            rank tolerance)
    """

    name: str = 'kernel'
    priority: int = 0

    def __init__(self, device: str = 'cpu', config: ArrayConfig | None = None):
        self._device = device
        self.config = config or ArrayConfig()
        self._kernel = Memo(self._create_kernel)
        self._factory = Memo(self._create_factory)
        self._elementwise = Memo(self._create_elementwise)
        self._linear_algebra = Memo(self._create_linear_algebra)

    def _create_kernel(self) -> Any:
        raise NotImplementedError

    @property
    def device(self) -> str:
        return self._device

    @property
    def kernel(self) -> Any:
        return self._kernel.get()

    @property
    def device_info(self) -> DeviceInfo | None:
        return get_cpu_info()

    def is_available(self) -> bool:
        return True

    def element_factory(self) -> ArrayFactory:
        return self._factory.get()

    def elementwise_routines(self) -> ArrayRoutines:
        return self._elementwise.get()

    def linear_algebra_routines(self) -> LinearAlgebraRoutines:
        return self._linear_algebra.get()

    def _create_factory(self) -> ArrayFactory:
        return ArrayFactory(self.device, self.config.order)

    def _create_elementwise(self) -> ArrayRoutines:
        return ArrayRoutines(
            self.kernel, self.device, self.config.mixed_operand_policy, backend_name=self.name,
        )

    def _create_linear_algebra(self) -> LinearAlgebraRoutines:
        return LinearAlgebraRoutines(
            self.kernel,
            self.device,
            self.config.mixed_operand_policy,
            backend_name=self.name,
            rank_rtol=self.config.rank_rtol,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, device={self.device!r}, priority={self.priority})"
