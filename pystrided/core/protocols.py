"""
Core protocols for pystrided.

These define structural interfaces that kernels and backends must satisfy.
We use Protocol (structural typing) rather than ABC (nominal typing) so a
caller can register a backend without inheriting from anything here.

Design Principles:
    - Minimal contracts: prescribe only what every backend provides
    - Capability-driven: kernels answer supports() per routine and element kind
    - Kernels speak dense native arrays (numpy.ndarray / torch.Tensor) and
      report LAPACK status codes; interpreting the codes is the caller's job
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class NumericKernel(Protocol):
    """
    Dense numeric primitives behind the array and decomposition layers.

    Every method takes dense 2-D (or 1-D) native arrays, never mutates its
    inputs, and returns fresh outputs together with the LAPACK ``info``
    status. Pivot and column-permutation vectors use LAPACK's 1-based
    convention.

    Methods (all status-returning except gemm/gemv):
        gemm(transa, transb, alpha, a, b, beta, c) -> c
        gemv(trans, alpha, a, x, beta, y) -> y
        getrf(a) -> (lu, ipiv, info)
        getri(lu, ipiv) -> (inv, info)
        gesv(a, b) -> (lu, ipiv, x, info)
        gelsy(a, b, rcond) -> (x, jpvt, rank, info)
        gesvd(jobu, jobvt, a) -> (u, s, vt, info)
        gesdd(jobz, a) -> (u, s, vt, info)
        syev(jobz, uplo, a) -> (w, v, info)
        syevr(jobz, range, uplo, a, vl, vu, il, iu, abstol) -> (w, z, m, isuppz, info)
        geqrf(a) -> (qr, tau, info)
        orgqr(qr, tau) -> (q, info)
        geev(jobvl, jobvr, a) -> (wr, wi, vl, vr, info)
    """

    @property
    def name(self) -> str:
        """Kernel identifier, e.g. 'lapack', 'reference', 'torch'."""
        ...

    def supports(self, routine: str, kind: Any) -> bool:
        """
        Whether `routine` (see pystrided.core.capabilities) is available for
        arrays of element kind `kind`.

        Note:
            Unknown routines MUST return False, never raise.
        """
        ...


@runtime_checkable
class Backend(Protocol):
    """
    Protocol for array backends.

    A backend bundles where arrays live (its element factory), how
    elementwise and BLAS-level work is done, and which NumericKernel
    factorizations delegate to.

    Backends are stateless apart from configuration passed at construction,
    which makes them easy to test and swap.
    """

    @property
    def name(self) -> str:
        """
        Backend identifier.

        Examples: 'reference', 'lapack', 'gpu'
        """
        ...

    @property
    def priority(self) -> int:
        """Higher wins when the registry resolves 'auto'."""
        ...

    @property
    def kernel(self) -> NumericKernel:
        ...

    def is_available(self) -> bool:
        """Whether this backend can run on the current machine."""
        ...

    def element_factory(self) -> Any:
        """The ArrayFactory creating arrays for this backend."""
        ...

    def elementwise_routines(self) -> Any:
        """The ArrayRoutines instance for this backend."""
        ...

    def linear_algebra_routines(self) -> Any:
        """The LinearAlgebraRoutines instance for this backend."""
        ...
