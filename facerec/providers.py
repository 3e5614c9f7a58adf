"""
External linear-algebra providers.

A provider supplies the three dense kernels the engine does not implement
itself: matrix product, LU-based inversion and eigendecomposition. Providers
work on plain float64 ndarrays so they can be swapped or mocked without
touching the Matrix class.

- NumpyProvider: numpy matmul, LAPACK dgetrf/dgetri through scipy, dgeev
  through numpy.linalg.eig
- TorchProvider: the same contract on CPU float64 tensors
"""

import logging

import numpy as np
import torch
from scipy.linalg import lapack

import config

logger = logging.getLogger(__name__)


class LinearAlgebraProvider:
    """
    Capability interface for the dense kernels.

    Subclasses must implement:
        multiply(A, B) -> ndarray of shape (A.rows, B.cols)
        lu_invert(A) -> (inverse ndarray, info), info != 0 on failure
        eigen(A) -> (eigenvalues (n, 1), eigenvectors (n, n)); eigenvector k
                    is column k, real parts only, no ordering guarantee
    """

    name = None

    def multiply(self, A, B):
        raise NotImplementedError

    def lu_invert(self, A):
        raise NotImplementedError

    def eigen(self, A):
        raise NotImplementedError

    def __repr__(self):
        return f"{self.__class__.__name__}()"


class NumpyProvider(LinearAlgebraProvider):
    name = 'numpy'

    def multiply(self, A, B):
        return np.matmul(A, B)

    def lu_invert(self, A):
        lu, piv, info = lapack.dgetrf(np.array(A, dtype=np.float64))
        if info != 0:
            return None, info
        inv, info = lapack.dgetri(lu, piv)
        if info != 0:
            return None, info
        return inv, 0

    def eigen(self, A):
        eigenvalues, eigenvectors = np.linalg.eig(A)
        return (np.real(eigenvalues).reshape(-1, 1).astype(np.float64),
                np.real(eigenvectors).astype(np.float64))


class TorchProvider(LinearAlgebraProvider):
    name = 'torch'

    def __init__(self):
        self.device = torch.device('cpu')

    def _tensor(self, A):
        return torch.as_tensor(np.ascontiguousarray(A), dtype=torch.float64, device=self.device)

    def multiply(self, A, B):
        return torch.matmul(self._tensor(A), self._tensor(B)).numpy()

    def lu_invert(self, A):
        A_t = self._tensor(A)
        LU, pivots, info = torch.linalg.lu_factor_ex(A_t)
        if int(info) != 0:
            return None, int(info)
        identity = torch.eye(A_t.shape[0], dtype=torch.float64, device=self.device)
        inv = torch.linalg.lu_solve(LU, pivots, identity)
        if not bool(torch.isfinite(inv).all()):
            return None, -1
        return inv.numpy(), 0

    def eigen(self, A):
        eigenvalues, eigenvectors = torch.linalg.eig(self._tensor(A))
        return (eigenvalues.real.numpy().reshape(-1, 1).astype(np.float64),
                eigenvectors.real.numpy().astype(np.float64))


_PROVIDERS = {
    NumpyProvider.name: NumpyProvider,
    TorchProvider.name: TorchProvider,
}

_default_provider = None


def get_provider(name):
    """Instantiate a registered provider by name ('numpy' or 'torch')."""
    try:
        provider_cls = _PROVIDERS[name]
    except KeyError:
        raise ValueError(f"Unknown linear algebra provider: {name!r} "
                         f"(available: {sorted(_PROVIDERS)})") from None
    return provider_cls()


def get_default_provider():
    global _default_provider
    if _default_provider is None:
        _default_provider = get_provider(config.LINALG_PROVIDER)
        logger.debug("Using linear algebra provider %s", _default_provider.name)
    return _default_provider


def set_default_provider(provider):
    """Set the module default; accepts a provider instance or a registered name."""
    global _default_provider
    if isinstance(provider, str):
        provider = get_provider(provider)
    _default_provider = provider
    logger.info("Default linear algebra provider set to %r", provider)
    return provider


def resolve(provider):
    """Return `provider` if given, otherwise the module default."""
    return provider if provider is not None else get_default_provider()
