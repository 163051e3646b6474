import numpy as np
import pytest

from pyhho.core.errors import SingularLocalSystem
from pyhho.hho import static_condensation_compute, static_condensation_recover


def _spd(rng, n):
    B = rng.normal(size=(n, n))
    return B @ B.T + n * np.eye(n)


@pytest.mark.parametrize("method", ["cholesky", "lu"])
def test_condensation_reproduces_full_solve(rng, method):
    n, t = 12, 4
    A = _spd(rng, n)
    b = rng.normal(size=n)
    x = np.linalg.solve(A, b)

    S, r = static_condensation_compute(A, b, t, method=method)
    assert S.shape == (n - t, n - t) and r.shape == (n - t,)
    u_F = np.linalg.solve(S, r)
    assert np.allclose(u_F, x[t:], atol=1e-10)

    full = static_condensation_recover(A, b, t, u_F, method=method)
    assert np.allclose(full, x, atol=1e-10)


def test_lu_handles_nonsymmetric_blocks(rng):
    n, t = 9, 3
    A = _spd(rng, n) + np.triu(rng.normal(size=(n, n)), 1)
    b = rng.normal(size=n)
    x = np.linalg.solve(A, b)
    S, r = static_condensation_compute(A, b, t, method="lu")
    full = static_condensation_recover(A, b, t, np.linalg.solve(S, r), method="lu")
    assert np.allclose(full, x, atol=1e-10)


def test_cell_only_rhs(rng):
    n, t = 8, 3
    A = _spd(rng, n)
    b_T = rng.normal(size=t)
    S1, r1 = static_condensation_compute(A, b_T, t)
    S2, r2 = static_condensation_compute(A, np.concatenate([b_T, np.zeros(n - t)]), t)
    assert np.allclose(S1, S2) and np.allclose(r1, r2)


@pytest.mark.parametrize("method", ["cholesky", "lu"])
def test_singular_cell_block(method):
    A = np.eye(5)
    A[0, 0] = 0.0
    with pytest.raises(SingularLocalSystem):
        static_condensation_compute(A, np.ones(5), 2, method=method)


def test_invalid_sizes(rng):
    A = _spd(rng, 6)
    with pytest.raises(ValueError):
        static_condensation_compute(A, np.ones(6), 0)
    with pytest.raises(ValueError):
        static_condensation_compute(A, np.ones(4), 2)
    with pytest.raises(ValueError):
        static_condensation_compute(A[:, :5], np.ones(6), 2)
    with pytest.raises(ValueError):
        static_condensation_recover(A, np.ones(6), 2, np.ones(3))
    with pytest.raises(ValueError):
        static_condensation_compute(A, np.ones(6), 2, method="qr")
