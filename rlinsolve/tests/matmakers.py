import numpy as np
import scipy.linalg as la
import scipy.sparse as spar
import rlinsolve.utils.sketching as usk


def well_conditioned(n_rows, n_cols, cond, rng):
    """A matrix with singular values spread evenly over [1, cond]."""
    rng = np.random.default_rng(rng)
    rank = min(n_rows, n_cols)
    U = usk.orthonormal_operator(n_rows, rank, rng)
    Vt = usk.orthonormal_operator(rank, n_cols, rng)
    spectrum = np.linspace(1.0, cond, rank)
    return (U * spectrum) @ Vt


def consistent_system(n_rows, n_cols, rng, cond=5.0):
    rng = np.random.default_rng(rng)
    A = well_conditioned(n_rows, n_cols, cond, rng)
    x = rng.standard_normal(n_cols)
    return A, A @ x, x


def inconsistent_system(n_rows, n_cols, rng, noise=0.1, cond=5.0):
    """
    Return (A, b, x_ls, noise_vec) with b = A @ x_true + noise_vec. x_ls is
    the least squares solution.
    """
    rng = np.random.default_rng(rng)
    A = well_conditioned(n_rows, n_cols, cond, rng)
    x_true = rng.standard_normal(n_cols)
    noise_vec = noise * rng.standard_normal(n_rows)
    b = A @ x_true + noise_vec
    x_ls = la.lstsq(A, b)[0]
    return A, b, x_ls, noise_vec


def sparse_mat(n_rows, n_cols, density, rng, fmt='csr'):
    rng = np.random.default_rng(rng)
    A = spar.random(n_rows, n_cols, density=density, format=fmt, random_state=rng,
                    data_rvs=rng.standard_normal)
    return A
