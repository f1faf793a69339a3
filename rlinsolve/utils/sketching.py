import numpy as np
import scipy.linalg as la
import scipy.sparse as spar
from rlinsolve.utils.linalg_wrappers import is_complex


def orthonormal_operator(n_rows, n_cols, rng):
    if n_rows < n_cols:
        return orthonormal_operator(n_cols, n_rows, rng).T
    else:
        rng = np.random.default_rng(rng)
        Q = rng.standard_normal((n_rows, n_cols))
        Q, R = la.qr(Q, overwrite_a=True, pivoting=False, mode='economic')
        Q = Q * np.sign(np.diag(R))
        return Q


def fill_gaussian(out, rng, scale=1.0):
    """Overwrite out with i.i.d. N(0, scale^2) entries."""
    if is_complex(out):
        # unit variance for the complex entries
        out.real = rng.standard_normal(out.shape)
        out.imag = rng.standard_normal(out.shape)
        scale = scale / np.sqrt(2.0)
    else:
        rng.standard_normal(dtype=out.dtype, out=out)
    out *= scale
    return out


def fill_signs(out, rng, scale=1.0):
    """Overwrite out with i.i.d. Rademacher entries, multiplied by scale."""
    out[:] = scale
    out[rng.random(out.size) < 0.5] *= -1
    return out


def fill_sparse_positions(out, n_vecs, vec_len, vec_nnz, rng):
    """
    For each of n_vecs vectors of length vec_len, choose vec_nnz distinct
    positions. Positions for vector i are written (sorted) into
    out[i * vec_nnz : (i + 1) * vec_nnz].
    """
    if n_vecs * vec_len <= 2**22:
        keys = rng.random((n_vecs, vec_len))
        pos = np.argpartition(keys, vec_nnz - 1, axis=1)[:, :vec_nnz]
        pos.sort(axis=1)
        out[:] = pos.ravel()
    else:
        for i in range(n_vecs):
            start = i * vec_nnz
            pos = rng.choice(vec_len, vec_nnz, replace=False)
            pos.sort()
            out[start:start + vec_nnz] = pos
    return out


def sparse_sign_operator(n_rows, n_cols, rng, vec_nnz=8, by_column=True):
    """
    Build a sparse operator with exactly vec_nnz nonzeros in every column
    (by_column=True, CSC format) or every row (by_column=False, CSR format).
    Nonzeros are +/- 1/sqrt(vec_nnz).

    Parameters
    ----------
    n_rows : int
        number of rows of the operator
    n_cols : int
        number of columns of the operator
    rng : Union[None, int, SeedSequence, BitGenerator, Generator]
        Source of randomness.
    vec_nnz : int
        nonzeros per column (or row); must not exceed the length of a column
        (or row).
    by_column : bool
        Whether vec_nnz applies to columns or to rows.

    Returns
    -------
    S : Union[csc_matrix, csr_matrix]
    """
    rng = np.random.default_rng(rng)
    n_vecs, vec_len = (n_cols, n_rows) if by_column else (n_rows, n_cols)
    if vec_nnz > vec_len:
        msg = f"""
        Can't set {vec_nnz} nonzeros per vector for vectors of length {vec_len}.
        """
        raise ValueError(msg)
    indptr = np.arange(0, n_vecs * vec_nnz + 1, vec_nnz)
    indices = np.zeros(n_vecs * vec_nnz, dtype=np.int64)
    data = np.empty(n_vecs * vec_nnz)
    if by_column:
        S = spar.csc_matrix((data, indices, indptr), shape=(n_rows, n_cols))
    else:
        S = spar.csr_matrix((data, indices, indptr), shape=(n_rows, n_cols))
    redraw_sparse_sign(S, vec_nnz, rng)
    return S


def redraw_sparse_sign(S, vec_nnz, rng):
    """Redraw the positions and signs of a sparse_sign_operator in place."""
    by_column = S.format == 'csc'
    n_vecs, vec_len = (S.shape[1], S.shape[0]) if by_column else S.shape
    fill_sparse_positions(S.indices, n_vecs, vec_len, vec_nnz, rng)
    fill_signs(S.data, rng, 1.0 / np.sqrt(vec_nnz))
    return S


def countsketch_operator(n_rows, n_cols, rng, by_column=True):
    """
    Build a sparse operator with exactly one +/- 1 entry in every column
    (by_column=True) or every row (by_column=False). The position of that
    entry is drawn uniformly and independently for each column (row).
    """
    rng = np.random.default_rng(rng)
    n_vecs = n_cols if by_column else n_rows
    indptr = np.arange(n_vecs + 1)
    indices = np.zeros(n_vecs, dtype=np.int64)
    data = np.ones(n_vecs)
    if by_column:
        S = spar.csc_matrix((data, indices, indptr), shape=(n_rows, n_cols))
    else:
        S = spar.csr_matrix((data, indices, indptr), shape=(n_rows, n_cols))
    redraw_countsketch(S, rng)
    return S


def redraw_countsketch(S, rng):
    by_column = S.format == 'csc'
    n_buckets = S.shape[0] if by_column else S.shape[1]
    S.indices[:] = rng.integers(0, n_buckets, size=S.indices.size)
    fill_signs(S.data, rng)
    return S
