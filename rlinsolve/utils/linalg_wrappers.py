import numpy as np
import scipy.sparse as spar


def is_complex(mat):
    return 'complex' in str(mat.dtype)


def herm_adjoint(a):
    # Calling .conj() allocates a new copy of an array.
    ah = a.T if 'complex' not in str(a.dtype) else a.T.conj()
    return ah


def as_dense(mat):
    """Return an ndarray view (or densified copy) of mat."""
    if spar.issparse(mat):
        return mat.toarray()
    return np.asarray(mat)


def axpby(alpha, x, beta, y):
    """
    Overwrite y with alpha * x + beta * y and return y.

    When beta == 0 the previous contents of y are ignored, so y may hold
    uninitialized memory (or NaNs) on entry.
    """
    x = as_dense(x)
    if beta == 0.0:
        np.multiply(x, alpha, out=y, casting='unsafe')
    else:
        if beta != 1.0:
            y *= beta
        if alpha == 1.0:
            y += x
        else:
            y += alpha * x
    return y


def squared_norms(A, axis):
    """
    Squared 2-norms of the rows (axis=1) or columns (axis=0) of A,
    for A dense or scipy.sparse.
    """
    if spar.issparse(A):
        sq = abs(A).power(2).sum(axis=axis)
        return np.asarray(sq).ravel()
    A = np.asarray(A)
    if A.ndim == 1:
        return np.abs(A) ** 2
    return np.sum(np.abs(A) ** 2, axis=axis)


def result_dtype(*mats):
    """The floating point type that arithmetic on mats produces."""
    return np.result_type(*[m.dtype for m in mats], np.float32)
