"""
Compressors that select rows (Left) or columns (Right) of the source
matrix. The operator is stored as a list of indices and applied by gather
and scatter; it is never formed as a matrix.
"""
import numpy as np
import scipy.sparse as spar
from rlinsolve.randblas.enums import Cardinality
from rlinsolve.comps.compressors.base import Compressor, CompressorRecipe
from rlinsolve.comps.distributions import Uniform
from rlinsolve.utils.linalg_wrappers import as_dense


class Sampling(Compressor):
    """
    Select compression_dim rows (Left) or columns (Right) of the source,
    with indices drawn from a Distribution.

    Parameters
    ----------
    cardinality : Cardinality
    compression_dim : int
    distribution : Distribution
        Defaults to Uniform() (sampling without replacement). If the
        distribution's own cardinality is Undef it inherits the
        compressor's.
    dtype : numpy dtype
    """

    def __init__(self, cardinality=Cardinality.Left, compression_dim=2, distribution=None,
                 dtype=np.float64):
        self.distribution = Uniform() if distribution is None else distribution
        super(Sampling, self).__init__(cardinality, compression_dim, dtype)

    def _complete(self, A, b, x, rng):
        dist = self.distribution.complete(A, self.cardinality, rng)
        n_rows, n_cols = self.recipe_shape(A)
        return SamplingRecipe(self.cardinality, n_rows, n_cols, dist, self.dtype, rng)


class SubCompressor(Sampling):
    """
    Sampling with importance weights: the row (column) selected with
    single-draw probability p_i is scaled by 1/sqrt(compression_dim * p_i),
    which makes E[S^H S] = I (Left) or E[S S^H] = I (Right) when sampling
    with replacement.
    """

    def _complete(self, A, b, x, rng):
        dist = self.distribution.complete(A, self.cardinality, rng)
        n_rows, n_cols = self.recipe_shape(A)
        return SubCompressorRecipe(self.cardinality, n_rows, n_cols, dist, self.dtype, rng)


def _take(A, idx, axis):
    if spar.issparse(A):
        if A.format not in ('csr', 'csc'):
            A = A.tocsr()
        sub = A[idx, :] if axis == 0 else A[:, idx]
        return sub.toarray()
    axis = min(axis, A.ndim - 1)
    return np.take(A, idx, axis=axis)


class SamplingRecipe(CompressorRecipe):
    """
    The row-selecting realization P has shape (k, n) with P[j, idx[j]] = 1.
    A Left recipe is P; a Right recipe is P^T.
    """

    def __init__(self, cardinality, n_rows, n_cols, distribution, dtype, rng):
        super(SamplingRecipe, self).__init__(cardinality, n_rows, n_cols, dtype, rng)
        self.distribution = distribution
        k = n_rows if cardinality == Cardinality.Left else n_cols
        self.idx = np.zeros(k, dtype=np.int64)
        self.scale = None
        self.distribution.sample(self.idx)

    def update(self, x=None, A=None, b=None):
        self.distribution.update(A, x, b)
        self.distribution.sample(self.idx)

    def _scaled(self, M, axis):
        if self.scale is None:
            return M
        if axis == 0 and M.ndim == 2:
            return M * self.scale[:, None]
        return M * self.scale

    @staticmethod
    def _zero_or_scale(C, beta):
        if beta == 0.0:
            C[...] = 0
        elif beta != 1.0:
            C *= beta

    def _apply_left(self, C, A, alpha, beta, adjoint):
        if not self._transposed(adjoint):
            # gather rows
            rows = self._scaled(_take(A, self.idx, 0), 0)
            if beta == 0.0:
                np.multiply(rows, alpha, out=C, casting='unsafe')
            else:
                C *= beta
                C += alpha * rows
        else:
            # scatter rows, accumulating repeated indices
            self._zero_or_scale(C, beta)
            np.add.at(C, self.idx, alpha * self._scaled(as_dense(A), 0))

    def _apply_right(self, C, A, alpha, beta, adjoint):
        if not self._transposed(adjoint):
            # scatter columns
            self._zero_or_scale(C, beta)
            vals = alpha * self._scaled(as_dense(A), 1)
            if C.ndim == 1:
                np.add.at(C, self.idx, vals)
            else:
                np.add.at(C, (slice(None), self.idx), vals)
        else:
            # gather columns
            cols = self._scaled(_take(A, self.idx, 1), 1)
            if beta == 0.0:
                np.multiply(cols, alpha, out=C, casting='unsafe')
            else:
                C *= beta
                C += alpha * cols


class SubCompressorRecipe(SamplingRecipe):

    def __init__(self, cardinality, n_rows, n_cols, distribution, dtype, rng):
        super(SubCompressorRecipe, self).__init__(cardinality, n_rows, n_cols, distribution,
                                                  dtype, rng)
        self.scale = np.empty(self.idx.size)
        self._rescale()

    def update(self, x=None, A=None, b=None):
        super(SubCompressorRecipe, self).update(x, A, b)
        self._rescale()

    def _rescale(self):
        probs = self.distribution.probability(self.idx)
        self.scale[:] = 1.0 / np.sqrt(self.idx.size * probs)
