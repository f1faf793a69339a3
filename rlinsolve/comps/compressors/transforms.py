"""
Compressors built on the fast Walsh-Hadamard transform.

Both operators have the form S = c * K @ H @ D @ P (cardinality Left), where
P zero-pads the source dimension n up to the next power of two p, D is a
random diagonal sign matrix, H is the unnormalized p-by-p Hadamard matrix
and K is a k-by-p mixing matrix. For cardinality Right the operator is the
transpose of that.

Computing H @ D @ P @ A costs O(p log p) per column of A, while applying K
afterwards is cheap. complete() therefore primes the recipe with the
transforms of the source matrix and right-hand-side it was given, and
update() only redraws K. D is drawn once, by complete(); call
reset_transform() to redraw it.
"""
import numpy as np
from rlinsolve.randblas.enums import Cardinality
from rlinsolve.randblas.fwht import fwht
from rlinsolve.randblas.helpers import next_power_of_two
from rlinsolve.comps.compressors.base import Compressor, CompressorRecipe
from rlinsolve.utils.linalg_wrappers import as_dense, axpby
import rlinsolve.utils.sketching as usk


class SRHT(Compressor):
    """
    Subsampled randomized Hadamard transform. K selects compression_dim rows
    of H @ D without replacement and c = 1/sqrt(compression_dim), which
    makes E[S^T S] = I.

    References
    ----------
    Ailon, N. and Chazelle, B. "The fast Johnson-Lindenstrauss transform and
    approximate nearest neighbors." SIAM J. Comput. 39 (2009).

    Tropp, J. "Improved analysis of the subsampled randomized Hadamard
    transform." Adv. Adapt. Data Anal. 3 (2011).
    """

    def __init__(self, cardinality=Cardinality.Left, compression_dim=2, dtype=np.float64):
        super(SRHT, self).__init__(cardinality, compression_dim, dtype)

    def _complete(self, A, b, x, rng):
        n = self.source_dim(A)
        padded = next_power_of_two(n)
        if self.compression_dim > padded:
            msg = f"""
            Cannot select {self.compression_dim} distinct rows of a Hadamard
            transform of size {padded}.
            """
            raise ValueError(msg)
        n_rows, n_cols = self.recipe_shape(A)
        recipe = SRHTRecipe(self.cardinality, n_rows, n_cols, self.compression_dim, n,
                            self.dtype, rng)
        recipe.prime(A, b)
        return recipe


class FJLT(Compressor):
    """
    Fast Johnson-Lindenstrauss transform. K is a sparse Gaussian matrix with
    k = max(1, round(sparsity * p)) nonzeros per row at distinct positions,
    and c = 1/sqrt(compression_dim * k), which makes E[S^T S] = I.

    Parameters
    ----------
    cardinality : Cardinality
    compression_dim : int
    sparsity : float
        Expected fraction of nonzeros in each row of K. A value of 0 selects
        0.25 * log(n)^2 / n, where n is the source dimension. The fraction
        is clipped so that every row of K has at least one nonzero.
    dtype : numpy dtype

    References
    ----------
    Ailon, N. and Chazelle, B. "The fast Johnson-Lindenstrauss transform and
    approximate nearest neighbors." SIAM J. Comput. 39 (2009).
    """

    def __init__(self, cardinality=Cardinality.Left, compression_dim=2, sparsity=0.0,
                 dtype=np.float64):
        self.sparsity = sparsity
        super(FJLT, self).__init__(cardinality, compression_dim, dtype)

    def validate(self):
        super(FJLT, self).validate()
        if not 0.0 <= self.sparsity <= 1.0:
            raise ValueError(f'sparsity must be in [0, 1]; got {self.sparsity}.')

    def _complete(self, A, b, x, rng):
        n = self.source_dim(A)
        padded = next_power_of_two(n)
        q = self.sparsity
        if q == 0.0:
            q = 0.25 * np.log(n) ** 2 / n if n > 1 else 1.0
        q = min(max(q, 1.0 / padded), 1.0)
        row_nnz = min(padded, max(1, int(round(q * padded))))
        n_rows, n_cols = self.recipe_shape(A)
        recipe = FJLTRecipe(self.cardinality, n_rows, n_cols, self.compression_dim, n,
                            row_nnz, self.dtype, rng)
        recipe.prime(A, b)
        return recipe


class HadamardRecipe(CompressorRecipe):

    def __init__(self, cardinality, n_rows, n_cols, compression_dim, source_dim, dtype, rng):
        super(HadamardRecipe, self).__init__(cardinality, n_rows, n_cols, dtype, rng)
        self.compression_dim = compression_dim
        self.source_dim = source_dim
        self.padded_dim = next_power_of_two(source_dim)
        self.signs = np.empty(self.padded_dim)
        self._primed = []
        self.reset_transform()

    def reset_transform(self):
        """Redraw the diagonal sign matrix D and drop primed transforms."""
        usk.fill_signs(self.signs, self.rng)
        self.invalidate()

    def invalidate(self):
        """Forget every primed operand. Call after modifying one in place."""
        self._primed = []

    def prime(self, A, b=None):
        """
        Store H @ D @ P @ op(M) for M = A (and M = b, for cardinality Left).
        Later products with these exact objects reuse the stored transform
        until invalidate() or reset_transform() is called. Products with any
        other operand are transformed from scratch.
        """
        self.invalidate()
        transpose = self.cardinality == Cardinality.Right
        self._primed.append((A, transpose, self._transform(A, transpose)))
        if b is not None and not transpose:
            self._primed.append((b, False, self._transform(b, False)))

    def _transformed(self, M, transpose):
        for operand, flag, buff in self._primed:
            if operand is M and flag == transpose:
                return buff
        return self._transform(M, transpose)

    def _transform(self, M, transpose):
        """Return H @ D @ P @ op(M) in a new array."""
        Md = as_dense(M)
        if transpose and Md.ndim == 2:
            Md = Md.T
        dtype = np.result_type(Md.dtype, np.float64)
        buff = np.zeros((self.padded_dim,) + Md.shape[1:], dtype=dtype)
        buff[:self.source_dim] = Md
        fwht(buff, self.signs)
        return buff

    def _forward(self, M, transpose):
        """c * K @ H @ D @ P @ op(M)."""
        return self._mix(self._transformed(M, transpose))

    def _backward(self, Y):
        """(c * K @ H @ D @ P)^T @ Y."""
        Z = self._unmix(as_dense(Y))
        fwht(Z)
        if Z.ndim == 1:
            Z *= self.signs
        else:
            Z *= self.signs[:, None]
        return Z[:self.source_dim]

    def _apply_left(self, C, A, alpha, beta, adjoint):
        if not self._transposed(adjoint):
            axpby(alpha, self._forward(A, False), beta, C)
        else:
            axpby(alpha, self._backward(A), beta, C)

    def _apply_right(self, C, A, alpha, beta, adjoint):
        if not self._transposed(adjoint):
            # A @ S = (S^T @ A^T)^T
            axpby(alpha, self._backward(as_dense(A).T).T, beta, C)
        else:
            # A @ S^T = (S @ A^T)^T
            axpby(alpha, self._forward(A, True).T, beta, C)

    def _mix(self, buff):
        raise NotImplementedError()

    def _unmix(self, Y):
        raise NotImplementedError()


class SRHTRecipe(HadamardRecipe):

    def __init__(self, cardinality, n_rows, n_cols, compression_dim, source_dim, dtype, rng):
        super(SRHTRecipe, self).__init__(cardinality, n_rows, n_cols, compression_dim,
                                         source_dim, dtype, rng)
        self.scale = 1.0 / np.sqrt(compression_dim)
        self.idx = np.zeros(compression_dim, dtype=np.int64)
        self.update()

    def update(self, x=None, A=None, b=None):
        self.idx[:] = self.rng.choice(self.padded_dim, self.compression_dim, replace=False)
        self.idx.sort()

    def _mix(self, buff):
        return self.scale * buff[self.idx]

    def _unmix(self, Y):
        Z = np.zeros((self.padded_dim,) + Y.shape[1:], dtype=np.result_type(Y.dtype, np.float64))
        Z[self.idx] = self.scale * Y
        return Z


class FJLTRecipe(HadamardRecipe):

    def __init__(self, cardinality, n_rows, n_cols, compression_dim, source_dim, row_nnz,
                 dtype, rng):
        super(FJLTRecipe, self).__init__(cardinality, n_rows, n_cols, compression_dim,
                                         source_dim, dtype, rng)
        self.row_nnz = row_nnz
        self.scale = 1.0 / np.sqrt(compression_dim * row_nnz)
        self.mixer = usk.sparse_sign_operator(compression_dim, self.padded_dim, rng,
                                              row_nnz, by_column=False)
        self.update()

    @property
    def sparsity(self):
        return self.row_nnz / self.padded_dim

    def update(self, x=None, A=None, b=None):
        usk.fill_sparse_positions(self.mixer.indices, self.compression_dim,
                                  self.padded_dim, self.row_nnz, self.rng)
        usk.fill_gaussian(self.mixer.data, self.rng, self.scale)

    def _mix(self, buff):
        return self.mixer @ buff

    def _unmix(self, Y):
        Z = self.mixer.T @ Y
        return np.array(Z, dtype=np.result_type(Z.dtype, np.float64))
