"""
The compressor protocol.

A Compressor is a configuration object. Calling its complete method on a
source matrix A returns a CompressorRecipe: a linear operator S, bound to
A's dimensions, that owns all the storage it needs. Calling update on the
recipe redraws S in place.

A recipe with cardinality Left has shape (compression_dim, A.shape[0]) and
is used as S @ A. A recipe with cardinality Right has shape
(A.shape[1], compression_dim) and is used as A @ S.
"""
import numpy as np
from rlinsolve.randblas.enums import Cardinality
from rlinsolve.randblas.helpers import left_mul_dimcheck, right_mul_dimcheck
from rlinsolve.utils.linalg_wrappers import herm_adjoint, axpby


class Compressor:
    """
    Base configuration for all compressors.

    Parameters
    ----------
    cardinality : Cardinality
        Cardinality.Left to compress rows (S @ A), Cardinality.Right to
        compress columns (A @ S).
    compression_dim : int
        The number of rows (Left) or columns (Right) of the compressed
        matrix.
    dtype : numpy dtype
        Element type of the operator's storage.
    """

    def __init__(self, cardinality=Cardinality.Left, compression_dim=2, dtype=np.float64):
        self.cardinality = cardinality
        self.compression_dim = compression_dim
        self.dtype = np.dtype(dtype)
        self.validate()

    def validate(self):
        if not isinstance(self.cardinality, Cardinality):
            raise ValueError(f'Unrecognized cardinality {self.cardinality}.')
        if self.cardinality == Cardinality.Undef:
            raise ValueError(f'{type(self).__name__} requires cardinality Left or Right.')
        if self.compression_dim <= 0:
            msg = f"""
            The compression dimension must be positive; got {self.compression_dim}.
            """
            raise ValueError(msg)

    def source_dim(self, A):
        """The dimension of A that the compressor reduces."""
        return A.shape[0] if self.cardinality == Cardinality.Left else A.shape[1]

    def recipe_shape(self, A):
        n = self.source_dim(A)
        if self.cardinality == Cardinality.Left:
            return self.compression_dim, n
        return n, self.compression_dim

    def complete(self, A, b=None, x=None, rng=None):
        """
        Bind this configuration to the matrix A (and optionally the vectors
        b and x) and return a CompressorRecipe holding an initial draw.

        Parameters
        ----------
        A : Union[ndarray, spmatrix]
            The source matrix.
        b : ndarray
            Right-hand-side, for compressors that inspect it.
        x : ndarray
            Current iterate, for compressors that inspect it.
        rng : Union[None, int, SeedSequence, BitGenerator, Generator]
            Determines the numpy Generator object that this recipe uses
            now and on every later call to update.
        """
        self.validate()
        rng = np.random.default_rng(rng)
        return self._complete(A, b, x, rng)

    def _complete(self, A, b, x, rng):
        raise NotImplementedError()


class _Operator:

    # make numpy defer "ndarray @ operator" to __rmatmul__
    __array_ufunc__ = None

    @property
    def shape(self):
        raise NotImplementedError()

    def size(self, dim=None):
        """
        Return (n_rows, n_cols), or only n_rows (dim=1) or n_cols (dim=2).
        """
        if dim is None:
            return self.shape
        if dim not in (1, 2):
            raise ValueError(f'dim must be 1 or 2; got {dim}.')
        return self.shape[dim - 1]

    def left_mul(self, C, A, alpha=1.0, beta=0.0):
        """Overwrite C with alpha * self @ A + beta * C and return C."""
        left_mul_dimcheck(C, self, A)
        self._left_mul(C, A, alpha, beta)
        return C

    def right_mul(self, C, A, alpha=1.0, beta=0.0):
        """Overwrite C with alpha * A @ self + beta * C and return C."""
        right_mul_dimcheck(C, A, self)
        self._right_mul(C, A, alpha, beta)
        return C

    def __matmul__(self, A):
        shape = (self.shape[0],) if A.ndim == 1 else (self.shape[0], A.shape[1])
        C = np.empty(shape, dtype=np.result_type(self.dtype, A.dtype))
        return self.left_mul(C, A)

    def __rmatmul__(self, A):
        shape = (self.shape[1],) if A.ndim == 1 else (A.shape[0], self.shape[1])
        C = np.empty(shape, dtype=np.result_type(self.dtype, A.dtype))
        return self.right_mul(C, A)

    def toarray(self):
        """Materialize the operator as a dense matrix."""
        return self @ np.eye(self.shape[1], dtype=self.dtype)

    def _left_mul(self, C, A, alpha, beta):
        raise NotImplementedError()

    def _right_mul(self, C, A, alpha, beta):
        raise NotImplementedError()


class CompressorRecipe(_Operator):
    """
    A compression operator bound to the dimensions of a source matrix.

    Concrete recipes implement _apply_left and _apply_right, which compute
    C = alpha * op(S) @ A + beta * C and C = alpha * A @ op(S) + beta * C
    where op(S) is S (adjoint=False) or its conjugate transpose
    (adjoint=True).

    S.H and S.adjoint() return the conjugate transpose; there is no plain
    transpose attribute.
    """

    def __init__(self, cardinality, n_rows, n_cols, dtype, rng):
        self.cardinality = cardinality
        self.n_rows = n_rows
        self.n_cols = n_cols
        self.dtype = np.dtype(dtype)
        self.rng = rng

    @property
    def shape(self):
        return self.n_rows, self.n_cols

    def update(self, x=None, A=None, b=None):
        """Redraw the operator in place."""
        raise NotImplementedError()

    def adjoint(self):
        return CompressorAdjoint(self)

    @property
    def H(self):
        return CompressorAdjoint(self)

    def _left_mul(self, C, A, alpha, beta):
        self._apply_left(C, A, alpha, beta, False)

    def _right_mul(self, C, A, alpha, beta):
        self._apply_right(C, A, alpha, beta, False)

    def _apply_left(self, C, A, alpha, beta, adjoint):
        raise NotImplementedError()

    def _apply_right(self, C, A, alpha, beta, adjoint):
        raise NotImplementedError()

    def _transposed(self, adjoint):
        """
        Many recipes store a single "row compressing" realization. This
        reports whether the operator in use is the transpose of that.
        """
        return (self.cardinality == Cardinality.Right) != adjoint


class CompressorAdjoint(_Operator):
    """
    The conjugate transpose of a CompressorRecipe. Holds a reference to the
    parent; no data is copied.
    """

    def __init__(self, parent):
        self.parent = parent

    @property
    def shape(self):
        return self.parent.n_cols, self.parent.n_rows

    @property
    def dtype(self):
        return self.parent.dtype

    @property
    def cardinality(self):
        return self.parent.cardinality

    def adjoint(self):
        return self.parent

    @property
    def H(self):
        return self.parent

    def update(self, x=None, A=None, b=None):
        self.parent.update(x, A, b)

    def _left_mul(self, C, A, alpha, beta):
        self.parent._apply_left(C, A, alpha, beta, True)

    def _right_mul(self, C, A, alpha, beta):
        self.parent._apply_right(C, A, alpha, beta, True)


class MatrixRecipe(CompressorRecipe):
    """
    A recipe whose realization is an explicit dense or sparse matrix,
    stored in self.op with shape (n_rows, n_cols).
    """

    op = None

    def _op(self, adjoint):
        return herm_adjoint(self.op) if adjoint else self.op

    def _apply_left(self, C, A, alpha, beta, adjoint):
        axpby(alpha, self._op(adjoint) @ A, beta, C)

    def _apply_right(self, C, A, alpha, beta, adjoint):
        axpby(alpha, A @ self._op(adjoint), beta, C)

    def toarray(self):
        op = self.op
        return op.toarray() if hasattr(op, 'toarray') else op.copy()
