import numpy as np
from rlinsolve.randblas.enums import Cardinality
from rlinsolve.comps.compressors.base import Compressor, MatrixRecipe
import rlinsolve.utils.sketching as usk


class SparseSign(Compressor):
    """
    Sparse operator with exactly nnz nonzeros in every column (Left) or in
    every row (Right). Nonzero positions within a column (row) are distinct;
    nonzero values are +/- 1/sqrt(nnz).

    Parameters
    ----------
    cardinality : Cardinality
    compression_dim : int
    nnz : Union[None, int]
        Nonzeros per column (Left) or row (Right). Must be between 1 and
        compression_dim. Defaults to min(8, compression_dim).
    dtype : numpy dtype
    """

    def __init__(self, cardinality=Cardinality.Left, compression_dim=2, nnz=None,
                 dtype=np.float64):
        self.nnz = min(8, compression_dim) if nnz is None else nnz
        super(SparseSign, self).__init__(cardinality, compression_dim, dtype)

    def validate(self):
        super(SparseSign, self).validate()
        if self.nnz <= 0:
            raise ValueError(f'nnz must be positive; got {self.nnz}.')
        if self.nnz > self.compression_dim:
            msg = f"""
            nnz ({self.nnz}) cannot exceed the compression dimension
            ({self.compression_dim}).
            """
            raise ValueError(msg)

    def _complete(self, A, b, x, rng):
        n_rows, n_cols = self.recipe_shape(A)
        return SparseSignRecipe(self.cardinality, n_rows, n_cols, self.nnz, self.dtype, rng)


class SparseSignRecipe(MatrixRecipe):

    def __init__(self, cardinality, n_rows, n_cols, nnz, dtype, rng):
        super(SparseSignRecipe, self).__init__(cardinality, n_rows, n_cols, dtype, rng)
        self.nnz = nnz
        by_column = cardinality == Cardinality.Left
        self.op = usk.sparse_sign_operator(n_rows, n_cols, rng, nnz, by_column)
        self.op = self.op.astype(self.dtype, copy=False)

    def update(self, x=None, A=None, b=None):
        usk.redraw_sparse_sign(self.op, self.nnz, self.rng)


class CountSketch(Compressor):
    """
    Hash every source row (Left) or column (Right) into one of
    compression_dim buckets, with a random sign.

    References
    ----------
    Charikar, M., Chen, K. and Farach-Colton, M. "Finding frequent items in
    data streams." ICALP (2002).
    """

    def __init__(self, cardinality=Cardinality.Left, compression_dim=2, dtype=np.float64):
        super(CountSketch, self).__init__(cardinality, compression_dim, dtype)

    def _complete(self, A, b, x, rng):
        n_rows, n_cols = self.recipe_shape(A)
        return CountSketchRecipe(self.cardinality, n_rows, n_cols, self.dtype, rng)


class CountSketchRecipe(MatrixRecipe):

    def __init__(self, cardinality, n_rows, n_cols, dtype, rng):
        super(CountSketchRecipe, self).__init__(cardinality, n_rows, n_cols, dtype, rng)
        by_column = cardinality == Cardinality.Left
        self.op = usk.countsketch_operator(n_rows, n_cols, rng, by_column)
        self.op = self.op.astype(self.dtype, copy=False)

    def update(self, x=None, A=None, b=None):
        usk.redraw_countsketch(self.op, self.rng)
