import numpy as np
from rlinsolve.randblas.enums import Cardinality
from rlinsolve.comps.compressors.base import Compressor, MatrixRecipe
from rlinsolve.utils.sketching import fill_gaussian


class Gaussian(Compressor):
    """
    Dense operator with i.i.d. N(0, 1/compression_dim) entries, so that
    E[S^H S] = I (Left) or E[S S^H] = I (Right).
    """

    def __init__(self, cardinality=Cardinality.Left, compression_dim=2, dtype=np.float64):
        super(Gaussian, self).__init__(cardinality, compression_dim, dtype)

    def _complete(self, A, b, x, rng):
        n_rows, n_cols = self.recipe_shape(A)
        return GaussianRecipe(self.cardinality, n_rows, n_cols, self.compression_dim,
                              self.dtype, rng)


class GaussianRecipe(MatrixRecipe):

    def __init__(self, cardinality, n_rows, n_cols, compression_dim, dtype, rng):
        super(GaussianRecipe, self).__init__(cardinality, n_rows, n_cols, dtype, rng)
        self.scale = 1.0 / np.sqrt(compression_dim)
        self.op = np.empty((n_rows, n_cols), dtype=self.dtype)
        self.update()

    def update(self, x=None, A=None, b=None):
        fill_gaussian(self.op, self.rng, self.scale)
