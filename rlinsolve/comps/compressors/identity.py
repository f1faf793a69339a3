import numpy as np
from rlinsolve.randblas.enums import Cardinality
from rlinsolve.comps.compressors.base import Compressor, CompressorRecipe
from rlinsolve.utils.linalg_wrappers import axpby


class Identity(Compressor):
    """
    The operator that does nothing. Its size is n-by-n where n is the
    number of rows (Left) or columns (Right) of the source; compression_dim
    is ignored. Useful for running a block method on the full system.
    """

    def __init__(self, cardinality=Cardinality.Left, compression_dim=1, dtype=np.float64):
        super(Identity, self).__init__(cardinality, compression_dim, dtype)

    def _complete(self, A, b, x, rng):
        n = self.source_dim(A)
        return IdentityRecipe(self.cardinality, n, n, self.dtype, rng)


class IdentityRecipe(CompressorRecipe):

    def update(self, x=None, A=None, b=None):
        pass

    def _apply_left(self, C, A, alpha, beta, adjoint):
        axpby(alpha, A, beta, C)

    def _apply_right(self, C, A, alpha, beta, adjoint):
        axpby(alpha, A, beta, C)
