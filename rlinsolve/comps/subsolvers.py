"""
Direct solvers for the small compressed systems that arise in block
projection methods.
"""
import numpy as np
import scipy.linalg as la
from rlinsolve.utils.linalg_wrappers import as_dense, herm_adjoint


class SubSolver:
    """
    Configuration for a solver of min{ ||A x - b|| } with A small and dense.
    Recipes return the minimum-norm solution.
    """

    def complete(self, A, b=None):
        raise NotImplementedError()


class SubSolverRecipe:

    def __init__(self):
        self.rank = None
        self.mat = None

    def update(self, A):
        raise NotImplementedError()

    def solve(self, b, out=None):
        raise NotImplementedError()

    @staticmethod
    def _numerical_rank(R):
        diag = np.abs(np.diag(R))
        if diag.size == 0 or diag[0] == 0.0:
            return 0
        tol = 10 * max(R.shape) * np.finfo(diag.dtype).eps * diag[0]
        return int(np.count_nonzero(diag > tol))

    def _fallback(self, b):
        # rank deficient: scipy's SVD-based driver returns the min-norm solution
        return la.lstsq(self.mat, b, check_finite=False)[0]

    @staticmethod
    def _write(x, out):
        if out is None:
            return x
        out[:] = x
        return out


class QRSolver(SubSolver):
    """
    Column-pivoted QR, A[:, P] = Q R. Suited to tall A (ColumnProjection
    and IHS).
    """

    def complete(self, A, b=None):
        recipe = QRSolverRecipe()
        recipe.update(A)
        return recipe


class QRSolverRecipe(SubSolverRecipe):

    def update(self, A):
        self.mat = as_dense(A)
        self.Q, self.R, self.perm = la.qr(self.mat, mode='economic', pivoting=True,
                                          check_finite=False)
        self.rank = self._numerical_rank(self.R)

    def solve(self, b, out=None):
        n = self.mat.shape[1]
        if self.rank < n:
            return self._write(self._fallback(b), out)
        z = la.solve_triangular(self.R[:n, :n], (herm_adjoint(self.Q) @ b)[:n],
                                check_finite=False)
        x = np.empty_like(z)
        x[self.perm] = z
        return self._write(x, out)


class LQSolver(SubSolver):
    """
    LQ factorization A = L Q^H, computed as a column-pivoted QR of A^H.
    Suited to wide A (Kaczmarz).
    """

    def complete(self, A, b=None):
        recipe = LQSolverRecipe()
        recipe.update(A)
        return recipe


class LQSolverRecipe(SubSolverRecipe):

    def update(self, A):
        self.mat = as_dense(A)
        # A^H[:, P] = Q R  <=>  A[P, :] = R^H Q^H
        self.Q, self.R, self.perm = la.qr(herm_adjoint(self.mat), mode='economic',
                                          pivoting=True, check_finite=False)
        self.rank = self._numerical_rank(self.R)

    def solve(self, b, out=None):
        m = self.mat.shape[0]
        if self.rank < m:
            return self._write(self._fallback(b), out)
        # R^H y = b[P], x = Q y
        y = la.solve_triangular(self.R[:m, :m], b[self.perm], trans='C', check_finite=False)
        x = self.Q[:, :m] @ y
        return self._write(x, out)
