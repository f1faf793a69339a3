"""
Error metrics that solvers report to their logs.
"""
import numpy as np
import scipy.linalg as la
from rlinsolve.utils.linalg_wrappers import herm_adjoint, result_dtype


class SolverError:
    """Configuration for an error metric."""

    def complete(self, solver, A, b):
        raise NotImplementedError()


class SolverErrorRecipe:

    def compute(self, solver, A, b):
        """Return a non-negative float for the solver's current iterate."""
        raise NotImplementedError()


class ResidualErrorRecipe(SolverErrorRecipe):
    """
    An error recipe that maintains a residual-like vector in the attribute
    "residual". The projection solvers only accept recipes of this kind.
    """

    residual = None


class FullResidual(SolverError):
    """The 2-norm of b - A @ x."""

    def complete(self, solver, A, b):
        dtype = result_dtype(A, b)
        return FullResidualRecipe(np.zeros(A.shape[0], dtype=dtype))


class FullResidualRecipe(ResidualErrorRecipe):

    def __init__(self, residual):
        self.residual = residual

    def compute(self, solver, A, b):
        self.residual[:] = b - A @ solver.solution_vec
        return la.norm(self.residual)


class CompressedResidual(SolverError):
    """
    The 2-norm of the compressed residual the solver formed in its most
    recent iteration. For row-acting solvers that is S @ b - S @ A @ x, for
    column-acting solvers it is (A @ S)^H @ (A @ x - b). Cheap, but noisy.
    """

    def complete(self, solver, A, b):
        dtype = result_dtype(A, b)
        return CompressedResidualRecipe(np.zeros(solver.compression_dim, dtype=dtype))


class CompressedResidualRecipe(ResidualErrorRecipe):

    def __init__(self, residual):
        self.residual = residual

    def compute(self, solver, A, b):
        solver.compressed_residual(self.residual)
        return la.norm(self.residual)


class LSGradient(SolverError):
    """
    The 2-norm of A^H (A x - b), the gradient of 0.5 ||A x - b||^2. Unlike
    the residual, it vanishes at the solution of an inconsistent system.
    """

    def complete(self, solver, A, b):
        dtype = result_dtype(A, b)
        return LSGradientRecipe(np.zeros(A.shape[0], dtype=dtype),
                                np.zeros(A.shape[1], dtype=dtype))


class LSGradientRecipe(ResidualErrorRecipe):

    def __init__(self, residual, gradient):
        self.residual = residual
        self.gradient = gradient

    def compute(self, solver, A, b):
        self.residual[:] = A @ solver.solution_vec - b
        self.gradient[:] = herm_adjoint(A) @ self.residual
        return la.norm(self.gradient)
