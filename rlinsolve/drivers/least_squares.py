"""
Randomized sketch-and-project solvers for least squares problems

    min{ ||A x - b||_2 : x in R^n }.

Every solver is a configuration object. ProjectionSolver.complete binds it
to (x, A, b) and returns a SolverRecipe that owns all buffers for the run;
SolverRecipe.run iterates until the log reports convergence or max_it
iterations have been taken.
"""
import time
import warnings
import numpy as np
import scipy.linalg as la
import rlinsolve.utils.misc as misc
from rlinsolve.randblas.enums import Cardinality, SolverState
from rlinsolve.comps.compressors.sparse import SparseSign
from rlinsolve.comps.compressors.dense import Gaussian
from rlinsolve.comps.compressors.sampling import Sampling
from rlinsolve.comps.distributions import L2Norm
from rlinsolve.comps.loggers import BasicLogger, ConvergenceLogRecipe
from rlinsolve.comps.errors import FullResidual, LSGradient, ResidualErrorRecipe
from rlinsolve.comps.subsolvers import LQSolver, QRSolver
from rlinsolve.utils.linalg_wrappers import herm_adjoint, result_dtype
from rlinsolve.utils.misc import DimensionMismatch


class ProjectionSolver:
    """Base configuration for randomized projection solvers."""

    NATURAL_SIDE = Cardinality.Left

    TEMPLATE_DOC_STR = \
    """
    Given an m-by-n data matrix A, iterate toward a solution of

        min{ ||A x - b||_2 : x in R^n }.
    %s
    Parameters
    ----------
    x : ndarray
        Initial iterate of length n. It is overwritten with the final
        iterate. Its dtype must be able to hold the result type of (A, b).

    A : Union[ndarray, spmatrix]
        Data matrix.

    b : ndarray
        Right-hand-side. Should have b.ndim == 1.

    rng : Union[None, int, SeedSequence, BitGenerator, Generator]
        Determines the numpy Generator object that manages any and all
        randomness in this function call.

    Returns
    -------
    x : ndarray
        The same array that was passed in, now holding the final iterate.

    log : ConvergenceLogRecipe
        log.converged tells whether the stopping criterion was met. Other
        fields depend on the logger configuration (refer to BasicLogger).
    """

    DOC_STR = TEMPLATE_DOC_STR % ''

    def __init__(self, compressor=None, log=None, error=None, sub_solver=None, alpha=1.0):
        self.compressor = self.default_compressor() if compressor is None else compressor
        self.log = BasicLogger() if log is None else log
        self.error = FullResidual() if error is None else error
        self.sub_solver = self.default_sub_solver() if sub_solver is None else sub_solver
        self.alpha = alpha
        if self.compressor is not None and self.compressor.cardinality != self.NATURAL_SIDE:
            msg = f"""
            {type(self).__name__} acts on the {self.NATURAL_SIDE.name.lower()} of the data
            matrix, but it was given a compressor with cardinality
            {self.compressor.cardinality.name}. The compressor will be applied through its
            adjoint, which may not be the intended sketch.
            """
            warnings.warn(msg)

    def default_compressor(self):
        return SparseSign(self.NATURAL_SIDE, compression_dim=8, nnz=8)

    def default_sub_solver(self):
        return QRSolver()

    @misc.set_docstring(DOC_STR)
    def __call__(self, x, A, b, rng=None):
        return solve(self, x, A, b, rng)

    def complete(self, x, A, b, rng=None):
        """
        Bind this configuration to (x, A, b). Returns a SolverRecipe.

        Raises TypeError if the log configuration does not produce a
        ConvergenceLogRecipe (which provides "max_it" and "converged") or
        if the error configuration does not produce a ResidualErrorRecipe
        (which provides "residual").

        Raises DimensionMismatch if x does not have A.shape[1] entries or
        b does not have A.shape[0] entries.
        """
        _check_system(x, A, b)
        rng = np.random.default_rng(rng)
        log = self.log.complete(A)
        if not isinstance(log, ConvergenceLogRecipe):
            msg = f"""
            {type(self).__name__} needs a log that provides the fields "max_it" and
            "converged", but {type(log).__name__} is not a ConvergenceLogRecipe.
            """
            raise TypeError(msg)
        recipe = self._complete(x, A, b, log, rng)
        error = self.error.complete(recipe, A, b)
        if not isinstance(error, ResidualErrorRecipe):
            msg = f"""
            {type(self).__name__} needs an error metric that provides the field "residual",
            but {type(error).__name__} is not a ResidualErrorRecipe.
            """
            raise TypeError(msg)
        recipe.error = error
        return recipe

    def _complete_compressor(self, x, A, b, rng):
        """
        Return (compressor recipe, operator, source). The operator acts on
        the solver's natural side of A; the source is the matrix the
        compressor recipe was bound to (and must receive in update).
        """
        if self.compressor.cardinality == self.NATURAL_SIDE:
            recipe = self.compressor.complete(A, b, x, rng)
            return recipe, recipe, A
        source = herm_adjoint(A)
        recipe = self.compressor.complete(source, None, x, rng)
        return recipe, recipe.H, source

    def _complete(self, x, A, b, log, rng):
        raise NotImplementedError()


class SolverRecipe:

    def __init__(self, compressor, operator, source, log, sub_solver, alpha, x):
        self.compressor = compressor
        self.operator = operator
        self.source = source
        self.log = log
        self.error = None
        self.sub_solver = sub_solver
        self.alpha = alpha
        self.solution_vec = x
        self.state = SolverState.Initialized

    @property
    def compression_dim(self):
        raise NotImplementedError()

    def run(self, x, A, b):
        """Iterate from x until convergence or max_it; overwrites and returns x."""
        log = self.log
        log.reset()
        self.solution_vec = x
        tic = time.time()
        self.prepare(A, b)
        log.update(self.error.compute(self, A, b), 0)
        self.state = SolverState.Iterating
        iteration = 0
        while not log.converged and iteration < log.max_it:
            iteration += 1
            self.step(A, b)
            log.update(self.error.compute(self, A, b), iteration)
        log.time_iterate = time.time() - tic
        if log.converged:
            self.state = SolverState.Converged
        else:
            self.state = SolverState.MaxIterReached
        return x

    def refresh(self, A, b):
        """Redraw the compressor for the current iterate."""
        self.compressor.update(self.solution_vec, self.source, b)

    def prepare(self, A, b):
        """Fill the buffers that depend on the initial iterate."""
        raise NotImplementedError()

    def step(self, A, b):
        raise NotImplementedError()

    def compressed_residual(self, out):
        """Write the compressed residual formed in the latest step to out."""
        raise NotImplementedError()


def _check_system(x, A, b):
    m, n = A.shape
    if b.ndim != 1 or b.shape[0] != m:
        msg = f"""
        The right-hand-side has shape {b.shape}, but the data matrix has
        {m} rows. Expected a vector of length {m}.
        """
        raise DimensionMismatch(msg)
    if x.ndim != 1 or x.shape[0] != n:
        msg = f"""
        The iterate has shape {x.shape}, but the data matrix has {n}
        columns. Expected a vector of length {n}.
        """
        raise DimensionMismatch(msg)


def _checked_alloc(shape, A, b, x):
    dtype = result_dtype(A, b)
    if not np.can_cast(dtype, x.dtype, casting='same_kind'):
        msg = f"""
        The iterate has dtype {x.dtype}, which cannot hold the result type
        {dtype} of the data.
        """
        raise ValueError(msg)
    return np.zeros(shape, dtype=dtype)


class Kaczmarz(ProjectionSolver):
    """
    Randomized block Kaczmarz. Each iteration draws a compression operator
    S and projects x onto the solution set of S A x = S b:

        x <- x + alpha * pinv(S A) (S b - S A x).

    With compression_dim == 1 this is the classic row-action method,
    computed in closed form without a sub-solver.

    References
    ----------
    Strohmer, T. and Vershynin, R. "A randomized Kaczmarz algorithm with
    exponential convergence." J. Fourier Anal. Appl. 15 (2009).

    Gower, R. and Richtarik, P. "Randomized iterative methods for linear
    systems." SIAM J. Matrix Anal. Appl. 36 (2015).
    """

    NATURAL_SIDE = Cardinality.Left

    DOC_STR = ProjectionSolver.TEMPLATE_DOC_STR % """
    This is the row-acting solver. It converges to a solution of consistent
    systems; on inconsistent systems it reaches a neighborhood of the least
    squares solution whose size is controlled by alpha.
    """

    def default_sub_solver(self):
        return LQSolver()

    @misc.set_docstring(DOC_STR)
    def __call__(self, x, A, b, rng=None):
        return solve(self, x, A, b, rng)

    def _complete(self, x, A, b, log, rng):
        compressor, operator, source = self._complete_compressor(x, A, b, rng)
        s = operator.shape[0]
        compressed_mat = _checked_alloc((s, A.shape[1]), A, b, x)
        compressed_vec = _checked_alloc(s, A, b, x)
        operator.left_mul(compressed_mat, A)
        operator.left_mul(compressed_vec, b)
        sub_solver = self.sub_solver.complete(compressed_mat, compressed_vec)
        return KaczmarzRecipe(compressor, operator, source, log, sub_solver, self.alpha, x,
                              compressed_mat, compressed_vec)


class KaczmarzRecipe(SolverRecipe):

    def __init__(self, compressor, operator, source, log, sub_solver, alpha, x,
                 compressed_mat, compressed_vec):
        super(KaczmarzRecipe, self).__init__(compressor, operator, source, log, sub_solver,
                                             alpha, x)
        s = compressed_mat.shape[0]
        self.compressed_mat = compressed_mat
        self.compressed_vec = compressed_vec
        self.residual_vec = np.zeros_like(compressed_vec)
        self.update_vec = np.zeros(compressed_mat.shape[1], dtype=compressed_mat.dtype)
        self.mat_view = compressed_mat[:s, :]
        self.vec_view = compressed_vec[:s]

    @property
    def compression_dim(self):
        return self.compressed_mat.shape[0]

    def compress(self, A, b):
        self.operator.left_mul(self.compressed_mat, A)
        self.operator.left_mul(self.compressed_vec, b)

    def _form_residual(self):
        self.residual_vec[:] = self.vec_view
        self.residual_vec -= self.mat_view @ self.solution_vec

    def prepare(self, A, b):
        self.compress(A, b)
        self._form_residual()

    def step(self, A, b):
        x = self.solution_vec
        self.refresh(A, b)
        self.compress(A, b)
        self._form_residual()
        if self.compression_dim == 1:
            row = self.mat_view[0]
            row_norm2 = np.real(np.vdot(row, row))
            if row_norm2 == 0.0:
                # S A = 0 defines no hyperplane
                return
            scaling = self.alpha * self.residual_vec[0] / row_norm2
            x += scaling * np.conj(row)
        else:
            self.sub_solver.update(self.mat_view)
            self.sub_solver.solve(self.residual_vec, out=self.update_vec)
            self.update_vec *= self.alpha
            x += self.update_vec

    def compressed_residual(self, out):
        """
        S b - S A x for the operator S drawn in the latest step and the
        iterate that step started from. After a full projection the
        residual for the current iterate would be zero.
        """
        out[:] = self.residual_vec
        return out


class ColumnProjection(ProjectionSolver):
    """
    Randomized block coordinate descent for least squares. Each iteration
    draws a compression operator S, spanning a random subspace of the
    coordinates, and minimizes ||A x - b|| over x + range(S):

        x <- x - alpha * S pinv(A S) (A x - b).

    The residual A x - b is maintained incrementally. With
    compression_dim == 1 the update is computed in closed form.

    References
    ----------
    Leventhal, D. and Lewis, A. "Randomized methods for linear constraints:
    convergence rates and conditioning." Math. Oper. Res. 35 (2010).
    """

    NATURAL_SIDE = Cardinality.Right

    DOC_STR = ProjectionSolver.TEMPLATE_DOC_STR % """
    This is the column-acting solver. It converges to a least squares
    solution of both consistent and inconsistent systems.
    """

    @misc.set_docstring(DOC_STR)
    def __call__(self, x, A, b, rng=None):
        return solve(self, x, A, b, rng)

    def _complete(self, x, A, b, log, rng):
        compressor, operator, source = self._complete_compressor(x, A, b, rng)
        s = operator.shape[1]
        compressed_mat = _checked_alloc((A.shape[0], s), A, b, x)
        operator.right_mul(compressed_mat, A)
        residual_vec = _checked_alloc(A.shape[0], A, b, x)
        sub_solver = self.sub_solver.complete(compressed_mat, residual_vec)
        return ColumnProjectionRecipe(compressor, operator, source, log, sub_solver,
                                      self.alpha, x, compressed_mat, residual_vec)


class ColumnProjectionRecipe(SolverRecipe):

    def __init__(self, compressor, operator, source, log, sub_solver, alpha, x,
                 compressed_mat, residual_vec):
        super(ColumnProjectionRecipe, self).__init__(compressor, operator, source, log,
                                                     sub_solver, alpha, x)
        s = compressed_mat.shape[1]
        self.compressed_mat = compressed_mat
        self.residual_vec = residual_vec
        self.update_vec = np.zeros(s, dtype=compressed_mat.dtype)
        self.gradient_vec = np.zeros(s, dtype=compressed_mat.dtype)
        self.mat_view = compressed_mat[:, :s]

    @property
    def compression_dim(self):
        return self.compressed_mat.shape[1]

    def _form_gradient(self):
        self.gradient_vec[:] = herm_adjoint(self.mat_view) @ self.residual_vec

    def prepare(self, A, b):
        self.residual_vec[:] = A @ self.solution_vec - b
        self.operator.right_mul(self.compressed_mat, A)
        self._form_gradient()

    def step(self, A, b):
        x = self.solution_vec
        self.refresh(A, b)
        self.operator.right_mul(self.compressed_mat, A)
        self._form_gradient()
        if self.compression_dim == 1:
            col = self.mat_view[:, 0]
            col_norm2 = np.real(np.vdot(col, col))
            if col_norm2 == 0.0:
                return
            self.update_vec[0] = self.alpha * self.gradient_vec[0] / col_norm2
            self.residual_vec -= col * self.update_vec[0]
        else:
            self.sub_solver.update(self.mat_view)
            self.sub_solver.solve(self.residual_vec, out=self.update_vec)
            self.update_vec *= self.alpha
            self.residual_vec -= self.mat_view @ self.update_vec
        # x <- x - S @ update_vec
        self.operator.left_mul(x, self.update_vec, alpha=-1.0, beta=1.0)

    def compressed_residual(self, out):
        """(A S)^H (A x - b), with x the iterate the latest step started from."""
        out[:] = self.gradient_vec
        return out


class IHS(ProjectionSolver):
    """
    Iterative Hessian sketch for overdetermined least squares. Each
    iteration draws a compression operator S with at least n rows, factors
    S A = Q R and takes a preconditioned gradient step

        x <- x + alpha * (R^H R)^{-1} A^H (b - A x).

    The default compressor is Gaussian with 20n rows (or m rows, if m < 20n).

    References
    ----------
    Pilanci, M. and Wainwright, M. "Iterative Hessian sketch: fast and
    accurate solution approximation for constrained least-squares."
    J. Mach. Learn. Res. 17 (2016).
    """

    NATURAL_SIDE = Cardinality.Left

    DOC_STR = ProjectionSolver.TEMPLATE_DOC_STR % """
    This solver needs A to be tall, with full column rank.
    """

    def default_compressor(self):
        # depends on A; chosen in _complete
        return None

    def default_sub_solver(self):
        return None

    @misc.set_docstring(DOC_STR)
    def __call__(self, x, A, b, rng=None):
        return solve(self, x, A, b, rng)

    def _complete_compressor(self, x, A, b, rng):
        if self.compressor is None:
            m, n = A.shape
            config = Gaussian(Cardinality.Left, compression_dim=min(m, 20 * n))
            recipe = config.complete(A, b, x, rng)
            return recipe, recipe, A
        return super(IHS, self)._complete_compressor(x, A, b, rng)

    def _complete(self, x, A, b, log, rng):
        compressor, operator, source = self._complete_compressor(x, A, b, rng)
        s, n = operator.shape[0], A.shape[1]
        if s < n:
            msg = f"""
            The compression dimension s={s} is smaller than the number of
            columns n={n}. The sketched Hessian will be singular and the
            iteration will not converge.
            """
            warnings.warn(msg)
        compressed_mat = _checked_alloc((s, n), A, b, x)
        compressed_vec = _checked_alloc(s, A, b, x)
        return IHSRecipe(compressor, operator, source, log, None, self.alpha, x,
                         compressed_mat, compressed_vec)


class IHSRecipe(SolverRecipe):

    def __init__(self, compressor, operator, source, log, sub_solver, alpha, x,
                 compressed_mat, compressed_vec):
        super(IHSRecipe, self).__init__(compressor, operator, source, log, sub_solver,
                                        alpha, x)
        self.compressed_mat = compressed_mat
        self.compressed_vec = compressed_vec
        self.gradient = np.zeros(compressed_mat.shape[1], dtype=compressed_mat.dtype)
        self.R = None

    @property
    def compression_dim(self):
        return self.compressed_mat.shape[0]

    def compress(self, A, b):
        self.operator.left_mul(self.compressed_mat, A)
        self.operator.left_mul(self.compressed_vec, b)
        self.R = la.qr(self.compressed_mat, mode='r', check_finite=False)[0]

    def prepare(self, A, b):
        self.compress(A, b)

    def step(self, A, b):
        x = self.solution_vec
        self.refresh(A, b)
        self.compress(A, b)
        n = self.gradient.size
        self.gradient[:] = herm_adjoint(A) @ (b - A @ x)
        # (S A)^H (S A) = R^H R
        delta = la.cho_solve((self.R[:n, :n], False), self.gradient, check_finite=False)
        delta *= self.alpha
        x += delta

    def compressed_residual(self, out):
        out[:] = self.compressed_vec - self.compressed_mat @ self.solution_vec
        return out


def solve(solver, x, A, b, rng=None):
    """
    Run the solver configuration "solver" from the initial iterate x, which
    is overwritten. Returns (x, log); check log.converged for success.
    """
    tic = time.time()
    recipe = solver.complete(x, A, b, rng)
    time_setup = time.time() - tic
    recipe.run(x, A, b)
    recipe.log.time_setup = time_setup
    return x, recipe.log


def _initial_iterate(A, b):
    return np.zeros(A.shape[1], dtype=result_dtype(A, b))


def kaczmarz(A, b, rng, compression_dim=1, max_it=None, threshold=1e-8, alpha=1.0):
    """
    Randomized Kaczmarz from x = 0, compressing with a SparseSign operator
    that has compression_dim rows (sampling single rows with probability
    proportional to their squared norms when compression_dim == 1).
    """
    if compression_dim == 1:
        comp = Sampling(Cardinality.Left, 1, distribution=L2Norm())
    else:
        comp = SparseSign(Cardinality.Left, compression_dim, nnz=min(8, compression_dim))
    log = BasicLogger(max_it=max_it, threshold=threshold)
    alg = Kaczmarz(compressor=comp, log=log, alpha=alpha)
    return alg(_initial_iterate(A, b), A, b, rng)


def column_projection(A, b, rng, compression_dim=1, max_it=None, threshold=1e-8, alpha=1.0):
    """
    Randomized block coordinate descent from x = 0, monitoring the norm of
    the normal-equations residual A^H (A x - b).
    """
    if compression_dim == 1:
        comp = Sampling(Cardinality.Right, 1, distribution=L2Norm())
    else:
        comp = SparseSign(Cardinality.Right, compression_dim, nnz=min(8, compression_dim))
    log = BasicLogger(max_it=max_it, threshold=threshold)
    alg = ColumnProjection(compressor=comp, log=log, error=LSGradient(), alpha=alpha)
    return alg(_initial_iterate(A, b), A, b, rng)
