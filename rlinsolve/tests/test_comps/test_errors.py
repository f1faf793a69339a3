import unittest
import numpy as np
import scipy.linalg as la
import scipy.sparse as spar
from rlinsolve.comps.errors import FullResidual, LSGradient, CompressedResidual, \
    ResidualErrorRecipe
from rlinsolve.drivers.least_squares import Kaczmarz, ColumnProjection
from rlinsolve.comps.loggers import BasicLogger
from rlinsolve.comps.compressors.dense import Gaussian
from rlinsolve.randblas.enums import Cardinality


class FakeSolver:

    def __init__(self, x):
        self.solution_vec = x
        self.compression_dim = 1


class TestErrorMetrics(unittest.TestCase):

    SEEDS = [5, 5005]

    def test_full_residual(self):
        rng = np.random.default_rng(self.SEEDS[0])
        A = rng.standard_normal((10, 4))
        b = rng.standard_normal(10)
        x = rng.standard_normal(4)
        solver = FakeSolver(x)
        err = FullResidual().complete(solver, A, b)
        self.assertIsInstance(err, ResidualErrorRecipe)
        val = err.compute(solver, A, b)
        self.assertAlmostEqual(val, la.norm(b - A @ x))
        self.assertTrue(np.allclose(err.residual, b - A @ x))
        # sparse data
        val = err.compute(solver, spar.csr_matrix(A), b)
        self.assertAlmostEqual(val, la.norm(b - A @ x))

    def test_ls_gradient(self):
        rng = np.random.default_rng(self.SEEDS[1])
        A = rng.standard_normal((10, 4))
        b = rng.standard_normal(10)
        x = la.lstsq(A, b)[0]
        solver = FakeSolver(x)
        err = LSGradient().complete(solver, A, b)
        self.assertIsInstance(err, ResidualErrorRecipe)
        self.assertLess(err.compute(solver, A, b), 1e-10)
        self.assertGreater(la.norm(err.residual), 0.1)
        solver.solution_vec = np.zeros(4)
        self.assertAlmostEqual(err.compute(solver, A, b), la.norm(A.T @ b))

    def test_compressed_residual(self):
        rng = np.random.default_rng(self.SEEDS[0])
        A = rng.standard_normal((40, 5))
        b = rng.standard_normal(40)
        x = np.zeros(5)
        alg = Kaczmarz(compressor=Gaussian(Cardinality.Left, 3),
                       log=BasicLogger(max_it=5), error=CompressedResidual())
        recipe = alg.complete(x, A, b, rng)
        recipe.prepare(A, b)
        val = recipe.error.compute(recipe, A, b)
        self.assertEqual(recipe.error.residual.size, 3)
        self.assertAlmostEqual(val, la.norm(recipe.compressed_vec))
        alg = ColumnProjection(compressor=Gaussian(Cardinality.Right, 2),
                               log=BasicLogger(max_it=5), error=CompressedResidual())
        recipe = alg.complete(x, A, b, rng)
        recipe.prepare(A, b)
        val = recipe.error.compute(recipe, A, b)
        self.assertAlmostEqual(val, la.norm(recipe.compressed_mat.T @ b))
