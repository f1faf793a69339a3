import unittest
import numpy as np
import scipy.sparse as spar
from rlinsolve.randblas.enums import Cardinality
from rlinsolve.comps.distributions import Uniform, L2Norm, sample
from rlinsolve.utils.misc import DimensionMismatch


def matrix_with_zero_rows(rng):
    A = rng.standard_normal((12, 4))
    A[[0, 5, 6], :] = 0.0
    return A


class TestUniform(unittest.TestCase):

    SEEDS = [4, 43890, 89234]

    def test_unique_sorted_in_range(self):
        for seed in self.SEEDS:
            rng = np.random.default_rng(seed)
            A = rng.standard_normal((30, 5))
            dist = Uniform().complete(A, Cardinality.Left, rng)
            idx = np.zeros(10, dtype=int)
            sample(idx, dist)
            self.assertEqual(np.unique(idx).size, 10)
            self.assertTrue(np.all(np.diff(idx) > 0))
            self.assertTrue(np.all((idx >= 0) & (idx < 30)))

    def test_all_indices(self):
        rng = np.random.default_rng(self.SEEDS[0])
        A = rng.standard_normal((7, 3))
        dist = Uniform().complete(A, Cardinality.Left, rng)
        idx = np.zeros(7, dtype=int)
        dist.sample(idx)
        self.assertTrue(np.array_equal(idx, np.arange(7)))

    def test_too_many_draws(self):
        rng = np.random.default_rng(self.SEEDS[1])
        A = rng.standard_normal((7, 3))
        dist = Uniform().complete(A, Cardinality.Left, rng)
        with self.assertRaises(DimensionMismatch):
            dist.sample(np.zeros(8, dtype=int))
        # with replacement there is no limit
        dist = Uniform(replace=True).complete(A, Cardinality.Left, rng)
        idx = np.zeros(20, dtype=int)
        dist.sample(idx)
        self.assertTrue(np.all(idx < 7))

    def test_right_cardinality(self):
        rng = np.random.default_rng(self.SEEDS[2])
        A = rng.standard_normal((7, 3))
        dist = Uniform().complete(A, Cardinality.Right, rng)
        self.assertEqual(dist.state_space.size, 3)

    def test_cardinality_resolution(self):
        A = np.ones((5, 2))
        with self.assertRaises(ValueError):
            Uniform().complete(A)
        with self.assertRaises(ValueError):
            Uniform(Cardinality.Left).complete(A, Cardinality.Right)
        dist = Uniform(Cardinality.Right).complete(A)
        self.assertEqual(dist.cardinality, Cardinality.Right)


class TestL2Norm(unittest.TestCase):

    SEEDS = [1209, 3, 777]

    def test_weights(self):
        rng = np.random.default_rng(self.SEEDS[0])
        A = rng.standard_normal((9, 4))
        dist = L2Norm().complete(A, Cardinality.Left, rng)
        self.assertTrue(np.allclose(dist.weights, np.sum(A ** 2, axis=1)))
        dist = L2Norm().complete(A, Cardinality.Right, rng)
        self.assertTrue(np.allclose(dist.weights, np.sum(A ** 2, axis=0)))

    def test_sparse_weights(self):
        rng = np.random.default_rng(self.SEEDS[1])
        A = spar.random(20, 6, density=0.3, format='csc', random_state=rng)
        dist = L2Norm().complete(A, Cardinality.Left, rng)
        dense = np.sum(A.toarray() ** 2, axis=1)
        self.assertTrue(np.allclose(dist.weights, dense))

    def test_zero_rows_never_drawn(self):
        for seed in self.SEEDS:
            rng = np.random.default_rng(seed)
            A = matrix_with_zero_rows(rng)
            dist = L2Norm().complete(A, Cardinality.Left, rng)
            idx = np.zeros(500, dtype=int)
            dist.sample(idx)
            self.assertFalse(np.any(np.isin(idx, [0, 5, 6])))

    def test_no_replacement_limit(self):
        rng = np.random.default_rng(self.SEEDS[2])
        A = matrix_with_zero_rows(rng)
        dist = L2Norm(replace=False).complete(A, Cardinality.Left, rng)
        idx = np.zeros(9, dtype=int)
        dist.sample(idx)
        self.assertEqual(np.unique(idx).size, 9)
        self.assertFalse(np.any(np.isin(idx, [0, 5, 6])))
        with self.assertRaises(DimensionMismatch):
            dist.sample(np.zeros(10, dtype=int))

    def test_update_recomputes(self):
        rng = np.random.default_rng(self.SEEDS[0])
        A = rng.standard_normal((9, 4))
        dist = L2Norm().complete(A, Cardinality.Left, rng)
        B = 2 * A
        dist.update(B)
        self.assertTrue(np.allclose(dist.weights, np.sum(B ** 2, axis=1)))
        with self.assertRaises(DimensionMismatch):
            dist.update(np.ones((10, 4)))

    def test_all_zero(self):
        A = np.zeros((4, 2))
        dist = L2Norm().complete(A, Cardinality.Left, 0)
        with self.assertRaises(ValueError):
            dist.sample(np.zeros(1, dtype=int))
