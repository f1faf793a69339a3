import unittest
import numpy as np
import scipy.linalg as la
from rlinsolve.randblas.fwht import fwht
from rlinsolve.utils.misc import DimensionMismatch


class TestFWHT(unittest.TestCase):

    SEEDS = [1, 38915, 2374]

    def test_matches_hadamard(self):
        for seed in self.SEEDS:
            rng = np.random.default_rng(seed)
            for n in [1, 2, 8, 64]:
                x = rng.standard_normal(n)
                expect = la.hadamard(n) @ x
                fwht(x)
                self.assertTrue(np.allclose(x, expect))

    def test_matrix_columns(self):
        rng = np.random.default_rng(self.SEEDS[0])
        X = rng.standard_normal((16, 5))
        expect = la.hadamard(16) @ X
        fwht(X)
        self.assertTrue(np.allclose(X, expect))

    def test_non_contiguous(self):
        rng = np.random.default_rng(self.SEEDS[1])
        X = np.asfortranarray(rng.standard_normal((32, 3)))
        expect = la.hadamard(32) @ X
        out = fwht(X)
        self.assertIs(out, X)
        self.assertTrue(np.allclose(X, expect))

    def test_signs_and_scaling(self):
        rng = np.random.default_rng(self.SEEDS[2])
        n = 32
        x = rng.standard_normal(n)
        signs = np.where(rng.random(n) < 0.5, -1.0, 1.0)
        expect = 0.5 * la.hadamard(n) @ (signs * x)
        y = x.copy()
        fwht(y, signs, scaling=0.5)
        self.assertTrue(np.allclose(y, expect))
        # boolean signs, True meaning +1
        y = x.copy()
        fwht(y, signs > 0, scaling=0.5)
        self.assertTrue(np.allclose(y, expect))

    def test_round_trip(self):
        for seed in self.SEEDS:
            rng = np.random.default_rng(seed)
            n = 128
            x = rng.standard_normal(n)
            # unsigned: H is its own inverse up to a factor of n
            y = x.copy()
            fwht(fwht(y), scaling=1.0 / n)
            self.assertTrue(np.allclose(y, x))
            # positive signs in both passes
            ones = np.ones(n)
            y = x.copy()
            fwht(fwht(y, ones), ones, scaling=1.0 / n)
            self.assertTrue(np.allclose(y, x))
            # general signs are applied once, before the first pass
            signs = np.where(rng.random(n) < 0.5, -1.0, 1.0)
            y = x.copy()
            fwht(fwht(y, signs), scaling=1.0 / n)
            self.assertTrue(np.allclose(y, signs * x))
            self.assertTrue(np.allclose(signs * y, x))

    def test_bad_lengths(self):
        for n in [0, 3, 12, 100]:
            with self.assertRaises(DimensionMismatch):
                fwht(np.ones(n))
        with self.assertRaises(DimensionMismatch):
            fwht(np.ones(8), signs=np.ones(4))
        with self.assertRaises(ValueError):
            fwht(np.ones(6))
