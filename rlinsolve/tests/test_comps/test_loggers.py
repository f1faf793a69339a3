import unittest
from types import SimpleNamespace
import numpy as np
from rlinsolve.comps.loggers import BasicLogger, MALogger, MAStop, threshold_stop


class TestBasicLogger(unittest.TestCase):

    def test_validation(self):
        with self.assertRaises(ValueError):
            BasicLogger(max_it=-1)
        with self.assertRaises(ValueError):
            BasicLogger(collection_rate=0)
        with self.assertRaises(ValueError):
            BasicLogger(max_it=5, collection_rate=6)
        BasicLogger(max_it=0, collection_rate=6)

    def test_default_max_it(self):
        log = BasicLogger().complete(np.ones((7, 2)))
        self.assertEqual(log.max_it, 21)
        log = BasicLogger(max_it=4).complete(np.ones((7, 2)))
        self.assertEqual(log.max_it, 4)

    def test_history(self):
        log = BasicLogger(max_it=10, collection_rate=3).complete(np.ones((2, 2)))
        self.assertEqual(log.hist.size, 5)
        for it in range(11):
            log.update(float(10 - it), it)
        self.assertTrue(np.array_equal(log.history, [10.0, 7.0, 4.0, 1.0]))
        self.assertEqual(log.iteration, 10)
        self.assertFalse(log.converged)
        log.reset()
        self.assertEqual(log.record_location, 0)
        self.assertEqual(log.history.size, 0)
        self.assertEqual(log.iteration, 0)

    def test_threshold(self):
        log = BasicLogger(max_it=10, threshold=0.5).complete(np.ones((2, 2)))
        log.update(1.0, 0)
        self.assertFalse(log.converged)
        log.update(0.4, 1)
        self.assertTrue(log.converged)
        self.assertTrue(threshold_stop(log))

    def test_custom_criterion(self):
        def stop_after_two(log):
            return log.iteration >= 2
        log = BasicLogger(max_it=10, stopping_criterion=stop_after_two).complete(np.ones((2, 2)))
        log.update(1.0, 1)
        self.assertFalse(log.converged)
        log.update(1.0, 2)
        self.assertTrue(log.converged)

    def test_record_on_convergence(self):
        log = BasicLogger(max_it=30, collection_rate=7, threshold=1e-3).complete(np.ones((2, 2)))
        it = 0
        while not log.converged:
            log.update(10.0 ** -it, it)
            it += 1
        self.assertEqual(log.iteration, 4)
        self.assertTrue(np.allclose(log.history, [1.0, 1e-4]))
        # recording stops once the history is full
        for it in range(5, 40):
            log.update(1e-5, it)
        self.assertEqual(log.record_location, log.hist.size)


class TestMALogger(unittest.TestCase):

    def test_window(self):
        log = MALogger(max_it=10, lambda1=1, lambda2=3).complete(np.ones((2, 2)))
        errs = [2.0, 1.0, 1.0, 3.0, 1.0, 2.0, 1.0, 3.0]
        for it, err in enumerate(errs[:3]):
            log.update(err, it)
        self.assertFalse(log.slow_phase)
        log.update(errs[3], 3)
        self.assertTrue(log.slow_phase)
        for it in range(4, len(errs)):
            log.update(errs[it], it)
        # squared errors 4, 1, 1, 9, 1, 4, 1, 9
        expect = [4.0, 1.0, 1.0, 9.0, 1.0, 2.5, 2.0, 14.0 / 3]
        self.assertTrue(np.allclose(log.history, expect))
        expect_iota = [16.0, 1.0, 1.0, 81.0, 1.0, 8.5, 6.0, 98.0 / 3]
        self.assertTrue(np.allclose(log.iota_hist[:8], expect_iota))
        self.assertTrue(np.array_equal(log.lambda_hist[:8], [1, 1, 1, 1, 1, 2, 3, 3]))
        self.assertEqual(log.raw_error, 3.0)
        log.reset()
        self.assertFalse(log.slow_phase)
        self.assertEqual(log.history.size, 0)

    def test_full_window_wraps(self):
        log = MALogger(max_it=20, lambda1=2, lambda2=2).complete(np.ones((2, 2)))
        for it, err in enumerate([1.0, 2.0, 3.0, 1.0]):
            log.update(err, it)
        self.assertTrue(np.allclose(log.history, [1.0, 2.5, 6.5, 5.0]))
        self.assertTrue(np.allclose(log.iota_hist[:4], [1.0, 8.5, 48.5, 41.0]))
        self.assertTrue(np.array_equal(log.lambda_hist[:4], [1, 2, 2, 2]))

    def test_record_on_convergence(self):
        log = MALogger(max_it=20, collection_rate=7, threshold=0.3,
                       lambda1=1, lambda2=1).complete(np.ones((2, 2)))
        for it, err in enumerate([1.0, 0.9, 0.5]):
            log.update(err, it)
        self.assertTrue(log.converged)
        self.assertTrue(np.allclose(log.history, [1.0, 0.25]))
        self.assertTrue(np.allclose(log.iota_hist[:2], [1.0, 0.0625]))
        self.assertTrue(np.array_equal(log.lambda_hist[:2], [1, 1]))

    def test_validation(self):
        with self.assertRaises(ValueError):
            MALogger(lambda1=4, lambda2=3)
        with self.assertRaises(ValueError):
            MALogger(lambda1=0)


class TestMAStop(unittest.TestCase):

    def test_iota_threshold(self):
        stop = MAStop(threshold=0.1)
        log = SimpleNamespace(iteration=4, error=0.05, iota=1e-10, width=4)
        # 1e-4 / (2 log(100)) / (1e-5 (1 + log(4)) / 4)
        self.assertTrue(np.isclose(stop.iota_threshold(log), 1.8199534, rtol=1e-5))
        self.assertTrue(stop(log))
        log.iota = 1.0
        self.assertTrue(np.isclose(stop.iota_threshold(log), 1.8199534e-5, rtol=1e-5))
        self.assertFalse(stop(log))

    def test_omega(self):
        stop = MAStop(threshold=0.1, omega=2.0)
        log = SimpleNamespace(iteration=4, error=0.05, iota=1e-10, width=4)
        # 4 * 0.1 * 0.1 / (2 log(100) * 2)
        self.assertTrue(np.isclose(stop.iota_threshold(log), 0.002171472, rtol=1e-5))
        log.iota = 0.0
        self.assertTrue(np.isclose(stop.iota_threshold(log), 0.002171472, rtol=1e-5))

    def test_average_above_threshold(self):
        stop = MAStop(threshold=0.1)
        log = SimpleNamespace(iteration=4, error=0.2, iota=1e-10, width=4)
        self.assertFalse(stop(log))
        log = SimpleNamespace(iteration=0, error=0.0, iota=0.0, width=1)
        self.assertFalse(stop(log))

    def test_with_logger(self):
        stop = MAStop(threshold=1e-2)
        log = MALogger(max_it=50, stopping_criterion=stop, lambda1=1, lambda2=2).complete(np.ones((2, 2)))
        it = 0
        while not log.converged:
            log.update(0.5 ** it, it)
            it += 1
        self.assertLessEqual(log.error, 1e-2)
        self.assertLessEqual(np.sqrt(log.iota), stop.iota_threshold(log))
        self.assertEqual(log.history[-1], log.error)

    def test_validation(self):
        with self.assertRaises(ValueError):
            MAStop(delta1=1.2)
        with self.assertRaises(ValueError):
            MAStop(delta2=0.8)
        with self.assertRaises(ValueError):
            MAStop(chi1=0.0)
        with self.assertRaises(ValueError):
            MAStop(omega=-1.0)
