import numpy as np


def threshold_stop(log):
    """Stop once the most recent error is below the log's threshold."""
    return log.error < log.threshold


class Logger:
    """Configuration for a log of an iterative solver's progress."""

    def complete(self, A):
        raise NotImplementedError()


class LoggerRecipe:
    """Receives one error value per iteration through update(error, iteration)."""

    def update(self, error, iteration):
        raise NotImplementedError()

    def reset(self):
        raise NotImplementedError()


class ConvergenceLogRecipe(LoggerRecipe):
    """
    A log that can stop a solver. Subclasses set the attributes below.

    Attributes
    ----------
    max_it : int
        The solver runs at most this many iterations.

    converged : bool
        Set once the stopping criterion holds.

    time_setup : float
        Time spent by the solver before its first iteration.

    time_iterate : float
        Time spent by the solver in its iterations.
    """

    max_it = None
    converged = False
    time_setup = 0.0
    time_iterate = 0.0


class BasicLogger(Logger):
    """
    Record the error every collection_rate iterations and stop when
    stopping_criterion(log) is True or after max_it iterations.

    Parameters
    ----------
    max_it : Union[None, int]
        Iteration limit. If None, the limit is three times the number of
        rows of the matrix passed to complete.

    collection_rate : int
        The error is recorded at iteration 0, at every iteration that is a
        multiple of collection_rate, and at the iteration that converged.

    threshold : float
        Used by threshold_stop.

    stopping_criterion : callable
        Called with the log recipe after every update.
    """

    def __init__(self, max_it=None, collection_rate=1, threshold=0.0,
                 stopping_criterion=threshold_stop):
        if max_it is not None and max_it < 0:
            raise ValueError(f'max_it must be non-negative; got {max_it}.')
        if collection_rate < 1:
            raise ValueError(f'collection_rate must be at least 1; got {collection_rate}.')
        if max_it is not None and 0 < max_it < collection_rate:
            msg = f"""
            collection_rate ({collection_rate}) cannot exceed max_it ({max_it}).
            """
            raise ValueError(msg)
        self.max_it = max_it
        self.collection_rate = collection_rate
        self.threshold = threshold
        self.stopping_criterion = stopping_criterion

    def complete(self, A):
        max_it = 3 * A.shape[0] if self.max_it is None else self.max_it
        return BasicLoggerRecipe(max_it, self.collection_rate, self.threshold,
                                 self.stopping_criterion)


class BasicLoggerRecipe(ConvergenceLogRecipe):

    def __init__(self, max_it, collection_rate, threshold, stopping_criterion):
        self.max_it = max_it
        self.collection_rate = collection_rate
        self.threshold = threshold
        self.stopping_criterion = stopping_criterion
        self.hist = np.zeros(int(np.ceil(max_it / collection_rate)) + 1)
        self.reset()

    def reset(self):
        self.hist[:] = 0.0
        self.error = np.inf
        self.iteration = 0
        self.record_location = 0
        self.converged = False
        self.time_setup = 0.0
        self.time_iterate = 0.0

    def update(self, error, iteration):
        self.error = error
        self.iteration = iteration
        self.converged = bool(self.stopping_criterion(self))
        if iteration % self.collection_rate == 0 or self.converged:
            # a converged run adds at most one entry past the collection steps
            if self.record_location < self.hist.size:
                self.hist[self.record_location] = error
                self.record_location += 1

    @property
    def history(self):
        """The recorded errors, oldest first."""
        return self.hist[:self.record_location]


class MALogger(BasicLogger):
    """
    Like BasicLogger, but the recorded and tested value is a moving average
    of the squared error. The average starts over a single observation and
    widens by one per iteration, up to lambda1 while the squared error keeps
    decreasing and up to lambda2 once it first increases. Early iterations
    make fast progress that a wide window would blur, while late iterations
    fluctuate around a slowly decreasing level.

    The recipe also tracks the moving average of the fourth power of the
    error ("iota"), which MAStop uses to bound the chance that the average
    misrepresents the true progress.

    Parameters
    ----------
    lambda1 : int
        Window width in the fast phase.

    lambda2 : int
        Window width in the slow phase; also the size of the window buffer.

    Refer to BasicLogger for the other parameters. Note that "threshold"
    is compared against a squared error.

    References
    ----------
    Pritchard, N. and Patel, V. "Towards practical large-scale randomized
    iterative least squares solvers through uncertainty quantification."
    SIAM/ASA J. Uncertain. Quantif. 11 (2023).

    Pritchard, N. and Patel, V. "Solving, tracking and stopping streaming
    linear inverse problems." Inverse Problems (2024).
    """

    def __init__(self, max_it=None, collection_rate=1, threshold=0.0,
                 stopping_criterion=threshold_stop, lambda1=1, lambda2=30):
        super(MALogger, self).__init__(max_it, collection_rate, threshold, stopping_criterion)
        if not 1 <= lambda1 <= lambda2:
            raise ValueError(f'Need 1 <= lambda1 <= lambda2; got {lambda1} and {lambda2}.')
        self.lambda1 = lambda1
        self.lambda2 = lambda2

    def complete(self, A):
        max_it = 3 * A.shape[0] if self.max_it is None else self.max_it
        return MALoggerRecipe(max_it, self.collection_rate, self.threshold,
                              self.stopping_criterion, self.lambda1, self.lambda2)


class MALoggerRecipe(BasicLoggerRecipe):
    """
    Attributes
    ----------
    error : float
        Moving average of the squared error over the latest "width" calls.

    raw_error : float
        The error passed to the latest update.

    iota : float
        Moving average of the fourth power of the error, over the same
        window as "error".

    width : int
        Number of observations in the latest average.

    slow_phase : bool
        Set once the squared error first increased. Takes effect on the
        next update.

    hist, iota_hist, lambda_hist : ndarray
        Values of error, iota and width, recorded on the same iterations.
    """

    def __init__(self, max_it, collection_rate, threshold, stopping_criterion,
                 lambda1, lambda2):
        self.lambda1 = lambda1
        self.lambda2 = lambda2
        self.window = np.zeros(lambda2)
        n_records = int(np.ceil(max_it / collection_rate)) + 1
        self.iota_hist = np.zeros(n_records)
        self.lambda_hist = np.zeros(n_records, dtype=int)
        super(MALoggerRecipe, self).__init__(max_it, collection_rate, threshold,
                                             stopping_criterion)

    def reset(self):
        super(MALoggerRecipe, self).reset()
        self.window[:] = 0.0
        self.iota_hist[:] = 0.0
        self.lambda_hist[:] = 0
        self.raw_error = np.inf
        self.iota = np.inf
        self.width = 0
        self.slow_phase = False
        self._next_width = 1
        self._pos = 0

    def update(self, error, iteration):
        self.raw_error = error
        res = abs(error) ** 2
        previous = self.window[self._pos - 1]
        self.window[self._pos] = res
        self._pos = (self._pos + 1) % self.lambda2
        self.width = self._next_width
        # the latest "width" entries end just before self._pos
        recent = np.take(self.window, np.arange(self._pos - self.width, self._pos), mode='wrap')
        self.iota = float(np.mean(recent ** 2))
        average = float(np.mean(recent))
        target = self.lambda2 if self.slow_phase else self.lambda1
        if self.width < target:
            self._next_width = self.width + 1
        if not self.slow_phase:
            self.slow_phase = iteration > 0 and res > previous
        loc = self.record_location
        super(MALoggerRecipe, self).update(average, iteration)
        if self.record_location > loc:
            self.iota_hist[loc] = self.iota
            self.lambda_hist[loc] = self.width


class MAStop:
    """
    Stopping criterion for MALogger. Stop once the moving average of the
    squared error is at most "threshold" and its spread (measured through
    the log's iota) is small enough that, with probability at least
    1 - chi1, the true squared error is not below delta1 * threshold when
    the solver keeps going, and, with probability at least 1 - chi2, not
    above delta2 * threshold when it stops.

    Parameters
    ----------
    threshold : float
        Target for the moving average of the squared error.

    delta1, delta2 : float
        Relative tolerances below and above threshold; 0 < delta1 < 1 < delta2.

    chi1, chi2 : float
        Probabilities of stopping too late and too early; both in (0, 1).

    sigma2, omega : float
        Parameters of the sub-Exponential model for the error estimate.
        omega=None drops the omega term from the bound.
    """

    def __init__(self, threshold=1e-10, delta1=0.9, delta2=1.1, chi1=0.01, chi2=0.01,
                 sigma2=1.0, omega=None):
        if not 0.0 < delta1 < 1.0 < delta2:
            raise ValueError(f'Need 0 < delta1 < 1 < delta2; got {delta1} and {delta2}.')
        if not (0.0 < chi1 < 1.0 and 0.0 < chi2 < 1.0):
            raise ValueError(f'chi1 and chi2 must lie in (0, 1); got {chi1} and {chi2}.')
        if sigma2 <= 0 or (omega is not None and omega <= 0):
            raise ValueError('sigma2 and omega must be positive.')
        self.threshold = threshold
        self.delta1 = delta1
        self.delta2 = delta2
        self.chi1 = chi1
        self.chi2 = chi2
        self.sigma2 = sigma2
        self.omega = omega

    def __call__(self, log):
        if log.iteration == 0:
            return False
        return bool(np.sqrt(log.iota) <= self.iota_threshold(log)
                    and log.error <= self.threshold)

    def iota_threshold(self, log):
        """Upper bound on sqrt(log.iota) for stopping at the current width."""
        thresh = self.threshold
        log1 = 2 * np.log(1 / self.chi1)
        log2 = 2 * np.log(1 / self.chi2)
        lam = log.width
        siota = self.sigma2 * np.sqrt(log.iota) * (1 + np.log(lam)) / lam
        if siota == 0:
            bound1 = bound2 = np.inf
        else:
            bound1 = (1 - self.delta1) ** 2 * thresh ** 2 / (log1 * siota)
            bound2 = (self.delta2 - 1) ** 2 * thresh ** 2 / (log2 * siota)
        if self.omega is not None:
            bound1 = min(bound1, lam * (1 - self.delta1) * thresh / (log1 * self.omega))
            bound2 = min(bound2, lam * (self.delta2 - 1) * thresh / (log2 * self.omega))
        return min(bound1, bound2)
