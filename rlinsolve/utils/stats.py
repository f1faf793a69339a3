import numpy as np
import scipy.linalg as la
import warnings


def loglinear_fit(x, y):
    """
    min{ || [1, x] @ [a; b] - log(y) ||_2 : a, b are real numbers }

    Return the coefficients [a, b] and the R-squared of the fit.

    A slope b < 0 together with a large R-squared (e.g., r2 >= 0.8) gives
    a good indication of linear convergence.
    """
    assert x.size == y.size
    x = x.ravel()
    if np.any(y <= 0):
        warnings.warn('Dropping samples "i" where y[i] <= 0.')
        x = x[y > 0]
        y = y[y > 0]
    logy = np.log(y).ravel()
    mat = np.column_stack([np.ones(x.size), x])
    fit = la.lstsq(mat, logy)[0]
    ss_tot = np.sum((logy - np.mean(logy))**2)
    ss_res = np.sum((logy - mat @ fit)**2)
    r2 = 1 - ss_res/ss_tot
    return fit, r2


def convergence_factor(history, collection_rate=1):
    """
    Estimate the per-iteration contraction factor rho of an error history
    that behaves like errors[k] ~ C * rho^k, with errors recorded every
    collection_rate iterations. Returns (rho, r2).
    """
    its = collection_rate * np.arange(history.size, dtype=float)
    fit, r2 = loglinear_fit(its, history)
    return np.exp(fit[1]), r2
