"""
In-place fast Walsh-Hadamard transform.
"""
import numpy as np
from rlinsolve.randblas.helpers import is_power_of_two
from rlinsolve.utils.misc import DimensionMismatch


def fwht(x, signs=None, scaling=1.0):
    """
    Overwrite x with scaling * H @ diag(signs) @ x, where H is the
    unnormalized n-by-n Walsh-Hadamard matrix (entries +/- 1).

    Parameters
    ----------
    x : ndarray
        A vector of length n, or a matrix with n rows (in which case every
        column is transformed). n must be a power of two.

    signs : Union[None, ndarray]
        Optional vector of length n, holding +/- 1 or booleans (True meaning
        +1). It is applied to x before the butterfly stages.

    scaling : float
        Applied to x after the butterfly stages.

    Returns
    -------
    x : ndarray
        The same array that was passed in.

    Notes
    -----
    H is symmetric and H @ H = n * I, so fwht(fwht(x, signs), scaling=1/n)
    recovers signs * x.
    """
    n = x.shape[0]
    if not is_power_of_two(n):
        msg = f"""
        The transform length must be a power of two; got {n}.
        """
        raise DimensionMismatch(msg)
    if signs is not None:
        signs = np.asarray(signs)
        if signs.shape[0] != n:
            msg = f"""
            Length of the sign vector ({signs.shape[0]}) does not match the
            transform length ({n}).
            """
            raise DimensionMismatch(msg)
        if signs.dtype == bool:
            signs = np.where(signs, 1.0, -1.0)
        if x.ndim == 1:
            x *= signs
        else:
            x *= signs[:, None]

    work = x if x.flags.c_contiguous else np.ascontiguousarray(x)
    trailing = work.shape[1:]
    h = 1
    while h < n:
        # pairs (a, b) sit h apart inside blocks of length 2h
        blocks = work.reshape((n // (2 * h), 2, h) + trailing)
        a = blocks[:, 0]
        b = blocks[:, 1]
        a += b
        b *= -2
        b += a
        h *= 2
    if scaling != 1.0:
        work *= scaling
    if work is not x:
        x[...] = work
    return x
