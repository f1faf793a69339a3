from rlinsolve.utils.misc import DimensionMismatch


def _extents(mat):
    if mat.ndim == 1:
        return mat.shape[0], None
    return mat.shape[0], mat.shape[1]


def left_mul_dimcheck(C, S, A):
    """
    Check that C = S @ A is well defined, where S has shape S.shape and
    A, C are vectors or matrices.
    """
    s_rows, s_cols = S.shape
    a_rows, a_cols = _extents(A)
    c_rows, c_cols = _extents(C)
    if a_rows != s_cols:
        msg = f"""
        Number of rows of the operand ({a_rows}) does not match the number
        of columns of the operator ({s_cols}).
        """
        raise DimensionMismatch(msg)
    if c_rows != s_rows:
        msg = f"""
        Number of rows of the output ({c_rows}) does not match the number
        of rows of the operator ({s_rows}).
        """
        raise DimensionMismatch(msg)
    if c_cols != a_cols:
        msg = f"""
        Number of columns of the output ({c_cols}) does not match the number
        of columns of the operand ({a_cols}).
        """
        raise DimensionMismatch(msg)


def right_mul_dimcheck(C, A, S):
    """
    Check that C = A @ S is well defined. A 1-D operand is treated as a
    row vector and so is a 1-D output.
    """
    s_rows, s_cols = S.shape
    if A.ndim == 1:
        a_rows, a_cols = None, A.shape[0]
    else:
        a_rows, a_cols = A.shape
    if C.ndim == 1:
        c_rows, c_cols = None, C.shape[0]
    else:
        c_rows, c_cols = C.shape
    if a_cols != s_rows:
        msg = f"""
        Number of columns of the operand ({a_cols}) does not match the number
        of rows of the operator ({s_rows}).
        """
        raise DimensionMismatch(msg)
    if c_cols != s_cols:
        msg = f"""
        Number of columns of the output ({c_cols}) does not match the number
        of columns of the operator ({s_cols}).
        """
        raise DimensionMismatch(msg)
    if c_rows != a_rows:
        msg = f"""
        Number of rows of the output ({c_rows}) does not match the number
        of rows of the operand ({a_rows}).
        """
        raise DimensionMismatch(msg)


def is_power_of_two(n):
    return n > 0 and (n & (n - 1)) == 0


def next_power_of_two(n):
    return 1 if n <= 1 else 1 << (n - 1).bit_length()
