

def set_docstring(docstr):
    def assign(fn):
        fn.__doc__ = docstr
        return fn
    return assign


class DimensionMismatch(ValueError):
    """Raised when operand extents are incompatible with an operator."""
    pass
