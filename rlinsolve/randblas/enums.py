from enum import Enum


class Cardinality(Enum):
    """Which side of a matrix an operator acts on."""
    Left = 'L'    # compresses rows: S @ A
    Right = 'R'   # compresses columns: A @ S
    Undef = 'U'   # not yet bound (e.g., a Distribution before complete)


class SolverState(Enum):
    Initialized = 'I'
    Iterating = 'T'
    Converged = 'C'
    MaxIterReached = 'M'
