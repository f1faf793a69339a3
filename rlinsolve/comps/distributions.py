"""
Probability distributions over the rows or columns of a matrix, used by
the sampling compressors.
"""
import numpy as np
from rlinsolve.randblas.enums import Cardinality
from rlinsolve.utils.misc import DimensionMismatch
from rlinsolve.utils.linalg_wrappers import squared_norms


class Distribution:
    """
    Configuration for a distribution over the row indices (cardinality Left)
    or column indices (cardinality Right) of a matrix.

    Parameters
    ----------
    cardinality : Cardinality
        Leave as Cardinality.Undef to let the sampling compressor that owns
        this distribution decide.
    replace : bool
        Whether indices are drawn with replacement.
    """

    def __init__(self, cardinality=Cardinality.Undef, replace=False):
        self.cardinality = cardinality
        self.replace = replace

    def complete(self, A, cardinality=None, rng=None):
        card = self._resolve_cardinality(cardinality)
        n = A.shape[0] if card == Cardinality.Left else A.shape[1]
        recipe = self._recipe_class()(card, n, self.replace, rng)
        recipe.update(A)
        return recipe

    def _recipe_class(self):
        raise NotImplementedError()

    def _resolve_cardinality(self, cardinality):
        card = self.cardinality
        if cardinality is not None and cardinality != Cardinality.Undef:
            if card != Cardinality.Undef and card != cardinality:
                msg = f"""
                The distribution was configured with cardinality {card}, but the
                caller requested cardinality {cardinality}.
                """
                raise ValueError(msg)
            card = cardinality
        if card == Cardinality.Undef:
            raise ValueError('A distribution must be completed with cardinality Left or Right.')
        return card


class DistributionRecipe:

    def __init__(self, cardinality, n, replace, rng):
        self.cardinality = cardinality
        self.state_space = np.arange(n)
        self.weights = np.ones(n)
        self.replace = replace
        self.rng = np.random.default_rng(rng)

    def update(self, A=None, x=None, b=None):
        raise NotImplementedError()

    def sample(self, out):
        """
        Overwrite out with len(out) sorted indices from the state space,
        drawn with probabilities proportional to self.weights.
        """
        k = out.size
        positive = np.count_nonzero(self.weights > 0)
        if positive == 0:
            raise ValueError('All sampling weights are zero.')
        if not self.replace and k > positive:
            msg = f"""
            Cannot draw {k} distinct indices from a distribution with only
            {positive} members of positive weight.
            """
            raise DimensionMismatch(msg)
        probs = self.weights / np.sum(self.weights)
        draws = self.rng.choice(self.state_space, size=k, replace=self.replace, p=probs)
        draws.sort()
        out[:] = draws
        return out

    def probability(self, idx):
        """Selection probability of each index in idx (for a single draw)."""
        return self.weights[idx] / np.sum(self.weights)


def sample(out, recipe):
    return recipe.sample(out)


class Uniform(Distribution):
    """Every index is equally likely."""

    def __init__(self, cardinality=Cardinality.Undef, replace=False):
        super(Uniform, self).__init__(cardinality, replace)

    def _recipe_class(self):
        return UniformRecipe


class UniformRecipe(DistributionRecipe):

    def update(self, A=None, x=None, b=None):
        pass


class L2Norm(Distribution):
    """
    Sample index i with probability proportional to the squared 2-norm of
    row i (cardinality Left) or column i (cardinality Right). Rows or
    columns of norm zero are never selected.

    References
    ----------
    Strohmer, T. and Vershynin, R. "A randomized Kaczmarz algorithm with
    exponential convergence." J. Fourier Anal. Appl. 15 (2009).
    """

    def __init__(self, cardinality=Cardinality.Undef, replace=True):
        super(L2Norm, self).__init__(cardinality, replace)

    def _recipe_class(self):
        return L2NormRecipe


class L2NormRecipe(DistributionRecipe):

    def update(self, A=None, x=None, b=None):
        if A is None:
            return
        axis = 1 if self.cardinality == Cardinality.Left else 0
        norms = squared_norms(A, axis)
        if norms.size != self.weights.size:
            msg = f"""
            The matrix has {norms.size} candidate indices, but this distribution
            was completed for {self.weights.size}.
            """
            raise DimensionMismatch(msg)
        self.weights[:] = norms
