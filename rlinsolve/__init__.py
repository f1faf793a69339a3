import rlinsolve.comps as comps
import rlinsolve.drivers as drivers
import rlinsolve.randblas as randblas
import rlinsolve.utils as utils

__version__ = '0.1.0'

from rlinsolve.randblas.enums import Cardinality, SolverState
from rlinsolve.randblas.fwht import fwht
from rlinsolve.utils.misc import DimensionMismatch
from rlinsolve.comps.distributions import Distribution, Uniform, L2Norm, sample
from rlinsolve.comps.compressors.base import Compressor, CompressorRecipe, CompressorAdjoint
from rlinsolve.comps.compressors.dense import Gaussian
from rlinsolve.comps.compressors.sparse import SparseSign, CountSketch
from rlinsolve.comps.compressors.sampling import Sampling, SubCompressor
from rlinsolve.comps.compressors.transforms import SRHT, FJLT
from rlinsolve.comps.compressors.identity import Identity
from rlinsolve.comps.subsolvers import SubSolver, QRSolver, LQSolver
from rlinsolve.comps.loggers import BasicLogger, MALogger, MAStop, threshold_stop
from rlinsolve.comps.errors import FullResidual, CompressedResidual, LSGradient
from rlinsolve.drivers.least_squares import ProjectionSolver, Kaczmarz, ColumnProjection, \
    IHS, solve, kaczmarz, column_projection
