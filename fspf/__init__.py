"""
Force-space particle filter.

Estimates, once per control cycle, the directions along which contact force
is exerted from commanded motion/force directions and measured
velocity/force.
"""

from fspf.base import State, StateSeries, ControlInputs, WeightedParticles
from fspf.parameters import FilterParameters
from fspf.sampling import RandomSource
from fspf.summary import PrincipalDirections, principal_directions, estimate_dimension
from fspf.estimator import ForceSpaceEstimator

__version__ = '0.1.0'
