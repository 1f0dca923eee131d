"""
Particle propagation for the force-space particle filter.
"""

from fspf.transition.base import TransitionModelBase
from fspf.transition.scatter import SphericalScatterTransition
