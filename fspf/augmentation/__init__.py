"""
Particle-set augmentation for the force-space particle filter.
"""

from fspf.augmentation.base import AugmentationBase
from fspf.augmentation.arc import ArcInjection
