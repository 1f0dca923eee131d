"""
Resampling for the force-space particle filter.

- base: Abstract ResamplerBase
- resampling_base: StratifiedResamplerBase (single offset + evenly spaced strata)
- low_variance: LowVarianceResampler
- proximity: ProximityPenaltyResampler (penalizes crowding in a 3D force space)
"""

from fspf.resampling.base import ResamplerBase
from fspf.resampling.resampling_base import StratifiedResamplerBase
from fspf.resampling.low_variance import LowVarianceResampler
from fspf.resampling.proximity import ProximityPenaltyResampler, proximity_penalty
