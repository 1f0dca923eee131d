"""
Weighting models for the force-space particle filter.

- base: Abstract WeightingModelBase
- piecewise: PiecewiseLinearWeighting (clamped linear ramps, default)
- tanh: TanhWeighting (saturating alternative)
"""

from fspf.weighting.base import WeightingModelBase
from fspf.weighting.piecewise import PiecewiseLinearWeighting
from fspf.weighting.tanh import TanhWeighting
