"""
Shared constants for the force-space particle filter.
"""

import tensorflow as tf

DEFAULT_DTYPE = tf.float64      # Use float64 for numerical precision
DEFAULT_SEED = 0                # Default random seed for reproducibility
STATE_DIM = 3                   # Particles are directions in R^3

# Input normalization: a vector shorter than its threshold is treated as zero.
MOTION_CONTROL_NORM_THRESHOLD = 0.001
FORCE_CONTROL_NORM_THRESHOLD = 0.001
VELOCITY_NORM_THRESHOLD = 1e-3
FORCE_NORM_THRESHOLD = 0.5

# A particle at least this long is a direction (propagated, velocity-weighted).
DIRECTION_NORM_THRESHOLD = 1e-3
# A particle shorter than this is the origin hypothesis for the force weight.
ORIGIN_FORCE_NORM_THRESHOLD = 0.1
# Velocity weight given to the origin hypothesis (uninformative).
ORIGIN_VELOCITY_WEIGHT = 0.5

# Default filter parameters.
DEFAULT_MEAN_SCATTER = 0.0
DEFAULT_STD_SCATTER = 0.005
DEFAULT_MEMORY_COEFFICIENT = 0.0
DEFAULT_FORCE_LOW = 0.0
DEFAULT_FORCE_HIGH = 5.0
DEFAULT_VELOCITY_LOW = 0.005
DEFAULT_VELOCITY_HIGH = 0.05
DEFAULT_FORCE_LOW_ADD = 1.0
DEFAULT_FORCE_HIGH_ADD = 10.0
DEFAULT_VELOCITY_LOW_ADD = 0.0
DEFAULT_VELOCITY_HIGH_ADD = 0.01
DEFAULT_ADD_FORCE_SCALE = 3.0   # Injection force thresholds scale once dim >= 2

# Proximity penalty: min(1, PROXIMITY_PENALTY_FLOOR + mean pairwise distance).
PROXIMITY_PENALTY_FLOOR = 0.5

# Eigenvalue above which a principal axis counts toward the force space.
DEFAULT_DIMENSION_THRESHOLD = 0.1
