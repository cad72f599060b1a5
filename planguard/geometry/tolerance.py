from __future__ import annotations

# Two coordinates closer than this are the same point (1 mm).
EPS_COINCIDENT = 1e-3

# Residual allowed between a coordinate and its grid multiple.
EPS_GRID = 1e-3

# Float noise floor for comparisons after arithmetic on snapped values.
EPS_FLOAT = 1e-9

# Decimals used for endpoint identity keys (matches EPS_COINCIDENT).
KEY_DECIMALS = 3

# Default quantization grid (m).
DEFAULT_GRID_SIZE = 0.1

# Default dangling-endpoint snap radius (m).
DEFAULT_SNAP_TOLERANCE = 0.02

# Default angular window around 0/90/180/270 degrees.
DEFAULT_ANGLE_TOLERANCE_DEG = 2.0

# Walls shorter than this are removed by repair and flagged by validation (m).
DEFAULT_MIN_WALL_LENGTH = 0.3

# Exterior gaps up to closure_factor * snap tolerance are closed by repair.
DEFAULT_CLOSURE_FACTOR = 10.0

# Consecutive exterior walls farther apart than this break the loop (m).
EPS_LOOP_CLOSURE = 0.05

# Accepted wall thickness range (m).
MIN_WALL_THICKNESS = 0.08
MAX_WALL_THICKNESS = 0.6
