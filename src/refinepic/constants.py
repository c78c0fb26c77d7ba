"""
Physical Constants and Numeric Precision

All units in SI unless otherwise noted.
"""

import numpy as np

# ==================== FUNDAMENTAL CONSTANTS ====================

c = 299792458.0  # Speed of light [m/s]

# ==================== PRECISION ====================

# Particle attribute dtype for each precision mode
PRECISION_DTYPES = {
    'single': np.float32,
    'double': np.float64,
}

# Identifier and runtime int attribute dtypes
ID_DTYPE = np.int64
INT_DTYPE = np.int32


def dtype_for_precision(precision):
    """
    Get the numpy dtype used for particle real attributes.

    Args:
        precision: 'single' or 'double'

    Returns:
        dtype: np.float32 or np.float64

    Raises:
        ValueError: If precision is unknown
    """
    try:
        return PRECISION_DTYPES[precision]
    except KeyError:
        raise ValueError(
            f"Unknown precision '{precision}', expected one of {sorted(PRECISION_DTYPES)}"
        ) from None
