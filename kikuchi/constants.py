"""Definitions of global constants used in kikuchi modules."""

# Tolerance used to decide when two fractional coordinates are the same.
# Coordinates given at finer precision than this are not supported.
SITE_TOL = 1e-8

# Tolerance used when checking the Kikuchi-Baker sum rules
KB_TOL = 1e-6

# Decimals kept when comparing C-matrix rows
ROW_DECIMALS = 10

# Largest denominator searched when mapping positions onto an integer grid
MAX_GRID_DENOMINATOR = 48

# Tolerance on the sum of species fractions of a composition
COMPOSITION_TOL = 1e-6

# Cluster variables below this use a quadratic extension of cv * ln(cv)
ENTROPY_EPS = 1e-6
