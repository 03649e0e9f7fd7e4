"""Physical constants used across SplitKin."""

R_GAS = 8.314462618  # J/(mol·K)

REFERENCE_TEMPERATURE = 298.15  # K
REFERENCE_PRESSURE = 1.0e5  # Pa

WATER_MOLAR_MASS = 0.018015268  # kg/mol
WATER_SPECIES = "H2O(l)"
HYDRON_SPECIES = "H+"
