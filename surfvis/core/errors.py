"""
Exceptions raised by SurfVis
"""


class SurfVisError(Exception):
    """Base class for all SurfVis errors"""


class InvalidConfigurationError(SurfVisError, ValueError):
    """Missing or malformed estimator inputs (camera, mesh, oracle, settings)"""


class SamplingError(SurfVisError, RuntimeError):
    """Surface sampling could not produce the requested samples"""


class NoEligibleTrianglesError(SamplingError):
    """Every triangle was excluded, or the eligible ones carry no area"""


class OracleQueryError(SurfVisError, RuntimeError):
    """An intersection oracle query failed after all retries"""
