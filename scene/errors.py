"""
scene/errors.py
===============
Exception hierarchy shared by the attention and approach packages.

Only configuration problems are raised.  Sensing gaps (no visibility data,
no conflicting vehicle, unknown route) have conservative fallbacks and never
surface as exceptions.
"""


class ConfigurationError(Exception):
    """A decision cycle cannot run with the given configuration."""


class ParameterError(ConfigurationError):
    """A required driver parameter is absent or outside its bounds."""


class UnsupportedConflictRuleError(ConfigurationError):
    """A conflict carries a priority rule the engine does not know."""


class SceneError(ConfigurationError):
    """The perceived scene breaks a structural invariant."""
