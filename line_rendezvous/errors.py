"""
line_rendezvous/errors.py

Errors raised before a simulation begins.

Once a run is configured, stepping cannot fail.
"""


class ConfigurationError(ValueError):
    """A run configuration or program that cannot be simulated."""
