from __future__ import annotations


class ConfigError(ValueError):
    """Raised when a simulation configuration violates its invariants."""


class PopulationError(ValueError):
    """Raised when a population is empty or carries duplicate agent ids."""


class SimulationError(ArithmeticError):
    """Raised when a step would leave an agent with a non-finite velocity."""
