"""Multinomial Outcome Simulator package."""

__all__ = [
    "cli",
    "config",
    "exceptions",
    "variables",
    "models",
    "presentation",
    "engine",
    "reporting",
    "ops",
    "runtime",
]

__version__ = "0.1.0"
