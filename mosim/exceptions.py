"""
Custom exceptions for the outcome simulator.

Every failure the engines can surface has its own type so callers
(UI layer, batch tooling, tests) can tell invalid input apart from
invalid configuration. None of these are transient; nothing retries them.

Usage:
    from mosim.exceptions import NonAxisVariableError, MOSimError

    try:
        result = simulator.sweep(case, "employ", grid)
    except NonAxisVariableError as e:
        print(f"Cannot sweep: {e}")
    except MOSimError as e:
        print(f"Simulation failed: {e}")
"""

from typing import Iterable, Optional


class MOSimError(Exception):
    """
    Base exception for all simulator errors.

    All custom exceptions inherit from this, allowing:
        except MOSimError:
            # Catch any engine error
    """
    pass


# =============================================================================
# VARIABLE ERRORS
# =============================================================================

class UnknownVariableError(MOSimError):
    """
    Variable id is not registered.

    Raised when:
    - A case description names a variable the registry does not hold
    - A sweep or transform is requested for an unregistered variable
    """

    def __init__(self, variable: str):
        self.variable = variable
        super().__init__(f"Unknown variable: {variable}")


class DomainError(MOSimError):
    """
    Numeric transform is undefined at the given input.

    Raised when:
    - A log-based transform receives a non-positive value
    - A log1p-based transform receives a value at or below -1
    - The input or the transformed output is not finite
    """

    def __init__(self, variable: Optional[str], value, transform: str, reason: str = None):
        self.variable = variable
        self.value = value
        self.transform = transform
        msg = f"Value {value!r} is outside the domain of transform '{transform}'"
        if variable:
            msg += f" for variable {variable}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


# =============================================================================
# MODEL ERRORS
# =============================================================================

class DimensionMismatchError(MOSimError):
    """
    Covariates and coefficients disagree in shape.

    Raised when:
    - A case description is missing a predictor the model needs
    - A covariate vector has the wrong length for the coefficient set
    """

    def __init__(
        self,
        missing: Iterable[str] = (),
        expected: Optional[int] = None,
        received: Optional[int] = None,
    ):
        self.missing = tuple(missing)
        self.expected = expected
        self.received = received
        if self.missing:
            msg = f"Missing predictors: {', '.join(self.missing)}"
        else:
            msg = "Covariate vector does not match coefficients"
        if expected is not None and received is not None:
            msg += f" (expected {expected}, got {received})"
        super().__init__(msg)


class InsufficientUncertaintyDataError(MOSimError):
    """
    Fitted model cannot be sampled.

    Raised when:
    - The model carries neither a covariance matrix nor an ensemble
    - The covariance is not finite or not positive semi-definite
    - The requested sampling method has no matching representation
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Insufficient uncertainty data: {reason}")


class ModelFitError(MOSimError):
    """
    Multinomial fit failed.

    Raised when:
    - Newton iterations do not converge
    - The information matrix is singular (separation, collinear predictors)
    - The dataset has no complete rows
    """

    def __init__(self, message: str):
        super().__init__(f"Model fit failed: {message}")


# =============================================================================
# REQUEST ERRORS
# =============================================================================

class InvalidDrawCountError(MOSimError):
    """Draw count is not a positive integer."""

    def __init__(self, draw_count):
        self.draw_count = draw_count
        super().__init__(f"Draw count must be a positive integer, got {draw_count!r}")


class NonAxisVariableError(MOSimError):
    """Sweep requested for a variable that is not an x-axis candidate."""

    def __init__(self, variable: str):
        self.variable = variable
        super().__init__(f"Variable {variable} is not an x-axis candidate")


class EmptyGridError(MOSimError):
    """Sweep grid has fewer than two points."""

    def __init__(self, size: int):
        self.size = size
        super().__init__(f"Sweep grid needs at least 2 points, got {size}")


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(MOSimError):
    """
    Configuration or setup error.

    Raised when:
    - A variable table entry combines facet with slider/axis candidacy
    - A transform kind is unknown or its parameters are invalid
    - A formula cannot be parsed
    """

    def __init__(self, setting: str, message: str):
        self.setting = setting
        super().__init__(f"Configuration error ({setting}): {message}")
