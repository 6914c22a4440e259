"""Exceptions and warnings raised by chainfill."""


class ChainfillError(Exception):
    """Base class for chainfill errors."""


class InvalidConfigurationError(ChainfillError, ValueError):
    """Raised before any computation when a parameter is out of range."""


class DegenerateInputError(ChainfillError, ValueError):
    """Raised when the input cannot be processed at all (e.g. zero rows)."""


class ChainfillWarning(UserWarning):
    """Base class for chainfill warnings."""


class NonConvergenceWarning(ChainfillWarning):
    """Iteration cap reached before the convergence signal dropped below tol.

    The result is still usable; ``signal`` holds the last achieved value.
    """

    def __init__(self, message: str, signal: float):
        super().__init__(message)
        self.signal = signal


class DegenerateInputWarning(ChainfillWarning):
    """A column has no observed values and was left at its placeholder."""


class DegenerateBinningWarning(ChainfillWarning):
    """Binning produced fewer bins than requested."""


class DegenerateResultWarning(ChainfillWarning):
    """A transformation produced an empty result (e.g. zero columns)."""
