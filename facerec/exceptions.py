"""
Error kinds raised by the matrix engine and the recognition pipeline.

All errors derive from ValueError so callers that already guard numeric input
with `except ValueError` keep working.
"""


class FaceRecError(ValueError):
    """Base class for every error raised by this package."""


class ShapeMismatch(FaceRecError):
    """Operands have incompatible dimensions."""


class NotSquare(FaceRecError):
    """A square matrix was required."""


class SingularMatrix(FaceRecError):
    """Factorization or solve reported a singular or near-singular input."""


class EmptyInput(FaceRecError):
    """Training or recognition was attempted without samples."""


class NoMatch(EmptyInput):
    """Recognition found no stored projection to compare against."""


class PreconditionViolation(FaceRecError):
    """Input breaks an ordering or lifecycle assumption."""


class PersistenceError(FaceRecError):
    """A serialized matrix or database could not be decoded."""
