"""
===============================================================================
QUAT - Exceptions
===============================================================================
Both errors derive from ValueError so callers that already guard numeric
input with ``except ValueError`` keep working.
===============================================================================
"""


class InvalidArgumentError(ValueError):
    """Constructor arguments match none of the recognized forms."""


class DegenerateQuaternionError(ValueError):
    """
    Quaternion is unsuitable for the requested checked operation.

    Raised only by opt-in checked variants such as
    ``Quaternion.try_rotate``. The unchecked operations never raise and
    propagate non-finite values instead.
    """

    def __init__(self, message: str, norm: float) -> None:
        super().__init__(message)
        self.norm = norm
