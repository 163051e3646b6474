"""Exception types raised by pyhho.

Bad arguments still raise plain ``ValueError``/``KeyError``; the classes
below mark failures that come out of the numerics themselves.
"""


class PyHHOError(Exception):
    """Base class for every error raised by the library."""


class UnsupportedDegree(PyHHOError, ValueError):
    """A polynomial degree outside the range a basis family can build."""


class DegenerateElementError(PyHHOError, ValueError):
    """No pair of face edges spans a usable local reference frame."""


class SingularLocalSystem(PyHHOError, RuntimeError):
    """A local dense block could not be factorized."""


class SolverFailure(PyHHOError, RuntimeError):
    """The global sparse solve did not produce a solution."""


class AssemblyStateError(PyHHOError, RuntimeError):
    """Assembler operation attempted in the wrong phase."""
