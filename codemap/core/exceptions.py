"""Codemap custom exceptions."""


class CodemapError(Exception):
    """Base exception for Codemap errors."""


class ModuleNotFoundInStoreError(CodemapError):
    """Module has no normalized block in the store."""


class NormalizationError(CodemapError):
    """Raw tree does not have a recognized module shape."""


class SourceError(CodemapError):
    """Source provider could not resolve or decode a module."""


class TraversalError(CodemapError):
    """Call graph could not be built from the given start reference."""


class InvalidFunctionRefError(TraversalError):
    """Start reference is not a well-formed (module, function, arity) triple."""


class TraversalCancelledError(TraversalError):
    """Traversal was cancelled by the caller."""
