# src/build/exceptions.py

class RouteDepsError(Exception):
    """Base class for errors raised while producing a route dependency map."""
    pass


class ContextFinalizedError(RouteDepsError):
    """Raised when per-build state is mutated after the walk phase has started."""
    pass


class BundleDescriptionError(RouteDepsError):
    """Raised when a bundle manifest / chunk description cannot be read or is not recognised."""
    pass
