class ConfigurationError(ValueError):
    """
    Invalid run configuration: process grid shape, node count or CLI values.
    Always raised before any collective communication starts.
    """


class CommunicationFault(RuntimeError):
    """A collective reduction did not complete across all processes."""


class ResourceExhaustion(MemoryError):
    """An O(n^2) working buffer could not be allocated."""
