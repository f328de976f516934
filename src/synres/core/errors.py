"""
Exception taxonomy for dependency resolution.

Every failure that crosses a module boundary is one of these. Batch
operations catch them per item and report identities instead of raising.
"""


class SynresError(Exception):
    """Base class for all resolution errors."""


class DependencyError(SynresError):
    """Raised when a single dependency cannot be resolved."""

    def __init__(self, dependency: str, message: str):
        self.dependency = dependency
        self.message = message
        super().__init__(f"{dependency}: {message}")


class DependencyFetchError(DependencyError):
    """A dependency archive is missing after every retrieval strategy ran."""


class DownloadVerificationFailure(DependencyError):
    """A fetch reported success but the expected file does not exist."""


class MissingDriverCoordinates(DependencyError):
    """The matching driver entry lacks groupId, artifactId or version."""


class NoMatchingDriver(DependencyError):
    """No driver entry matches the requested connection type."""


class ManifestError(SynresError, ValueError):
    """A manifest exists but could not be parsed."""

    def __init__(self, path, message: str):
        self.path = path
        self.message = message
        super().__init__(f"Failed to parse {path}: {message}")
