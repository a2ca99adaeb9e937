"""
Navigation error types.

Nothing raised here is fatal to the host: every error degrades to
"no navigation occurs" once it reaches the command layer.
"""


class NavigationError(Exception):
    """Base class for fhirconnect navigation errors."""


class ConfigError(NavigationError):
    """Raised when .fhirconnect/config.yaml cannot be loaded or is invalid."""


class ClickSiteError(NavigationError):
    """Raised when the clicked document cannot be composed into YAML nodes."""
