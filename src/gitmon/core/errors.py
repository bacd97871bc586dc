"""Exception types raised by gitmon components."""


class GitmonError(Exception):
    """Base class for all gitmon errors."""


class ConfigError(GitmonError):
    """Configuration could not be located, read or validated."""


class MirrorError(GitmonError):
    """A local mirror could not be created for a remote repository."""


class HistoryError(GitmonError):
    """The history of a local mirror could not be read."""


class DeliveryError(GitmonError):
    """The rendered report could not be delivered."""
