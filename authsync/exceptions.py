class TransformError(Exception):
    """Base class for errors that abort a schema transformation."""


class InvalidDirectiveError(TransformError):
    """Raised when a directive is used somewhere it is not allowed or with invalid arguments."""


class ConfigurationError(InvalidDirectiveError):
    """Raised when @auth rules conflict with the auth configuration or are malformed.

    Covers rules naming a provider that is not configured, rules missing required
    arguments and directives applied more than once to the same node.
    """
