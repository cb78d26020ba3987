import logging
from collections.abc import Sequence

from authsync.config import AuthConfig
from authsync.directives import (
    DirectableNode,
    ObjectNode,
    append_directive,
    has_directive,
    node_location,
)
from authsync.exceptions import ConfigurationError
from authsync.rules import AuthProvider, AuthRule

logger = logging.getLogger(__name__)


def marker_providers(rules: Sequence[AuthRule], auth_config: AuthConfig) -> list[AuthProvider]:
    """Non-default providers used by the rules, once each, in first-use order."""
    providers: list[AuthProvider] = []
    for rule in rules:
        if rule.provider is auth_config.default_provider or rule.provider in providers:
            continue
        providers.append(rule.provider)
    return providers


def synthesize_markers(
    node: DirectableNode,
    rules: Sequence[AuthRule],
    auth_config: AuthConfig,
    parent: ObjectNode | None = None,
) -> list[str]:
    """Append one provider marker directive per non-default provider used by ``rules``.

    Rules on the default provider need no marker. The @auth directive stays in place.

    Returns:
        Names of the directives that were appended.

    Raises:
        ConfigurationError: If a marker is already present, which happens when the
            transformation is applied to its own output.
    """
    location = node_location(node, parent)
    added: list[str] = []
    for provider in marker_providers(rules, auth_config):
        marker = provider.marker_directive
        if has_directive(node, marker):
            raise ConfigurationError(
                f"Duplicate @{marker} directive on '{location}'. Provider directives are "
                "generated from @auth rules and must not be declared in the input schema."
            )
        append_directive(node, marker)
        added.append(marker)
        logger.debug("Added @%s to '%s'", marker, location)
    return added
