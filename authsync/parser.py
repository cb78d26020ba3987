import logging
from collections.abc import Mapping
from typing import Any

from authsync.config import AuthConfig
from authsync.directives import (
    DirectableNode,
    ObjectNode,
    directive_arguments,
    find_directives,
    node_location,
)
from authsync.exceptions import ConfigurationError
from authsync.rules import (
    DEFAULT_GROUP_CLAIM,
    DEFAULT_IDENTITY_CLAIM,
    DEFAULT_OWNER_FIELD,
    AllowStrategy,
    AuthProvider,
    AuthRule,
    ModelOperation,
)

AUTH_DIRECTIVE = "auth"

logger = logging.getLogger(__name__)


def parse_auth_rules(
    node: DirectableNode, auth_config: AuthConfig, parent: ObjectNode | None = None
) -> list[AuthRule]:
    """Read the @auth directive of a type or field into normalized rules.

    The node is not modified. Providers omitted by a rule resolve to the default
    provider of ``auth_config``.

    Args:
        node: Type or field definition carrying the directive
        auth_config: Authentication modes configured for the API
        parent: Enclosing type when ``node`` is a field, used for error messages

    Returns:
        Rules in the order they are declared. Empty if the node has no @auth directive.

    Raises:
        ConfigurationError: If the directive is duplicated, has no rules, a rule lacks
            ``allow`` or uses an unknown value.
    """
    location = node_location(node, parent)
    directives = find_directives(node, AUTH_DIRECTIVE)
    if not directives:
        return []
    if len(directives) > 1:
        raise ConfigurationError(
            f"Duplicate @auth directive on '{location}'. Combine all rules into one @auth."
        )

    rules_value = directive_arguments(directives[0]).get("rules")
    if isinstance(rules_value, Mapping):
        # GraphQL input coercion allows a single object where a list is expected
        rules_value = [rules_value]
    if not rules_value:
        raise ConfigurationError("@auth directive requires a non-empty 'rules' argument.")

    rules = [_parse_rule(raw, auth_config, location) for raw in rules_value]
    logger.debug("Parsed %d @auth rule(s) on '%s'", len(rules), location)
    return rules


def _parse_rule(raw: Any, auth_config: AuthConfig, location: str) -> AuthRule:  # noqa: ANN401
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"@auth rules on '{location}' must be objects, got: {raw!r}")

    if raw.get("allow") is None:
        raise ConfigurationError(
            f"@auth rule on '{location}' is missing the required 'allow' argument."
        )
    allow = _enum_value(AllowStrategy, raw["allow"], "allow", location)

    provider_value = raw.get("provider")
    provider = (
        auth_config.default_provider
        if provider_value is None
        else _enum_value(AuthProvider, provider_value, "provider", location)
    )

    operations: frozenset[ModelOperation] | None = None
    if raw.get("operations") is not None:
        values = raw["operations"]
        if isinstance(values, str):
            values = [values]
        if not values:
            raise ConfigurationError(
                f"@auth rule on '{location}' specifies an empty 'operations' list."
            )
        operations = frozenset(
            _enum_value(ModelOperation, v, "operations", location) for v in values
        )

    groups = raw.get("groups")
    if isinstance(groups, str):
        groups = [groups]

    return AuthRule(
        allow=allow,
        provider=provider,
        operations=operations,
        owner_field=raw.get("ownerField") or DEFAULT_OWNER_FIELD,
        identity_claim=(
            raw.get("identityClaim") or raw.get("identityField") or DEFAULT_IDENTITY_CLAIM
        ),
        group_claim=raw.get("groupClaim") or DEFAULT_GROUP_CLAIM,
        groups=tuple(groups) if groups is not None else None,
        groups_field=raw.get("groupsField"),
    )


def _enum_value[E: (AllowStrategy, AuthProvider, ModelOperation)](
    enum_type: type[E], value: Any, argument: str, location: str  # noqa: ANN401
) -> E:
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise ConfigurationError(
            f"Invalid value '{value}' for '{argument}' in @auth rule on '{location}'. "
            f"Expected one of: {allowed}."
        ) from None
