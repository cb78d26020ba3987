"""Structural checks for @auth placement and rule/provider combinations."""

from collections.abc import Sequence

from authsync.config import AuthConfig
from authsync.exceptions import ConfigurationError, InvalidDirectiveError
from authsync.rules import AllowStrategy, AuthProvider, AuthRule

TYPE_WITHOUT_MODEL_MESSAGE = "Types annotated with @auth must also be annotated with @model."
NON_MODEL_FIELD_OPERATIONS_MESSAGE = (
    "@auth rules on fields within types that does not have @model directive cannot specify "
    "'operations' argument as there are operations will be generated by the CLI."
)
ROOT_FIELD_OPERATIONS_MESSAGE = (
    "@auth rules on fields within Query, Mutation, Subscription cannot specify "
    "'operations' argument as these rules are already on an operation already."
)


def validate_type_placement(*, is_model: bool) -> None:
    """@auth on a type needs a co-located @model, even for a type without fields."""
    if not is_model:
        raise InvalidDirectiveError(TYPE_WITHOUT_MODEL_MESSAGE)


def validate_field_placement(
    rules: Sequence[AuthRule], *, parent_is_root: bool, parent_is_model: bool
) -> None:
    """Reject explicit ``operations`` on fields that have no generated operations.

    Root fields already denote a single operation. Fields of non-model types have no
    generated operations at all. Rules without ``operations`` are legal in both places.
    """
    if not any(rule.has_operations for rule in rules):
        return
    if parent_is_root:
        raise InvalidDirectiveError(ROOT_FIELD_OPERATIONS_MESSAGE)
    if not parent_is_model:
        raise InvalidDirectiveError(NON_MODEL_FIELD_OPERATIONS_MESSAGE)


def allowed_providers(strategy: AllowStrategy) -> tuple[AuthProvider, ...]:
    match strategy:
        case AllowStrategy.OWNER | AllowStrategy.GROUPS:
            return (AuthProvider.USER_POOLS, AuthProvider.OIDC)
        case AllowStrategy.PRIVATE:
            return (AuthProvider.USER_POOLS, AuthProvider.IAM)
        case AllowStrategy.PUBLIC:
            return (AuthProvider.API_KEY, AuthProvider.IAM)


def validate_rule_providers(rules: Sequence[AuthRule], auth_config: AuthConfig) -> None:
    """Check each rule's provider against its strategy and the configured providers.

    Runs after placement checks, so misplaced @auth is reported before config problems.
    """
    for rule in rules:
        allowed = allowed_providers(rule.allow)
        if rule.provider not in allowed:
            names = " and ".join(f"'{p.value}'" for p in allowed)
            raise InvalidDirectiveError(
                f"@auth directive with '{rule.allow.value}' strategy only supports {names} "
                f"providers, but found '{rule.provider.value}' assigned."
            )
        if not auth_config.is_configured(rule.provider):
            raise ConfigurationError(
                f"@auth directive with '{rule.provider.value}' provider found, but the project "
                f"has no {rule.provider.display_name} authentication provider configured."
            )
        if rule.allow is AllowStrategy.GROUPS and not rule.groups and not rule.groups_field:
            raise ConfigurationError(
                "@auth rules with 'groups' strategy must specify 'groups' or 'groupsField'."
            )
