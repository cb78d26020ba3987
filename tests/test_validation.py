import pytest

from authsync.config import AuthConfig
from authsync.exceptions import ConfigurationError, InvalidDirectiveError
from authsync.rules import (
    AllowStrategy,
    AuthenticationType,
    AuthProvider,
    AuthRule,
    ModelOperation,
)
from authsync.validation import (
    NON_MODEL_FIELD_OPERATIONS_MESSAGE,
    ROOT_FIELD_OPERATIONS_MESSAGE,
    TYPE_WITHOUT_MODEL_MESSAGE,
    validate_field_placement,
    validate_rule_providers,
    validate_type_placement,
)

OWNER_READ = AuthRule(
    allow=AllowStrategy.OWNER,
    provider=AuthProvider.USER_POOLS,
    operations=frozenset({ModelOperation.READ}),
)
PRIVATE = AuthRule(allow=AllowStrategy.PRIVATE, provider=AuthProvider.USER_POOLS)
ALL_PROVIDERS = AuthConfig.of(
    AuthenticationType.AMAZON_COGNITO_USER_POOLS,
    [AuthenticationType.AWS_IAM, AuthenticationType.API_KEY, AuthenticationType.OPENID_CONNECT],
)


def test_type_requires_model():
    with pytest.raises(InvalidDirectiveError) as exc_info:
        validate_type_placement(is_model=False)

    assert str(exc_info.value) == "Types annotated with @auth must also be annotated with @model."
    assert str(exc_info.value) == TYPE_WITHOUT_MODEL_MESSAGE


def test_model_type_is_accepted():
    validate_type_placement(is_model=True)


@pytest.mark.parametrize(
    ("parent_is_root", "parent_is_model", "expected"),
    [
        (True, False, ROOT_FIELD_OPERATIONS_MESSAGE),
        (False, False, NON_MODEL_FIELD_OPERATIONS_MESSAGE),
    ],
)
def test_operations_rejected_outside_model_fields(parent_is_root, parent_is_model, expected):
    with pytest.raises(InvalidDirectiveError) as exc_info:
        validate_field_placement(
            [PRIVATE, OWNER_READ], parent_is_root=parent_is_root, parent_is_model=parent_is_model
        )

    assert str(exc_info.value) == expected


@pytest.mark.parametrize(
    ("parent_is_root", "parent_is_model"),
    [(True, False), (False, False), (False, True)],
)
def test_rules_without_operations_are_accepted_everywhere(parent_is_root, parent_is_model):
    validate_field_placement(
        [PRIVATE], parent_is_root=parent_is_root, parent_is_model=parent_is_model
    )


def test_operations_accepted_on_model_fields():
    validate_field_placement([OWNER_READ], parent_is_root=False, parent_is_model=True)


@pytest.mark.parametrize(
    ("allow", "provider"),
    [
        (AllowStrategy.OWNER, AuthProvider.USER_POOLS),
        (AllowStrategy.OWNER, AuthProvider.OIDC),
        (AllowStrategy.PRIVATE, AuthProvider.USER_POOLS),
        (AllowStrategy.PRIVATE, AuthProvider.IAM),
        (AllowStrategy.PUBLIC, AuthProvider.API_KEY),
        (AllowStrategy.PUBLIC, AuthProvider.IAM),
    ],
)
def test_supported_strategy_provider_combinations(allow, provider):
    validate_rule_providers([AuthRule(allow=allow, provider=provider)], ALL_PROVIDERS)


@pytest.mark.parametrize(
    ("allow", "provider", "message"),
    [
        (
            AllowStrategy.OWNER,
            AuthProvider.IAM,
            "'owner' strategy only supports 'userPools' and 'oidc' providers, "
            "but found 'iam' assigned.",
        ),
        (
            AllowStrategy.PRIVATE,
            AuthProvider.API_KEY,
            "'private' strategy only supports 'userPools' and 'iam' providers, "
            "but found 'apiKey' assigned.",
        ),
        (
            AllowStrategy.PUBLIC,
            AuthProvider.USER_POOLS,
            "'public' strategy only supports 'apiKey' and 'iam' providers, "
            "but found 'userPools' assigned.",
        ),
    ],
)
def test_unsupported_strategy_provider_combinations(allow, provider, message):
    with pytest.raises(InvalidDirectiveError, match=message):
        validate_rule_providers([AuthRule(allow=allow, provider=provider)], ALL_PROVIDERS)


def test_groups_rule_needs_groups():
    with pytest.raises(ConfigurationError, match="must specify 'groups' or 'groupsField'"):
        validate_rule_providers(
            [AuthRule(allow=AllowStrategy.GROUPS, provider=AuthProvider.USER_POOLS)], ALL_PROVIDERS
        )


@pytest.mark.parametrize(
    ("provider", "message"),
    [
        (AuthProvider.IAM, "'iam' provider found, but the project has no IAM authentication"),
        (AuthProvider.API_KEY, "'apiKey' provider found, but the project has no API Key"),
        (AuthProvider.OIDC, "'oidc' provider found, but the project has no OpenID Connect"),
    ],
)
def test_provider_must_be_configured(provider, message, user_pools_config):
    allow = AllowStrategy.OWNER if provider is AuthProvider.OIDC else AllowStrategy.PUBLIC

    with pytest.raises(ConfigurationError, match=message):
        validate_rule_providers([AuthRule(allow=allow, provider=provider)], user_pools_config)


def test_strategy_mismatch_reported_before_missing_provider(user_pools_config):
    with pytest.raises(InvalidDirectiveError, match="'owner' strategy only supports"):
        validate_rule_providers(
            [AuthRule(allow=AllowStrategy.OWNER, provider=AuthProvider.IAM)], user_pools_config
        )
