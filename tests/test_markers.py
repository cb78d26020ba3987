import pytest
from graphql import parse

from authsync.config import AuthConfig
from authsync.exceptions import ConfigurationError
from authsync.markers import marker_providers, synthesize_markers
from authsync.rules import AllowStrategy, AuthenticationType, AuthProvider, AuthRule


def _rule(allow: AllowStrategy, provider: AuthProvider) -> AuthRule:
    return AuthRule(allow=allow, provider=provider)


@pytest.fixture
def all_providers_config() -> AuthConfig:
    return AuthConfig.of(
        AuthenticationType.AMAZON_COGNITO_USER_POOLS,
        [
            AuthenticationType.AWS_IAM,
            AuthenticationType.API_KEY,
            AuthenticationType.OPENID_CONNECT,
        ],
    )


@pytest.fixture
def post():
    document = parse("type Post @model @auth(rules: [{ allow: owner }]) { id: ID! }")
    return document.definitions[0]


def _directive_names(node) -> list[str]:
    return [d.name.value for d in node.directives]


def test_default_provider_adds_no_marker(post, all_providers_config):
    added = synthesize_markers(
        post, [_rule(AllowStrategy.OWNER, AuthProvider.USER_POOLS)], all_providers_config
    )

    assert added == []
    assert _directive_names(post) == ["model", "auth"]


def test_markers_appended_after_existing_directives(post, all_providers_config):
    rules = [
        _rule(AllowStrategy.PUBLIC, AuthProvider.API_KEY),
        _rule(AllowStrategy.OWNER, AuthProvider.USER_POOLS),
        _rule(AllowStrategy.PRIVATE, AuthProvider.IAM),
    ]

    added = synthesize_markers(post, rules, all_providers_config)

    assert added == ["aws_api_key", "aws_iam"]
    assert _directive_names(post) == ["model", "auth", "aws_api_key", "aws_iam"]


def test_markers_deduplicated_per_provider(post, all_providers_config):
    rules = [
        _rule(AllowStrategy.PRIVATE, AuthProvider.IAM),
        _rule(AllowStrategy.PUBLIC, AuthProvider.IAM),
    ]

    synthesize_markers(post, rules, all_providers_config)

    assert _directive_names(post) == ["model", "auth", "aws_iam"]


def test_marker_providers_preserve_first_use_order(all_providers_config):
    rules = [
        _rule(AllowStrategy.OWNER, AuthProvider.OIDC),
        _rule(AllowStrategy.PUBLIC, AuthProvider.IAM),
        _rule(AllowStrategy.OWNER, AuthProvider.OIDC),
    ]

    assert marker_providers(rules, all_providers_config) == [AuthProvider.OIDC, AuthProvider.IAM]


def test_existing_marker_is_a_duplicate(all_providers_config):
    document = parse(
        "type Query { getSecret: String @auth(rules: [{ allow: private, provider: iam }]) "
        "@aws_iam }"
    )
    query = document.definitions[0]
    field = query.fields[0]

    with pytest.raises(ConfigurationError, match="Duplicate @aws_iam directive on 'Query"):
        synthesize_markers(
            field, [_rule(AllowStrategy.PRIVATE, AuthProvider.IAM)], all_providers_config, query
        )
