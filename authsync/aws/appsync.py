"""AppSync API deployment with @auth-derived role policies."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, final

import pulumi
from pulumi import Input, Output
from pulumi_aws import appsync, iam

from authsync.compiler import compile_schema
from authsync.component import Component, safe_name
from authsync.config import AuthConfig, AuthConfigDict, ProviderConfig
from authsync.context import context
from authsync.policies import DEFAULT_MAX_RESOURCES_PER_POLICY, PolicyDocument
from authsync.rules import AuthenticationType, AuthProvider, RoleKind
from authsync.transform import TransformOutput

# AWS resource name limits
MAX_APPSYNC_NAME_LENGTH = 64
MAX_IAM_POLICY_NAME_LENGTH = 128

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True)
class AppSyncAuthResources:
    """Resources created by the AppSyncAuth component.

    Attributes:
        api: The AppSync GraphQL API, created from the transformed schema
        api_key: The API key resource (if API_KEY auth is configured)
        policies: Role policies keyed by document name (e.g., "AuthRolePolicy01")
        attachments: Attachments of the policies to the execution roles
    """

    api: appsync.GraphQLApi
    api_key: appsync.ApiKey | None = None
    policies: dict[str, iam.Policy] = field(default_factory=dict)
    attachments: list[iam.RolePolicyAttachment] = field(default_factory=list)


@final
class AppSyncAuth(Component[AppSyncAuthResources]):
    """AppSync GraphQL API whose schema is processed for @auth rules.

    The schema is compiled when the component is created, so invalid @auth usage fails
    before any resource is declared. Provider marker directives end up in the deployed
    schema, and IAM rules on function-backed root fields become policies attached to the
    given execution roles.

    Args:
        name: Unique name for the API
        schema: GraphQL schema as file path or inline SDL string
        auth_config: Authentication modes, as AuthConfig or Amplify-style dict
        auth_role: Name (or Role) of the role assumed by authenticated identities
        unauth_role: Name (or Role) of the role assumed by unauthenticated identities
        max_resources_per_policy: Maximum number of field ARNs in one policy
        api_key_expires: Number of days until the API key expires (default: 365)

    Examples:
        api = AppSyncAuth(
            "posts",
            "schema.graphql",
            auth_config={
                "defaultAuthentication": {
                    "authenticationType": "AMAZON_COGNITO_USER_POOLS",
                    "userPoolConfig": {"userPoolId": "us-east-1_xxxxx"},
                },
                "additionalAuthenticationProviders": [{"authenticationType": "AWS_IAM"}],
            },
            auth_role="identity-pool-auth-role",
        )
    """

    def __init__(  # noqa: PLR0913
        self,
        name: str,
        schema: str,
        /,
        *,
        auth_config: AuthConfig | AuthConfigDict,
        auth_role: Input[str] | iam.Role | None = None,
        unauth_role: Input[str] | iam.Role | None = None,
        max_resources_per_policy: int = DEFAULT_MAX_RESOURCES_PER_POLICY,
        api_key_expires: int = 365,
    ):
        super().__init__(name)

        if not schema:
            raise ValueError("Schema cannot be empty")
        if api_key_expires <= 0:
            raise ValueError("api_key_expires must be positive")
        self._api_key_expires = api_key_expires

        if not isinstance(auth_config, AuthConfig):
            auth_config = AuthConfig.from_dict(auth_config)
        self._auth_config = auth_config
        self._validate_provider_settings()
        self._roles = {RoleKind.AUTH: auth_role, RoleKind.UNAUTH: unauth_role}

        self._output = compile_schema(
            _load_schema(schema),
            self._auth_config,
            max_resources_per_policy=max_resources_per_policy,
        )

        for document in self._output.policies:
            if self._roles[document.role_kind] is None:
                raise ValueError(
                    f"Schema grants IAM access to the {document.role_kind.value} role "
                    f"({document.name}) but no '{document.role_kind.value}_role' was given"
                )

    @property
    def transform_output(self) -> TransformOutput:
        return self._output

    @property
    def url(self) -> Output[str]:
        return self.resources.api.uris["GRAPHQL"]

    @property
    def arn(self) -> Output[str]:
        return self.resources.api.arn

    def _validate_provider_settings(self) -> None:
        for provider in (
            self._auth_config.default_authentication,
            *self._auth_config.additional_authentication_providers,
        ):
            match provider.authentication_type:
                case AuthenticationType.AMAZON_COGNITO_USER_POOLS:
                    if not (provider.user_pool_config or {}).get("userPoolId"):
                        raise ValueError("Cognito auth requires 'userPoolConfig.userPoolId'")
                case AuthenticationType.OPENID_CONNECT:
                    if not (provider.openid_connect_config or {}).get("issuerUrl"):
                        raise ValueError("OIDC auth requires 'openIDConnectConfig.issuerUrl'")
                case AuthenticationType.API_KEY | AuthenticationType.AWS_IAM:
                    pass

    def _build_auth_config(self) -> dict[str, Any]:
        config = _provider_args(self._auth_config.default_authentication, default=True)
        additional = [
            _provider_args(p, default=False)
            for p in self._auth_config.additional_authentication_providers
        ]
        if additional:
            config["additional_authentication_providers"] = additional
        return config

    def _create_resources(self) -> AppSyncAuthResources:
        api = appsync.GraphQLApi(
            safe_name(context().prefix(), f"{self.name}-api", MAX_APPSYNC_NAME_LENGTH),
            name=context().prefix(self.name),
            schema=self._output.schema,
            **self._build_auth_config(),
        )

        api_key: appsync.ApiKey | None = None
        if self._auth_config.is_configured(AuthProvider.API_KEY):
            expires_at = datetime.now(tz=UTC) + timedelta(days=self._api_key_expires)
            api_key = appsync.ApiKey(
                safe_name(context().prefix(), f"{self.name}-key", MAX_APPSYNC_NAME_LENGTH),
                api_id=api.id,
                expires=expires_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
            )

        policies: dict[str, iam.Policy] = {}
        attachments: list[iam.RolePolicyAttachment] = []
        for document in self._output.policies:
            policy = self._create_policy(api, document)
            policies[document.name] = policy
            attachments.append(self._attach_policy(document, policy))

        pulumi.export(f"appsync_{self.name}_url", api.uris["GRAPHQL"])
        pulumi.export(f"appsync_{self.name}_arn", api.arn)
        if api_key:
            pulumi.export(f"appsync_{self.name}_api_key", api_key.key)

        return AppSyncAuthResources(
            api=api, api_key=api_key, policies=policies, attachments=attachments
        )

    def _create_policy(self, api: appsync.GraphQLApi, document: PolicyDocument) -> iam.Policy:
        logger.debug("Creating %s for AppSync '%s'", document.name, self.name)
        return iam.Policy(
            safe_name(
                context().prefix(),
                f"{self.name}-{document.name}",
                MAX_IAM_POLICY_NAME_LENGTH,
                "-p",
            ),
            path="/",
            policy=api.arn.apply(lambda arn: json.dumps(document.to_policy_json(arn))),
        )

    def _attach_policy(
        self, document: PolicyDocument, policy: iam.Policy
    ) -> iam.RolePolicyAttachment:
        role = self._roles[document.role_kind]
        role_name = role.name if isinstance(role, iam.Role) else role
        return iam.RolePolicyAttachment(
            safe_name(
                context().prefix(),
                f"{self.name}-{document.name}-attachment",
                MAX_IAM_POLICY_NAME_LENGTH,
            ),
            role=role_name,
            policy_arn=policy.arn,
        )


def _load_schema(schema: str) -> str:
    """Load schema from file or return inline schema."""
    # SDL always contains braces, file paths never do
    if "{" not in schema:
        schema_path = Path(schema)
        if schema_path.is_file():
            return schema_path.read_text()
    return schema


def _provider_args(provider: ProviderConfig, *, default: bool) -> dict[str, Any]:
    args: dict[str, Any] = {"authentication_type": provider.authentication_type.value}
    match provider.authentication_type:
        case AuthenticationType.AMAZON_COGNITO_USER_POOLS:
            settings = provider.user_pool_config or {}
            user_pool_config = {
                "user_pool_id": settings["userPoolId"],
                "aws_region": settings.get("awsRegion"),
                "app_id_client_regex": settings.get("appIdClientRegex"),
            }
            if default:
                user_pool_config["default_action"] = "ALLOW"
            args["user_pool_config"] = user_pool_config
        case AuthenticationType.OPENID_CONNECT:
            settings = provider.openid_connect_config or {}
            args["openid_connect_config"] = {
                "issuer": settings["issuerUrl"],
                "client_id": settings.get("clientId"),
                "auth_ttl": settings.get("authTTL"),
                "iat_ttl": settings.get("iatTTL"),
            }
        case AuthenticationType.API_KEY | AuthenticationType.AWS_IAM:
            pass
    return args
