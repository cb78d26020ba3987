"""Typed representation of @auth rules."""

from dataclasses import dataclass
from enum import Enum
from typing import final

DEFAULT_OWNER_FIELD = "owner"
DEFAULT_IDENTITY_CLAIM = "cognito:username"
DEFAULT_GROUP_CLAIM = "cognito:groups"


class AllowStrategy(Enum):
    OWNER = "owner"
    GROUPS = "groups"
    PRIVATE = "private"
    PUBLIC = "public"


class AuthenticationType(Enum):
    API_KEY = "API_KEY"
    AWS_IAM = "AWS_IAM"
    AMAZON_COGNITO_USER_POOLS = "AMAZON_COGNITO_USER_POOLS"
    OPENID_CONNECT = "OPENID_CONNECT"


class AuthProvider(Enum):
    USER_POOLS = "userPools"
    IAM = "iam"
    API_KEY = "apiKey"
    OIDC = "oidc"

    @property
    def authentication_type(self) -> AuthenticationType:
        match self:
            case AuthProvider.USER_POOLS:
                return AuthenticationType.AMAZON_COGNITO_USER_POOLS
            case AuthProvider.IAM:
                return AuthenticationType.AWS_IAM
            case AuthProvider.API_KEY:
                return AuthenticationType.API_KEY
            case AuthProvider.OIDC:
                return AuthenticationType.OPENID_CONNECT

    @property
    def marker_directive(self) -> str:
        """Name of the AppSync directive that enables this provider on a node."""
        match self:
            case AuthProvider.USER_POOLS:
                return "aws_cognito_user_pools"
            case AuthProvider.IAM:
                return "aws_iam"
            case AuthProvider.API_KEY:
                return "aws_api_key"
            case AuthProvider.OIDC:
                return "aws_oidc"

    @property
    def display_name(self) -> str:
        match self:
            case AuthProvider.USER_POOLS:
                return "Cognito User Pools"
            case AuthProvider.IAM:
                return "IAM"
            case AuthProvider.API_KEY:
                return "API Key"
            case AuthProvider.OIDC:
                return "OpenID Connect"

    @classmethod
    def for_authentication_type(cls, authentication_type: AuthenticationType) -> "AuthProvider":
        for provider in cls:
            if provider.authentication_type is authentication_type:
                return provider
        raise ValueError(f"No provider for authentication type: {authentication_type.value}")


class ModelOperation(Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class RoleKind(Enum):
    AUTH = "auth"
    UNAUTH = "unauth"

    @property
    def policy_prefix(self) -> str:
        match self:
            case RoleKind.AUTH:
                return "AuthRolePolicy"
            case RoleKind.UNAUTH:
                return "UnauthRolePolicy"

    @property
    def role_parameter(self) -> str:
        match self:
            case RoleKind.AUTH:
                return "authRoleName"
            case RoleKind.UNAUTH:
                return "unauthRoleName"


@final
@dataclass(frozen=True, kw_only=True)
class AuthRule:
    """One entry of an @auth directive's ``rules`` list, with defaults resolved.

    Attributes:
        allow: Authorization class of the rule
        provider: Provider backing the rule, already resolved against the schema default
        operations: Model operations the rule applies to, or None when not specified
        owner_field: Field holding the owner identity (owner rules)
        identity_claim: Token claim compared against the owner field
        group_claim: Token claim holding the caller's groups
        groups: Static group names (groups rules)
        groups_field: Field holding dynamic group names (groups rules)
    """

    allow: AllowStrategy
    provider: AuthProvider
    operations: frozenset[ModelOperation] | None = None
    owner_field: str = DEFAULT_OWNER_FIELD
    identity_claim: str = DEFAULT_IDENTITY_CLAIM
    group_claim: str = DEFAULT_GROUP_CLAIM
    groups: tuple[str, ...] | None = None
    groups_field: str | None = None

    def __post_init__(self) -> None:
        if self.operations is not None and not self.operations:
            raise ValueError("Rule operations cannot be empty when specified")

    @property
    def has_operations(self) -> bool:
        return self.operations is not None

    def grants(self) -> tuple[RoleKind, ...]:
        """Execution roles an IAM rule grants access to.

        Unauthenticated callers only ever get ``public`` grants.
        """
        if self.provider is not AuthProvider.IAM:
            return ()
        match self.allow:
            case AllowStrategy.PRIVATE:
                return (RoleKind.AUTH,)
            case AllowStrategy.PUBLIC:
                return (RoleKind.AUTH, RoleKind.UNAUTH)
            case AllowStrategy.OWNER | AllowStrategy.GROUPS:
                return ()
