from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, NotRequired, TypedDict, final

from authsync.rules import AuthenticationType, AuthProvider


class UserPoolConfigDict(TypedDict, total=False):
    userPoolId: str
    awsRegion: str
    appIdClientRegex: str


class OpenIdConnectConfigDict(TypedDict, total=False):
    issuerUrl: str
    clientId: str
    iatTTL: int
    authTTL: int


class ProviderConfigDict(TypedDict):
    """Provider entry as stored by the Amplify CLI (camelCase keys)."""

    authenticationType: str
    userPoolConfig: NotRequired[UserPoolConfigDict]
    openIDConnectConfig: NotRequired[OpenIdConnectConfigDict]


class AuthConfigDict(TypedDict):
    defaultAuthentication: ProviderConfigDict
    additionalAuthenticationProviders: NotRequired[list[ProviderConfigDict]]


@final
@dataclass(frozen=True, kw_only=True)
class ProviderConfig:
    """One configured authentication mode of the API.

    Attributes:
        authentication_type: The AppSync authentication type
        user_pool_config: Cognito settings, used only when deploying
        openid_connect_config: OIDC settings, used only when deploying
    """

    authentication_type: AuthenticationType
    user_pool_config: Mapping[str, Any] | None = None
    openid_connect_config: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.authentication_type, AuthenticationType):
            raise TypeError(
                "authentication_type must be an AuthenticationType, "
                f"got {type(self.authentication_type).__name__}"
            )

    @property
    def provider(self) -> AuthProvider:
        return AuthProvider.for_authentication_type(self.authentication_type)

    @classmethod
    def from_dict(
        cls, data: ProviderConfigDict, key: str = "defaultAuthentication"
    ) -> "ProviderConfig":
        """Build from the camelCase dict found under ``key`` of an auth config."""
        _require_mapping(data, key)
        for settings_key in ("userPoolConfig", "openIDConnectConfig"):
            if data.get(settings_key) is not None:
                _require_mapping(data[settings_key], f"{key}.{settings_key}")
        raw_type = data.get("authenticationType")
        try:
            authentication_type = AuthenticationType(raw_type)
        except ValueError:
            raise ValueError(f"Unknown authentication type: {raw_type}") from None
        return cls(
            authentication_type=authentication_type,
            user_pool_config=data.get("userPoolConfig"),
            openid_connect_config=data.get("openIDConnectConfig"),
        )


@final
@dataclass(frozen=True, kw_only=True)
class AuthConfig:
    """Authentication modes of the API, read-only for a whole transformation.

    Attributes:
        default_authentication: Mode applied to every node without an explicit marker
        additional_authentication_providers: Further modes rules may opt into, in order
    """

    default_authentication: ProviderConfig
    additional_authentication_providers: tuple[ProviderConfig, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Accept lists for convenience but store an immutable tuple
        if not isinstance(self.additional_authentication_providers, tuple):
            object.__setattr__(
                self,
                "additional_authentication_providers",
                tuple(self.additional_authentication_providers),
            )

        seen = {self.default_authentication.authentication_type}
        for provider in self.additional_authentication_providers:
            if provider.authentication_type in seen:
                raise ValueError(
                    f"Authentication type {provider.authentication_type.value} "
                    "is configured more than once"
                )
            seen.add(provider.authentication_type)

    @property
    def default_provider(self) -> AuthProvider:
        return self.default_authentication.provider

    @property
    def providers(self) -> tuple[AuthProvider, ...]:
        """All configured providers, default first."""
        return (
            self.default_provider,
            *(p.provider for p in self.additional_authentication_providers),
        )

    def is_configured(self, provider: AuthProvider) -> bool:
        return provider in self.providers

    @classmethod
    def from_dict(cls, data: AuthConfigDict) -> "AuthConfig":
        _require_mapping(data, "auth config")
        if "defaultAuthentication" not in data:
            raise ValueError("Auth config requires 'defaultAuthentication'")
        additional = data.get("additionalAuthenticationProviders") or []
        if not isinstance(additional, list | tuple):
            raise TypeError(
                "'additionalAuthenticationProviders' must be a list, "
                f"got {type(additional).__name__}"
            )
        return cls(
            default_authentication=ProviderConfig.from_dict(data["defaultAuthentication"]),
            additional_authentication_providers=tuple(
                ProviderConfig.from_dict(p, f"additionalAuthenticationProviders[{i}]")
                for i, p in enumerate(additional)
            ),
        )

    @classmethod
    def of(
        cls,
        default: AuthenticationType,
        additional: Sequence[AuthenticationType] = (),
    ) -> "AuthConfig":
        """Shorthand for configs that carry no provider-specific settings."""
        return cls(
            default_authentication=ProviderConfig(authentication_type=default),
            additional_authentication_providers=tuple(
                ProviderConfig(authentication_type=t) for t in additional
            ),
        )


def _require_mapping(value: Any, key: str) -> None:  # noqa: ANN401
    if not isinstance(value, Mapping):
        raise TypeError(f"'{key}' must be an object, got {type(value).__name__}: {value!r}")
