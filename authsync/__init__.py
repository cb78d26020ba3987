"""Compile-time @auth processing for AppSync GraphQL schemas."""

from authsync.compiler import compile_schema
from authsync.config import AuthConfig, ProviderConfig
from authsync.exceptions import ConfigurationError, InvalidDirectiveError, TransformError
from authsync.policies import PolicyDocument
from authsync.rules import AllowStrategy, AuthenticationType, AuthProvider, AuthRule, RoleKind
from authsync.transform import GraphQLTransform, TransformOutput

__all__ = [
    "AllowStrategy",
    "AuthConfig",
    "AuthProvider",
    "AuthRule",
    "AuthenticationType",
    "ConfigurationError",
    "GraphQLTransform",
    "InvalidDirectiveError",
    "PolicyDocument",
    "ProviderConfig",
    "RoleKind",
    "TransformError",
    "TransformOutput",
    "compile_schema",
]
