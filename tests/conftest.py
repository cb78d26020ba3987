import pytest

from authsync.component import ComponentRegistry
from authsync.config import AuthConfig
from authsync.context import AppContext, _ContextStore
from authsync.rules import AuthenticationType


@pytest.fixture(autouse=True)
def clean_registries():
    ComponentRegistry.clear()


@pytest.fixture(autouse=True)
def app_context():
    _ContextStore.clear()
    _ContextStore.set(AppContext(name="test", env="test"))


@pytest.fixture
def user_pools_config() -> AuthConfig:
    """User pools by default, nothing else configured."""
    return AuthConfig.of(AuthenticationType.AMAZON_COGNITO_USER_POOLS)


@pytest.fixture
def user_pools_iam_config() -> AuthConfig:
    """User pools by default with IAM as additional provider."""
    return AuthConfig.of(
        AuthenticationType.AMAZON_COGNITO_USER_POOLS, [AuthenticationType.AWS_IAM]
    )
