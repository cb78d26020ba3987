from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class AppContext:
    """Naming context for deployed resources."""

    name: str
    env: str

    def prefix(self, name: str | None = None) -> str:
        """Get resource name prefix or prefixed name.

        Returns:
            If name is None: "{app}-{env}-"
            If name provided: "{app}-{env}-{name}"
        """
        base = f"{self.name.lower()}-{self.env.lower()}-"
        return base if name is None else f"{base}{name}"


class _ContextStore:
    _instance: ClassVar[AppContext | None] = None

    @classmethod
    def set(cls, context: AppContext) -> None:
        """Set the global context. Can only be called once."""
        if cls._instance is not None:
            raise RuntimeError("Context has already been initialized")
        cls._instance = context

    @classmethod
    def get(cls) -> AppContext:
        if cls._instance is None:
            raise RuntimeError(
                "authsync context not initialized. Call init_context() in your Pulumi program "
                "before creating components."
            )
        return cls._instance

    @classmethod
    def clear(cls) -> None:
        """Clear the context. Only used for testing."""
        cls._instance = None


def init_context(name: str, env: str) -> AppContext:
    app_context = AppContext(name=name, env=env)
    _ContextStore.set(app_context)
    return app_context


def context() -> AppContext:
    """Get the current app context.

    Raises:
        RuntimeError: If called before the context is initialized.
    """
    return _ContextStore.get()
