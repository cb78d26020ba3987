from abc import ABC, abstractmethod
from hashlib import sha256
from typing import Any, ClassVar


class Component[ResourcesT](ABC):
    _name: str
    _resources: ResourcesT | None

    def __init__(self, name: str):
        self._name = name
        self._resources = None
        ComponentRegistry.add_instance(self)

    @property
    def name(self) -> str:
        return self._name

    @property
    def resources(self) -> ResourcesT:
        if not self._resources:
            self._resources = self._create_resources()
        return self._resources

    @abstractmethod
    def _create_resources(self) -> ResourcesT:
        """Implement actual resource creation logic"""
        raise NotImplementedError


class ComponentRegistry:
    _registered_names: ClassVar[set[str]] = set()

    @classmethod
    def add_instance(cls, instance: Component[Any]) -> None:
        if instance.name in cls._registered_names:
            raise ValueError(
                f"Duplicate component name detected: '{instance.name}'. "
                "Component names must be unique across all component types."
            )
        cls._registered_names.add(instance.name)

    @classmethod
    def clear(cls) -> None:
        """Forget all components. Only used for testing."""
        cls._registered_names.clear()


def safe_name(
    prefix: str, name: str, max_length: int, suffix: str = "", pulumi_suffix_length: int = 8
) -> str:
    """Create safe AWS resource name accounting for Pulumi suffix and custom suffix.

    Args:
        prefix: The app-env prefix (e.g., "myapp-prod-")
        name: The base name for the resource
        max_length: AWS service limit for the resource type
        suffix: Custom suffix to add (e.g., '-p')
        pulumi_suffix_length: Length of Pulumi's random suffix (default 8, use 0 if none)

    Returns:
        Name that fits within the limit after Pulumi adds its suffix. Names that are too
        long are truncated and get a short hash of the full name appended.
    """
    reserved_space = len(prefix) + len(suffix) + pulumi_suffix_length
    available_for_name = max_length - reserved_space

    if available_for_name <= 0:
        raise ValueError(
            f"Cannot create safe name: prefix '{prefix}' ({len(prefix)} chars), "
            f"suffix '{suffix}' ({len(suffix)} chars), and Pulumi suffix "
            f"({pulumi_suffix_length} chars) exceed max_length ({max_length})"
        )

    if not name.strip():
        raise ValueError("Name cannot be empty or whitespace-only")

    if len(name) <= available_for_name:
        return f"{prefix}{name}{suffix}"

    hash_with_separator = 8  # 7 chars + 1 dash
    if available_for_name <= hash_with_separator:
        raise ValueError(
            f"Not enough space for name truncation: available={available_for_name}, "
            f"need at least {hash_with_separator} chars for hash"
        )

    truncate_length = available_for_name - hash_with_separator
    name_hash = sha256(name.encode()).hexdigest()[:7]
    return f"{prefix}{name[:truncate_length]}-{name_hash}{suffix}"
