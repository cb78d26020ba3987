"""Minimal transform pipeline that runs directive transformers over a schema."""

import logging
from abc import ABC
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, final

from graphql import DocumentNode, FieldDefinitionNode, parse, print_ast

from authsync.directives import (
    ObjectNode,
    has_directive,
    node_location,
    object_nodes,
    root_type_names,
)
from authsync.exceptions import InvalidDirectiveError
from authsync.policies import FieldResource, PolicyAccumulator, PolicyDocument
from authsync.rules import AuthRule

MODEL_DIRECTIVE = "model"

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True)
class TransformOutput:
    """Result of a transformation.

    Attributes:
        schema: Printed schema with synthesized directives
        root_stack: Template with ``Parameters`` and ``Resources`` contributed by transformers
        policies: Policy documents synthesized for the execution roles
    """

    schema: str
    root_stack: dict[str, Any]
    policies: tuple[PolicyDocument, ...] = ()


@final
@dataclass(frozen=True)
class FunctionBinding:
    """A root field resolved by an invokable function."""

    type_name: str
    field_name: str
    function_name: str
    region: str | None = None


@dataclass
class TransformerContext:
    """State of one transformation. A new context is created for every schema."""

    document: DocumentNode
    template: dict[str, dict[str, Any]] = field(
        default_factory=lambda: {"Parameters": {}, "Resources": {}}
    )
    policies: list[PolicyDocument] = field(default_factory=list)
    accumulator: PolicyAccumulator = field(default_factory=PolicyAccumulator)
    # Root fields with IAM rules, resolved against function bindings once all are known
    iam_field_rules: list[tuple[FieldResource, tuple[AuthRule, ...]]] = field(default_factory=list)
    _bindings: dict[tuple[str, str], FunctionBinding] = field(default_factory=dict, init=False)

    def __post_init__(self) -> None:
        self._root_types = frozenset(root_type_names(self.document).values())
        self._model_types = frozenset(
            node.name.value
            for node in object_nodes(self.document)
            if has_directive(node, MODEL_DIRECTIVE)
        )

    def is_root_type(self, type_name: str) -> bool:
        return type_name in self._root_types

    def is_model_type(self, type_name: str) -> bool:
        """Whether any definition or extension of the type carries @model."""
        return type_name in self._model_types

    def bind_function(self, binding: FunctionBinding) -> None:
        key = (binding.type_name, binding.field_name)
        if key in self._bindings:
            raise InvalidDirectiveError(
                f"Field '{binding.type_name}.{binding.field_name}' is already bound to "
                f"function '{self._bindings[key].function_name}'."
            )
        self._bindings[key] = binding

    def function_binding(self, type_name: str, field_name: str) -> FunctionBinding | None:
        return self._bindings.get((type_name, field_name))

    def add_resource(self, logical_id: str, resource: dict[str, Any]) -> None:
        resources = self.template["Resources"]
        if logical_id in resources:
            raise ValueError(f"Resource '{logical_id}' already exists in the template")
        resources[logical_id] = resource

    def add_parameter(self, name: str, parameter: dict[str, Any]) -> None:
        self.template["Parameters"].setdefault(name, parameter)


class Transformer(ABC):  # noqa: B024
    """Handles one directive. Hooks that a transformer does not override are no-ops,
    except ``object`` and ``field``, which reject the directive at that location.
    """

    name: str
    directive_name: str

    def before(self, ctx: TransformerContext) -> None:
        pass

    def object(self, definition: ObjectNode, ctx: TransformerContext) -> None:
        raise InvalidDirectiveError(
            f"Directive @{self.directive_name} is not supported on types "
            f"('{definition.name.value}')."
        )

    def field(
        self, parent: ObjectNode, definition: FieldDefinitionNode, ctx: TransformerContext
    ) -> None:
        raise InvalidDirectiveError(
            f"Directive @{self.directive_name} is not supported on fields "
            f"('{node_location(definition, parent)}')."
        )

    def after(self, ctx: TransformerContext) -> None:
        pass


@final
class GraphQLTransform:
    """Runs transformers over a schema in order.

    Each transformer gets ``before``, then ``object``/``field`` for every node carrying its
    directive in document order. ``after`` hooks run last, in reverse transformer order.
    """

    def __init__(self, transformers: Sequence[Transformer]):
        if not transformers:
            raise ValueError("At least one transformer is required")
        names = [t.directive_name for t in transformers]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Multiple transformers handle directive(s): {duplicates}")
        self._transformers = list(transformers)

    def transform(self, schema: str) -> TransformOutput:
        document = parse(schema, no_location=True)
        ctx = TransformerContext(document)

        for transformer in self._transformers:
            logger.debug("Running transformer %s", transformer.name)
            transformer.before(ctx)
            self._walk(transformer, ctx)

        for transformer in reversed(self._transformers):
            transformer.after(ctx)

        return TransformOutput(
            schema=print_ast(document),
            root_stack=ctx.template,
            policies=tuple(ctx.policies),
        )

    @staticmethod
    def _walk(transformer: Transformer, ctx: TransformerContext) -> None:
        for definition in object_nodes(ctx.document):
            if has_directive(definition, transformer.directive_name):
                transformer.object(definition, ctx)
            for field_definition in definition.fields or ():
                if has_directive(field_definition, transformer.directive_name):
                    transformer.field(definition, field_definition, ctx)
