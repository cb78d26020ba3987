"""Helpers for reading and extending directive lists on GraphQL AST nodes.

Nodes are owned by the document being transformed. Directive lists are only ever
extended by appending; existing directives are never removed or reordered.
"""

from collections.abc import Iterator
from typing import Any

from graphql import (
    DirectiveNode,
    DocumentNode,
    FieldDefinitionNode,
    NameNode,
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    OperationType,
    SchemaDefinitionNode,
)
from graphql.utilities import value_from_ast_untyped

type ObjectNode = ObjectTypeDefinitionNode | ObjectTypeExtensionNode
type DirectableNode = ObjectNode | FieldDefinitionNode

DEFAULT_ROOT_TYPE_NAMES = {
    OperationType.QUERY: "Query",
    OperationType.MUTATION: "Mutation",
    OperationType.SUBSCRIPTION: "Subscription",
}


def find_directives(node: DirectableNode, name: str) -> list[DirectiveNode]:
    return [d for d in node.directives or () if d.name.value == name]


def has_directive(node: DirectableNode, name: str) -> bool:
    return any(d.name.value == name for d in node.directives or ())


def append_directive(node: DirectableNode, name: str) -> DirectiveNode:
    """Append an argument-less directive to the node in place and return it."""
    directive = DirectiveNode(name=NameNode(value=name), arguments=())
    node.directives = (*(node.directives or ()), directive)
    return directive


def directive_arguments(directive: DirectiveNode) -> dict[str, Any]:
    """Convert directive arguments to plain Python values (enums become strings)."""
    return {arg.name.value: value_from_ast_untyped(arg.value) for arg in directive.arguments or ()}


def object_nodes(document: DocumentNode) -> Iterator[ObjectNode]:
    """Yield object type definitions and extensions in document order."""
    for definition in document.definitions:
        if isinstance(definition, ObjectTypeDefinitionNode | ObjectTypeExtensionNode):
            yield definition


def root_type_names(document: DocumentNode) -> dict[OperationType, str]:
    """Resolve root operation type names, honouring an explicit ``schema`` block."""
    for definition in document.definitions:
        if isinstance(definition, SchemaDefinitionNode):
            return {
                op.operation: op.type.name.value for op in definition.operation_types or ()
            }
    return dict(DEFAULT_ROOT_TYPE_NAMES)


def node_location(node: DirectableNode, parent: ObjectNode | None = None) -> str:
    """Human readable location used in error messages, e.g. ``Query.getSecret``."""
    if parent is None:
        return node.name.value
    return f"{parent.name.value}.{node.name.value}"
