import logging
from typing import final

from graphql import FieldDefinitionNode

from authsync.directives import ObjectNode, directive_arguments, find_directives, node_location
from authsync.exceptions import InvalidDirectiveError
from authsync.transform import FunctionBinding, Transformer, TransformerContext

FUNCTION_DIRECTIVE = "function"

logger = logging.getLogger(__name__)


@final
class FunctionTransformer(Transformer):
    """Records which fields are resolved by a function via ``@function(name: ...)``.

    Only the binding is recorded; the function and its data source are deployed elsewhere.
    """

    name = "FunctionTransformer"
    directive_name = FUNCTION_DIRECTIVE

    def field(
        self, parent: ObjectNode, definition: FieldDefinitionNode, ctx: TransformerContext
    ) -> None:
        location = node_location(definition, parent)
        # Pipelines of several @function directives are bound to the first function
        directive = find_directives(definition, FUNCTION_DIRECTIVE)[0]
        args = directive_arguments(directive)
        function_name = args.get("name")
        if not isinstance(function_name, str) or not function_name.strip():
            raise InvalidDirectiveError(
                f"@function on '{location}' requires a non-empty 'name' argument."
            )
        ctx.bind_function(
            FunctionBinding(
                type_name=parent.name.value,
                field_name=definition.name.value,
                function_name=function_name,
                region=args.get("region"),
            )
        )
        logger.debug("Bound '%s' to function '%s'", location, function_name)
