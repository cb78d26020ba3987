import logging
from typing import final

from graphql import FieldDefinitionNode

from authsync.config import AuthConfig
from authsync.directives import ObjectNode
from authsync.markers import synthesize_markers
from authsync.parser import AUTH_DIRECTIVE, parse_auth_rules
from authsync.policies import (
    DEFAULT_API_LOGICAL_ID,
    DEFAULT_MAX_RESOURCES_PER_POLICY,
    FieldResource,
)
from authsync.transform import Transformer, TransformerContext
from authsync.validation import (
    validate_field_placement,
    validate_rule_providers,
    validate_type_placement,
)

logger = logging.getLogger(__name__)


@final
class ModelAuthTransformer(Transformer):
    """Handles ``@auth`` on model types and on fields.

    For every node carrying @auth the rules are parsed, checked against where the
    directive is placed, and provider marker directives are added for rules that do not
    use the default provider. IAM rules on root fields bound to a function are turned
    into numbered role policies once the whole schema has been visited.

    Args:
        auth_config: Authentication modes configured for the API
        max_resources_per_policy: Maximum number of resources in one policy document
        api_logical_id: Logical id of the GraphQL API in the template, used to build ARNs

    Examples:
        transform = GraphQLTransform(
            transformers=[
                FunctionTransformer(),
                ModelAuthTransformer(
                    auth_config=AuthConfig.of(
                        AuthenticationType.AMAZON_COGNITO_USER_POOLS,
                        [AuthenticationType.AWS_IAM],
                    )
                ),
            ]
        )
        out = transform.transform(schema)
    """

    name = "ModelAuthTransformer"
    directive_name = AUTH_DIRECTIVE

    def __init__(
        self,
        *,
        auth_config: AuthConfig,
        max_resources_per_policy: int = DEFAULT_MAX_RESOURCES_PER_POLICY,
        api_logical_id: str = DEFAULT_API_LOGICAL_ID,
    ):
        if not isinstance(auth_config, AuthConfig):
            raise TypeError(f"auth_config must be an AuthConfig, got {type(auth_config).__name__}")
        if max_resources_per_policy < 1:
            raise ValueError("max_resources_per_policy must be at least 1")
        self._auth_config = auth_config
        self._max_resources_per_policy = max_resources_per_policy
        self._api_logical_id = api_logical_id

    @property
    def auth_config(self) -> AuthConfig:
        return self._auth_config

    def object(self, definition: ObjectNode, ctx: TransformerContext) -> None:
        type_name = definition.name.value
        validate_type_placement(is_model=ctx.is_model_type(type_name))
        rules = parse_auth_rules(definition, self._auth_config)
        validate_rule_providers(rules, self._auth_config)

        # Root operation types never get markers, only their fields do
        if not ctx.is_root_type(type_name):
            synthesize_markers(definition, rules, self._auth_config)

    def field(
        self, parent: ObjectNode, definition: FieldDefinitionNode, ctx: TransformerContext
    ) -> None:
        type_name = parent.name.value
        is_root = ctx.is_root_type(type_name)

        rules = parse_auth_rules(definition, self._auth_config, parent)
        validate_field_placement(
            rules, parent_is_root=is_root, parent_is_model=ctx.is_model_type(type_name)
        )
        validate_rule_providers(rules, self._auth_config)
        synthesize_markers(definition, rules, self._auth_config, parent)

        if is_root and any(rule.grants() for rule in rules):
            ctx.iam_field_rules.append(
                (FieldResource(type_name, definition.name.value), tuple(rules))
            )

    def after(self, ctx: TransformerContext) -> None:
        for resource, rules in ctx.iam_field_rules:
            if ctx.function_binding(resource.type_name, resource.field_name) is None:
                logger.debug(
                    "Skipping policy for '%s.%s': field is not bound to a function",
                    resource.type_name,
                    resource.field_name,
                )
                continue
            for rule in rules:
                ctx.accumulator.grant(rule, resource)

        documents = ctx.accumulator.documents(self._max_resources_per_policy)
        for document in documents:
            ctx.add_parameter(document.role_kind.role_parameter, {"Type": "String"})
            ctx.add_resource(document.name, document.to_cfn_resource(self._api_logical_id))
            logger.info(
                "Added %s with %d resource(s)", document.name, len(document.resources)
            )
        ctx.policies.extend(documents)

