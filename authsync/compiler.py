from authsync.config import AuthConfig
from authsync.policies import DEFAULT_MAX_RESOURCES_PER_POLICY
from authsync.transform import GraphQLTransform, TransformOutput
from authsync.transformers import FunctionTransformer, ModelAuthTransformer


def compile_schema(
    schema: str,
    auth_config: AuthConfig,
    *,
    max_resources_per_policy: int = DEFAULT_MAX_RESOURCES_PER_POLICY,
) -> TransformOutput:
    """Run the function-binding and auth transformers over a schema.

    Raises:
        InvalidDirectiveError: If @auth is placed or configured incorrectly. The error
            aborts the whole transformation, no partial output is produced.
    """
    transform = GraphQLTransform(
        transformers=[
            FunctionTransformer(),
            ModelAuthTransformer(
                auth_config=auth_config, max_resources_per_policy=max_resources_per_policy
            ),
        ]
    )
    return transform.transform(schema)
