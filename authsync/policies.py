"""IAM policy synthesis for IAM-authorized root fields.

Access grants collected during a transformation are split into numbered policy
documents per execution role (``AuthRolePolicy01``, ``UnauthRolePolicy01``, ...),
each holding at most a fixed number of resources.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, final

from authsync.rules import AuthRule, RoleKind

APPSYNC_GRAPHQL_ACTION = "appsync:GraphQL"
POLICY_VERSION = "2012-10-17"
DEFAULT_MAX_RESOURCES_PER_POLICY = 25
DEFAULT_API_LOGICAL_ID = "GraphQLAPI"

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True)
class FieldResource:
    """A single AppSync field that can be invoked by an execution role.

    Attributes:
        type_name: Root operation type (e.g., "Query")
        field_name: Field on that type
    """

    type_name: str
    field_name: str

    @property
    def path(self) -> str:
        return f"types/{self.type_name}/fields/{self.field_name}"

    def arn(self, api_arn: str) -> str:
        return f"{api_arn}/{self.path}"

    def to_cfn(self, api_logical_id: str = DEFAULT_API_LOGICAL_ID) -> dict[str, Any]:
        return {
            "Fn::Sub": [
                "arn:aws:appsync:${AWS::Region}:${AWS::AccountId}:apis/${apiId}/" + self.path,
                {"apiId": {"Fn::GetAtt": [api_logical_id, "ApiId"]}},
            ]
        }


@final
@dataclass(frozen=True)
class PolicyStatement:
    actions: tuple[str, ...]
    resources: tuple[FieldResource, ...]


@final
@dataclass(frozen=True)
class PolicyDocument:
    """One numbered policy attached to an execution role.

    Attributes:
        role_kind: Role the policy is attached to
        index: Ordinal of the document within its role kind, starting at 1
        statements: Allow statements of the document
    """

    role_kind: RoleKind
    index: int
    statements: tuple[PolicyStatement, ...]

    @property
    def name(self) -> str:
        return f"{self.role_kind.policy_prefix}{self.index:02d}"

    @property
    def resources(self) -> tuple[FieldResource, ...]:
        return tuple(r for statement in self.statements for r in statement.resources)

    def to_policy_json(self, api_arn: str) -> dict[str, Any]:
        """Render as an IAM policy document for an API with a known ARN."""
        return {
            "Version": POLICY_VERSION,
            "Statement": [
                {
                    "Effect": "Allow",
                    "Action": list(statement.actions),
                    "Resource": [r.arn(api_arn) for r in statement.resources],
                }
                for statement in self.statements
            ],
        }

    def to_cfn_resource(self, api_logical_id: str = DEFAULT_API_LOGICAL_ID) -> dict[str, Any]:
        """Render as an ``AWS::IAM::ManagedPolicy`` template resource."""
        return {
            "Type": "AWS::IAM::ManagedPolicy",
            "Properties": {
                "Roles": [{"Ref": self.role_kind.role_parameter}],
                "PolicyDocument": {
                    "Version": POLICY_VERSION,
                    "Statement": [
                        {
                            "Effect": "Allow",
                            "Action": list(statement.actions),
                            "Resource": [r.to_cfn(api_logical_id) for r in statement.resources],
                        }
                        for statement in self.statements
                    ],
                },
            },
        }


def partition_policies(
    role_kind: RoleKind,
    resources: Sequence[FieldResource],
    max_resources_per_policy: int = DEFAULT_MAX_RESOURCES_PER_POLICY,
) -> list[PolicyDocument]:
    """Split resources into documents of at most ``max_resources_per_policy`` each.

    Order of ``resources`` is kept, ordinals are dense starting at 1. No resources
    means no documents.
    """
    if max_resources_per_policy < 1:
        raise ValueError("max_resources_per_policy must be at least 1")

    documents = []
    for start in range(0, len(resources), max_resources_per_policy):
        chunk = tuple(resources[start : start + max_resources_per_policy])
        documents.append(
            PolicyDocument(
                role_kind=role_kind,
                index=len(documents) + 1,
                statements=(PolicyStatement(actions=(APPSYNC_GRAPHQL_ACTION,), resources=chunk),),
            )
        )
    return documents


class PolicyAccumulator:
    """Resources granted to each execution role during one transformation.

    Resources are kept once per role in discovery order. The accumulator is consumed
    by ``documents()`` exactly once.
    """

    def __init__(self) -> None:
        # dicts double as insertion-ordered sets
        self._resources: dict[RoleKind, dict[FieldResource, None]] = {
            role_kind: {} for role_kind in RoleKind
        }
        self._consumed = False

    def add(self, role_kind: RoleKind, resource: FieldResource) -> bool:
        """Record a resource for a role. Returns False if it was already recorded."""
        self._check_not_consumed()
        role_resources = self._resources[role_kind]
        if resource in role_resources:
            return False
        role_resources[resource] = None
        return True

    def grant(self, rule: AuthRule, resource: FieldResource) -> list[RoleKind]:
        """Record ``resource`` for every role the rule grants access to."""
        granted = [role_kind for role_kind in rule.grants() if self.add(role_kind, resource)]
        if granted:
            logger.debug(
                "Granted %s to role(s) %s",
                resource.path,
                ", ".join(role_kind.value for role_kind in granted),
            )
        return granted

    def resources(self, role_kind: RoleKind) -> tuple[FieldResource, ...]:
        return tuple(self._resources[role_kind])

    def documents(
        self, max_resources_per_policy: int = DEFAULT_MAX_RESOURCES_PER_POLICY
    ) -> list[PolicyDocument]:
        self._check_not_consumed()
        if max_resources_per_policy < 1:
            raise ValueError("max_resources_per_policy must be at least 1")
        self._consumed = True
        documents = []
        for role_kind in RoleKind:
            role_documents = partition_policies(
                role_kind, self.resources(role_kind), max_resources_per_policy
            )
            if role_documents:
                logger.info(
                    "Synthesized %d policy document(s) for the %s role",
                    len(role_documents),
                    role_kind.value,
                )
            documents.extend(role_documents)
        return documents

    def _check_not_consumed(self) -> None:
        if self._consumed:
            raise RuntimeError("Policy documents have already been generated for this transform")
