"""
Permission evaluation for the Authorization service.
"""

from typing import Callable, Optional

from shared.logging import get_logger
from .index import PermissionIndex
from .models import Requirement, RequirementSet

# Maps an instance placeholder name to the request's value, None when absent
InstanceResolver = Callable[[str], Optional[str]]


def _no_instances(name: str) -> Optional[str]:
    return None


class PermissionEvaluator:
    """Decides whether a session's permissions satisfy declared requirements.

    Evaluation is a pure function of the index, the requirement and the
    resolved instance value. A denied check is a normal ``False`` result,
    never an exception.
    """

    def __init__(self):
        self.logger = get_logger("authz.evaluator")

    def check(self, index: PermissionIndex, requirement: Requirement,
              resolve_instance: Optional[InstanceResolver] = None) -> bool:
        """Evaluate a single requirement."""
        if requirement.is_instance_scoped:
            resolver = resolve_instance or _no_instances
            instance = resolver(requirement.instance)
            if instance is None:
                # Fails closed, indistinguishable from a missing grant
                self.logger.warning(
                    "Value for instance parameter was not provided",
                    parameter=requirement.instance,
                    resource=requirement.resource
                )
                return False

            allowed = index.has_instance_permissions(
                requirement.resource,
                instance,
                *requirement.permissions,
                combinator=requirement.combinator
            )
        else:
            instance = None
            allowed = index.has_permissions(
                requirement.resource,
                *requirement.permissions,
                combinator=requirement.combinator
            )

        self.logger.debug(
            "Requirement evaluated",
            resource=requirement.resource,
            instance=instance,
            permissions=list(requirement.permissions),
            combinator=requirement.combinator.value,
            allowed=allowed
        )
        return allowed

    def check_all(self, index: PermissionIndex, requirements: RequirementSet,
                  resolve_instance: Optional[InstanceResolver] = None) -> bool:
        """Evaluate requirements in declaration order, stopping at the first denial."""
        for position, requirement in enumerate(requirements):
            if not self.check(index, requirement, resolve_instance):
                self.logger.info(
                    "Requirement not satisfied",
                    resource=requirement.resource,
                    position=position
                )
                return False
        return True
