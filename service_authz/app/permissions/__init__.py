"""
Permissions package.

Fine-grained resource/instance permission model used by the Authorization
Service. Grants are compiled once per session into a read-only index and
declared requirements are evaluated against it.

Modules of interest:
- models: Combinator, permission codes, Requirement and RequirementSet.
- index: PermissionIndex, the grant parser and its queries.
- evaluator: PermissionEvaluator, AND/OR checks and fail-fast aggregation.
"""

from .models import Combinator, Permission, Requirement, RequirementSet
from .index import PermissionIndex
from .evaluator import InstanceResolver, PermissionEvaluator

__all__ = [
    "Combinator",
    "Permission",
    "Requirement",
    "RequirementSet",
    "PermissionIndex",
    "InstanceResolver",
    "PermissionEvaluator",
]
