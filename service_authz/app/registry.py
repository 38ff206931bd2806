"""
Requirement registry for the Authorization service.

Operations declare their permission requirements once, at startup, either
in code::

    registry = RequirementRegistry()

    @registry.requires_permissions(
        Requirement("REPORTS", [Permission.READ], instance="report_id"),
        operation_id="reports.get",
    )
    async def get_report(report_id: str): ...

or in a YAML file keyed by operation id::

    reports.get:
      - resource: REPORTS
        instance: report_id
        permissions: [r]
        combinator: and

The request pipeline looks requirements up by operation id; nothing is
discovered at request time.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar

import yaml

from shared.errors import ConfigurationError, ValidationError
from shared.logging import get_logger
from .permissions.models import Requirement, RequirementSet

F = TypeVar("F", bound=Callable[..., Any])


class RequirementRegistry:
    """Lookup table from operation id to its RequirementSet."""

    def __init__(self):
        self.logger = get_logger("authz.registry")
        self._requirements: Dict[str, RequirementSet] = {}

    def register(self, operation_id: str, *requirements: Requirement) -> RequirementSet:
        """Register the requirements guarding ``operation_id``."""
        if not operation_id:
            raise ConfigurationError("Operation id must not be empty")
        if operation_id in self._requirements:
            raise ConfigurationError(
                "Requirements already registered for operation",
                details={"operation_id": operation_id}
            )

        requirement_set = RequirementSet.of(*requirements)
        self._requirements[operation_id] = requirement_set
        self.logger.info(
            "Requirements registered",
            operation_id=operation_id,
            requirements=len(requirement_set)
        )
        return requirement_set

    def requires_permissions(self, *requirements: Requirement,
                             operation_id: Optional[str] = None) -> Callable[[F], F]:
        """Decorator form of :meth:`register`; the function is returned unchanged."""

        def decorator(func: F) -> F:
            self.register(operation_id or func.__qualname__, *requirements)
            return func

        return decorator

    def lookup(self, operation_id: str) -> RequirementSet:
        """Get the requirements of an operation that must have them."""
        requirement_set = self._requirements.get(operation_id)
        if requirement_set is None:
            self.logger.error("No requirements registered for operation", operation_id=operation_id)
            raise ConfigurationError(
                "No requirements registered for operation",
                details={"operation_id": operation_id}
            )
        return requirement_set

    def get(self, operation_id: str) -> Optional[RequirementSet]:
        return self._requirements.get(operation_id)

    def operations(self) -> List[str]:
        return list(self._requirements)

    def load_mapping(self, mapping: Mapping[str, Any]) -> int:
        """Register every operation of a ``{operation_id: [requirement, ...]}`` mapping."""
        if not isinstance(mapping, Mapping):
            raise ConfigurationError(
                "Requirement declarations must be a mapping of operation ids",
                details={"type": type(mapping).__name__}
            )

        for operation_id, items in mapping.items():
            try:
                requirement_set = RequirementSet.from_list(items)
            except ValidationError as e:
                raise ConfigurationError(
                    f"Invalid requirements for operation '{operation_id}': {e.message}",
                    details={"operation_id": operation_id, **e.details}
                ) from e
            self.register(str(operation_id), *requirement_set)

        return len(mapping)

    @classmethod
    def from_yaml(cls, path: str) -> "RequirementRegistry":
        """Build a registry from a YAML declarations file."""
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                "Cannot read requirements file",
                details={"path": path, "error": str(e)}
            ) from e

        registry = cls()
        registry.load_mapping(data or {})
        registry.logger.info("Requirements file loaded", path=path, operations=len(registry))
        return registry

    def __contains__(self, operation_id: object) -> bool:
        return operation_id in self._requirements

    def __len__(self) -> int:
        return len(self._requirements)
