"""
Permission requirement models for the Authorization service.
"""

from typing import Any, Dict, Iterator, List, Mapping, Tuple, Union
from dataclasses import dataclass, field
from enum import Enum

from shared.errors import ValidationError


class Combinator(str, Enum):
    """How the permission codes of one requirement are combined."""
    AND = "and"
    OR = "or"


class Permission:
    """Standard permission codes."""
    READ = "r"
    INSERT = "i"
    UPDATE = "u"
    DELETE = "d"
    ARCHIVE = "a"
    EXECUTE = "x"
    PRINT = "p"


def _coerce_combinator(value: Union[str, Combinator]) -> Combinator:
    if isinstance(value, Combinator):
        return value
    try:
        return Combinator(str(value).lower())
    except ValueError:
        raise ValidationError(
            f"Unknown combinator '{value}'",
            details={"allowed": [c.value for c in Combinator]}
        ) from None


@dataclass(frozen=True)
class Requirement:
    """A single declared authorization check.

    ``instance`` names a request parameter (e.g. a path parameter) whose
    value selects the instance to check; an empty string means the check is
    made at resource level.
    """
    resource: str
    permissions: Tuple[str, ...]
    instance: str = ""
    combinator: Combinator = Combinator.AND

    def __post_init__(self):
        if not isinstance(self.resource, str):
            raise ValidationError(
                "Requirement resource must be a string",
                details={"type": type(self.resource).__name__}
            )
        if not self.resource:
            raise ValidationError("Requirement resource must not be empty")

        instance = self.instance or ""
        if not isinstance(instance, str):
            raise ValidationError(
                "Requirement instance must be a string",
                details={"resource": self.resource, "type": type(instance).__name__}
            )

        permissions = self.permissions
        if isinstance(permissions, str):
            permissions = (permissions,)
        elif not isinstance(permissions, (list, tuple, set, frozenset)):
            raise ValidationError(
                "Requirement permissions must be a list of codes",
                details={"resource": self.resource, "type": type(permissions).__name__}
            )
        permissions = tuple(permissions)
        if not permissions:
            raise ValidationError(
                "Requirement must declare at least one permission",
                details={"resource": self.resource}
            )
        for code in permissions:
            if not isinstance(code, str) or not code:
                raise ValidationError(
                    "Permission codes must be non-empty strings",
                    details={"resource": self.resource, "code": repr(code)}
                )

        # Frozen dataclass, normalise through object.__setattr__
        object.__setattr__(self, "permissions", permissions)
        object.__setattr__(self, "instance", instance)
        object.__setattr__(self, "combinator", _coerce_combinator(self.combinator))

    @property
    def is_instance_scoped(self) -> bool:
        return bool(self.instance)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Requirement":
        """Build a requirement from a plain mapping (config files, fixtures)."""
        if not isinstance(data, Mapping):
            raise ValidationError(
                "Requirement declaration must be a mapping",
                details={"type": type(data).__name__}
            )
        if "resource" not in data or "permissions" not in data:
            raise ValidationError(
                "Requirement needs 'resource' and 'permissions'",
                details={"keys": sorted(data.keys())}
            )
        return cls(
            resource=data["resource"],
            permissions=data["permissions"],
            instance=data.get("instance") or "",
            combinator=data.get("combinator", Combinator.AND),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resource": self.resource,
            "instance": self.instance,
            "permissions": list(self.permissions),
            "combinator": self.combinator.value,
        }


@dataclass(frozen=True)
class RequirementSet:
    """Requirements guarding one operation; every one of them must hold."""
    requirements: Tuple[Requirement, ...] = field(default_factory=tuple)

    def __post_init__(self):
        requirements = tuple(self.requirements)
        if not requirements:
            raise ValidationError("RequirementSet must contain at least one requirement")
        for requirement in requirements:
            if not isinstance(requirement, Requirement):
                raise ValidationError(
                    "RequirementSet members must be Requirement instances",
                    details={"type": type(requirement).__name__}
                )
        object.__setattr__(self, "requirements", requirements)

    @classmethod
    def of(cls, *requirements: Requirement) -> "RequirementSet":
        return cls(requirements=requirements)

    @classmethod
    def from_list(cls, items: List[Mapping[str, Any]]) -> "RequirementSet":
        if not isinstance(items, list):
            raise ValidationError(
                "Requirement declarations must be a list",
                details={"type": type(items).__name__}
            )
        return cls(requirements=tuple(Requirement.from_dict(item) for item in items))

    def __iter__(self) -> Iterator[Requirement]:
        return iter(self.requirements)

    def __len__(self) -> int:
        return len(self.requirements)
