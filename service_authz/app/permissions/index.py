"""
Per-session permission index built from a token's authorization grant.

A grant looks like::

    {"permissions": [{"rsname": "REPORTS:john:2", "scopes": ["r", "x"]}]}

``rsname`` is ``RESOURCE:PRINCIPAL`` or ``RESOURCE:PRINCIPAL:INSTANCE``.
Every scope lands in the resource-level set; instance grants are also
recorded under the key ``RESOURCE + INSTANCE``.

The grant comes from outside the service, so building an index never
raises: entries that cannot be understood are logged and skipped.
"""

from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Iterable, Mapping, Optional, Set

from shared.logging import get_logger
from .models import Combinator

SEGMENT_DELIMITER = ":"

logger = get_logger("authz.permission_index")


def _combine(check: Callable[[str], bool], codes: Iterable[str], combinator: Combinator) -> bool:
    """Fold ``check`` over ``codes``.

    AND starts true and OR starts false, so an empty ``codes`` yields true
    under AND and false under OR.
    """
    if combinator == Combinator.AND:
        permitted = True
        for code in codes:
            permitted = permitted and check(code)
        return permitted

    for code in codes:
        if check(code):
            return True
    return False


def _split_subject(rsname: str) -> list:
    segments = rsname.split(SEGMENT_DELIMITER)
    # "R:U:" carries no instance
    while segments and segments[-1] == "":
        segments.pop()
    return segments


class PermissionIndex:
    """Read-only lookup of resource and instance permissions for one session."""

    def __init__(
        self,
        resource_permissions: Optional[Mapping[str, Iterable[str]]] = None,
        instance_permissions: Optional[Mapping[str, Iterable[str]]] = None,
    ):
        self._resource_permissions: Mapping[str, FrozenSet[str]] = MappingProxyType({
            name: frozenset(codes) for name, codes in (resource_permissions or {}).items()
        })
        self._instance_permissions: Mapping[str, FrozenSet[str]] = MappingProxyType({
            key: frozenset(codes) for key, codes in (instance_permissions or {}).items()
        })

    @classmethod
    def empty(cls) -> "PermissionIndex":
        return cls()

    @classmethod
    def build(cls, grant: Optional[Mapping[str, Any]]) -> "PermissionIndex":
        """Compile a raw authorization grant into an index."""
        if grant is None:
            logger.debug("No authorization has been provided")
            return cls.empty()

        if not isinstance(grant, Mapping):
            logger.warning("Authorization grant is not an object, ignoring it",
                           grant_type=type(grant).__name__)
            return cls.empty()

        entries = grant.get("permissions")
        if not isinstance(entries, list) or not entries:
            logger.warning("No permissions have been provided")
            return cls.empty()

        resource_permissions: Dict[str, Set[str]] = {}
        instance_permissions: Dict[str, Set[str]] = {}

        for entry in entries:
            cls._index_entry(entry, resource_permissions, instance_permissions)

        index = cls(resource_permissions, instance_permissions)
        logger.debug(
            "Permission index built",
            entries=len(entries),
            resources=len(resource_permissions),
            instances=len(instance_permissions)
        )
        return index

    @staticmethod
    def _index_entry(
        entry: Any,
        resource_permissions: Dict[str, Set[str]],
        instance_permissions: Dict[str, Set[str]],
    ) -> None:
        if not isinstance(entry, Mapping):
            logger.warning("Ignoring permission entry that is not an object",
                           entry_type=type(entry).__name__)
            return

        rsname = entry.get("rsname")
        if not isinstance(rsname, str):
            logger.warning("Ignoring permission entry without a valid rsname", rsname=rsname)
            return

        segments = _split_subject(rsname)
        if len(segments) not in (2, 3):
            logger.warning(
                "Resource is not compatible with RESOURCE:USER or RESOURCE:USER:INSTANCE, "
                "it will be ignored",
                rsname=rsname
            )
            return

        resource_name = segments[0]
        instance_name = segments[2] if len(segments) == 3 else None

        scopes = entry.get("scopes")
        if not isinstance(scopes, list) or not scopes:
            logger.warning("No scopes have been provided for resource", rsname=rsname)
            return

        values = [scope for scope in scopes if isinstance(scope, str)]
        if not values:
            logger.warning("No usable scopes for resource", rsname=rsname)
            return

        resource_permissions.setdefault(resource_name, set()).update(values)
        if instance_name is not None:
            instance_key = resource_name + instance_name
            instance_permissions.setdefault(instance_key, set()).update(values)

    @property
    def resource_permissions(self) -> Mapping[str, FrozenSet[str]]:
        return self._resource_permissions

    @property
    def instance_permissions(self) -> Mapping[str, FrozenSet[str]]:
        return self._instance_permissions

    def is_empty(self) -> bool:
        return not self._resource_permissions and not self._instance_permissions

    def has_permission(self, resource: str, permission: str) -> bool:
        """True if ``permission`` is granted on ``resource``."""
        permissions = self._resource_permissions.get(resource)
        return permissions is not None and permission in permissions

    def has_permissions(self, resource: str, *permissions: str,
                        combinator: Combinator = Combinator.AND) -> bool:
        """Check several resource permissions combined with AND or OR."""
        return _combine(
            lambda code: self.has_permission(resource, code),
            permissions,
            combinator
        )

    def has_instance_permission(self, resource: str, instance: str, permission: str) -> bool:
        """True if ``permission`` is granted on this particular instance."""
        permissions = self._instance_permissions.get(resource + instance)
        return permissions is not None and permission in permissions

    def has_instance_permissions(self, resource: str, instance: str, *permissions: str,
                                 combinator: Combinator = Combinator.AND) -> bool:
        """Check several instance permissions combined with AND or OR."""
        return _combine(
            lambda code: self.has_instance_permission(resource, instance, code),
            permissions,
            combinator
        )

    def resources(self) -> FrozenSet[str]:
        """Resource names with at least one grant."""
        return frozenset(self._resource_permissions)

    def instances_of(self, resource: str) -> FrozenSet[str]:
        """Instance identifiers granted under ``resource``.

        Instance keys carry no separator, so a resource whose name extends
        ``resource`` (``REPORTS2`` for ``REPORTS``) also matches.
        """
        return frozenset(
            key[len(resource):]
            for key in self._instance_permissions
            if key.startswith(resource)
        )

    def __repr__(self) -> str:
        return (
            f"PermissionIndex(resources={len(self._resource_permissions)}, "
            f"instances={len(self._instance_permissions)})"
        )
