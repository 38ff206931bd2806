"""
User session for the Authorization service.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Mapping, Optional

from shared.config import BaseConfig
from shared.errors import AuthenticationError
from shared.logging import get_logger
from .permissions.index import PermissionIndex
from .permissions.models import Combinator

logger = get_logger("authz.session")


@dataclass(frozen=True)
class UserSession:
    """Identity of the caller plus the permission index built from its grant."""
    user: str
    permissions: PermissionIndex = field(default_factory=PermissionIndex.empty, repr=False)
    email: Optional[str] = None
    tenant: Optional[str] = None
    group_id: Optional[Any] = None

    def __post_init__(self):
        if not self.user:
            raise AuthenticationError("Claim 'user' is mandatory")

    @classmethod
    def create(cls, user: Optional[str], authorization: Optional[Mapping[str, Any]] = None,
               email: Optional[str] = None, tenant: Optional[str] = None,
               group_id: Optional[Any] = None) -> "UserSession":
        """Create a session, compiling ``authorization`` into a permission index."""
        if not user:
            raise AuthenticationError("Claim 'user' is mandatory")

        return cls(
            user=user,
            permissions=PermissionIndex.build(authorization),
            email=email,
            tenant=tenant,
            group_id=group_id,
        )

    @classmethod
    def from_claims(cls, claims: Optional[Mapping[str, Any]],
                    config: Optional[BaseConfig] = None) -> "UserSession":
        """Create a session from already-verified token claims."""
        if not claims:
            raise AuthenticationError("No token claims available for the request")

        config = config or BaseConfig()
        user = claims.get(config.user_claim)
        if not user:
            logger.warning("Token claims carry no user", claim=config.user_claim)
            raise AuthenticationError(
                "Claim 'user' is mandatory",
                details={"claim": config.user_claim}
            )

        return cls.create(
            user=user,
            authorization=claims.get(config.authorization_claim),
            email=claims.get(config.email_claim),
            tenant=claims.get(config.tenant_claim),
            group_id=claims.get(config.group_claim),
        )

    def has_permission(self, resource: str, permission: str) -> bool:
        return self.permissions.has_permission(resource, permission)

    def has_permissions(self, resource: str, *permissions: str,
                        combinator: Combinator = Combinator.AND) -> bool:
        return self.permissions.has_permissions(resource, *permissions, combinator=combinator)

    def has_instance_permission(self, resource: str, instance: str, permission: str) -> bool:
        return self.permissions.has_instance_permission(resource, instance, permission)

    def has_instance_permissions(self, resource: str, instance: str, *permissions: str,
                                 combinator: Combinator = Combinator.AND) -> bool:
        return self.permissions.has_instance_permissions(
            resource, instance, *permissions, combinator=combinator
        )

    def resources(self) -> FrozenSet[str]:
        return self.permissions.resources()

    def instances_of(self, resource: str) -> FrozenSet[str]:
        return self.permissions.instances_of(resource)

    def to_dict(self) -> Dict[str, Any]:
        """Identity fields, for logging and request state."""
        return {
            "user": self.user,
            "email": self.email,
            "tenant": self.tenant,
            "group_id": self.group_id,
        }
