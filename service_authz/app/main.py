"""
Authorization service for the Access Layer.

Besides exposing :class:`AuthorizationGuard` for in-process use, the
service answers decision requests over HTTP for pipelines that cannot
embed the engine.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import NotFoundError, ValidationError

from .guard import AuthorizationGuard
from .permissions.models import RequirementSet
from .session import UserSession


class AuthzCheckRequest(BaseModel):
    """Request model for an authorization decision."""
    claims: Dict[str, Any] = Field(..., description="Verified token claims")
    operation_id: Optional[str] = Field(None, description="Registered operation to check")
    requirements: Optional[List[Dict[str, Any]]] = Field(
        None, description="Ad-hoc requirements, used instead of operation_id"
    )
    instances: Dict[str, str] = Field(
        default_factory=dict, description="Instance placeholder values, e.g. path parameters"
    )


class AuthzCheckResponse(BaseModel):
    """Response model for an authorization decision."""
    allowed: bool = Field(..., description="Whether every requirement is satisfied")
    user: str = Field(..., description="Principal the decision was made for")


class AuthzService(BaseService):
    """Authorization service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None):
        super().__init__("authz", 8013, config or get_config("authz", 8013))

        self.guard = AuthorizationGuard.from_config(self.config)
        self.registry = self.guard.registry
        self.evaluator = self.guard.evaluator

        self._setup_authz_routes()

    def _setup_authz_routes(self):
        """Set up authorization-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "authz",
                "message": "Access Layer - Authorization Service",
                "version": "1.0.0",
                "operations": len(self.registry)
            }

        @self.app.post("/authz/check", response_model=AuthzCheckResponse)
        async def check(request: AuthzCheckRequest):
            """Decide whether the claims satisfy an operation's requirements."""
            return self.decide(request)

        @self.app.get("/authz/operations/{operation_id}")
        async def get_operation(operation_id: str):
            """Get the requirements registered for an operation."""
            requirement_set = self._operation(operation_id)
            return {
                "operation_id": operation_id,
                "requirements": [r.to_dict() for r in requirement_set]
            }

    def _operation(self, operation_id: str) -> RequirementSet:
        """Requirements of an operation named by an HTTP caller."""
        requirement_set = self.registry.get(operation_id)
        if requirement_set is None:
            raise NotFoundError(
                "Unknown operation",
                details={"operation_id": operation_id}
            )
        return requirement_set

    def decide(self, request: AuthzCheckRequest) -> AuthzCheckResponse:
        """Evaluate a decision request; a denial is a normal response."""
        if request.requirements:
            requirement_set = RequirementSet.from_list(request.requirements)
        elif request.operation_id:
            requirement_set = self._operation(request.operation_id)
        else:
            raise ValidationError("Either operation_id or requirements must be provided")

        session = UserSession.from_claims(request.claims, self.config)
        allowed = self.evaluator.check_all(
            session.permissions,
            requirement_set,
            request.instances.get
        )

        self.logger.info(
            "Authorization decision",
            user=session.user,
            operation_id=request.operation_id,
            allowed=allowed
        )
        return AuthzCheckResponse(allowed=allowed, user=session.user)


def create_app(config: Optional[ServiceConfig] = None):
    """Create authorization service application."""
    service = AuthzService(config)
    return service.app


if __name__ == "__main__":
    service = AuthzService()
    service.run()
