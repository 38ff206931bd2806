"""
Authorization guard for FastAPI services.
"""

from typing import Awaitable, Callable, Optional

from fastapi import HTTPException, Request

from shared.config import BaseConfig
from shared.errors import AccessLayerException, AuthenticationError, AuthorizationError
from shared.logging import get_logger, set_user_context
from .permissions.evaluator import PermissionEvaluator
from .registry import RequirementRegistry
from .session import UserSession


def path_param(request: Request, name: str) -> Optional[str]:
    """Path parameter as text; route converters such as ``{id:int}`` yield non-strings."""
    value = request.path_params.get(name)
    if value is None:
        return None
    return str(value)


class AuthorizationGuard:
    """Enforces registered permission requirements on incoming requests.

    Token verification happens upstream; the guard expects the verified
    claims on ``request.state.claims``. Instance placeholders in
    requirements are resolved from the request's path parameters.
    """

    def __init__(self, registry: RequirementRegistry,
                 evaluator: Optional[PermissionEvaluator] = None,
                 config: Optional[BaseConfig] = None):
        self.registry = registry
        self.evaluator = evaluator or PermissionEvaluator()
        self.config = config or BaseConfig()
        self.logger = get_logger("authz.guard")

    @classmethod
    def from_config(cls, config: BaseConfig) -> "AuthorizationGuard":
        """Create a guard whose registry is loaded from ``config.requirements_file``."""
        if config.requirements_file:
            registry = RequirementRegistry.from_yaml(config.requirements_file)
        else:
            registry = RequirementRegistry()
        return cls(registry, config=config)

    def resolve_session(self, request: Request) -> UserSession:
        """Build the caller's session from the verified token claims."""
        session = getattr(request.state, "session", None)
        if isinstance(session, UserSession):
            return session

        claims = getattr(request.state, "claims", None)
        if not claims:
            self.logger.warning("Request has no verified claims", path=request.url.path)
            raise AuthenticationError("Not authenticated")

        session = UserSession.from_claims(claims, self.config)
        set_user_context(user_id=session.user, tenant_id=session.tenant)
        request.state.session = session
        return session

    def authorize(self, request: Request, operation_id: str,
                  required: bool = True) -> Optional[UserSession]:
        """Check the requirements of ``operation_id`` for this request.

        Raises ConfigurationError when a required operation has no
        declarations, AuthenticationError without a principal and
        AuthorizationError when any requirement is not satisfied. An
        optional operation with no declarations is open and returns None.
        """
        if required:
            requirement_set = self.registry.lookup(operation_id)
        else:
            requirement_set = self.registry.get(operation_id)
            if requirement_set is None:
                self.logger.debug("Operation has no permission requirements", operation_id=operation_id)
                return None

        session = self.resolve_session(request)

        allowed = self.evaluator.check_all(
            session.permissions,
            requirement_set,
            lambda name: path_param(request, name)
        )

        if not allowed:
            self.logger.warning(
                "Request not authorized",
                operation_id=operation_id,
                user=session.user
            )
            raise AuthorizationError()

        self.logger.info("Request authorized", operation_id=operation_id, user=session.user)
        return session

    def require(self, operation_id: str,
                required: bool = True) -> Callable[[Request], Awaitable[Optional[UserSession]]]:
        """FastAPI dependency enforcing the requirements of ``operation_id``.

        Usage::

            @app.get("/reports/{report_id}")
            async def get_report(session: UserSession = Depends(guard.require("reports.get"))):
                ...
        """

        async def dependency(request: Request) -> Optional[UserSession]:
            try:
                return self.authorize(request, operation_id, required)
            except AccessLayerException as e:
                raise HTTPException(
                    status_code=e.status_code,
                    detail=e.to_response().model_dump()
                ) from e

        return dependency
