"""
Authorization Service package for the Access Layer.

This package decides whether a caller may invoke an operation, based on
the resource/instance permissions carried in the caller's verified token.
It provides:

- app.permissions: Permission index, requirement models and evaluator.
- app.session: Per-request user session built from token claims.
- app.registry: Startup table mapping operation ids to requirements.
- app.guard: FastAPI dependency enforcing requirements per request.
- app.main: Decision API for pipelines that cannot embed the engine.

Guidelines:
- Sessions live for one request and are never shared.
- Evaluation is in-memory and deterministic; denial is a result, not an error.
- Malformed grant entries are logged and skipped, never fatal.
"""
