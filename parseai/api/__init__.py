"""FastAPI endpoints for ParseAI.

Endpoints:
    - GET /health: Service health status
    - POST /auth/signup, /auth/login: Accounts via the identity provider
    - POST /ai/parse-document, /ai/answer, /ai/title: Stateless AI flows
    - GET /models: Model catalog with today's usage
    - /sessions: Per-user chat sessions, documents and questions
"""

from parseai.api.app import app, create_app

__all__ = ["app", "create_app"]
