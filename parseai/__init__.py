"""ParseAI - chat with an LLM, optionally grounded in an uploaded document.

Combines FastAPI for the HTTP API, Agno for model calls,
NiceGUI for the browser interface, and Pydantic for data validation.

Components:
    - api: HTTP endpoints for sessions, AI flows and authentication
    - agent: document parsing, question answering and title generation
    - auth: identity provider client
    - parsing: upload validation and data URI handling
    - services: chat orchestration and model usage accounting
    - storage: local and remote per-user document stores
    - ui: Web interface for chat interactions
    - models: Domain records and request/response schemas
"""

__version__ = "0.1.0"
