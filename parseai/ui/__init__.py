"""NiceGUI interface - presentation layer for chat interactions.

Delivers a responsive web UI running the chat service in-process.

Responsibilities:
    - Session sidebar with create, switch and delete
    - Chat panel with markdown rendering and typewriter reveal
    - Document upload, model selection with daily usage, light/dark theme
    - Login and sign-up forms backed by the identity provider

Anonymous sessions live in browser storage; signed-in users get their
history from the remote store.
"""
