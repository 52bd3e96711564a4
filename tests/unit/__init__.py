"""Unit tests for individual components in isolation.

Coverage:
    - parsing/: Upload validation and data URIs
    - agent/: Configuration, prompts and the assistant flows
    - storage/ and services/: Document stores, sessions, usage and chat orchestration
    - auth/: Identity provider client and account forms
    - ui/: Markdown rendering and reveal helpers

Uses mocks for external services. Leverages pytest-check for multiple
assertions per test.
"""
