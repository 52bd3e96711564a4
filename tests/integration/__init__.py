"""Integration tests for the API working as a system.

Real HTTP requests against the FastAPI app through ASGITransport, with the
model, the identity provider and the remote store swapped for in-memory
doubles via dependency overrides.
"""
