"""Test package for ParseAI.

Unit tests cover isolated logic; integration tests drive the FastAPI app
over HTTP.

Structure:
    - unit/: Individual function and class tests
    - integration/: API workflow tests

No test talks to a real model or identity provider: both are replaced by
doubles from conftest.py. Leverages pytest with pytest-check for soft assertions.
"""
