"""
App assembly entry point.

Re-exports the FastAPI `app` from `ess.api.main` for `uvicorn app:app`.
"""

from ess.api.main import app  # noqa: F401
