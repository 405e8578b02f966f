"""
Transport binding package.

Mounts route collections onto FastAPI applications.
"""

from .transport import extract_inbound, include_routes, render_result

__all__ = ["extract_inbound", "include_routes", "render_result"]
