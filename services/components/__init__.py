"""
Stateless pipeline components.
"""

from services.components.delta_engine import compute_delta

__all__ = ["compute_delta"]
