"""
Health Module

Liveness and readiness endpoints for Kubernetes probes.
"""

from .readiness import ReadinessChecker, ReadinessState, ProbeResult
from .routes import router

__all__ = ["ReadinessChecker", "ReadinessState", "ProbeResult", "router"]
