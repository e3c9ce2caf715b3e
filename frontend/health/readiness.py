"""
Readiness Checker

Probes the todo backend and tracks whether this pod should receive
traffic. Two states: READY and NOT_READY.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
import time

from core.exceptions import DownstreamUnavailable
from todo_proxy.client import BackendClient

logger = logging.getLogger(__name__)


class ReadinessState(str, Enum):
    READY = "ready"
    NOT_READY = "not_ready"


@dataclass
class ProbeResult:
    """Result of one readiness probe."""
    state: ReadinessState
    message: str
    status_code: Optional[int] = None
    checked_at: float = field(default_factory=time.time)


class ReadinessChecker:
    """
    Runs the backend probe and remembers the last state.

    The backend counts as reachable when the probe completes with a
    status below 400. Transport errors, timeouts and error statuses all
    map to NOT_READY.
    """

    def __init__(self, backend_client: BackendClient, probe_path: str = "/todos"):
        self.backend_client = backend_client
        self.probe_path = probe_path
        self.state = ReadinessState.NOT_READY
        self.last_result: Optional[ProbeResult] = None

    async def check(self) -> ProbeResult:
        try:
            response = await self.backend_client.probe(self.probe_path)
        except DownstreamUnavailable as e:
            result = ProbeResult(ReadinessState.NOT_READY, e.message)
        else:
            if response.status_code >= 400:
                result = ProbeResult(
                    ReadinessState.NOT_READY,
                    f"Backend probe returned {response.status_code}",
                    status_code=response.status_code,
                )
            else:
                result = ProbeResult(
                    ReadinessState.READY,
                    "Backend reachable",
                    status_code=response.status_code,
                )

        if result.state != self.state:
            logger.info(f"[Readiness] {self.state.value} -> {result.state.value}: {result.message}")
        self.state = result.state
        self.last_result = result
        return result
