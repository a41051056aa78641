"""
File: run_progress.py
Purpose: In-memory progress store that tracks the real-time status of pipeline runs. Stores
    timestamped events (selected, stage started/passed/failed, cleanup, completed) keyed by
    run id so API clients can poll for live updates.
When Used: Created when POST /runs accepts a run; updated by the pipeline runner (local or
    Jenkins backend) as each stage progresses; read by GET /runs/{run_id}.
Why Created: Runs execute as background tasks, so the HTTP request that starts one returns
    immediately; this store bridges the gap without a database or WebSockets.
"""
import uuid
from datetime import datetime
from typing import Dict, Optional, List
from dataclasses import dataclass, field

from ci_orchestrator.config import settings
from ci_orchestrator.models.schemas import PipelineRunResult, RunStatus


@dataclass
class ProgressEvent:
    timestamp: str
    stage: str
    message: str
    service: Optional[str] = None


@dataclass
class RunProgress:
    run_id: str
    services: List[str] = field(default_factory=list)
    status: RunStatus = RunStatus.PENDING
    current_service: Optional[str] = None
    current_message: str = "Run queued"
    events: List[ProgressEvent] = field(default_factory=list)
    completed: bool = False
    result: Optional[PipelineRunResult] = None

    def add_event(self, stage: str, message: str, service: Optional[str] = None):
        self.current_message = message
        self.current_service = service
        self.events.append(ProgressEvent(
            timestamp=datetime.now().strftime("%H:%M:%S"),
            stage=stage,
            message=message,
            service=service,
        ))

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "services": list(self.services),
            "status": self.status.value,
            "current_service": self.current_service,
            "current_message": self.current_message,
            "completed": self.completed,
            "result": self.result.model_dump(mode="json") if self.result else None,
            "events": [
                {
                    "timestamp": e.timestamp,
                    "stage": e.stage,
                    "message": e.message,
                    "service": e.service,
                }
                for e in self.events
            ]
        }


class RunProgressStore:
    """Run id -> RunProgress; keeps at most `max_completed` finished runs (oldest evicted first)."""

    def __init__(self, max_completed: int = 200):
        self.max_completed = max_completed
        self._store: Dict[str, RunProgress] = {}

    def create(self, services: List[str], run_id: Optional[str] = None) -> RunProgress:
        run_id = run_id or uuid.uuid4().hex[:12]
        progress = RunProgress(run_id=run_id, services=list(services))
        progress.add_event("queued", f"Run queued for {len(services)} service(s)")
        self._store[run_id] = progress
        return progress

    def get(self, run_id: str) -> Optional[RunProgress]:
        return self._store.get(run_id)

    def update(self, run_id: str, stage: str, message: str, service: Optional[str] = None):
        progress = self.get(run_id)
        if progress:
            if progress.status == RunStatus.PENDING:
                progress.status = RunStatus.RUNNING
            progress.add_event(stage, message, service)

    def complete(self, run_id: str, result: PipelineRunResult):
        progress = self.get(run_id)
        if progress:
            progress.status = result.status
            progress.result = result
            message = result.error or f"Run {result.status.value}"
            progress.add_event("completed", message, result.failed_service)
            progress.completed = True
            self._evict()

    def _evict(self):
        # Runs still in flight are never dropped
        finished = [run_id for run_id, p in self._store.items() if p.completed]
        for run_id in finished[:max(0, len(finished) - self.max_completed)]:
            del self._store[run_id]


# Singleton instance
progress_store = RunProgressStore(max_completed=settings.max_completed_runs)
