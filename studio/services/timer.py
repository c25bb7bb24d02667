"""The per-user activity timer and its checkout hand-off.

Phases::

    Idle --start--> Running --pause--> Paused --resume--> Running
    Running/Paused --request_checkout--> PendingCheckout
    PendingCheckout --cancel_checkout--> Running
    PendingCheckout --confirm_checkout--> Idle (+ one time entry)

The state is a small JSON document per user under ``DATA_DIR/timers``. It is
rewritten after every transition so a reload or a restart picks the timer up
where it was. Elapsed time is always derived from ``start_time`` (shifted on
resume) instead of being counted, and a checkout inserts at most one row: the
row carries the checkout id in a unique column and the document is only
removed after the insert commits.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import asdict, dataclass, fields
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional
from uuid import uuid4
from zoneinfo import ZoneInfo

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import DEFAULT_CATEGORIA
from ..crud.timesheet import create_timer_entry, get_entry_by_checkout, live_links
from .timecalc import format_duration, isoformat_utc, parse_iso, utcnow

logger = logging.getLogger(__name__)

IDLE = "idle"
RUNNING = "running"
PAUSED = "paused"
PENDING_CHECKOUT = "pending_checkout"

MIN_SAVED_SECONDS = 60


class TimerStateError(RuntimeError):
    """A transition that the current phase does not allow."""


@dataclass
class TimerState:
    activity_name: str
    start_time: str
    date: str
    categoria: str = DEFAULT_CATEGORIA
    project_id: Optional[int] = None
    task_id: Optional[int] = None
    is_running: bool = True
    paused_elapsed: Optional[int] = None
    pending_checkout: bool = False
    checkout_id: Optional[str] = None

    @property
    def phase(self) -> str:
        if self.pending_checkout:
            return PENDING_CHECKOUT
        return RUNNING if self.is_running else PAUSED

    def elapsed(self, now: datetime) -> int:
        if self.paused_elapsed is not None and not self.is_running:
            return max(int(self.paused_elapsed), 0)
        started = parse_iso(self.start_time)
        return max(int((now - started).total_seconds()), 0)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict) -> "TimerState":
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in payload.items() if key in known})


class TimerStore:
    """One JSON file per user; a missing file means Idle."""

    def __init__(self, directory: Path | None = None) -> None:
        self.directory = Path(directory) if directory else settings.timers_dir

    def _path(self, user_id: int) -> Path:
        return self.directory / f"{int(user_id)}.json"

    def load(self, user_id: int) -> TimerState | None:
        path = self._path(user_id)
        if not path.exists():
            return None
        # A file that does not describe a timer reads as Idle; the next start
        # overwrites it.
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                raise ValueError("timer state must be a JSON object")
            state = TimerState.from_dict(raw)
            parse_iso(state.start_time)
        except (AttributeError, TypeError, ValueError) as exc:
            logger.warning("timer.unreadable", extra={"extra_data": {"user_id": user_id, "error": str(exc)}})
            return None
        return state

    def save(self, user_id: int, state: TimerState) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(user_id)
        tmp = path.parent / f"{path.name}.tmp"
        tmp.write_text(json.dumps(state.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
        tmp.replace(path)

    def clear(self, user_id: int) -> None:
        self._path(user_id).unlink(missing_ok=True)


class TimerService:
    def __init__(
        self,
        store: TimerStore | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store or TimerStore()
        self.clock = clock
        self._locks: dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, user_id: int) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(int(user_id), threading.Lock())

    def _require(self, user_id: int, *phases: str) -> TimerState:
        state = self.store.load(user_id)
        current = state.phase if state else IDLE
        if current not in phases:
            raise TimerStateError(f"timer is {current}; expected {' or '.join(phases)}")
        return state

    def _local_date(self, moment: datetime) -> str:
        return moment.astimezone(ZoneInfo(settings.TZ)).date().isoformat()

    def state(self, user_id: int) -> TimerState | None:
        return self.store.load(user_id)

    def snapshot(self, state: TimerState | None) -> dict:
        """Plain dict for JSON responses, including the derived elapsed time."""

        if state is None:
            return {"phase": IDLE, "elapsed_seconds": 0, "elapsed_display": format_duration(0)}
        elapsed = state.elapsed(self.clock())
        payload = state.to_dict()
        payload.update(
            phase=state.phase,
            elapsed_seconds=elapsed,
            elapsed_display=format_duration(elapsed),
        )
        return payload

    def start(
        self,
        user_id: int,
        activity_name: str,
        categoria: str | None = None,
        project_id: int | None = None,
        task_id: int | None = None,
    ) -> TimerState:
        name = (activity_name or "").strip()
        if not name:
            raise ValueError("activity_name is required")
        with self._lock_for(user_id):
            self._require(user_id, IDLE, RUNNING, PAUSED)
            now = self.clock()
            state = TimerState(
                activity_name=name,
                categoria=(categoria or "").strip() or DEFAULT_CATEGORIA,
                project_id=project_id,
                task_id=task_id,
                start_time=isoformat_utc(now),
                date=self._local_date(now),
            )
            self.store.save(user_id, state)
        logger.info("timer.started", extra={"extra_data": {"user_id": user_id, "categoria": state.categoria}})
        return state

    def pause(self, user_id: int) -> TimerState:
        with self._lock_for(user_id):
            state = self._require(user_id, RUNNING)
            state.paused_elapsed = state.elapsed(self.clock())
            state.is_running = False
            self.store.save(user_id, state)
        return state

    def _resume(self, user_id: int, state: TimerState) -> TimerState:
        now = self.clock()
        frozen = state.paused_elapsed or 0
        state.start_time = isoformat_utc(now - timedelta(seconds=frozen))
        state.paused_elapsed = None
        state.is_running = True
        state.pending_checkout = False
        state.checkout_id = None
        self.store.save(user_id, state)
        return state

    def resume(self, user_id: int) -> TimerState:
        with self._lock_for(user_id):
            state = self._require(user_id, PAUSED)
            return self._resume(user_id, state)

    def request_checkout(self, user_id: int) -> TimerState:
        with self._lock_for(user_id):
            state = self._require(user_id, RUNNING, PAUSED)
            if state.is_running:
                state.paused_elapsed = state.elapsed(self.clock())
                state.is_running = False
            state.pending_checkout = True
            state.checkout_id = uuid4().hex
            self.store.save(user_id, state)
        return state

    def cancel_checkout(self, user_id: int) -> TimerState:
        with self._lock_for(user_id):
            state = self._require(user_id, PENDING_CHECKOUT)
            return self._resume(user_id, state)

    def confirm_checkout(
        self,
        db: Session,
        user_id: int,
        energia: int,
        satisfacao: int,
        observacoes: str | None = None,
        categoria: str | None = None,
        checkout_id: str | None = None,
    ):
        """Close the pending checkout and return the saved entry (or None).

        ``checkout_id`` is optional; when given it must match the pending
        checkout, otherwise the call is rejected.
        """

        for label, value in (("energia", energia), ("satisfacao", satisfacao)):
            if value not in (1, 2, 3):
                raise ValueError(f"{label} must be 1, 2 or 3")

        with self._lock_for(user_id):
            state = self._require(user_id, PENDING_CHECKOUT)
            if checkout_id and checkout_id != state.checkout_id:
                raise TimerStateError("checkout id does not match the pending checkout")
            if get_entry_by_checkout(db, state.checkout_id):
                self.store.clear(user_id)
                raise TimerStateError("checkout already recorded")

            total = state.elapsed(self.clock())
            if total < MIN_SAVED_SECONDS:
                self.store.clear(user_id)
                logger.info("timer.discarded", extra={"extra_data": {"user_id": user_id, "seconds": total}})
                return None

            started = parse_iso(state.start_time)
            task_id, project_id = live_links(db, state.task_id, state.project_id)
            payload = {
                "user_id": user_id,
                "project_id": project_id,
                "task_id": task_id,
                "date": state.date,
                "activity_name": state.activity_name,
                "categoria": (categoria or "").strip() or state.categoria or DEFAULT_CATEGORIA,
                "description": (observacoes or "").strip() or None,
                "energia": energia,
                "satisfacao": satisfacao,
                "start_time": isoformat_utc(started),
                "end_time": isoformat_utc(started + timedelta(seconds=total)),
                "duration_minutes": total // 60,
                "hours": round(total / 3600, 2),
                "checkout_id": state.checkout_id,
            }
            try:
                entry = create_timer_entry(db, payload)
            except IntegrityError as exc:
                db.rollback()
                if get_entry_by_checkout(db, state.checkout_id):
                    self.store.clear(user_id)
                    raise TimerStateError("checkout already recorded") from exc
                raise
            except SQLAlchemyError:
                # Still pending: the user can confirm again.
                db.rollback()
                logger.warning("timer.checkout_failed", extra={"extra_data": {"user_id": user_id}})
                raise
            self.store.clear(user_id)
        logger.info(
            "timer.checkout",
            extra={"extra_data": {"user_id": user_id, "entry_id": entry.id, "minutes": entry.duration_minutes}},
        )
        return entry


timer_service = TimerService()


def get_timer_service() -> TimerService:
    return timer_service
