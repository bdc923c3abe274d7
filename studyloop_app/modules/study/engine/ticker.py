"""Periodic tick source for a running study session.

One APScheduler interval job per machine feeds ``machine.tick()``. Pausing
is handled by the machine itself (ticks are inert while paused), so the job
keeps running until the session completes or ``stop()`` is called.
"""

import logging
import uuid

from apscheduler.schedulers.background import BackgroundScheduler

from ..config import StudyConfig

logger = logging.getLogger(__name__)


class SessionTicker:

    def __init__(self, machine, app=None, interval=StudyConfig.TICK_INTERVAL_SECONDS, scheduler=None):
        self.machine = machine
        self.app = app
        self.interval = interval
        self.scheduler = scheduler or BackgroundScheduler(daemon=True)
        self._owns_scheduler = scheduler is None
        self.job_id = f"study-tick-{uuid.uuid4().hex}"
        self._job = None

    @property
    def running(self):
        return self._job is not None

    def start(self):
        if self._job is not None:
            return
        self._job = self.scheduler.add_job(
            self._tick,
            trigger='interval',
            seconds=self.interval,
            id=self.job_id,
            max_instances=1,
            coalesce=True,
        )
        if self._owns_scheduler and not self.scheduler.running:
            self.scheduler.start()
        logger.debug("Ticker %s started for session %s", self.job_id, self.machine.session_id)

    def stop(self):
        if self._job is None:
            return
        self.scheduler.remove_job(self.job_id)
        self._job = None
        if self._owns_scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.debug("Ticker %s stopped", self.job_id)

    def _tick(self):
        if self.app is not None:
            # Auto-rating on timeout persists through the Flask services
            with self.app.app_context():
                state = self.machine.tick()
        else:
            state = self.machine.tick()
        if state.is_completed:
            self.stop()
