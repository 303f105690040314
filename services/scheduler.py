# services/scheduler.py
"""
Background scheduler for the maintenance plan generator and archiving jobs.

One `MaintenancePlanScheduler` is built in the FastAPI lifespan and kept on
`app.state.scheduler`. The plan generator runs on a cron expression; if that
expression (or its timezone) cannot be turned into a trigger, it degrades to
a fixed interval instead of not running at all.
"""
import logging
from typing import Callable, Optional, Tuple

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session

import config
from services.archiving_service import run_archiving
from services.maintenance_plan_service import process_maintenance_plans

logger = logging.getLogger(__name__)

PLAN_JOB_ID = "maintenance-plans"
PLAN_STARTUP_JOB_ID = "maintenance-plans-startup"
ARCHIVE_JOB_ID = "archiving"


class MaintenancePlanScheduler:
     """Owns the APScheduler instance and the jobs registered on it."""

     def __init__(
          self,
          session_factory: Optional[Callable[[], Session]] = None,
          cron_expression: str = config.MAINTENANCE_PLAN_CRON,
          timezone: str = config.CRON_TIMEZONE,
          fallback_hours: int = config.MAINTENANCE_PLAN_FALLBACK_HOURS,
          enabled: bool = not config.DISABLE_MAINTENANCE_PLAN_CRON,
          enable_archiving: bool = config.ENABLE_CRON_JOBS,
          run_on_start: bool = True,
     ):
          self.session_factory = session_factory
          self.cron_expression = cron_expression
          self.timezone = timezone
          self.fallback_hours = fallback_hours
          self.enabled = enabled
          self.enable_archiving = enable_archiving
          self.run_on_start = run_on_start
          self.mode: Optional[str] = None
          self._scheduler = BackgroundScheduler(timezone="UTC")

     @property
     def running(self) -> bool:
          return self._scheduler.running

     def get_jobs(self):
          return self._scheduler.get_jobs()

     def build_plan_trigger(self) -> Tuple[object, str]:
          """Cron trigger for the plan generator, or the interval fallback."""
          try:
               return CronTrigger.from_crontab(self.cron_expression, timezone=self.timezone), "cron"
          except (ValueError, LookupError) as exc:
               logger.warning(
                    "Cannot schedule maintenance plans with cron %r (%s): %s. Falling back to every %dh",
                    self.cron_expression,
                    self.timezone,
                    exc,
                    self.fallback_hours,
               )
               return IntervalTrigger(hours=self.fallback_hours), "interval"

     def run_plans(self) -> int:
          try:
               return process_maintenance_plans(self.session_factory)
          except Exception:
               logger.exception("Scheduled maintenance plan run failed")
               return 0

     def run_archiving(self) -> dict:
          try:
               return run_archiving(self.session_factory)
          except Exception:
               logger.exception("Scheduled archiving run failed")
               return {}

     def start(self) -> bool:
          """
          Register jobs and start the background thread.

          Returns:
               False if maintenance plan scheduling is disabled
          """
          if not self.enabled:
               logger.info("Maintenance plan scheduler disabled")
               return False
          if self.running:
               return True

          trigger, self.mode = self.build_plan_trigger()
          self._scheduler.add_job(
               self.run_plans,
               trigger,
               id=PLAN_JOB_ID,
               max_instances=1,
               coalesce=True,
               replace_existing=True,
          )
          if self.run_on_start:
               # No trigger: runs once, as soon as the scheduler starts
               self._scheduler.add_job(self.run_plans, id=PLAN_STARTUP_JOB_ID, replace_existing=True)
          if self.enable_archiving:
               self._scheduler.add_job(
                    self.run_archiving,
                    IntervalTrigger(hours=1),
                    id=ARCHIVE_JOB_ID,
                    max_instances=1,
                    coalesce=True,
                    replace_existing=True,
               )

          self._scheduler.start()
          logger.info(
               "Maintenance plan scheduler started (%s: %s)",
               self.mode,
               self.cron_expression if self.mode == "cron" else f"every {self.fallback_hours}h",
          )
          return True

     def stop(self) -> None:
          if self.running:
               self._scheduler.shutdown(wait=False)
               logger.info("Maintenance plan scheduler stopped")
