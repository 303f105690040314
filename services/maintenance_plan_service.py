# services/maintenance_plan_service.py
"""
Maintenance Plan Service - plan CRUD and the recurring job generator.

The generator turns every active, auto-creating plan whose next due date has
passed into exactly one Job per (plan, scheduled date):

1. take a transaction-scoped advisory lock keyed by a 32-bit hash of the
   plan id (PostgreSQL only),
2. re-check for an existing job with the same plan and scheduled date,
3. insert the job and advance the plan's next due date,

all inside one transaction, so overlapping ticks or several backend
instances cannot create duplicates.
"""
import logging
from calendar import monthrange
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.orm import Session

from database import SessionLocal, get_session_context
from models import Job, JobStatus, MaintenancePlan, Priority, Property, User, UserRole
from schemas.maintenance_plan import MaintenancePlanCreate, MaintenancePlanUpdate
from services.access_policy import is_property_manager, load_property, require_manager_subscription
from services.audit_service import log_audit
from utils.clock import utc_now
from utils.errors import ErrorCodes, forbidden, not_found

logger = logging.getLogger(__name__)

DAY_STEPS = {
     "DAILY": 1,
     "WEEKLY": 7,
     "BIWEEKLY": 14,
}
MONTH_STEPS = {
     "MONTHLY": 1,
     "QUARTERLY": 3,
     "SEMIANNUALLY": 6,
     "ANNUALLY": 12,
     "YEARLY": 12,
}


# ---------------------------------------------------------------------------
# Scheduling arithmetic
# ---------------------------------------------------------------------------

def add_months(value: datetime, months: int) -> datetime:
     """Calendar month addition; the day is clamped to the target month's length."""
     month_index = value.month - 1 + months
     year = value.year + month_index // 12
     month = month_index % 12 + 1
     day = min(value.day, monthrange(year, month)[1])
     return value.replace(year=year, month=month, day=day)


def calculate_next_due_date(current: Optional[datetime], frequency) -> datetime:
     """
     Next due date after `current` for the given frequency.

     Args:
          current: Current due date; now is used when None
          frequency: DAILY, WEEKLY, BIWEEKLY, MONTHLY, QUARTERLY,
               SEMIANNUALLY or ANNUALLY (YEARLY is accepted too), any case

     Returns:
          The next due date. Unknown frequencies fall back to one month.
     """
     base = current or utc_now()
     key = str(getattr(frequency, "value", frequency) or "").strip().upper()
     if key in DAY_STEPS:
          return base + timedelta(days=DAY_STEPS[key])
     if key in MONTH_STEPS:
          return add_months(base, MONTH_STEPS[key])
     logger.warning("Unknown maintenance plan frequency %r, defaulting to MONTHLY", frequency)
     return add_months(base, 1)


# ---------------------------------------------------------------------------
# Advisory lock
# ---------------------------------------------------------------------------

def hash_string_to_int(value: str) -> int:
     """
     32-bit string hash (h = h * 31 + c, wrapped to a signed int), made
     non-negative. Used as the advisory lock key for a plan id.
     """
     h = 0
     for ch in value:
          h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
     if h >= 0x80000000:
          h -= 0x100000000
     return abs(h)


def acquire_plan_lock(db: Session, plan_id: str) -> bool:
     """
     Take the transaction-scoped advisory lock for a plan.

     Returns False on databases without advisory locks; the existence
     re-check in create_job_for_plan still applies there.
     """
     if db.get_bind().dialect.name != "postgresql":
          return False
     db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": hash_string_to_int(plan_id)})
     return True


# ---------------------------------------------------------------------------
# Job generation
# ---------------------------------------------------------------------------

def create_job_for_plan(db: Session, plan: MaintenancePlan, now: Optional[datetime] = None) -> Tuple[Job, bool]:
     """
     Create the job for a plan's current due date, once.

     `plan` is the snapshot read when the batch selected due plans; its
     next_due_date is the scheduled date of the job.

     Args:
          db: Session with no pending work; this function owns its transaction
          plan: Plan snapshot (may be detached)
          now: Clock override

     Returns:
          (job, created) where created is False if the job already existed
     """
     now = now or utc_now()
     scheduled_date = plan.next_due_date or now
     try:
          acquire_plan_lock(db, plan.id)

          existing = (
               db.query(Job)
               .filter(Job.maintenance_plan_id == plan.id, Job.scheduled_date == scheduled_date)
               .first()
          )
          if existing:
               logger.info("Job %s already exists for plan %s on %s", existing.id, plan.id, scheduled_date)
               db.commit()
               return existing, False

          job = Job(
               title=f"Maintenance: {plan.name}",
               description=plan.description or f"Scheduled maintenance task generated for {plan.name}",
               status=JobStatus.OPEN,
               priority=Priority.MEDIUM,
               property_id=plan.property_id,
               maintenance_plan_id=plan.id,
               scheduled_date=scheduled_date,
          )
          db.add(job)
          db.query(MaintenancePlan).filter(MaintenancePlan.id == plan.id).update(
               {
                    MaintenancePlan.last_completed_date: now,
                    MaintenancePlan.next_due_date: calculate_next_due_date(plan.next_due_date, plan.frequency),
               },
               synchronize_session=False,
          )
          db.commit()
     except Exception:
          db.rollback()
          raise

     logger.info("Created job %s for maintenance plan %s (%s)", job.id, plan.id, plan.name)
     return job, True


def find_due_plans(db: Session, now: datetime) -> List[MaintenancePlan]:
     return (
          db.query(MaintenancePlan)
          .filter(
               MaintenancePlan.is_active.is_(True),
               MaintenancePlan.auto_create_jobs.is_(True),
               MaintenancePlan.archived_at.is_(None),
               MaintenancePlan.next_due_date <= now,
          )
          .order_by(MaintenancePlan.next_due_date)
          .all()
     )


def process_maintenance_plans(session_factory: Optional[Callable[[], Session]] = None, now: Optional[datetime] = None) -> int:
     """
     One generator tick. Never raises: a failing plan is logged and skipped,
     and a failure outside the per-plan loop is logged as well.

     Returns:
          Number of jobs created
     """
     factory = session_factory or SessionLocal
     now = now or utc_now()
     created = 0
     try:
          with get_session_context(factory) as db:
               plans = find_due_plans(db, now)
          logger.info("Maintenance plan run: %d plan(s) due", len(plans))

          for plan in plans:
               try:
                    with get_session_context(factory) as db:
                         _, was_created = create_job_for_plan(db, plan, now)
                    if was_created:
                         created += 1
               except Exception:
                    logger.exception("Failed to create job for maintenance plan %s", plan.id)
     except Exception:
          logger.exception("Maintenance plan run failed")
     return created


# ---------------------------------------------------------------------------
# CRUD (property managers only)
# ---------------------------------------------------------------------------

def _require_manager_role(user: User) -> None:
     if user.role != UserRole.PROPERTY_MANAGER:
          raise forbidden("Only property managers can manage maintenance plans", ErrorCodes.ACC_ROLE_REQUIRED)


def get_plan(db: Session, user: User, plan_id: str) -> MaintenancePlan:
     _require_manager_role(user)
     plan = db.query(MaintenancePlan).filter(MaintenancePlan.id == plan_id).first()
     if not plan:
          raise not_found("Maintenance plan not found", ErrorCodes.RES_PLAN_NOT_FOUND)
     if not is_property_manager(plan.property, user):
          raise forbidden("You do not manage this property", ErrorCodes.ACC_PROPERTY_ACCESS_DENIED)
     return plan


def list_plans(
     db: Session,
     user: User,
     property_id: Optional[str] = None,
     include_archived: bool = False,
) -> List[MaintenancePlan]:
     _require_manager_role(user)
     query = (
          db.query(MaintenancePlan)
          .join(Property, MaintenancePlan.property_id == Property.id)
          .filter(Property.manager_id == user.id)
     )
     if property_id:
          query = query.filter(MaintenancePlan.property_id == property_id)
     if not include_archived:
          query = query.filter(MaintenancePlan.archived_at.is_(None))
     return query.order_by(MaintenancePlan.next_due_date).all()


def create_plan(db: Session, user: User, data: MaintenancePlanCreate) -> MaintenancePlan:
     _require_manager_role(user)
     prop = load_property(db, data.property_id)
     if not is_property_manager(prop, user):
          raise forbidden("You do not manage this property", ErrorCodes.ACC_PROPERTY_ACCESS_DENIED)
     require_manager_subscription(prop, user)

     plan = MaintenancePlan(
          property_id=prop.id,
          name=data.name.strip(),
          description=data.description,
          frequency=data.frequency.value,
          next_due_date=data.next_due_date or utc_now(),
          auto_create_jobs=data.auto_create_jobs,
          is_active=data.is_active,
     )
     db.add(plan)
     db.flush()
     log_audit(db, "maintenancePlan", plan.id, "CREATED", user.id, {"frequency": plan.frequency})
     db.commit()
     return plan


def update_plan(db: Session, user: User, plan_id: str, data: MaintenancePlanUpdate) -> MaintenancePlan:
     plan = get_plan(db, user, plan_id)
     changes = data.model_dump(exclude_unset=True, exclude_none=True)
     if "frequency" in changes:
          changes["frequency"] = changes["frequency"].value
     for field, value in changes.items():
          setattr(plan, field, value)
     if changes:
          log_audit(db, "maintenancePlan", plan.id, "UPDATED", user.id, changes)
     db.commit()
     return plan


def archive_plan(db: Session, user: User, plan_id: str) -> MaintenancePlan:
     """Archived plans stop generating jobs; their existing jobs are kept."""
     plan = get_plan(db, user, plan_id)
     plan.archived_at = utc_now()
     plan.is_active = False
     log_audit(db, "maintenancePlan", plan.id, "ARCHIVED", user.id)
     db.commit()
     return plan
