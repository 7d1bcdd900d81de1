# shop/tasks/reconcile.py
from datetime import datetime, timezone, timedelta

from sqlalchemy.orm import Session

from shop.celery_worker import celery_app
from shop.data.database import SessionLocal
from shop.repos.order_repo import OrderRepo
from shop.services.checkout_service import complete_checkout
from shop.utils.retry import STORAGE_ERRORS
from shop.utils.settings import RECONCILE_GRACE_SECONDS
from shop.utils.logging import get_logger

logger = get_logger(__name__)


def reconcile_pending_orders(db: Session, grace: timedelta) -> int:
    """Completes checkouts whose order is still PENDING after the grace period.

    Stock was already decremented in the same transaction that wrote the
    order, so completing means deleting the consumed cart and committing the
    order. Returns how many orders were completed.
    """
    cutoff = datetime.now(timezone.utc) - grace
    orders = OrderRepo(db).list_pending(cutoff)

    logger.info(f"Found {len(orders)} pending orders to reconcile")

    completed = 0
    for order in orders:
        try:
            complete_checkout(db, order)
        except STORAGE_ERRORS as e:
            # stays PENDING, next run picks it up
            logger.warning("Reconcile failed, order stays pending", order_id=str(order.id), error=str(e))
            continue
        completed += 1
        logger.info(f"Order {order.id} completed by reconciliation")

    return completed


@celery_app.task(name="shop.tasks.reconcile.reconcile_pending_orders_task")
def reconcile_pending_orders_task():
    logger.info("Reconcile pending orders task started")

    db = SessionLocal()
    try:
        return reconcile_pending_orders(db, timedelta(seconds=RECONCILE_GRACE_SECONDS))
    finally:
        db.close()
