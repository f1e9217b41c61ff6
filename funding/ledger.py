import logging
import threading
import time

from sqlalchemy import case, update

from funding.config import SIDES
from funding.models import LedgerTotals, LEDGER_ROW_ID
from funding.schemas import Totals

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _snapshot(row: LedgerTotals) -> Totals:
    return Totals(left=row.left, right=row.right, lastUpdated=row.last_updated)


class TotalsLedger:
    """
    Running two-sided total of confirmed payments.

    Reads and increments run under one lock, and the increment itself is a
    single ``UPDATE ... SET total = total + :amount`` so the row is never
    rewritten from a stale read. The ledger trusts its callers: ``add`` is
    only invoked once the processor has reported a charge as succeeded.
    """

    def __init__(self, session_factory):
        self._session_factory = session_factory
        self._lock = threading.Lock()

    def _load(self, db) -> LedgerTotals:
        row = db.get(LedgerTotals, LEDGER_ROW_ID)
        if row is None:
            row = LedgerTotals(id=LEDGER_ROW_ID, left=0, right=0, last_updated=_now_ms())
            db.add(row)
            db.commit()
        return row

    def initialize(self) -> Totals:
        """Create the zeroed row now so lastUpdated starts at process start."""
        return self.read()

    def read(self) -> Totals:
        with self._lock:
            db = self._session_factory()
            try:
                return _snapshot(self._load(db))
            finally:
                db.close()

    def add(self, side: str, amount: int) -> Totals:
        if side not in SIDES:
            raise ValueError(f"Unknown side: {side!r}")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise ValueError(f"Amount must be a non-negative integer, got {amount!r}")

        column = LedgerTotals.left if side == "left" else LedgerTotals.right

        with self._lock:
            db = self._session_factory()
            try:
                self._load(db)
                now = _now_ms()
                db.execute(
                    update(LedgerTotals)
                    .where(LedgerTotals.id == LEDGER_ROW_ID)
                    .values({
                        column: column + amount,
                        # lastUpdated must move forward even within the same millisecond
                        LedgerTotals.last_updated: case(
                            (LedgerTotals.last_updated >= now, LedgerTotals.last_updated + 1),
                            else_=now,
                        ),
                    })
                    .execution_options(synchronize_session=False)
                )
                db.commit()
                totals = _snapshot(self._load(db))
            finally:
                db.close()

        logger.info("Ledger credited %d to %s (left=%d, right=%d)",
                    amount, side, totals.left, totals.right)
        return totals
