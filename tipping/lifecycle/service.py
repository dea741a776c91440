"""Read-side match operations that reconcile status before returning data."""

import logging

from tipping.clock import Clock
from tipping.errors import StoreError
from tipping.lifecycle.reconciler import StatusReconciler
from tipping.models import Match
from tipping.store import Store
from tipping.telemetry.metrics import record_reconcile_run
from tipping.utils.throttle import Throttle

logger = logging.getLogger(__name__)


class MatchService:
    """
    Match listing with an inline reconciliation pass.

    The pass is debounced through a Throttle shared with the scheduler, so
    bursts of reads (or a read right after a tick) do not repeat the same
    UPDATEs.
    """

    def __init__(
        self,
        store: Store,
        reconciler: StatusReconciler,
        clock: Clock,
        throttle: Throttle,
    ):
        self.store = store
        self.reconciler = reconciler
        self.clock = clock
        self.throttle = throttle

    async def reconcile_quietly(self, source: str, force: bool = False) -> int:
        """
        Reconcile now unless throttled. Store failures are logged and swallowed.

        Returns the number of transitions applied (0 when skipped or failed).
        """
        if not force and not self.throttle.ready():
            return 0
        self.throttle.mark()
        try:
            transitioned = await self.reconciler.reconcile(self.clock.now())
        except StoreError as e:
            logger.warning(f"[RECONCILE] Inline pass ({source}) failed: {e.message}")
            record_reconcile_run(source, "error")
            # Let the next read retry instead of waiting out the debounce
            self.throttle.reset()
            return 0
        record_reconcile_run(source, "ok")
        return transitioned

    async def list_matches(self) -> list[Match]:
        """All matches ordered by kickoff ascending, status reconciled first."""
        await self.reconcile_quietly("read")
        return await self.store.list_matches()
