# cm_dashboard/boq_query/ledger.py
"""
Staged-Mutation Ledger - "mark then apply" row removal.

Per row id:
    active ──toggle──▶ pending ──apply (visible only)──▶ committed
       ▲                  │
       └──toggle / clear──┘

Pending is the only reversible state. Committed ids are excluded from the
working set for the rest of the session. pending and committed never overlap.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Iterable, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MutationLedger:
    pending: FrozenSet[str] = field(default_factory=frozenset)
    committed: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        overlap = self.pending & self.committed
        if overlap:
            raise ValueError(f"Ids both pending and committed: {sorted(overlap)[:5]}")

    def status(self, row_id: str) -> str:
        if row_id in self.committed:
            return 'committed'
        if row_id in self.pending:
            return 'pending'
        return 'active'

    def is_pending(self, row_id: str) -> bool:
        return row_id in self.pending

    def toggle_pending(self, row_id: str) -> "MutationLedger":
        """Mark/unmark one row. Committed rows are left alone."""
        if row_id in self.committed:
            return self
        if row_id in self.pending:
            return replace(self, pending=self.pending - {row_id})
        return replace(self, pending=self.pending | {row_id})

    def pending_in(self, row_ids: Iterable[str]) -> FrozenSet[str]:
        """Pending ids among the given ids (e.g. the filtered view)."""
        return self.pending & frozenset(row_ids)

    def apply_pending(self, visible_ids: Iterable[str]) -> Tuple["MutationLedger", FrozenSet[str]]:
        """
        Commit the pending ids that are currently visible.

        Pending ids outside visible_ids stay pending, so removing rows while a
        filter is active never touches rows hidden by that filter.

        Returns:
            (new ledger, ids committed by this call)
        """
        to_apply = self.pending_in(visible_ids)
        if not to_apply:
            return self, frozenset()

        logger.info(f"Applying {len(to_apply):,} pending removal(s)")
        ledger = MutationLedger(
            pending=self.pending - to_apply,
            committed=self.committed | to_apply,
        )
        return ledger, to_apply

    def clear_pending(self) -> "MutationLedger":
        """Undo all marks. Committed removals are not affected."""
        if not self.pending:
            return self
        return replace(self, pending=frozenset())
