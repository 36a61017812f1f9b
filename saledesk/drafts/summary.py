"""Sale summary (totals and profit) as computed by the server."""
from __future__ import annotations

import threading
from typing import Callable, Iterable, Optional

from saledesk.api.sale_editor import SaleEditorApi
from saledesk.drafts.models import LineItem, SaleSummary, SummaryTotals
from saledesk.drafts.utils import Debouncer


def estimate(items: Iterable[LineItem]) -> SaleSummary:
    """Local approximation shown until the server answers.  Never persisted."""
    items = list(items)
    customer_items = sum(i.quantity * i.customer_price_per_quantity for i in items)
    customer_setup = sum(i.customer_setup_charge for i in items)
    supplier_items = sum(i.quantity * i.supplier_price_per_quantity for i in items)
    supplier_setup = sum(i.supplier_setup_charge for i in items)
    customer_total = customer_items + customer_setup
    supplier_total = supplier_items + supplier_setup
    return SaleSummary(
        customer=SummaryTotals(customer_items, customer_setup, customer_total, customer_total),
        supplier=SummaryTotals(supplier_items, supplier_setup, supplier_total, supplier_total),
        profit=customer_total - supplier_total,
        estimated=True,
    )


class SaleSummaryCalculator:
    def __init__(
        self,
        api: SaleEditorApi,
        settle: float = 0.25,
        timer_factory=threading.Timer,
    ) -> None:
        self.api = api
        self._debouncer = Debouncer(settle, self._run_scheduled, timer_factory)

    def refresh(self, sale_id: Optional[str]) -> Optional[SaleSummary]:
        """Authoritative summary for ``sale_id``; None when the sale has no id yet."""
        if not sale_id:
            return None
        return SaleSummary.from_api(self.api.get_summary(sale_id))

    def schedule(self, sale_id: Optional[str], apply: Callable[[], None]) -> None:
        """Batch refresh requests; ``apply`` runs once the burst settles."""
        if sale_id:
            self._debouncer.schedule(apply)

    def cancel_pending(self) -> None:
        self._debouncer.cancel_pending()

    @staticmethod
    def _run_scheduled(apply: Callable[[], None]) -> None:
        apply()
