"""Line item mutations against the remote sale."""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence

from saledesk.api.sale_editor import SaleEditorApi
from saledesk.errors import DraftValidationError
from saledesk.drafts.models import LineItem

Apply = Optional[Callable[[Any], None]]


class LineItemSynchronizer:
    """Add/remove/save line items.

    Every method returns the new values.  A caller that passes ``apply`` gets
    it invoked under the same lock as the server call, so a draft never has
    two line item mutations in flight and answers are applied in the order
    the calls were made.
    """

    def __init__(self, api: SaleEditorApi) -> None:
        self.api = api
        self._lock = threading.Lock()

    @staticmethod
    def _require(sale_id: Optional[str]) -> str:
        if not sale_id:
            raise DraftValidationError("No sale ID available for line items yet")
        return sale_id

    def add_empty(self, sale_id: Optional[str], apply: Apply = None) -> List[LineItem]:
        sale_id = self._require(sale_id)
        with self._lock:
            items = [LineItem.from_api(row) for row in self.api.add_empty_line_item(sale_id)]
            if apply is not None:
                apply(items)
        logging.info("sale %s: line item added, %d items", sale_id, len(items))
        return items

    def remove(self, sale_id: Optional[str], item_id: str, apply: Apply = None) -> List[LineItem]:
        sale_id = self._require(sale_id)
        with self._lock:
            items = [LineItem.from_api(row) for row in self.api.remove_line_items(sale_id, [item_id])]
            if apply is not None:
                apply(items)
        logging.info("sale %s: line item %s removed, %d items", sale_id, item_id, len(items))
        return items

    @staticmethod
    def patch(items: Sequence[LineItem], item_id: str, changes: Dict[str, Any]) -> List[LineItem]:
        """Optimistic local edit.  Nothing is sent to the server."""
        if not any(item.id == item_id for item in items):
            raise DraftValidationError(f"Line item {item_id} is not part of this sale")
        return [item.patched(changes) if item.id == item_id else item for item in items]

    def save(self, item: LineItem, picture_id: Optional[str] = None, apply: Apply = None) -> LineItem:
        """Persist ``item``'s fields, and its thumbnail when ``picture_id`` is given."""
        with self._lock:
            self.api.set_line_item_detail(item.id, item.general_payload())
            saved = item
            if picture_id is not None:
                source_uri = self.api.set_line_item_thumbnail(item.id, picture_id)
                if source_uri:
                    saved = item.patched({"source_uri": source_uri})
            if apply is not None:
                apply(saved)
        return saved
