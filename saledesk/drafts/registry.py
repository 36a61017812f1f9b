"""Open wizard sessions, kept in process memory only."""
from __future__ import annotations

import logging
import threading
import uuid
from typing import Callable, Dict, Optional, Tuple

from saledesk.api.client import SaleEditorClient
from saledesk.api.sale_editor import SaleEditorApi
from saledesk.drafts.controller import SaleDraftController
from saledesk.drafts.models import SaleKind


class DraftRegistry:
    def __init__(
        self,
        config,
        client_factory: Optional[Callable[[], SaleEditorClient]] = None,
        timer_factory=threading.Timer,
    ) -> None:
        self.config = config
        self.timer_factory = timer_factory
        self.client_factory = client_factory or (lambda: SaleEditorClient.from_config(config))
        self._drafts: Dict[str, SaleDraftController] = {}
        self._lock = threading.Lock()

    def open(self, kind: SaleKind, editing: bool = False) -> Tuple[str, SaleDraftController]:
        # one transport per session so discarding cancels only its own calls
        api = SaleEditorApi(self.client_factory(), kind)
        controller = SaleDraftController(
            kind,
            api,
            editing=editing,
            notes_settle=self.config.get("NOTES_SETTLE_SECONDS", 3.0),
            details_settle=self.config.get("DETAILS_SETTLE_SECONDS", 1.0),
            summary_settle=self.config.get("SUMMARY_SETTLE_SECONDS", 0.25),
            status_hold=self.config.get("SAVE_STATUS_HOLD_SECONDS", 2.0),
            timer_factory=self.timer_factory,
        )
        key = uuid.uuid4().hex
        with self._lock:
            self._drafts[key] = controller
        logging.info("opened %s session %s (editing=%s)", kind.value, key, editing)
        return key, controller

    def get(self, key: str) -> Optional[SaleDraftController]:
        with self._lock:
            return self._drafts.get(key)

    def discard(self, key: str) -> bool:
        with self._lock:
            controller = self._drafts.pop(key, None)
        if controller is None:
            return False
        controller.discard()
        logging.info("discarded session %s", key)
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._drafts)
