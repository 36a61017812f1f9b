"""Autosave of the rich text notes attached to a sale.

The engine is a small state machine::

    IDLE -> SAVING -> SAVED | ERROR -> IDLE

with OFFLINE reachable from any state when connectivity drops.  Going back
online returns to IDLE and retries the save once if the editor holds content
the server has not acknowledged, or creates the document if that was deferred.

Notes live in a separate document resource.  The document is created on the
first non-blank edit (once per draft), linked to the sale through
``on_document_created`` and from then on every settled edit is stored as a new
revision.  Saves are single-flight: when a save completes and the editor has
moved on, the debouncer is re-armed with the current content.
"""
from __future__ import annotations

import enum
import logging
import threading
from typing import Callable, Optional

from saledesk.api.sale_editor import SaleEditorApi
from saledesk.errors import ApiError, ConnectivityError, RequestCancelled, SaleDeskError
from saledesk.drafts.document import document_to_html, html_to_document, is_blank
from saledesk.drafts.utils import Debouncer, one_shot


class SaveState(str, enum.Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"
    OFFLINE = "offline"


class NotesAutosaveEngine:
    def __init__(
        self,
        api: SaleEditorApi,
        sale_id: Callable[[], Optional[str]],
        settle: float = 3.0,
        status_hold: float = 2.0,
        online: bool = True,
        timer_factory=threading.Timer,
        on_document_created: Optional[Callable[[str], None]] = None,
        notify: Optional[Callable[[str, str], None]] = None,
    ) -> None:
        self.api = api
        self.sale_id = sale_id
        self.status_hold = status_hold
        self.timer_factory = timer_factory
        self.on_document_created = on_document_created
        self.notify = notify or (lambda level, message: None)

        self.document_id: Optional[str] = None
        self.content = ""
        self.last_saved = ""
        self.loaded = False
        self.online = online
        self.state = SaveState.IDLE if online else SaveState.OFFLINE
        self.last_error: Optional[str] = None

        self._creating = False
        self._in_flight = False
        self._lock = threading.RLock()
        self._debouncer = Debouncer(settle, self._save, timer_factory)

    @property
    def dirty(self) -> bool:
        return self.content != self.last_saved

    # initial load

    def load(self, document_id: Optional[str] = None, fallback: str = "") -> None:
        """One-time load of the stored notes.  Edits are ignored until it ran."""
        with self._lock:
            if self.loaded:
                return
            if document_id:
                self.document_id = document_id
            if not self.document_id:
                self.content = self.last_saved = fallback
                self.loaded = True
                return
            document_id = self.document_id
        try:
            raw = self.api.get_document(document_id)
        except RequestCancelled:
            return
        except SaleDeskError:
            logging.exception("notes: loading document %s failed", document_id)
            self.notify("error", "Failed to load notes content")
            html = fallback
        else:
            html = document_to_html(raw) if raw else fallback
        with self._lock:
            self.content = self.last_saved = html
            self.loaded = True

    # editor events

    def on_content_change(self, content: str) -> bool:
        """Record an edit.  Returns False when it was ignored (initial load pending)."""
        with self._lock:
            if not self.loaded:
                return False
            self.content = content
            if self.document_id is None:
                create = self._claim_creation()
                changed = False
            else:
                create = False
                # a save in flight moves last_saved, so compare again once it lands
                changed = self._in_flight or content != self.last_saved
        if create:
            self._create_document()
        elif changed:
            self._debouncer.schedule(content)
        return True

    def force_save(self) -> None:
        """Manual save: skip the settle window, keep the other guards."""
        self._debouncer.cancel_pending()
        with self._lock:
            content = self.content
        self._save(content)

    def set_online(self, online: bool) -> None:
        with self._lock:
            was_online, self.online = self.online, online
            if not online:
                if self.state is not SaveState.SAVING:
                    self.state = SaveState.OFFLINE
                return
            if was_online and self.state is not SaveState.OFFLINE:
                return
            self.state = SaveState.IDLE
            if self.document_id is None:
                create = self._claim_creation()
                retry = False
            else:
                create = False
                retry = self.dirty
            content = self.content
        if create:
            logging.info("notes: back online, creating document for sale %s", self.sale_id())
            self._create_document()
        elif retry:
            logging.info("notes: back online, retrying save of document %s", self.document_id)
            self._debouncer.cancel_pending()
            self._save(content)

    def close(self) -> None:
        self._debouncer.cancel_pending()

    def status(self) -> dict:
        with self._lock:
            return {
                "state": self.state.value,
                "online": self.online,
                "documentId": self.document_id,
                "dirty": self.dirty,
                "lastError": self.last_error,
                "loaded": self.loaded,
            }

    # transitions

    def _claim_creation(self) -> bool:
        """Called under the lock.  True when this caller should create the document."""
        if self._creating or is_blank(self.content) or not self.sale_id():
            return False
        if not self.online:
            self.state = SaveState.OFFLINE
            return False
        self._creating = True
        return True

    def _create_document(self) -> None:
        sale_id = self.sale_id()
        try:
            document_id = self.api.create_document(sale_id)
        except RequestCancelled:
            document_id = None
        except ConnectivityError:
            logging.info("notes: offline, document creation for sale %s deferred", sale_id)
            with self._lock:
                self.online = False
                self.state = SaveState.OFFLINE
            document_id = None
        except SaleDeskError:
            logging.exception("notes: creating document for sale %s failed", sale_id)
            self.notify("error", "Failed to create notes document")
            document_id = None
        if not document_id:
            with self._lock:
                self._creating = False
            return
        with self._lock:
            self.document_id = document_id
            self._creating = False
            content = self.content
        logging.info("notes: created document %s for sale %s", document_id, sale_id)
        if self.on_document_created is not None:
            self.on_document_created(document_id)
        self._debouncer.schedule(content)

    def _save(self, content: str) -> None:
        with self._lock:
            if self.document_id is None:
                return
            if not self.online:
                self.state = SaveState.OFFLINE
                return
            if self._in_flight:
                # the completing save re-arms the debouncer if the editor moved on
                return
            if content == self.last_saved:
                return
            self._in_flight = True
            self.state = SaveState.SAVING
            document_id = self.document_id
        try:
            self.api.add_document_revision(document_id, html_to_document(content))
        except RequestCancelled:
            with self._lock:
                self._in_flight = False
                self.state = SaveState.IDLE
            return
        except ConnectivityError:
            logging.info("notes: offline, save of document %s deferred", document_id)
            with self._lock:
                self._in_flight = False
                self.online = False
                self.state = SaveState.OFFLINE
            return
        except ApiError as e:
            logging.warning("notes: saving document %s failed: %s", document_id, e)
            with self._lock:
                self._in_flight = False
                self.state = SaveState.ERROR if self.online else SaveState.OFFLINE
                self.last_error = e.message
            self.notify("error", "Failed to save notes")
            one_shot(self.status_hold, self._settle_status, self.timer_factory)
            return
        with self._lock:
            self._in_flight = False
            self.last_saved = content
            self.last_error = None
            self.state = SaveState.SAVED if self.online else SaveState.OFFLINE
            pending = self.content
        if pending != content:
            self._debouncer.schedule(pending)
        one_shot(self.status_hold, self._settle_status, self.timer_factory)

    def _settle_status(self) -> None:
        with self._lock:
            if not self.online:
                self.state = SaveState.OFFLINE
            elif self.state in (SaveState.SAVED, SaveState.ERROR):
                self.state = SaveState.IDLE
