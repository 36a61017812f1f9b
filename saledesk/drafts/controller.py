"""Orchestration of one quote/order editing session."""
from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional

from saledesk.api.sale_editor import SaleEditorApi
from saledesk.errors import CreationPending, DraftValidationError, RequestCancelled, SaleDeskError
from saledesk.drafts.addresses import AddressResolver
from saledesk.drafts.document import has_text
from saledesk.drafts.line_items import LineItemSynchronizer
from saledesk.drafts.models import (
    STEPS,
    Address,
    CheckoutDetails,
    Customer,
    LineItem,
    Notice,
    SaleDraft,
    SaleKind,
    SavedAddress,
)
from saledesk.drafts.notes import NotesAutosaveEngine, SaveState
from saledesk.drafts.summary import SaleSummaryCalculator, estimate
from saledesk.drafts.utils import Debouncer


class SaleDraftController:
    """Owns a :class:`SaleDraft` and is the only writer of its identity,
    line items and summary.

    Failures of remote calls are caught here and turned into notices (see
    :meth:`drain_notices`); only validation problems are raised, as
    ``DraftValidationError``, before anything is sent.
    """

    def __init__(
        self,
        kind: SaleKind,
        api: SaleEditorApi,
        editing: bool = False,
        notes_settle: float = 3.0,
        details_settle: float = 1.0,
        summary_settle: float = 0.25,
        status_hold: float = 2.0,
        online: bool = True,
        timer_factory=threading.Timer,
    ) -> None:
        self.draft = SaleDraft(kind=kind, editing=editing)
        self.api = api
        self.addresses = AddressResolver(self.draft)
        self.line_items = LineItemSynchronizer(api)
        self.summary = SaleSummaryCalculator(api, summary_settle, timer_factory)
        self.notes = NotesAutosaveEngine(
            api,
            sale_id=lambda: self.draft.remote_id,
            settle=notes_settle,
            status_hold=status_hold,
            online=online,
            timer_factory=timer_factory,
            on_document_created=self._link_notes,
            notify=self.notify,
        )
        self._checkout_saver = Debouncer(details_settle, lambda _: self.save_checkout(), timer_factory)
        self.step = 0
        self.notices: List[Notice] = []
        self._creating = False
        self._loaded_id = None
        self._discarded = False
        self._lock = threading.RLock()
        if not editing:
            self.notes.load()

    @property
    def kind(self) -> SaleKind:
        return self.draft.kind

    @property
    def creating(self) -> bool:
        return self._creating

    # notices

    def notify(self, level: str, message: str) -> None:
        with self._lock:
            self.notices.append(Notice(level, message))

    def drain_notices(self) -> List[Notice]:
        with self._lock:
            notices, self.notices = self.notices, []
        return notices

    # identity

    def select_customer(self, customer: Customer) -> Optional[str]:
        """Record ``customer``; on a new draft, create it remotely exactly once.

        Returns the remote sale id (None when creation failed).  Raises
        ``CreationPending`` while a creation call is still in flight.
        """
        with self._lock:
            needs_creation = not self.draft.editing and not self.draft.is_live
            if needs_creation:
                if self._creating:
                    raise CreationPending(f"{self.kind.label} is being created, please wait")
                self._creating = True
            self.draft.customer = customer
        if needs_creation and not self._create(customer):
            return None
        self._load_address_book(customer.id)
        return self.draft.remote_id

    def _create(self, customer: Customer) -> bool:
        try:
            data = self.api.create_draft(customer.id)
        except RequestCancelled:
            with self._lock:
                self._creating = False
            return False
        except SaleDeskError:
            logging.exception("creating %s for customer %s failed", self.kind.value, customer.id)
            data = {}
        sale_id = data.get("saleId")
        with self._lock:
            self._creating = False
            if not sale_id:
                self.notices.append(Notice("error", f"Failed to create new {self.kind.value}"))
                return False
            self.draft.assign_remote(sale_id, data.get("id"))
        logging.info("created %s %s (id=%s)", self.kind.value, sale_id, data.get("id"))
        self.notify("success", f"New {self.kind.value} created successfully")
        self._push_addresses()
        return True

    def _load_address_book(self, customer_id: str) -> None:
        try:
            data = self.api.get_customer(customer_id)
        except RequestCancelled:
            return
        except SaleDeskError:
            logging.exception("loading addresses of customer %s failed", customer_id)
            self.notify("error", "Failed to load customer addresses")
            return
        saved = [SavedAddress.from_api(row) for row in (data or {}).get("addresses") or []]
        with self._lock:
            self.addresses.apply_defaults(saved)

    def load(self, entity_id: int, status: Optional[str] = None) -> bool:
        """Populate the draft from an existing sale.  Repeated calls for the same
        id do nothing and return False."""
        with self._lock:
            if self._loaded_id == entity_id:
                return False
            if self._loaded_id is not None:
                raise DraftValidationError(
                    f"This session already edits {self.kind.value} {self._loaded_id}"
                )
        try:
            data = self.api.get_detail(entity_id)
        except RequestCancelled:
            return False
        except SaleDeskError:
            logging.exception("loading %s %s failed", self.kind.value, entity_id)
            self.notify("error", f"Failed to load {self.kind.value} details")
            with self._lock:
                self.draft.line_items = []
                self.draft.summary = None
            return False

        record = data.get(self.kind.value) or data.get("quote") or {}
        if not record.get("saleId"):
            logging.warning("%s %s detail carried no sale id", self.kind.value, entity_id)
            self.notify("error", f"Failed to load {self.kind.value} details")
            return False
        sale = record.get("sale") or {}
        comments = sale.get("comments") or []
        fallback_notes = (comments[0].get("comment") or "") if comments else ""
        with self._lock:
            self._loaded_id = entity_id
            self.draft.editing = True
            self.draft.assign_remote(record.get("saleId"), record.get("id", entity_id))
            self.draft.line_items = [LineItem.from_api(row) for row in sale.get("lineItems") or []]
            if sale.get("customer"):
                self.draft.customer = Customer.from_detail(sale["customer"])
            billing = Address.from_payload(sale.get("billingAddress"))
            shipping = Address.from_payload(sale.get("shippingAddress"))
            if billing is not None:
                self.draft.billing = billing
            if shipping is not None:
                self.draft.shipping = shipping
            self.draft.same_as_shipping = False
            self.draft.notes_document_id = sale.get("notesId")
            in_hand = (sale.get("dates") or {}).get("inHandDate")
            if in_hand:
                self.draft.checkout = replace(self.draft.checkout, date_needed_by=in_hand)
            raw_status = record.get("status") or status
            if raw_status:
                try:
                    self.draft.status = self.kind.parse_status(raw_status)
                except ValueError:
                    logging.warning("unknown %s status %r", self.kind.value, raw_status)
            self.draft.original_status = self.draft.status
            customer = self.draft.customer

        self.refresh_summary()
        if customer is not None:
            self._load_address_book(customer.id)
        self.notes.load(self.draft.notes_document_id, fallback=fallback_notes)
        return True

    # steps

    def is_step_complete(self, step: str) -> bool:
        d = self.draft
        if step == "customer":
            return d.customer is not None and (d.remote_id is not None or d.editing)
        if step == "items":
            return bool(d.line_items)
        if step == "details":
            return bool(d.checkout.date_needed_by)
        if step == "shipping":
            return bool(d.shipping_details.company and d.shipping_details.type)
        if step == "notes":
            return has_text(self.notes.content)
        raise DraftValidationError(f"Unknown step {step!r}")

    @property
    def current_step(self) -> str:
        return STEPS[self.step]

    def advance_step(self) -> bool:
        with self._lock:
            if self.step >= len(STEPS) - 1:
                return False
            if self.step == 0 and not self.is_step_complete("customer"):
                if self._creating:
                    self.notices.append(
                        Notice("info", f"{self.kind.label} is being created, please wait")
                    )
                else:
                    self.notices.append(Notice("error", "Please select a customer"))
                return False
            self.step += 1
            return True

    def retreat_step(self) -> bool:
        with self._lock:
            if self.step == 0:
                return False
            self.step -= 1
            return True

    # line items

    def _require_sale(self, message: str) -> str:
        if not self.draft.is_live:
            raise DraftValidationError(message)
        return self.draft.remote_id

    def add_line_item(self) -> Optional[List[LineItem]]:
        sale_id = self._require_sale("No sale ID available to add line item")
        try:
            items = self.line_items.add_empty(sale_id, apply=self._apply_items)
        except RequestCancelled:
            return None
        except SaleDeskError:
            logging.exception("adding line item to %s failed", sale_id)
            self.notify("error", "Failed to add line item")
            return None
        self.refresh_summary()
        self.notify("success", "Line item added successfully")
        return items

    def remove_line_item(self, item_id: str) -> Optional[List[LineItem]]:
        sale_id = self._require_sale("No sale ID available to remove line item")
        try:
            items = self.line_items.remove(sale_id, item_id, apply=self._apply_items)
        except RequestCancelled:
            return None
        except SaleDeskError:
            logging.exception("removing line item %s from %s failed", item_id, sale_id)
            self.notify("error", "Failed to remove line item")
            return None
        self.refresh_summary()
        self.notify("success", "Line item removed successfully")
        return items

    def _apply_items(self, items: List[LineItem]) -> None:
        with self._lock:
            self.draft.line_items = items

    def _apply_saved_item(self, saved: LineItem) -> None:
        with self._lock:
            self.draft.line_items = [saved if i.id == saved.id else i for i in self.draft.line_items]

    def update_line_item(self, item_id: str, changes: Dict[str, Any]) -> LineItem:
        """Optimistic local edit; the summary refresh is batched."""
        try:
            with self._lock:
                items = self.line_items.patch(self.draft.line_items, item_id, changes)
                self.draft.line_items = items
        except ValueError as e:
            raise DraftValidationError(str(e)) from e
        self.summary.schedule(self.draft.remote_id, self.refresh_summary)
        return next(item for item in items if item.id == item_id)

    def save_line_item(self, item_id: str, picture_id: Optional[str] = None) -> Optional[LineItem]:
        with self._lock:
            item = next((i for i in self.draft.line_items if i.id == item_id), None)
        if item is None:
            raise DraftValidationError(f"Line item {item_id} is not part of this sale")
        try:
            saved = self.line_items.save(item, picture_id, apply=self._apply_saved_item)
        except RequestCancelled:
            return None
        except SaleDeskError:
            # the edited values stay in the local buffer for a retry
            logging.exception("saving line item %s failed", item_id)
            self.notify("error", "Failed to update line item")
            return None
        self.notify("success", "Line item updated successfully")
        self.refresh_summary()
        return saved

    # summary

    def refresh_summary(self):
        try:
            summary = self.summary.refresh(self.draft.remote_id)
        except RequestCancelled:
            return None
        except SaleDeskError:
            logging.exception("fetching summary of %s failed", self.draft.remote_id)
            self.notify("error", "Failed to fetch sale summary")
            return None
        if summary is not None:
            with self._lock:
                self.draft.summary = summary
        return summary

    # addresses

    def edit_address(self, address_type: str, **changes) -> Address:
        with self._lock:
            return self.addresses.edit(address_type, **changes)

    def select_saved_address(self, address_type: str, index: int) -> Address:
        with self._lock:
            try:
                saved = self.draft.saved_addresses[index]
            except IndexError:
                raise DraftValidationError(f"No saved address #{index}") from None
            return self.addresses.select_saved(saved, address_type)

    def set_same_as_shipping(self, enabled: bool) -> None:
        with self._lock:
            self.addresses.set_same_as_shipping(enabled)

    def _push_addresses(self) -> bool:
        payload = self.addresses.payload()
        if payload is None or not self.draft.remote_id:
            return True
        try:
            self.api.set_sale_detail(self.draft.remote_id, addresses=payload)
        except RequestCancelled:
            return False
        except SaleDeskError:
            logging.exception("saving addresses of %s failed", self.draft.remote_id)
            self.notify("error", f"Failed to update {self.kind.value} addresses")
            return False
        return True

    def save_addresses(self) -> bool:
        self._require_sale("No sale ID available for saving")
        saved = self._push_addresses()
        if saved:
            self.notify("success", "Addresses saved")
        return saved

    # shipping / checkout

    def update_shipping(self, **changes) -> bool:
        if "cost" in changes:
            try:
                changes["cost"] = float(changes["cost"] or 0)
            except (TypeError, ValueError):
                raise DraftValidationError(f"Invalid shipping cost {changes['cost']!r}") from None
        with self._lock:
            previous = self.draft.shipping_details
            self.draft.shipping_details = replace(previous, **changes)
            sale_id = self.draft.remote_id
            shipping = self.draft.shipping_details.to_payload()
            checkout = self.draft.checkout.to_payload()
        if not sale_id:
            return True
        try:
            self.api.set_sale_detail(sale_id, shipping_details=shipping, checkout_details=checkout)
        except RequestCancelled:
            return False
        except SaleDeskError:
            logging.exception("saving shipping details of %s failed", sale_id)
            with self._lock:
                self.draft.shipping_details = previous
            self.notify("error", "Failed to update shipping details")
            return False
        self.notify("success", "Shipping details updated successfully")
        self.refresh_summary()
        return True

    def update_checkout(self, **changes) -> CheckoutDetails:
        """Local edit of checkout details; saved once edits settle."""
        with self._lock:
            self.draft.checkout = replace(self.draft.checkout, **changes)
            checkout = self.draft.checkout
        if self.draft.is_live:
            self._checkout_saver.schedule(checkout)
        return checkout

    def save_checkout(self) -> bool:
        sale_id = self._require_sale("No sale ID available for saving")
        self._checkout_saver.cancel_pending()
        try:
            self.api.set_sale_detail(sale_id, checkout_details=self.draft.checkout.to_payload())
        except RequestCancelled:
            return False
        except SaleDeskError:
            logging.exception("saving checkout details of %s failed", sale_id)
            self.notify("error", "Failed to save details")
            return False
        self.notify("success", "Details saved successfully")
        self.refresh_summary()
        return True

    # status

    def _parse_status(self, value):
        try:
            return self.kind.parse_status(value)
        except ValueError:
            raise DraftValidationError(f"Unknown {self.kind.value} status {value!r}") from None

    def change_status(self, value) -> bool:
        """Status dropdown: applied at once when editing, reverted if rejected."""
        status = self._parse_status(value)
        with self._lock:
            previous = self.draft.status
            self.draft.status = status
            entity_id = self.draft.entity_id
            editing = self.draft.editing
        if not editing or entity_id is None:
            return True
        try:
            self.api.set_status(entity_id, status.value)
        except SaleDeskError as e:
            with self._lock:
                self.draft.status = previous
            if not isinstance(e, RequestCancelled):
                logging.warning("status change of %s %s failed: %s", self.kind.value, entity_id, e)
                self.notify("error", f"Failed to update {self.kind.value} status")
            return False
        with self._lock:
            self.draft.original_status = status
        self.notify("success", f"{self.kind.label} status updated successfully")
        return True

    # notes

    def _link_notes(self, document_id: str) -> None:
        with self._lock:
            self.draft.notes_document_id = document_id
            target = self.draft.entity_id or self.draft.remote_id
        try:
            self.api.set_notes_id(target, document_id)
        except SaleDeskError:
            logging.exception("linking notes %s to %s %s failed", document_id, self.kind.value, target)

    def edit_notes(self, content: str) -> bool:
        return self.notes.on_content_change(content)

    def save_notes(self) -> None:
        self.notes.force_save()

    def set_online(self, online: bool) -> None:
        self.notes.set_online(online)

    # submit / teardown

    def submit(self, finalize: Optional[Callable[[SaleDraft], None]] = None) -> bool:
        with self._lock:
            if self.draft.customer is None:
                raise DraftValidationError("Please select a customer")
            if not self.draft.remote_id:
                raise DraftValidationError(
                    f"{self.kind.label} not properly created. Please try again."
                )
            status_changed = (
                self.draft.editing
                and self.draft.entity_id is not None
                and self.draft.status != self.draft.original_status
            )
            status = self.draft.status
        try:
            if status_changed:
                try:
                    self.api.set_status(self.draft.entity_id, status.value)
                except SaleDeskError:
                    with self._lock:
                        self.draft.status = self.draft.original_status
                    raise
                with self._lock:
                    self.draft.original_status = status
            payload = self.addresses.payload()
            if payload is not None:
                self.api.set_sale_detail(self.draft.remote_id, addresses=payload)
            if self._checkout_saver.pending and not self.save_checkout():
                return False
            if self.notes.dirty:
                self.notes.force_save()
                if self.notes.state is SaveState.ERROR:
                    logging.warning("submitting %s %s: notes not saved", self.kind.value, self.draft.remote_id)
                    self.notify("error", f"Failed to save {self.kind.value}")
                    return False
            if finalize is not None:
                finalize(self.draft)
        except RequestCancelled:
            return False
        except SaleDeskError:
            logging.exception("submitting %s %s failed", self.kind.value, self.draft.remote_id)
            self.notify("error", f"Failed to save {self.kind.value}")
            return False
        self.notify("success", f"{self.kind.label} saved successfully")
        return True

    def discard(self) -> None:
        """Tear the session down: pending timers stop, in-flight calls are cancelled."""
        with self._lock:
            self._discarded = True
        self.notes.close()
        self.summary.cancel_pending()
        self._checkout_saver.cancel_pending()
        self.api.client.cancel()

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            data = self.draft.to_dict()
            data.update(
                step=self.current_step,
                steps={name: self.is_step_complete(name) for name in STEPS},
                creating=self._creating,
                discarded=self._discarded,
                estimatedSummary=estimate(self.draft.line_items).to_dict(),
                savedAddresses=[
                    dict(s.address.to_dict(), type=s.type, isPrimary=s.is_primary, label=s.label)
                    for s in self.draft.saved_addresses
                ],
            )
        data["notes"] = dict(self.notes.status(), content=self.notes.content)
        return data
