"""Billing/shipping address handling for a sale draft."""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from saledesk.errors import DraftValidationError
from saledesk.drafts.models import ADDRESS_TYPES, Address, SaleDraft, SavedAddress


def pick_default(addresses: Iterable[SavedAddress], address_type: str) -> Optional[SavedAddress]:
    """Primary address of the type, else any of the type, else the first one."""
    addresses = list(addresses)
    of_type = [a for a in addresses if a.type == address_type]
    for candidate in of_type:
        if candidate.is_primary:
            return candidate
    if of_type:
        return of_type[0]
    return addresses[0] if addresses else None


class AddressResolver:
    def __init__(self, draft: SaleDraft) -> None:
        self.draft = draft

    @staticmethod
    def _check_type(address_type: str) -> None:
        if address_type not in ADDRESS_TYPES:
            raise DraftValidationError(f"Unknown address type {address_type!r}")

    def apply_defaults(self, saved: Iterable[SavedAddress]) -> List[str]:
        """Fill unset slots from the address book.  Returns the slots filled."""
        saved = list(saved)
        self.draft.saved_addresses = saved
        filled = []
        for address_type in ADDRESS_TYPES:
            if getattr(self.draft, address_type) is not None:
                continue
            if address_type == "shipping" and self.draft.same_as_shipping:
                continue
            default = pick_default(saved, address_type)
            if default is not None:
                setattr(self.draft, address_type, default.address)
                filled.append(address_type)
        return filled

    def select_saved(self, saved: SavedAddress, address_type: str) -> Address:
        self._check_type(address_type)
        self._check_editable(address_type)
        setattr(self.draft, address_type, saved.address)
        return saved.address

    def edit(self, address_type: str, **changes) -> Address:
        self._check_type(address_type)
        self._check_editable(address_type)
        current = getattr(self.draft, address_type) or Address()
        updated = current.edit(**changes)
        setattr(self.draft, address_type, updated)
        return updated

    def set_same_as_shipping(self, enabled: bool) -> None:
        self.draft.same_as_shipping = enabled
        if enabled:
            # snapshot: later billing edits never reach shipping
            self.draft.shipping = self.draft.billing

    def _check_editable(self, address_type: str) -> None:
        if address_type == "shipping" and self.draft.same_as_shipping:
            raise DraftValidationError("Uncheck 'same as billing' to edit the shipping address")

    def payload(self) -> Optional[Dict[str, Dict[str, str]]]:
        """``addresses`` block for SetSaleDetail, or None when nothing has a street."""
        billing = self.draft.billing if self.draft.billing and self.draft.billing.street else None
        shipping = self.draft.shipping if self.draft.shipping and self.draft.shipping.street else None
        if billing is None and shipping is None:
            return None
        addresses = {"billing": (billing or Address()).to_payload()}
        if shipping is not None:
            addresses["shipping"] = shipping.to_payload()
        return addresses
