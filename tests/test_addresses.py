import pytest

from saledesk.drafts.addresses import AddressResolver, pick_default
from saledesk.drafts.models import Address, SaleDraft, SaleKind, SavedAddress
from saledesk.errors import DraftValidationError


def saved(address_type, street, primary=False):
    return SavedAddress(type=address_type, address=Address(street=street), is_primary=primary)


def test_pick_default_prefers_primary_of_type():
    book = [saved('billing', 'B1'), saved('shipping', 'S1'), saved('shipping', 'S2', primary=True)]
    assert pick_default(book, 'shipping').address.street == 'S2'
    assert pick_default(book, 'billing').address.street == 'B1'
    assert pick_default([saved('billing', 'B1')], 'shipping').address.street == 'B1'
    assert pick_default([], 'billing') is None


def test_defaults_only_fill_unset_slots():
    draft = SaleDraft(kind=SaleKind.QUOTE)
    draft.billing = Address(street='')
    resolver = AddressResolver(draft)
    filled = resolver.apply_defaults([saved('billing', 'B1'), saved('shipping', 'S1')])
    assert filled == ['shipping']
    assert draft.billing.street == ''
    assert draft.shipping.street == 'S1'
    assert len(draft.saved_addresses) == 2


def test_same_as_shipping_copies_billing():
    draft = SaleDraft(kind=SaleKind.QUOTE)
    resolver = AddressResolver(draft)
    resolver.edit('billing', street='A')
    resolver.set_same_as_shipping(True)
    assert draft.shipping.street == 'A'

    resolver.edit('billing', street='B')
    assert draft.billing.street == 'B'
    assert draft.shipping.street == 'A'


def test_aliased_shipping_is_read_only():
    draft = SaleDraft(kind=SaleKind.QUOTE)
    resolver = AddressResolver(draft)
    resolver.edit('billing', street='A')
    resolver.set_same_as_shipping(True)
    with pytest.raises(DraftValidationError):
        resolver.edit('shipping', street='C')
    resolver.set_same_as_shipping(False)
    assert resolver.edit('shipping', street='C').street == 'C'


def test_payload():
    draft = SaleDraft(kind=SaleKind.QUOTE)
    resolver = AddressResolver(draft)
    assert resolver.payload() is None
    resolver.edit('shipping', street='9 Dock', city='Reno')
    payload = resolver.payload()
    assert payload['shipping']['addressLine'] == '9 Dock'
    assert payload['billing']['addressLine'] == ''


def test_unknown_address_type():
    resolver = AddressResolver(SaleDraft(kind=SaleKind.QUOTE))
    with pytest.raises(DraftValidationError):
        resolver.edit('mailing', street='x')
