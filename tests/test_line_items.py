import pytest

from conftest import FakeClient

from saledesk.api.sale_editor import SaleEditorApi
from saledesk.drafts.line_items import LineItemSynchronizer
from saledesk.drafts.models import LineItem, SaleKind
from saledesk.errors import ApiError, DraftValidationError


def synchronizer(handlers):
    client = FakeClient(handlers)
    return LineItemSynchronizer(SaleEditorApi(client, SaleKind.QUOTE)), client


def test_add_replaces_collection_with_server_answer():
    server = [{'id': 'L1', 'form': {'productName': 'Pen'}}, {'id': 'L9'}]
    sync, _ = synchronizer({'/Admin/SaleEditor/AddEmptyLineItem': {'lineItems': server}})
    items = sync.add_empty('S-1')
    assert [i.id for i in items] == ['L1', 'L9']
    assert items[0].product_name == 'Pen'


def test_remove_replaces_collection_with_server_answer():
    sync, client = synchronizer({'/Admin/SaleEditor/RemoveLineItems': {'lineItems': [{'id': 'L3'}]}})
    assert [i.id for i in sync.remove('S-1', 'L1')] == ['L3']
    assert client.sent('/Admin/SaleEditor/RemoveLineItems') == [{'saleId': 'S-1', 'lineItemIds': ['L1']}]


def test_requires_sale_id():
    sync, client = synchronizer({})
    with pytest.raises(DraftValidationError):
        sync.add_empty(None)
    assert client.calls == []


def test_patch_is_local():
    items = [LineItem(id='L1'), LineItem(id='L2')]
    patched = LineItemSynchronizer.patch(items, 'L2', {'quantity': 5})
    assert patched[1].quantity == 5
    assert items[1].quantity == 1
    with pytest.raises(DraftValidationError):
        LineItemSynchronizer.patch(items, 'L7', {'quantity': 5})


def test_save_with_thumbnail():
    sync, client = synchronizer({'/Admin/SaleEditor/SetLineItemThumbnail': {'sourceUri': 'https://cdn/t.webp'}})
    saved = sync.save(LineItem(id='L1', product_name='Pen'), picture_id='P1')
    assert saved.source_uri == 'https://cdn/t.webp'
    general = client.sent('/Admin/SaleEditor/SetLineItemDetail')[0]['general']
    assert general['productName'] == 'Pen'


def test_save_error_propagates():
    sync, _ = synchronizer({'/Admin/SaleEditor/SetLineItemDetail': ApiError(500, 'nope')})
    with pytest.raises(ApiError):
        sync.save(LineItem(id='L1'))
