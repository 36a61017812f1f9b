from conftest import FakeClient

from saledesk.api.sale_editor import SaleEditorApi
from saledesk.drafts.models import SaleKind


def test_kind_selects_endpoints():
    client = FakeClient({'/Admin/SaleEditor/AddEmptyOrder': {'id': 3, 'saleId': 'S-9'}})
    api = SaleEditorApi(client, SaleKind.ORDER)
    assert api.create_draft('42') == {'id': 3, 'saleId': 'S-9'}
    api.get_detail(3)
    api.set_status(3, 'Shipped')
    api.set_notes_id(3, 'D-1')
    assert client.calls == [
        ('POST', '/Admin/SaleEditor/AddEmptyOrder', {'customerId': '42'}),
        ('GET', '/Admin/SaleEditor/GetOrderDetail', {'id': 3}),
        ('POST', '/Admin/SaleEditor/SetOrderDetail', {'id': 3, 'status': 'Shipped'}),
        ('POST', '/Admin/SaleEditor/SetOrderDetail', {'id': 3, 'notesId': 'D-1'}),
    ]


def test_set_sale_detail_only_sends_given_blocks():
    client = FakeClient()
    api = SaleEditorApi(client, SaleKind.QUOTE)
    api.set_sale_detail('S-1', checkout_details={'dateOrderNeededBy': '2024-05-01'})
    assert client.sent('/Admin/SaleEditor/SetSaleDetail') == [
        {'saleId': 'S-1', 'checkoutDetails': {'dateOrderNeededBy': '2024-05-01'}}
    ]


def test_line_item_endpoints_return_collections():
    items = [{'id': 'L1'}, {'id': 'L2'}]
    client = FakeClient({
        '/Admin/SaleEditor/AddEmptyLineItem': {'lineItems': items},
        '/Admin/SaleEditor/RemoveLineItems': {'lineItems': items[:1]},
        '/Admin/SaleEditor/SetLineItemThumbnail': {'sourceUri': 'https://cdn/x.webp'},
    })
    api = SaleEditorApi(client, SaleKind.QUOTE)
    assert api.add_empty_line_item('S-1') == items
    assert api.remove_line_items('S-1', ['L2']) == items[:1]
    assert client.sent('/Admin/SaleEditor/RemoveLineItems') == [{'saleId': 'S-1', 'lineItemIds': ['L2']}]
    assert api.set_line_item_thumbnail('L1', 'P-5') == 'https://cdn/x.webp'


def test_document_endpoints():
    client = FakeClient({
        '/Admin/Document/AddDocument': {'id': 'D-4'},
        '/Admin/Document/GetDocumentDetail': {'content': {'children': []}},
    })
    api = SaleEditorApi(client, SaleKind.QUOTE)
    assert api.create_document('S-1') == 'D-4'
    assert client.sent('/Admin/Document/AddDocument') == [{'isPublic': False, 'saleId': 'S-1'}]
    assert api.get_document('D-4') == {'children': []}
