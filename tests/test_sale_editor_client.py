import pytest
import requests

from saledesk.api import client as client_mod
from saledesk.api.client import SaleEditorClient
from saledesk.errors import ApiError, ConnectivityError, RequestCancelled


class DummyResponse:
    def __init__(self, status_code, data=None, text=''):
        self.status_code = status_code
        self._data = data
        self.text = text
        self.content = b'{}' if data is not None else text.encode()

    def json(self):
        if self._data is None:
            raise ValueError('no json')
        return self._data


def patched_client(monkeypatch, seq, max_retries=3):
    client = SaleEditorClient(base_url='http://sale-editor.test/', max_retries=max_retries)
    calls = []
    sleeps = []

    def fake_request(method, url, timeout=None, **kwargs):
        resp = seq[min(len(calls), len(seq) - 1)]
        calls.append((method, url, kwargs))
        if isinstance(resp, Exception):
            raise resp
        return resp

    monkeypatch.setattr(client.session, 'request', fake_request)
    monkeypatch.setattr(client_mod.time, 'sleep', lambda s: sleeps.append(s))
    return client, calls, sleeps


def test_backoff_on_429(monkeypatch):
    seq = [DummyResponse(429), DummyResponse(500), DummyResponse(200, {'ok': True})]
    client, calls, sleeps = patched_client(monkeypatch, seq)
    assert client.get('/Admin/SaleEditor/GetSaleSummary', {'saleId': 'S-1'}) == {'ok': True}
    assert len(calls) == 3
    assert calls[0][1] == 'http://sale-editor.test/Admin/SaleEditor/GetSaleSummary'
    assert calls[0][2]['params'] == {'saleId': 'S-1'}
    assert 2 <= sleeps[0] < 3
    assert 4 <= sleeps[1] < 5


def test_retries_exhausted_raises_api_error(monkeypatch):
    client, calls, _ = patched_client(monkeypatch, [DummyResponse(503, {'message': 'down'})], max_retries=1)
    with pytest.raises(ApiError) as exc:
        client.get('/x')
    assert exc.value.status == 503
    assert exc.value.message == 'down'
    assert len(calls) == 2


def test_post_is_sent_once(monkeypatch):
    client, calls, sleeps = patched_client(monkeypatch, [DummyResponse(500, text='boom')])
    with pytest.raises(ApiError) as exc:
        client.post('/Admin/SaleEditor/AddEmptyQuote', {'customerId': '1'})
    assert exc.value.message == 'boom'
    assert len(calls) == 1
    assert calls[0][2]['json'] == {'customerId': '1'}
    assert sleeps == []


def test_network_error_is_connectivity_error(monkeypatch):
    seq = [requests.ConnectionError('refused')]
    client, calls, sleeps = patched_client(monkeypatch, seq, max_retries=2)
    with pytest.raises(ConnectivityError):
        client.get('/x')
    assert len(calls) == 3
    assert len(sleeps) == 2
    with pytest.raises(ConnectivityError):
        client.post('/y')


def test_empty_body_decodes_to_dict(monkeypatch):
    client, _, _ = patched_client(monkeypatch, [DummyResponse(200)])
    assert client.post('/Admin/Document/AddDocumentRevision') == {}


def test_cancelled_client_sends_nothing(monkeypatch):
    client, calls, _ = patched_client(monkeypatch, [DummyResponse(200, {})])
    client.cancel()
    assert client.cancelled
    with pytest.raises(RequestCancelled):
        client.get('/x')
    assert calls == []


def test_late_answer_after_cancel(monkeypatch):
    client = SaleEditorClient(base_url='http://sale-editor.test')

    def fake_request(method, url, timeout=None, **kwargs):
        client.cancel()
        return DummyResponse(200, {'saleId': 'S-1'})

    monkeypatch.setattr(client.session, 'request', fake_request)
    with pytest.raises(RequestCancelled):
        client.post('/Admin/SaleEditor/AddEmptyQuote', {'customerId': '1'})


def test_from_config_sets_token():
    client = SaleEditorClient.from_config({
        'SALE_API_URL': 'http://sale-editor.test',
        'SALE_API_TOKEN': 'tok',
        'SALE_API_RETRIES': 0,
    })
    assert client.base_url == 'http://sale-editor.test'
    assert client.session.headers['Authorization'] == 'Bearer tok'
    assert client.max_retries == 0
