import os, sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest

from saledesk.api.sale_editor import SaleEditorApi
from saledesk.drafts.controller import SaleDraftController
from saledesk.drafts.models import SaleKind
from saledesk.errors import RequestCancelled


class FakeTimer:
    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.started = False
        self.cancelled = False
        self.fired = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if self.cancelled or self.fired:
            return
        self.fired = True
        self.function(*self.args, **self.kwargs)


class TimerBoard:
    """Drop-in for threading.Timer; timers only run when a test fires them."""

    def __init__(self):
        self.timers = []

    def __call__(self, interval, function, args=None, kwargs=None):
        timer = FakeTimer(interval, function, args, kwargs)
        self.timers.append(timer)
        return timer

    def pending(self, interval=None):
        return [
            t for t in self.timers
            if t.started and not t.cancelled and not t.fired
            and (interval is None or t.interval == interval)
        ]

    def fire(self, interval=None):
        timers = self.pending(interval)
        for timer in timers:
            timer.fire()
        return len(timers)


class FakeClient:
    """Stands in for SaleEditorClient.  Answers are looked up by path."""

    def __init__(self, handlers=None):
        self.handlers = dict(handlers or {})
        self.calls = []
        self.cancelled = False

    def on(self, path, handler):
        self.handlers[path] = handler

    def _dispatch(self, method, path, payload):
        if self.cancelled:
            raise RequestCancelled(path)
        self.calls.append((method, path, payload))
        handler = self.handlers.get(path)
        if isinstance(handler, Exception):
            raise handler
        if callable(handler):
            return handler(payload)
        return handler if handler is not None else {}

    def get(self, path, params=None):
        return self._dispatch('GET', path, params or {})

    def post(self, path, payload=None):
        return self._dispatch('POST', path, payload or {})

    def cancel(self):
        self.cancelled = True

    def sent(self, path):
        return [payload for _, p, payload in self.calls if p == path]


SUMMARY = {
    'customerSummary': {'itemsTotal': 20, 'setupCharge': 5, 'subTotal': 25, 'total': 25},
    'totalSupplierSummary': {'itemsTotal': 10, 'setupCharge': 2, 'subTotal': 12, 'total': 12},
    'profit': 13,
}


def default_handlers():
    return {
        '/Admin/SaleEditor/AddEmptyQuote': {'id': 7, 'saleId': 'S-1'},
        '/Admin/SaleEditor/AddEmptyOrder': {'id': 8, 'saleId': 'S-2'},
        '/Admin/SaleEditor/GetSaleSummary': SUMMARY,
        '/Admin/CustomerEditor/GetCustomerById': {'addresses': []},
        '/Admin/Document/AddDocument': {'id': 'D-1'},
    }


@pytest.fixture
def timers():
    return TimerBoard()


@pytest.fixture
def client():
    return FakeClient(default_handlers())


@pytest.fixture
def make_controller(client, timers):
    def make(kind=SaleKind.QUOTE, editing=False, **kwargs):
        api = SaleEditorApi(client, kind)
        return SaleDraftController(kind, api, editing=editing, timer_factory=timers, **kwargs)
    return make
