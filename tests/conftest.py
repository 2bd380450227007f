from concurrent.futures import Executor, Future

import pytest


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def __init__(self):
        self.calls = []

    def submit(self, fn, /, *args, **kwargs):
        self.calls.append((fn, args))
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class DeferredExecutor(Executor):
    """Queues submitted work until the test completes it, in any order."""

    def __init__(self):
        self.pending = []

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run(self, index=0):
        future, fn, args, kwargs = self.pending.pop(index)
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)

    def run_all(self):
        while self.pending:
            self.run(0)


class ManualScheduler:
    def __init__(self):
        self.callback = None
        self.interval_ms = None
        self.stopped = 0

    def start(self, interval_ms, callback):
        self.interval_ms = interval_ms
        self.callback = callback

    def stop(self):
        self.callback = None
        self.stopped += 1

    def is_active(self):
        return self.callback is not None

    def fire(self):
        assert self.callback is not None, "scheduler is not running"
        self.callback()


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, text=""):
        self.status_code = status_code
        self._json = json_data
        self.text = text

    def json(self):
        if self._json is None:
            raise ValueError("no json")
        return self._json


class FakeSession:
    """Stands in for requests.Session; answers from a handler and records every call."""

    def __init__(self, handler=None):
        self.handler = handler or (lambda method, url, **kw: FakeResponse(200, {}))
        self.calls = []
        self.headers = {}

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        result = self.handler(method, url, **kwargs)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def inline_executor():
    return InlineExecutor()


@pytest.fixture
def deferred_executor():
    return DeferredExecutor()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def make_session():
    return FakeSession


@pytest.fixture
def make_response():
    return FakeResponse
