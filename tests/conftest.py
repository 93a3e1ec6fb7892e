"""Shared fixtures: a Qt core application for signals and the worker pool."""

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt5.QtCore import QCoreApplication

from engine import GraphEngine


@pytest.fixture(scope="session", autouse=True)
def qt_app():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def engine():
    eng = GraphEngine()
    yield eng
    eng.analytics.waitForDone()


class SignalRecorder:
    """Collects the arguments of every emission of one signal."""

    def __init__(self, signal):
        self.calls = []
        signal.connect(self._record)

    def _record(self, *args):
        self.calls.append(args)

    @property
    def count(self):
        return len(self.calls)


@pytest.fixture
def recorder():
    return SignalRecorder
