import itertools
import logging

import pytest

from gestor_lite.main import create_app
from gestor_lite.repositories import MemoryStore
from gestor_lite.services import BusinessState


class FixedClock:
    """Reloj de prueba: cada llamada avanza un minuto desde 2024-01-10."""

    def __init__(self):
        self._minutes = itertools.count()

    def __call__(self):
        minute = next(self._minutes)
        return f"2024-01-10T{10 + minute // 60:02d}:{minute % 60:02d}:00+00:00"


@pytest.fixture
def state():
    ids = (f"id-{n}" for n in itertools.count(1))
    return BusinessState(clock=FixedClock(), id_factory=lambda: next(ids))


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'DATA_DIR': str(tmp_path / 'data'),
        'LOGS_DIR': str(tmp_path / 'logs'),
        'ENABLE_PROFILING': False,
        'CSRF_ENABLED': False,
    })
    yield app


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def app_warnings(caplog, monkeypatch):
    """Warnings del logger "gestor_lite" (sin propagación no llegan a caplog)."""
    monkeypatch.setattr(logging.getLogger('gestor_lite'), 'propagate', True)
    caplog.set_level(logging.WARNING, logger='gestor_lite')

    def _records(name='gestor_lite.repositories.base'):
        return [r for r in caplog.records if r.name == name and r.levelno == logging.WARNING]
    return _records
