import pytest

from backend.app.dependencies.services import get_object_storage
from backend.app.main import app
from factories import FailingObjectStorage, FakeObjectStorage


@pytest.fixture(autouse=True)
def storage():
    fake = FakeObjectStorage()
    app.dependency_overrides[get_object_storage] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_object_storage, None)


@pytest.fixture
def failing_storage():
    fake = FailingObjectStorage()
    app.dependency_overrides[get_object_storage] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_object_storage, None)


@pytest.fixture
def no_storage():
    app.dependency_overrides[get_object_storage] = lambda: None
    yield
    app.dependency_overrides.pop(get_object_storage, None)
