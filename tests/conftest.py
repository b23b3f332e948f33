import pytest

from src.app import Services
from tests.support import make_services


@pytest.fixture
def services() -> Services:
    return make_services()
