from __future__ import annotations

from collections.abc import Generator

import fakeredis
import pytest
from fastapi.testclient import TestClient

from toggleable_bindings.environment import HostEnvironment, init_environment, reset_environment_for_tests
from toggleable_bindings.registry import BindingManager, reset_manager_for_tests


@pytest.fixture(autouse=True)
def _reset_singletons(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Every test starts without a host environment or process-wide manager.

    The near-bench env var is cleared so a developer's shell can't leak into tests.
    """

    monkeypatch.delenv("TOGGLEABLE_BINDINGS_NEAR_BENCH", raising=False)
    reset_environment_for_tests()
    reset_manager_for_tests()
    yield
    reset_environment_for_tests()
    reset_manager_for_tests()


@pytest.fixture()
def env() -> HostEnvironment:
    return init_environment(HostEnvironment())


@pytest.fixture()
def manager() -> BindingManager:
    return BindingManager()


@pytest.fixture()
def r() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def client_and_redis(r: fakeredis.FakeRedis) -> Generator[tuple[TestClient, fakeredis.FakeRedis], None, None]:
    """FastAPI TestClient wired to fakeredis; startup registers the vanilla bindings."""

    from toggleable_bindings.api.deps import get_redis
    from toggleable_bindings.main import app

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override
    with TestClient(app) as c:
        yield c, r
    app.dependency_overrides.clear()
