"""Tests for Session and SessionManager."""

from unittest.mock import MagicMock

import pytest

from ora_tool.core.config import Privilege, SessionOptions
from ora_tool.core.exceptions import ConnectionError, ReleaseError
from ora_tool.core.models import ExecuteOptions, RawOutcome
from ora_tool.core.session import POOL_SIZE, Session, SessionManager


@pytest.fixture
def manager(fake_driver):
    return SessionManager(fake_driver)


# -- Session --


@pytest.mark.unit
class TestSession:
    def test_submit_goes_through_driver(self, fake_driver):
        fake_driver.responses["SELECT 1 FROM dual"] = RawOutcome(rows=[{"1": "1"}])
        connection = fake_driver.connect(None, None)
        session = Session(fake_driver, connection, connection_id="x")
        raw = session.submit("SELECT 1 FROM dual", ExecuteOptions())
        assert raw.rows == [{"1": "1"}]
        assert fake_driver.submitted == ["SELECT 1 FROM dual"]

    def test_enable_diagnostic_output_once(self):
        driver = MagicMock()
        session = Session(driver, object(), connection_id="x")
        session.enable_diagnostic_output()
        session.enable_diagnostic_output()
        assert driver.enable_output.call_count == 1
        assert session.diagnostics_enabled is True

    def test_standalone_release_closes(self, fake_driver):
        connection = fake_driver.connect(None, None)
        session = Session(fake_driver, connection, connection_id="x")
        session.release()
        assert connection.closed is True
        assert session.released is True
        assert fake_driver.released == []

    def test_pooled_release_returns_to_pool(self, fake_driver):
        pool = object()
        connection = fake_driver.acquire(pool)
        session = Session(fake_driver, connection, connection_id="x", pool=pool)
        assert session.pooled is True
        session.release()
        assert fake_driver.released == [(connection, False)]
        assert connection.closed is False

    def test_release_is_idempotent(self):
        driver = MagicMock()
        session = Session(driver, object(), connection_id="x")
        session.release()
        session.release()
        assert driver.close.call_count == 1

    def test_release_error_is_logged_not_raised(self):
        driver = MagicMock()
        driver.close.side_effect = ReleaseError("ORA-03135: connection lost contact")
        session = Session(driver, object(), connection_id="x")
        session.release()
        assert session.released is True

    def test_context_manager_releases(self):
        driver = MagicMock()
        with Session(driver, object(), connection_id="x") as session:
            assert session.released is False
        assert session.released is True
        driver.close.assert_called_once()


# -- SessionManager.acquire --


@pytest.mark.unit
class TestAcquire:
    def test_standalone_session(self, manager, fake_driver, credentials):
        session = manager.acquire(SessionOptions(pooled=False), credentials)
        assert session.pooled is False
        assert session.connection_id == "dev"
        assert fake_driver.pools == []
        assert fake_driver.privileges == [Privilege.NORMAL]

    def test_pooled_session(self, manager, fake_driver, credentials):
        session = manager.acquire(SessionOptions(), credentials)
        assert session.pooled is True
        assert len(fake_driver.pools) == 1
        assert fake_driver.pools[0].size == POOL_SIZE == 4

    def test_pool_is_shared_per_connection_id(self, manager, fake_driver, credentials):
        first = manager.acquire(SessionOptions(), credentials)
        second = manager.acquire(SessionOptions(), credentials)
        assert first.pool is second.pool
        assert first.connection is not second.connection
        assert len(fake_driver.pools) == 1

    def test_separate_pools_per_connection_id(
        self, manager, fake_driver, credentials
    ):
        other = credentials.model_copy(update={"connection_id": "prod"})
        manager.acquire(SessionOptions(), credentials)
        manager.acquire(SessionOptions(), other)
        assert [p.connection_id for p in fake_driver.pools] == ["dev", "prod"]

    def test_elevated_privilege_is_standalone(self, manager, fake_driver, credentials):
        options = SessionOptions(privilege=Privilege.SYSDBA, pooled=True)
        session = manager.acquire(options, credentials)
        assert session.pooled is False
        assert fake_driver.pools == []
        assert fake_driver.privileges == [Privilege.SYSDBA]

    def test_connect_failure_raises(self, manager, fake_driver, credentials):
        fake_driver.fail_connect = True
        with pytest.raises(ConnectionError, match="no listener"):
            manager.acquire(SessionOptions(pooled=False), credentials)

    def test_dead_pooled_connection_is_replaced(
        self, manager, fake_driver, credentials
    ):
        fake_driver.stale_connections = 1
        session = manager.acquire(SessionOptions(), credentials)
        dead, fresh = fake_driver.connections
        assert session.connection is fresh
        assert session.pool is fake_driver.pools[0]
        assert fake_driver.released == [(dead, True)]
        assert len(fake_driver.pools) == 1

    def test_dead_standalone_connection_is_replaced(
        self, manager, fake_driver, credentials
    ):
        fake_driver.stale_connections = 1
        session = manager.acquire(SessionOptions(pooled=False), credentials)
        dead, fresh = fake_driver.connections
        assert session.connection is fresh
        assert dead.closed is True
        assert fresh.closed is False

    def test_replacement_also_dead_raises(self, credentials):
        driver = MagicMock()
        driver.ping.side_effect = ConnectionError("ORA-03113: end-of-file")
        manager = SessionManager(driver)
        with pytest.raises(ConnectionError, match="ORA-03113"):
            manager.acquire(SessionOptions(), credentials)
        assert driver.acquire.call_count == 2
        assert driver.release.call_count == 2
        for call in driver.release.call_args_list:
            assert call.kwargs == {"discard": True}

    def test_reuse_live_session(self, manager, fake_driver, credentials):
        options = SessionOptions(pooled=False)
        session = manager.acquire(options, credentials)
        again = manager.acquire(options, credentials, reuse=session)
        assert again is session
        assert len(fake_driver.connections) == 1

    def test_reuse_stale_session_is_replaced(self, manager, fake_driver, credentials):
        options = SessionOptions()
        stale = manager.acquire(options, credentials)
        stale.connection.alive = False
        fresh = manager.acquire(options, credentials, reuse=stale)
        assert fresh is not stale
        assert stale.released is True
        assert fake_driver.released == [(stale.connection, True)]
        assert len(fake_driver.connections) == 2

    def test_reuse_of_released_session_acquires_new(
        self, manager, fake_driver, credentials
    ):
        options = SessionOptions(pooled=False)
        old = manager.acquire(options, credentials)
        old.release()
        fresh = manager.acquire(options, credentials, reuse=old)
        assert fresh is not old
        assert len(fake_driver.connections) == 2


# -- release / shutdown --


@pytest.mark.unit
class TestLifecycle:
    def test_manager_release(self, manager, fake_driver, credentials):
        session = manager.acquire(SessionOptions(), credentials)
        manager.release(session)
        manager.release(session)
        assert fake_driver.released == [(session.connection, False)]

    def test_shutdown_closes_pools(self, manager, fake_driver, credentials):
        manager.acquire(SessionOptions(), credentials)
        manager.shutdown()
        assert fake_driver.closed_pools == fake_driver.pools
        manager.shutdown()
        assert len(fake_driver.closed_pools) == 1

    def test_pool_recreated_after_shutdown(self, manager, fake_driver, credentials):
        manager.acquire(SessionOptions(), credentials)
        manager.shutdown()
        manager.acquire(SessionOptions(), credentials)
        assert len(fake_driver.pools) == 2

    def test_shutdown_logs_pool_close_failure(self, credentials):
        driver = MagicMock()
        driver.close_pool.side_effect = ReleaseError("busy")
        manager = SessionManager(driver)
        manager.acquire(SessionOptions(), credentials)
        manager.shutdown()
        driver.close_pool.assert_called_once()

    def test_context_manager_shuts_down(self, fake_driver, credentials):
        with SessionManager(fake_driver) as manager:
            manager.acquire(SessionOptions(), credentials)
        assert len(fake_driver.closed_pools) == 1
