"""Unit tests for etcd_session_store.backends.etcd.EtcdBackend.

All tests use a MagicMock in place of the python-etcd client so no etcd
server is required.  The ``etcd`` package is also mocked at the import
level so the test suite runs without it installed.
"""
from __future__ import annotations

import sys
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from etcd_session_store.backends.base import BackendNode
from etcd_session_store.backends.etcd import parse_hosts
from etcd_session_store.errors import BackendError, NotFoundError


class FakeEtcdException(Exception):
    pass


class FakeEtcdKeyNotFound(FakeEtcdException):
    pass


# ---------------------------------------------------------------------------
# Helpers: build a fully mocked EtcdBackend without the real etcd package
# ---------------------------------------------------------------------------


def _make_backend(hosts: list[Any] | None = None, **kwargs: Any) -> Any:
    """Return an EtcdBackend whose client is a MagicMock."""
    mock_etcd_module = MagicMock()
    mock_etcd_module.EtcdException = FakeEtcdException
    mock_etcd_module.EtcdKeyNotFound = FakeEtcdKeyNotFound
    mock_client = MagicMock()
    mock_etcd_module.Client.return_value = mock_client

    with patch.dict(sys.modules, {"etcd": mock_etcd_module}):
        from etcd_session_store.backends.etcd import EtcdBackend

        backend = EtcdBackend(hosts=hosts, **kwargs)
    backend._mock_client = mock_client  # type: ignore[attr-defined]
    backend._mock_module = mock_etcd_module  # type: ignore[attr-defined]
    return backend


def _leaf(key: str, value: str) -> SimpleNamespace:
    return SimpleNamespace(key=key, value=value, dir=False, _children=[])


def _directory(key: str, children: list[dict[str, Any]]) -> SimpleNamespace:
    return SimpleNamespace(key=key, value=None, dir=True, _children=children)


# ---------------------------------------------------------------------------
# Import-guard behaviour
# ---------------------------------------------------------------------------


class TestEtcdBackendImportGuard:
    def test_import_error_raised_when_etcd_missing(self) -> None:
        from etcd_session_store.backends.etcd import EtcdBackend

        with patch.dict(sys.modules, {"etcd": None}):  # type: ignore[dict-item]
            with pytest.raises(ImportError, match="pip install python-etcd"):
                EtcdBackend()


# ---------------------------------------------------------------------------
# parse_hosts
# ---------------------------------------------------------------------------


class TestParseHosts:
    def test_host_and_port(self) -> None:
        assert parse_hosts(["10.0.0.1:2379"]) == ((("10.0.0.1", 2379),), "http")

    def test_host_without_port_uses_default(self) -> None:
        assert parse_hosts(["etcd-0"]) == ((("etcd-0", 2379),), "http")

    def test_url_with_scheme(self) -> None:
        assert parse_hosts(["https://etcd-0:2380/"]) == ((("etcd-0", 2380),), "https")

    def test_tuples_passed_through(self) -> None:
        assert parse_hosts([("a", 1), ("b", 2)]) == ((("a", 1), ("b", 2)), "http")

    def test_empty_rejected(self) -> None:
        with pytest.raises(ValueError, match="At least one"):
            parse_hosts([])

    def test_malformed_port_rejected(self) -> None:
        with pytest.raises(ValueError, match="Malformed"):
            parse_hosts(["etcd-0:abc"])

    def test_mixed_protocols_rejected(self) -> None:
        with pytest.raises(ValueError, match="mix protocols"):
            parse_hosts(["http://a:1", "https://b:2"])


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestEtcdBackendConstruction:
    def test_default_host(self) -> None:
        backend = _make_backend()
        backend._mock_module.Client.assert_called_once_with(
            host="127.0.0.1",
            port=2379,
            protocol="http",
            read_timeout=60,
            allow_reconnect=False,
            username=None,
            password=None,
        )

    def test_multiple_hosts_enable_reconnect(self) -> None:
        backend = _make_backend(["a:2379", "b:2380"], read_timeout=5)
        kwargs = backend._mock_module.Client.call_args.kwargs
        assert kwargs["host"] == (("a", 2379), ("b", 2380))
        assert kwargs["allow_reconnect"] is True
        assert kwargs["read_timeout"] == 5

    def test_prebuilt_client_used_as_is(self) -> None:
        client = MagicMock()
        backend = _make_backend(client=client)
        assert backend._client is client
        backend._mock_module.Client.assert_not_called()

    def test_supports_tree_delete(self) -> None:
        assert _make_backend().supports_tree_delete is True

    def test_repr_contains_hosts(self) -> None:
        assert "etcd-0:2379" in repr(_make_backend(["etcd-0:2379"]))


# ---------------------------------------------------------------------------
# get
# ---------------------------------------------------------------------------


class TestEtcdBackendGet:
    @pytest.mark.asyncio
    async def test_get_leaf(self) -> None:
        backend = _make_backend()
        backend._mock_client.read.return_value = _leaf("/sessions/a", '{"x":1}')
        node = await backend.get("/sessions/a")
        assert node == BackendNode(key="/sessions/a", value='{"x":1}')
        backend._mock_client.read.assert_called_once_with("/sessions/a")

    @pytest.mark.asyncio
    async def test_get_directory_keeps_child_order(self) -> None:
        backend = _make_backend()
        backend._mock_client.read.return_value = _directory(
            "/sessions",
            [
                {"key": "/sessions/b", "value": "2", "modifiedIndex": 7},
                {"key": "/sessions/a", "value": "1", "modifiedIndex": 8},
                {"key": "/sessions/sub", "dir": True},
            ],
        )
        node = await backend.get("/sessions/")
        assert node.dir is True
        assert node.value is None
        assert [n.key for n in node.nodes] == ["/sessions/b", "/sessions/a", "/sessions/sub"]
        assert [n.value for n in node.leaves] == ["2", "1"]

    @pytest.mark.asyncio
    async def test_get_empty_directory(self) -> None:
        backend = _make_backend()
        backend._mock_client.read.return_value = _directory("/sessions", [])
        node = await backend.get("/sessions/")
        assert node.dir is True
        assert node.nodes == ()

    @pytest.mark.asyncio
    async def test_get_missing_raises_not_found(self) -> None:
        backend = _make_backend()
        backend._mock_client.read.side_effect = FakeEtcdKeyNotFound("Key not found")
        with pytest.raises(NotFoundError) as excinfo:
            await backend.get("/sessions/ghost")
        assert excinfo.value.key == "/sessions/ghost"

    @pytest.mark.asyncio
    async def test_get_failure_raises_backend_error(self) -> None:
        backend = _make_backend()
        backend._mock_client.read.side_effect = FakeEtcdException("connection refused")
        with pytest.raises(BackendError, match="connection refused") as excinfo:
            await backend.get("/sessions/a")
        assert isinstance(excinfo.value.__cause__, FakeEtcdException)
        assert excinfo.value.key == "/sessions/a"


# ---------------------------------------------------------------------------
# set / delete / delete_tree
# ---------------------------------------------------------------------------


class TestEtcdBackendWrites:
    @pytest.mark.asyncio
    async def test_set_writes_value(self) -> None:
        backend = _make_backend()
        await backend.set("/sessions/a", "payload")
        backend._mock_client.write.assert_called_once_with("/sessions/a", "payload")

    @pytest.mark.asyncio
    async def test_set_failure_raises_backend_error(self) -> None:
        backend = _make_backend()
        backend._mock_client.write.side_effect = FakeEtcdException("not a file")
        with pytest.raises(BackendError):
            await backend.set("/sessions/a", "payload")

    @pytest.mark.asyncio
    async def test_delete_leaf(self) -> None:
        backend = _make_backend()
        await backend.delete("/sessions/a")
        backend._mock_client.delete.assert_called_once_with("/sessions/a")

    @pytest.mark.asyncio
    async def test_delete_missing_raises_not_found(self) -> None:
        backend = _make_backend()
        backend._mock_client.delete.side_effect = FakeEtcdKeyNotFound("Key not found")
        with pytest.raises(NotFoundError):
            await backend.delete("/sessions/a")

    @pytest.mark.asyncio
    async def test_delete_tree_is_recursive(self) -> None:
        backend = _make_backend()
        await backend.delete_tree("/sessions/")
        backend._mock_client.delete.assert_called_once_with(
            "/sessions/", recursive=True, dir=True
        )

    @pytest.mark.asyncio
    async def test_close_is_a_no_op(self) -> None:
        backend = _make_backend()
        await backend.close()
