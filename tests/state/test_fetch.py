"""
Tests for fetching state from an algod node.

The node is replaced by a scripted client that returns canned payloads or
raises the errors algosdk raises, so retry and error mapping can be checked
without network access.
"""

from __future__ import annotations

from typing import Any
from urllib.error import URLError

import pytest
from algosdk.error import AlgodHTTPError

from daostate.config.runtime import AlgodConfig, DaoStateConfig, DecoderConfig, Network
from daostate.state.fetch import (
    create_algod_client,
    fetch_global_state,
    fetch_local_state,
    global_state_from_application,
    investor_state_from_account,
    load_dao_global_state,
    load_dao_investor_state,
    local_state_from_account,
)
from daostate.state.models import DaoGlobalState, DaoInvestorState
from daostate.state.snapshot import StateSnapshot
from daostate.utils.errors import (
    ErrorCode,
    NotOptedInError,
    SchemaMismatchError,
    StateFetchError,
)
from tests.utils.factories import OWNER_ADDRESS, without_keys

pytestmark = pytest.mark.usefixtures("clean_daostate_env")

APP_ID = 10460000
INVESTOR = "INVESTOR"


def _config(retries: int = 3, log_state_on_mismatch: bool = True) -> DaoStateConfig:
    return DaoStateConfig(
        network=Network.SANDBOX,
        algod=AlgodConfig(address="http://localhost:4001", retries=retries, retry_max_wait=0.001),
        decoder=DecoderConfig(log_state_on_mismatch=log_state_on_mismatch),
    )


def _app_info(snapshot: StateSnapshot, creator: str = OWNER_ADDRESS) -> dict[str, Any]:
    return {
        "id": APP_ID,
        "params": {
            "creator": creator,
            "global-state": snapshot.to_algod(),
            "global-state-schema": {"num-uint": 14, "num-byte-slice": 8},
        },
    }


def _local_state(snapshot: StateSnapshot, app_id: int = APP_ID) -> dict[str, Any]:
    return {
        "id": app_id,
        "key-value": snapshot.to_algod(),
        "schema": {"num-uint": 3, "num-byte-slice": 3},
    }


class ScriptedAlgodClient:
    """Replays a list of responses; exceptions in the list are raised."""

    def __init__(self, responses: list[Any]) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def _next(self, name: str, *args: Any) -> Any:
        self.calls.append((name, args))
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    def application_info(self, app_id: int) -> Any:
        return self._next("application_info", app_id)

    def account_application_info(self, address: str, app_id: int) -> Any:
        return self._next("account_application_info", address, app_id)


def _client(*responses: Any) -> Any:
    return ScriptedAlgodClient(list(responses))


class TestGlobalStateFromApplication:
    def test_extracts_snapshot_and_creator(self, global_snapshot: StateSnapshot) -> None:
        snapshot, creator = global_state_from_application(_app_info(global_snapshot))
        assert list(snapshot) == list(global_snapshot)
        assert snapshot.schema is not None
        assert snapshot.schema.total == 22
        assert creator == OWNER_ADDRESS

    def test_application_without_state(self) -> None:
        snapshot, _ = global_state_from_application({"params": {"creator": OWNER_ADDRESS}})
        assert len(snapshot) == 0

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"params": {}},
            {"params": {"creator": OWNER_ADDRESS, "global-state": [{"key": "!!"}]}},
        ],
    )
    def test_malformed_payload(self, payload: dict[str, Any]) -> None:
        with pytest.raises(StateFetchError) as exc_info:
            global_state_from_application(payload)
        assert exc_info.value.code == ErrorCode.E302_MALFORMED_RESPONSE


class TestLocalStateFromAccount:
    def test_full_account_payload(self, local_snapshot: StateSnapshot) -> None:
        account = {
            "address": INVESTOR,
            "apps-local-state": [_local_state(local_snapshot, 1), _local_state(local_snapshot)],
        }
        assert local_state_from_account(account, APP_ID) == local_snapshot

    def test_account_application_payload(self, local_snapshot: StateSnapshot) -> None:
        account = {"app-local-state": _local_state(local_snapshot)}
        snapshot = local_state_from_account(account, APP_ID)
        assert snapshot.schema is not None
        assert (snapshot.schema.num_uint, snapshot.schema.num_byte_slice) == (3, 3)

    def test_not_opted_in(self, local_snapshot: StateSnapshot) -> None:
        account = {"address": INVESTOR, "apps-local-state": [_local_state(local_snapshot, 1)]}
        with pytest.raises(NotOptedInError) as exc_info:
            local_state_from_account(account, APP_ID)
        assert exc_info.value.code == ErrorCode.E301_NOT_OPTED_IN

    def test_account_without_local_states(self) -> None:
        with pytest.raises(NotOptedInError):
            local_state_from_account({"address": INVESTOR}, APP_ID)

    def test_malformed_entry(self) -> None:
        with pytest.raises(StateFetchError) as exc_info:
            local_state_from_account({"apps-local-state": [{"key-value": []}]}, APP_ID)
        assert exc_info.value.code == ErrorCode.E302_MALFORMED_RESPONSE


class TestFetchGlobalState:
    def test_success(self, global_snapshot: StateSnapshot) -> None:
        client = _client(_app_info(global_snapshot))
        snapshot, creator = fetch_global_state(client, APP_ID, _config())
        assert list(snapshot) == list(global_snapshot)
        assert creator == OWNER_ADDRESS
        assert client.calls == [("application_info", (APP_ID,))]

    def test_retries_transient_errors(self, global_snapshot: StateSnapshot) -> None:
        client = _client(
            AlgodHTTPError("node overloaded", 503),
            ConnectionError("reset"),
            _app_info(global_snapshot),
        )
        snapshot, _ = fetch_global_state(client, APP_ID, _config(retries=3))
        assert list(snapshot) == list(global_snapshot)
        assert len(client.calls) == 3

    def test_gives_up_after_configured_attempts(self) -> None:
        client = _client(AlgodHTTPError("down", 500), AlgodHTTPError("down", 500))
        with pytest.raises(StateFetchError) as exc_info:
            fetch_global_state(client, APP_ID, _config(retries=2))
        assert exc_info.value.code == ErrorCode.E300_FETCH_ERROR
        assert exc_info.value.error_details.details["status"] == 500
        assert len(client.calls) == 2

    def test_retries_unreachable_node(self, global_snapshot: StateSnapshot) -> None:
        client = _client(
            URLError(ConnectionRefusedError(111, "Connection refused")),
            _app_info(global_snapshot),
        )
        snapshot, _ = fetch_global_state(client, APP_ID, _config(retries=2))
        assert list(snapshot) == list(global_snapshot)
        assert len(client.calls) == 2

    def test_unreachable_node_is_wrapped(self) -> None:
        refused = URLError(ConnectionRefusedError(111, "Connection refused"))
        client = _client(refused, refused)
        with pytest.raises(StateFetchError) as exc_info:
            fetch_global_state(client, APP_ID, _config(retries=2))
        assert exc_info.value.code == ErrorCode.E300_FETCH_ERROR
        assert isinstance(exc_info.value.__cause__, URLError)
        assert len(client.calls) == 2

    def test_real_client_without_node(self) -> None:
        config = _config(retries=2)
        config.algod.address = "http://127.0.0.1:1"
        client = create_algod_client(config.algod)
        with pytest.raises(StateFetchError, match="application_info"):
            fetch_global_state(client, APP_ID, config)

    def test_client_errors_are_not_retried(self) -> None:
        client = _client(AlgodHTTPError("application does not exist", 404))
        with pytest.raises(StateFetchError, match="application does not exist"):
            fetch_global_state(client, APP_ID, _config(retries=3))
        assert len(client.calls) == 1


class TestFetchLocalState:
    def test_success(self, local_snapshot: StateSnapshot) -> None:
        client = _client({"app-local-state": _local_state(local_snapshot)})
        assert fetch_local_state(client, INVESTOR, APP_ID, _config()) == local_snapshot
        assert client.calls == [("account_application_info", (INVESTOR, APP_ID))]

    def test_not_found_means_not_opted_in(self) -> None:
        client = _client(AlgodHTTPError("account application info not found", 404))
        with pytest.raises(NotOptedInError) as exc_info:
            fetch_local_state(client, INVESTOR, APP_ID, _config())
        assert INVESTOR in str(exc_info.value)

    def test_empty_response_means_not_opted_in(self) -> None:
        with pytest.raises(NotOptedInError):
            fetch_local_state(_client({}), INVESTOR, APP_ID, _config())

    def test_connection_failure(self) -> None:
        client = _client(TimeoutError("timed out"))
        with pytest.raises(StateFetchError) as exc_info:
            fetch_local_state(client, INVESTOR, APP_ID, _config(retries=1))
        assert not isinstance(exc_info.value, NotOptedInError)


class TestLoaders:
    def test_load_dao_global_state(
        self, global_state: DaoGlobalState, global_snapshot: StateSnapshot
    ) -> None:
        client = _client(_app_info(global_snapshot))
        assert load_dao_global_state(client, APP_ID, _config()) == global_state

    def test_load_dao_global_state_before_setup(self, global_snapshot: StateSnapshot) -> None:
        client = _client(_app_info(without_keys(global_snapshot, "TeamUrl", "Raised")))
        with pytest.raises(SchemaMismatchError):
            load_dao_global_state(client, APP_ID, _config(log_state_on_mismatch=False))

    def test_load_dao_investor_state(
        self, investor_state: DaoInvestorState, local_snapshot: StateSnapshot
    ) -> None:
        client = _client({"app-local-state": _local_state(local_snapshot)})
        assert load_dao_investor_state(client, INVESTOR, APP_ID, _config()) == investor_state

    def test_investor_state_from_account(
        self, investor_state: DaoInvestorState, local_snapshot: StateSnapshot
    ) -> None:
        account = {"address": INVESTOR, "apps-local-state": [_local_state(local_snapshot)]}
        assert investor_state_from_account(account, APP_ID) == investor_state

    def test_uses_runtime_config_by_default(
        self, monkeypatch: pytest.MonkeyPatch, global_snapshot: StateSnapshot
    ) -> None:
        monkeypatch.setenv("DAOSTATE_ALGOD_RETRIES", "1")
        client = _client(AlgodHTTPError("down", 502), _app_info(global_snapshot))
        with pytest.raises(StateFetchError):
            fetch_global_state(client, APP_ID)
        assert len(client.calls) == 1


def test_create_algod_client() -> None:
    client = create_algod_client(AlgodConfig(address="http://localhost:4001", token="a" * 64))
    assert client.algod_address == "http://localhost:4001"
    assert client.algod_token == "a" * 64
