"""Fetch raw application state from an algod node.

These helpers only obtain snapshots and hand them to the decoders; all
validation lives in ``daostate.state.decoder``. Transient node failures are
retried with exponential back-off, everything else surfaces immediately.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from algosdk.error import AlgodHTTPError
from algosdk.v2client.algod import AlgodClient
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from daostate.config.runtime import AlgodConfig, DaoStateConfig, get_runtime_config
from daostate.utils.errors import ErrorCode, NotOptedInError, StateFetchError

from .decoder import decode_global_state, decode_investor_state
from .models import DaoGlobalState, DaoInvestorState
from .snapshot import StateSnapshot

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


def create_algod_client(config: AlgodConfig | None = None) -> AlgodClient:
    """Create an algod client from configuration."""
    config = config or get_runtime_config().algod
    return AlgodClient(config.token, config.address)


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, AlgodHTTPError):
        return exc.code is None or exc.code >= 500
    # The algod client only converts HTTP errors; refused connections, DNS
    # failures and socket timeouts surface as urllib URLError (an OSError)
    return isinstance(exc, OSError)


def _call_node(config: AlgodConfig, operation: str, fn: Callable[[], _T]) -> _T:
    retrying = Retrying(
        stop=stop_after_attempt(config.retries),
        wait=wait_exponential(multiplier=0.5, max=config.retry_max_wait),
        retry=retry_if_exception(_is_transient),
        reraise=True,
    )
    try:
        return retrying(fn)
    except AlgodHTTPError as e:
        raise StateFetchError(
            message=f"{operation} failed: {e}",
            details={"operation": operation, "status": e.code},
        ) from e
    except OSError as e:
        raise StateFetchError(
            message=f"{operation} failed: {e}",
            details={"operation": operation},
        ) from e


def _malformed(what: str, e: Exception) -> StateFetchError:
    return StateFetchError(ErrorCode.E302_MALFORMED_RESPONSE, f"Malformed {what}: {e}")


def global_state_from_application(app_info: Mapping[str, Any]) -> tuple[StateSnapshot, str]:
    """Extract the global state snapshot and the creator from application info."""
    try:
        params = app_info["params"]
        snapshot = StateSnapshot.from_algod(
            params.get("global-state"), params.get("global-state-schema")
        )
        creator = str(params["creator"])
    except (KeyError, TypeError, ValueError) as e:
        raise _malformed("application info", e) from e
    return snapshot, creator


def local_state_from_account(account_info: Mapping[str, Any], app_id: int) -> StateSnapshot:
    """Extract the local state an account holds for one application.

    Accepts both a full account payload (``apps-local-state`` list) and the
    account-application payload (``app-local-state`` object).

    Raises:
        NotOptedInError: The account holds no local state for the application.
    """
    address = str(account_info.get("address", "<unknown>"))
    try:
        if "app-local-state" in account_info:
            candidates = [account_info["app-local-state"]]
        else:
            candidates = list(account_info.get("apps-local-state") or ())
        for local_state in candidates:
            if local_state is not None and int(local_state["id"]) == app_id:
                return StateSnapshot.from_algod(
                    local_state.get("key-value"), local_state.get("schema")
                )
    except (KeyError, TypeError, ValueError) as e:
        raise _malformed("account info", e) from e
    raise NotOptedInError(address, app_id)


def fetch_global_state(
    client: AlgodClient,
    app_id: int,
    config: DaoStateConfig | None = None,
) -> tuple[StateSnapshot, str]:
    """Fetch an application's global state and its creator."""
    config = config or get_runtime_config()
    app_info = _call_node(
        config.algod, f"application_info({app_id})", lambda: client.application_info(app_id)
    )
    return global_state_from_application(app_info)


def fetch_local_state(
    client: AlgodClient,
    address: str,
    app_id: int,
    config: DaoStateConfig | None = None,
) -> StateSnapshot:
    """Fetch the local state an account holds for an application."""
    config = config or get_runtime_config()
    try:
        account_info = _call_node(
            config.algod,
            f"account_application_info({address}, {app_id})",
            lambda: client.account_application_info(address, app_id),
        )
    except StateFetchError as e:
        if e.error_details.details.get("status") == 404:
            raise NotOptedInError(address, app_id) from e
        raise
    account_info = {"address": address, **account_info}
    return local_state_from_account(account_info, app_id)


def load_dao_global_state(
    client: AlgodClient,
    app_id: int,
    config: DaoStateConfig | None = None,
) -> DaoGlobalState:
    """Fetch and decode a DAO's global state."""
    config = config or get_runtime_config()
    snapshot, creator = fetch_global_state(client, app_id, config)
    logger.debug("Decoding global state of app %s (%d entries)", app_id, len(snapshot))
    return decode_global_state(snapshot, creator, config.decoder.log_state_on_mismatch)


def load_dao_investor_state(
    client: AlgodClient,
    address: str,
    app_id: int,
    config: DaoStateConfig | None = None,
) -> DaoInvestorState:
    """Fetch and decode an investor's local state."""
    config = config or get_runtime_config()
    snapshot = fetch_local_state(client, address, app_id, config)
    logger.debug("Decoding local state of %s in app %s", address, app_id)
    return decode_investor_state(snapshot, config.decoder.log_state_on_mismatch)


def investor_state_from_account(
    account_info: Mapping[str, Any],
    app_id: int,
    log_state_on_mismatch: bool = True,
) -> DaoInvestorState:
    """Decode an investor's state from an already fetched account payload."""
    snapshot = local_state_from_account(account_info, app_id)
    return decode_investor_state(snapshot, log_state_on_mismatch)
