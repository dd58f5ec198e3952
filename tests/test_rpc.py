"""
Tests for the JSON-RPC ledger client.
"""
import base64

import pytest
import requests

from sollens.config import Commitment
from sollens.exceptions import NetworkError
from sollens.models import ConfirmationStatus
from sollens.rpc import HttpRpc

from conftest import RECIPIENT, TEST_BLOCKHASH, TEST_RPC_URL, TEST_SIGNATURE


def _result(value):
    return {"jsonrpc": "2.0", "id": 1, "result": value}


def _context(value):
    return _result({"context": {"slot": 100}, "value": value})


@pytest.fixture
def rpc():
    client = HttpRpc(TEST_RPC_URL)
    yield client
    client.close()


def test_get_balance(rpc, requests_mock):
    requests_mock.post(TEST_RPC_URL, json=_context(1_500_000_000))

    assert rpc.get_balance(RECIPIENT) == 1_500_000_000

    body = requests_mock.last_request.json()
    assert body["jsonrpc"] == "2.0"
    assert body["method"] == "getBalance"
    assert body["params"] == [str(RECIPIENT), {"commitment": "confirmed"}]


def test_request_ids_increase(rpc, requests_mock):
    requests_mock.post(TEST_RPC_URL, json=_context(1))
    rpc.get_balance(RECIPIENT)
    first = requests_mock.last_request.json()["id"]
    rpc.get_balance(RECIPIENT)
    assert requests_mock.last_request.json()["id"] == first + 1


@pytest.mark.parametrize("value", [-1, "100", None, True, 1.5])
def test_get_balance_invalid_value(rpc, requests_mock, value):
    requests_mock.post(TEST_RPC_URL, json=_context(value))
    with pytest.raises(NetworkError, match="Invalid balance"):
        rpc.get_balance(RECIPIENT)


def test_get_recent_transaction_ids(rpc, requests_mock):
    entries = [{"signature": f"sig{i}", "slot": 10 - i, "err": None} for i in range(3)]
    requests_mock.post(TEST_RPC_URL, json=_result(entries))

    assert rpc.get_recent_transaction_ids(RECIPIENT, 5) == ["sig0", "sig1", "sig2"]

    body = requests_mock.last_request.json()
    assert body["method"] == "getSignaturesForAddress"
    assert body["params"] == [str(RECIPIENT), {"limit": 5, "commitment": "confirmed"}]


def test_recent_transaction_ids_never_use_processed(requests_mock):
    rpc = HttpRpc(TEST_RPC_URL, commitment=Commitment.PROCESSED)
    requests_mock.post(TEST_RPC_URL, json=_result([]))

    assert rpc.get_recent_transaction_ids(RECIPIENT, 5) == []
    assert requests_mock.last_request.json()["params"][1]["commitment"] == "confirmed"


@pytest.mark.parametrize("result", [{"value": []}, [{"slot": 1}], [{"signature": ""}], ["sig"]])
def test_recent_transaction_ids_malformed(rpc, requests_mock, result):
    requests_mock.post(TEST_RPC_URL, json=_result(result))
    with pytest.raises(NetworkError):
        rpc.get_recent_transaction_ids(RECIPIENT, 5)


@pytest.mark.parametrize("entry,expected", [
    (None, ConfirmationStatus.NONE),
    ({"slot": 5, "confirmationStatus": "processed", "err": None}, ConfirmationStatus.PENDING),
    ({"slot": 5, "confirmationStatus": "confirmed", "err": None}, ConfirmationStatus.CONFIRMED),
    ({"slot": 5, "confirmationStatus": "finalized", "err": None}, ConfirmationStatus.FINALIZED),
])
def test_get_signature_status(rpc, requests_mock, entry, expected):
    requests_mock.post(TEST_RPC_URL, json=_context([entry]))

    status = rpc.get_signature_status(TEST_SIGNATURE)

    assert status.confirmation_status == expected
    assert status.err is None
    body = requests_mock.last_request.json()
    assert body["method"] == "getSignatureStatuses"
    assert body["params"] == [[TEST_SIGNATURE], {"searchTransactionHistory": True}]


def test_get_signature_status_reports_execution_error(rpc, requests_mock):
    err = {"InstructionError": [0, {"Custom": 1}]}
    requests_mock.post(TEST_RPC_URL, json=_context([
        {"slot": 5, "confirmationStatus": "confirmed", "err": err}
    ]))

    status = rpc.get_signature_status(TEST_SIGNATURE)

    assert status.err == err
    assert status.slot == 5


@pytest.mark.parametrize("value", [[], [None, None], ["confirmed"], [{"confirmationStatus": "rooted"}]])
def test_get_signature_status_malformed(rpc, requests_mock, value):
    requests_mock.post(TEST_RPC_URL, json=_context(value))
    with pytest.raises(NetworkError):
        rpc.get_signature_status(TEST_SIGNATURE)


def test_get_latest_blockhash(rpc, requests_mock):
    requests_mock.post(TEST_RPC_URL, json=_context({"blockhash": TEST_BLOCKHASH, "lastValidBlockHeight": 9}))
    assert rpc.get_latest_blockhash() == TEST_BLOCKHASH
    assert requests_mock.last_request.json()["params"] == [{"commitment": "confirmed"}]


def test_get_latest_blockhash_malformed(rpc, requests_mock):
    requests_mock.post(TEST_RPC_URL, json=_context({"lastValidBlockHeight": 9}))
    with pytest.raises(NetworkError):
        rpc.get_latest_blockhash()


def test_send_raw_transaction(rpc, requests_mock):
    requests_mock.post(TEST_RPC_URL, json=_result(TEST_SIGNATURE))

    assert rpc.send_raw_transaction(b"\x01\x02\x03") == TEST_SIGNATURE

    params = requests_mock.last_request.json()["params"]
    assert base64.b64decode(params[0]) == b"\x01\x02\x03"
    assert params[1] == {"encoding": "base64", "preflightCommitment": "confirmed"}


def test_json_rpc_error_keeps_code(rpc, requests_mock):
    requests_mock.post(TEST_RPC_URL, json={
        "jsonrpc": "2.0", "id": 1,
        "error": {"code": -32002, "message": "Transaction simulation failed"}
    })

    with pytest.raises(NetworkError, match="simulation failed") as exc_info:
        rpc.send_raw_transaction(b"\x00")
    assert exc_info.value.code == -32002


def test_http_error(rpc, requests_mock):
    requests_mock.post(TEST_RPC_URL, status_code=503, text="Service Unavailable")
    with pytest.raises(NetworkError, match="HTTP 503"):
        rpc.get_balance(RECIPIENT)


def test_http_error_is_not_retried(rpc, requests_mock):
    route = requests_mock.post(TEST_RPC_URL, status_code=500, text="boom")
    with pytest.raises(NetworkError):
        rpc.get_balance(RECIPIENT)
    assert route.call_count == 1


def test_connection_error(rpc, requests_mock):
    requests_mock.post(TEST_RPC_URL, exc=requests.ConnectionError("refused"))
    with pytest.raises(NetworkError, match="refused"):
        rpc.get_balance(RECIPIENT)


def test_timeout(rpc, requests_mock):
    requests_mock.post(TEST_RPC_URL, exc=requests.Timeout("slow"))
    with pytest.raises(NetworkError, match="timed out"):
        rpc.get_balance(RECIPIENT)


def test_invalid_json(rpc, requests_mock):
    requests_mock.post(TEST_RPC_URL, text="<html>not json</html>")
    with pytest.raises(NetworkError, match="Invalid JSON"):
        rpc.get_balance(RECIPIENT)


@pytest.mark.parametrize("body", [[1, 2], {"jsonrpc": "2.0", "id": 1}])
def test_missing_result(rpc, requests_mock, body):
    requests_mock.post(TEST_RPC_URL, json=body)
    with pytest.raises(NetworkError):
        rpc.get_balance(RECIPIENT)


def test_repeated_endpoint_failures_are_rate_limited(requests_mock, caplog):
    rpc = HttpRpc(TEST_RPC_URL)
    requests_mock.post(TEST_RPC_URL, status_code=502, text="bad gateway")

    with caplog.at_level("WARNING"):
        for _ in range(3):
            with pytest.raises(NetworkError):
                rpc.get_balance(RECIPIENT)

    warnings = [r for r in caplog.records if "returned HTTP 502" in r.getMessage()]
    assert len(warnings) == 1
