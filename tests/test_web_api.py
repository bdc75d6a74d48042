# tests/test_web_api.py
"""
HTTP surface tests. Each test installs a fresh core through
``set_rollup_core`` so nothing leaks between tests.
"""

from __future__ import annotations

from fastapi.testclient import TestClient
import pytest

from conftest import SEQUENCER, OUTSIDER, SAMPLE_PROOF, make_batch
from errors.exceptions import DatabaseError
from events.event_bus import EventBus
from web import web as web_mod


@pytest.fixture
def client(core):
    web_mod.set_rollup_core(core)
    yield TestClient(web_mod.app)
    web_mod.set_rollup_core(None)


def batch_payload(size=2, **overrides):
    hashes, xs, ys = make_batch(size)
    payload = {
        "new_state_root": "0x" + "11" * 32,
        "message_hashes": [hex(h) for h in hashes],
        "public_keys_x": xs,
        "public_keys_y": ys,
        "proof_hex": "00" * 256,
    }
    payload.update(overrides)
    return payload


def test_submit_batch_success(client, verifier):
    resp = client.post("/batches", json=batch_payload(), headers={"X-Caller": SEQUENCER})

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "success"
    assert body["batch"]["id"] == 0
    assert body["batch"]["verified"] is True
    assert body["submission_ids"] == [0, 1]
    assert "X-Correlation-ID" in resp.headers
    assert verifier.call_count == 1

    state = client.get("/state").json()
    assert state == {
        "state_root": "0x" + "11" * 32,
        "block_number": 1,
        "batch_count": 1,
        "submission_count": 2,
    }


def test_submit_batch_with_calldata_proof(client, verifier):
    payload = batch_payload(proof_hex=None, proof=SAMPLE_PROOF.to_calldata())
    resp = client.post("/batches", json=payload, headers={"X-Caller": SEQUENCER})
    assert resp.status_code == 200
    assert verifier.calls[0][0] == SAMPLE_PROOF


def test_non_sequencer_gets_401(client, verifier):
    resp = client.post("/batches", json=batch_payload(), headers={"X-Caller": OUTSIDER})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "UNAUTHORIZED"
    assert verifier.call_count == 0


def test_empty_batch_gets_400(client):
    payload = batch_payload(message_hashes=[], public_keys_x=[], public_keys_y=[])
    resp = client.post("/batches", json=payload, headers={"X-Caller": SEQUENCER})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "EMPTY_BATCH"


def test_length_mismatch_gets_400(client):
    payload = batch_payload(public_keys_y=[1, 2, 3])
    resp = client.post("/batches", json=payload, headers={"X-Caller": SEQUENCER})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "LENGTH_MISMATCH"


def test_short_proof_gets_400(client):
    resp = client.post("/batches", json=batch_payload(proof_hex="00" * 100),
                       headers={"X-Caller": SEQUENCER})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "PROOF_TOO_SHORT"
    assert client.get("/state").json()["batch_count"] == 0


def test_missing_proof_gets_422(client):
    resp = client.post("/batches", json=batch_payload(proof_hex=None), headers={"X-Caller": SEQUENCER})
    assert resp.status_code == 422


def test_bad_state_root_gets_422(client):
    resp = client.post("/batches", json=batch_payload(new_state_root="0x1234"),
                       headers={"X-Caller": SEQUENCER})
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


def test_register_submission_from_anyone(client):
    resp = client.post("/submissions", json={
        "message_hash": "0xaa", "public_key_x": 1, "public_key_y": "0x02",
    }, headers={"X-Caller": OUTSIDER})

    assert resp.status_code == 200
    sub = resp.json()["submission"]
    assert sub["id"] == 0
    assert sub["included"] is False
    assert sub["message_hash"] == "0xaa"

    fetched = client.get("/submissions/0").json()
    assert fetched["included"] is False
    assert client.get("/state").json()["batch_count"] == 0


def test_batch_queries(client):
    client.post("/batches", json=batch_payload(3), headers={"X-Caller": SEQUENCER})

    batch = client.get("/batches/0").json()
    assert batch["num_signatures"] == 3
    assert batch["proposer"] == SEQUENCER
    assert batch["block_number"] == 1

    assert client.get("/batches/0/submissions").json()["submission_ids"] == [0, 1, 2]
    assert client.get("/submissions/2").json()["included"] is True


def test_out_of_range_queries_return_defaults(client):
    assert client.get("/batches/5").json()["verified"] is False
    assert client.get("/batches/5/submissions").json()["submission_ids"] == []
    assert client.get("/submissions/5").json()["included"] is False


def test_update_verifier(client, core):
    resp = client.put("/verifier", json={"backend": "reject-all"}, headers={"X-Caller": SEQUENCER})
    assert resp.status_code == 200
    assert resp.json()["new_verifier"] == "reject-all"

    resp = client.post("/batches", json=batch_payload(), headers={"X-Caller": SEQUENCER})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_PROOF"


def test_update_verifier_null_reference(client, verifier):
    resp = client.put("/verifier", json={"backend": None}, headers={"X-Caller": SEQUENCER})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_VERIFIER"
    assert client.get("/health").json()["verifier"] == "recording"


def test_update_verifier_requires_sequencer(client):
    resp = client.put("/verifier", json={"backend": "accept-all"}, headers={"X-Caller": OUTSIDER})
    assert resp.status_code == 401


def test_unknown_backend_gets_422(client):
    resp = client.put("/verifier", json={"backend": "nope"}, headers={"X-Caller": SEQUENCER})
    assert resp.status_code == 422


def test_decimal_field_strings_accepted(client, verifier):
    hashes, xs, ys = make_batch(2)
    payload = batch_payload(message_hashes=[str(h) for h in hashes],
                            public_keys_x=[str(x) for x in xs])
    resp = client.post("/batches", json=payload, headers={"X-Caller": SEQUENCER})

    assert resp.status_code == 200
    assert verifier.calls[0][1] == [hashes[0], xs[0], ys[0], hashes[1], xs[1], ys[1]]

    resp = client.post("/submissions", json={
        "message_hash": "170", "public_key_x": "0x01", "public_key_y": 2,
    }, headers={"X-Caller": OUTSIDER})
    assert resp.json()["submission"]["message_hash"] == "0xaa"


def test_unprefixed_hex_gets_422(client):
    resp = client.post("/submissions", json={
        "message_hash": "ff", "public_key_x": 1, "public_key_y": 2,
    }, headers={"X-Caller": OUTSIDER})
    assert resp.status_code == 422


def test_unknown_route_uses_error_body(client):
    resp = client.get("/no-such-route")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "HTTP_ERROR"
    assert "X-Correlation-ID" in resp.headers

    resp = client.delete("/state")
    assert resp.status_code == 405
    assert resp.json()["error"]["code"] == "HTTP_ERROR"


def test_health_reports_journal_fault(client, core):
    def failing_journal(event):
        raise DatabaseError("disk full")

    assert client.get("/health").json()["status"] == "healthy"
    core.events.subscribe(EventBus.WILDCARD, failing_journal, critical=True)

    resp = client.post("/submissions", json={
        "message_hash": 1, "public_key_x": 2, "public_key_y": 3,
    }, headers={"X-Caller": OUTSIDER})
    assert resp.status_code == 200

    health = client.get("/health")
    assert health.status_code == 503
    assert health.json()["status"] == "degraded"
    assert "disk full" in health.json()["journal_error"]

    resp = client.post("/submissions", json={
        "message_hash": 4, "public_key_x": 5, "public_key_y": 6,
    }, headers={"X-Caller": OUTSIDER})
    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "EVENT_STREAM_FAULT"
    assert client.get("/state").json()["submission_count"] == 1
