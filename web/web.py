import logging
import time
from typing import Optional

from fastapi import FastAPI, Header, Depends, Response
from fastapi.middleware.cors import CORSMiddleware

from config.config import SEQUENCER_ADDRESS, VERIFIER_BACKEND
from errors.exceptions import ValidationError
from middleware.error_handler import setup_error_handlers
from models.validation import (
    BatchSubmissionRequest, SignatureSubmissionRequest, VerifierUpdateRequest
)
from proofs.codec import proof_from_calldata
from proofs.verifier import create_verifier, verifier_name
from rollup.core import RollupCore

logger = logging.getLogger(__name__)

# Global reference to the rollup core (set by main or tests)
_rollup_core: Optional[RollupCore] = None

def set_rollup_core(core: Optional[RollupCore]):
    """Set the global rollup core reference"""
    global _rollup_core
    _rollup_core = core
    logger.info(f"Rollup core reference set: {core}")

def get_rollup_core() -> RollupCore:
    """Get the global rollup core, building one from config on first use"""
    global _rollup_core
    if _rollup_core is None:
        _rollup_core = RollupCore(SEQUENCER_ADDRESS, create_verifier(VERIFIER_BACKEND))
    return _rollup_core

app = FastAPI(title="ZK Rollup Core API", version="1.0.0")

setup_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["*"]
)


def caller_identity(x_caller: str = Header("", alias="X-Caller")) -> str:
    return x_caller


@app.post("/batches")
def submit_batch_endpoint(req: BatchSubmissionRequest,
                          caller: str = Depends(caller_identity),
                          core: RollupCore = Depends(get_rollup_core)):
    if req.proof_hex is not None:
        try:
            proof = bytes.fromhex(req.proof_hex.removeprefix("0x"))
        except ValueError:
            raise ValidationError("Proof must be valid hexadecimal")
    else:
        proof = proof_from_calldata(req.proof)

    batch = core.submit_batch_with_proof(
        caller,
        req.new_state_root,
        req.message_hashes,
        req.public_keys_x,
        req.public_keys_y,
        proof,
    )
    return {
        "status": "success",
        "batch": batch.to_dict(),
        "submission_ids": core.get_batch_submissions(batch.id),
    }

@app.post("/submissions")
def submit_signature_endpoint(req: SignatureSubmissionRequest,
                              caller: str = Depends(caller_identity),
                              core: RollupCore = Depends(get_rollup_core)):
    submission = core.submit_signature(caller, req.message_hash, req.public_key_x, req.public_key_y)
    return {"status": "success", "submission": submission.to_dict()}

@app.put("/verifier")
def update_verifier_endpoint(req: VerifierUpdateRequest,
                             caller: str = Depends(caller_identity),
                             core: RollupCore = Depends(get_rollup_core)):
    new_verifier = create_verifier(req.backend) if req.backend is not None else None
    old_verifier = core.update_verifier(caller, new_verifier)
    return {
        "status": "success",
        "old_verifier": verifier_name(old_verifier),
        "new_verifier": verifier_name(core.verifier),
    }

@app.get("/batches/{batch_id}")
def get_batch_endpoint(batch_id: int, core: RollupCore = Depends(get_rollup_core)):
    return core.get_batch(batch_id).to_dict()

@app.get("/batches/{batch_id}/submissions")
def get_batch_submissions_endpoint(batch_id: int, core: RollupCore = Depends(get_rollup_core)):
    return {"batch_id": batch_id, "submission_ids": core.get_batch_submissions(batch_id)}

@app.get("/submissions/{submission_id}")
def get_submission_endpoint(submission_id: int, core: RollupCore = Depends(get_rollup_core)):
    submission = core.get_submission(submission_id)
    return {**submission.to_dict(), "included": core.is_submission_included(submission_id)}

@app.get("/state")
def get_state_endpoint(core: RollupCore = Depends(get_rollup_core)):
    state = core.get_l2_state().to_dict()
    state["submission_count"] = core.submission_count
    return state

@app.get("/health")
def health_check(response: Response, core: RollupCore = Depends(get_rollup_core)):
    state = core.get_l2_state()
    fault = core.events.fault
    if fault is not None:
        # Journal lost an event; writes are refused until restart
        response.status_code = 503
    return {
        "status": "healthy" if fault is None else "degraded",
        "journal_error": None if fault is None else str(fault),
        "sequencer": core.sequencer,
        "verifier": verifier_name(core.verifier),
        "block_number": state.block_number,
        "timestamp": time.time(),
    }
