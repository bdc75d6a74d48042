from proofs.codec import Groth16Proof, decode_proof, encode_proof, proof_from_calldata, load_proof_file
from proofs.public_inputs import build_public_inputs, parse_field_string, to_field_element
from proofs.verifier import (
    ProofVerifier,
    AcceptAllVerifier,
    RejectAllVerifier,
    RecordingVerifier,
    create_verifier,
)
