import os

SEQUENCER_ADDRESS = os.environ.get("SEQUENCER_ADDRESS", "0x0000000000000000000000000000000000000001")
JOURNAL_PATH = os.environ.get("JOURNAL_PATH", "rollup.rocksdb")
JOURNAL_ENABLED = os.environ.get("JOURNAL_ENABLED", "true").lower() == "true"
VERIFIER_BACKEND = os.environ.get("VERIFIER_BACKEND", "accept-all")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_FILE = os.environ.get("LOG_FILE") or None
LOG_STRUCTURED = os.environ.get("LOG_STRUCTURED", "true").lower() == "true"

API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8080"))

# Raw proof layout: eight 32-byte big-endian words
WORD_SIZE = 32
PROOF_WORDS = 8
PROOF_SIZE = WORD_SIZE * PROOF_WORDS
FIELD_ELEMENT_BOUND = 2 ** 256
ZERO_ROOT = b"\x00" * 32
