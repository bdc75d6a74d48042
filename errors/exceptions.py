"""
Custom exception classes for the rollup core
"""

class RollupError(Exception):
    """Base exception for rollup operations"""
    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.message = message
        self.code = code or "ROLLUP_ERROR"

class ValidationError(RollupError):
    """Batch, submission or proof validation failed"""
    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        super().__init__(message, code)
        self.category = "VALIDATION_ERROR"

class AuthenticationError(RollupError):
    """Authentication/authorization errors"""
    def __init__(self, message: str, code: str = "AUTH_ERROR"):
        super().__init__(message, code)
        self.category = "AUTH_ERROR"

class DatabaseError(RollupError):
    """Journal/database operation errors"""
    def __init__(self, message: str, code: str = "DATABASE_ERROR"):
        super().__init__(message, code)
        self.category = "DATABASE_ERROR"

class UnauthorizedError(AuthenticationError):
    """Caller is not the configured sequencer"""
    def __init__(self, caller: str):
        super().__init__(f"Only sequencer can call (caller: {caller})", "UNAUTHORIZED")
        self.caller = caller

class InvalidSequencerError(ValidationError):
    def __init__(self, message: str = "Sequencer identity must be non-empty"):
        super().__init__(message, "INVALID_SEQUENCER")

class InvalidVerifierReferenceError(ValidationError):
    """Verifier reference is null or does not expose verify()"""
    def __init__(self, message: str = "Invalid verifier reference"):
        super().__init__(message, "INVALID_VERIFIER")

class EmptyBatchError(ValidationError):
    def __init__(self, message: str = "Empty batch"):
        super().__init__(message, "EMPTY_BATCH")

class LengthMismatchError(ValidationError):
    """Message hash and public key arrays differ in length"""
    def __init__(self, hashes: int, keys_x: int, keys_y: int):
        message = f"Length mismatch: {hashes} hashes, {keys_x} X-coords, {keys_y} Y-coords"
        super().__init__(message, "LENGTH_MISMATCH")
        self.lengths = (hashes, keys_x, keys_y)

class InvalidProofError(ValidationError):
    """Verifier rejected the proof for the given public inputs"""
    def __init__(self, message: str = "Invalid proof"):
        super().__init__(message, "INVALID_PROOF")

class ProofDecodeError(ValidationError):
    """Raw proof bytes could not be decoded"""
    TOO_SHORT = "TOO_SHORT"
    OUT_OF_BOUNDS = "OUT_OF_BOUNDS"

    def __init__(self, message: str, reason: str):
        super().__init__(message, f"PROOF_{reason}")
        self.reason = reason

class ProofTooShortError(ProofDecodeError):
    def __init__(self, length: int, required: int):
        super().__init__(f"Proof too short: {length} bytes, need {required}", ProofDecodeError.TOO_SHORT)
        self.length = length
        self.required = required

class ProofOutOfBoundsError(ProofDecodeError):
    def __init__(self, offset: int, length: int):
        super().__init__(f"Proof word at offset {offset} exceeds buffer of {length} bytes",
                         ProofDecodeError.OUT_OF_BOUNDS)
        self.offset = offset
        self.length = length

class ReplayError(DatabaseError):
    """Event journal is inconsistent and cannot be replayed"""
    def __init__(self, message: str):
        super().__init__(message, "REPLAY_ERROR")

class ReentrantWriteError(RollupError):
    """A mutating call was made while another one is still committing on the same thread"""
    def __init__(self, operation: str):
        super().__init__(f"{operation} called while a write is in progress", "REENTRANT_WRITE")
        self.operation = operation

class EventStreamFaultError(DatabaseError):
    """A critical event listener (the journal) failed; writes are refused"""
    def __init__(self, cause: Exception):
        super().__init__(f"Event stream faulted, refusing writes: {cause}", "EVENT_STREAM_FAULT")
        self.cause = cause
