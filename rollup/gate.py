import logging

from errors.exceptions import InvalidSequencerError, UnauthorizedError

logger = logging.getLogger(__name__)


class SequencerGate:
    """Restricts batch submission and admin calls to one sequencer identity"""

    def __init__(self, sequencer: str):
        if not sequencer or not str(sequencer).strip():
            raise InvalidSequencerError()
        self.sequencer = sequencer

    def is_sequencer(self, caller: str) -> bool:
        return caller == self.sequencer

    def authorize(self, caller: str) -> None:
        if not self.is_sequencer(caller):
            logger.warning(f"Rejected call from non-sequencer {caller}")
            raise UnauthorizedError(caller)
