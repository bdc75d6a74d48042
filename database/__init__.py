from database.journal import EventJournal
from database.replay import ReplayedLedger, replay_events
