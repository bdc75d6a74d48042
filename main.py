#!/usr/bin/env python3

import argparse
import json
import sys

import uvicorn

from config.config import (
    SEQUENCER_ADDRESS, JOURNAL_PATH, JOURNAL_ENABLED, VERIFIER_BACKEND,
    LOG_LEVEL, LOG_FILE, LOG_STRUCTURED, API_HOST, API_PORT,
)
from log_utils import get_logger, setup_logging

logger = get_logger(__name__)


def serve(args):
    from database.journal import EventJournal
    from errors.exceptions import DatabaseError
    from proofs.verifier import create_verifier
    from rollup.core import RollupCore
    from web.web import app, set_rollup_core

    core = RollupCore(args.sequencer, create_verifier(args.verifier))
    journal = None
    if args.journal:
        journal = EventJournal(args.journal)
        if len(journal):
            journal.close()
            raise DatabaseError(f"Journal {args.journal} already holds events; use a fresh path")
        journal.attach(core.events)
    set_rollup_core(core)

    logger.info(f"Starting rollup API on {args.host}:{args.port}")
    try:
        uvicorn.run(app, host=args.host, port=args.port, log_level="info", access_log=True)
    finally:
        if journal is not None:
            journal.close()
        logger.info("Shutdown completed")


def decode_proof_command(args):
    from proofs.codec import load_proof_file

    proof, public_inputs = load_proof_file(args.file)
    print(json.dumps({
        "proof": proof.to_calldata(),
        "public_inputs": [hex(v) for v in public_inputs],
    }, indent=2))


def replay_command(args):
    from database.journal import EventJournal
    from database.replay import replay_events

    journal = EventJournal(args.path)
    try:
        ledger = replay_events(journal.events())
    finally:
        journal.close()

    summary = ledger.l2_state().to_dict()
    summary["submission_count"] = ledger.submission_count
    summary["batches"] = {
        str(batch.id): ledger.batch_submissions[batch.id] for batch in ledger.batches
    }
    print(json.dumps(summary, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='ZK Rollup Core')
    sub = parser.add_subparsers(dest='command', required=True)

    p_serve = sub.add_parser('serve', help='Run the HTTP API')
    p_serve.add_argument('--host', type=str, default=API_HOST)
    p_serve.add_argument('--port', type=int, default=API_PORT)
    p_serve.add_argument('--sequencer', type=str, default=SEQUENCER_ADDRESS,
                         help='Sequencer identity allowed to submit batches')
    p_serve.add_argument('--verifier', type=str, default=VERIFIER_BACKEND,
                         help='Verifier backend (default: %(default)s)')
    p_serve.add_argument('--journal', type=str, default=JOURNAL_PATH if JOURNAL_ENABLED else None,
                         help='RocksDB path for the event journal')
    p_serve.set_defaults(func=serve)

    p_decode = sub.add_parser('decode-proof', help='Decode a prover output or raw proof file')
    p_decode.add_argument('file', type=str)
    p_decode.set_defaults(func=decode_proof_command)

    p_replay = sub.add_parser('replay', help='Rebuild L2 state from an event journal')
    p_replay.add_argument('path', type=str)
    p_replay.set_defaults(func=replay_command)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(
        level=LOG_LEVEL,
        log_file=LOG_FILE,
        enable_console=True,
        enable_structured=LOG_STRUCTURED
    )
    try:
        args.func(args)
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down")
    except Exception as e:
        logger.critical(f"Fatal error: {str(e)}")
        sys.exit(1)


if __name__ == "__main__":
    main()
