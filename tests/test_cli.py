import argparse
import json

from conftest import SEQUENCER, SAMPLE_PROOF, make_root, make_batch
import main as cli


def test_parser_commands():
    parser = cli.build_parser()
    args = parser.parse_args(["replay", "some.rocksdb"])
    assert args.func is cli.replay_command
    args = parser.parse_args(["serve", "--port", "9000", "--verifier", "reject-all"])
    assert args.port == 9000
    assert args.verifier == "reject-all"


def test_decode_proof_command(tmp_path, raw_proof, capsys):
    path = tmp_path / "proof.json"
    path.write_text(json.dumps({"proof": "0x" + raw_proof.hex(), "publicInputs": ["16"]}))

    cli.decode_proof_command(argparse.Namespace(file=str(path)))

    out = json.loads(capsys.readouterr().out)
    assert out["proof"] == SAMPLE_PROOF.to_calldata()
    assert out["public_inputs"] == ["0x10"]


def test_replay_command(core, journal, capsys):
    journal.attach(core.events)
    hashes, xs, ys = make_batch(2)
    core.submit_batch_with_proof(SEQUENCER, make_root("s"), hashes, xs, ys, SAMPLE_PROOF)
    path = journal.path
    journal.detach(core.events)
    journal.close()

    cli.replay_command(argparse.Namespace(path=path))

    out = json.loads(capsys.readouterr().out)
    assert out["block_number"] == 1
    assert out["submission_count"] == 2
    assert out["batches"] == {"0": [0, 1]}
