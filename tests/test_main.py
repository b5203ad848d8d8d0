import os

from main import main, parse_args


def test_parse_args_defaults():
    args = parse_args([])
    assert args.pop > 0
    assert args.no_mutation is False


def test_cli_runs_and_saves_outputs(tmp_path):
    out = str(tmp_path / "run")
    sim = main(["--gens", "1", "--pop", "5", "--dt", "0.2",
                "--seed", "3", "--outdir", out])

    assert sim.generation == 2
    assert os.path.isfile(os.path.join(out, "evolution_log.csv"))
    assert os.path.isfile(os.path.join(out, "charts", "evolution_final.png"))
    assert os.path.isfile(os.path.join(out, "snapshots", "gen_000001.png"))
