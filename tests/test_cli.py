from pathlib import Path

from clickwork import cli
from clickwork.args import parse_main_args
from conftest import WORLDS_DIR


def test_default_args():
    args = parse_main_args([])
    assert args.world == Path("assets/worlds/tankard.yaml")
    assert args.saves == Path("saves")
    assert args.log_level == "WARNING"


def test_log_level_is_case_insensitive():
    assert parse_main_args(["--log-level", "debug"]).log_level == "DEBUG"


def run_cli(monkeypatch, argv, commands):
    inputs = iter(commands)

    def fake_input(prompt):
        try:
            return next(inputs)
        except StopIteration:
            raise EOFError

    monkeypatch.setattr("sys.argv", ["clickwork", *argv])
    monkeypatch.setattr("builtins.input", fake_input)
    return cli.main()


def test_main_plays_commands(monkeypatch, capsys, tmp_path):
    world = str(WORLDS_DIR / "tankard.yaml")
    code = run_cli(monkeypatch, ["--world", world, "--saves", str(tmp_path)], ["look at well", "quit"])
    out = capsys.readouterr().out
    assert code == 0
    assert "The Enchanted Tankard" in out
    assert "An old stone well." in out


def test_main_reports_load_failure(monkeypatch, capsys, tmp_path):
    code = run_cli(monkeypatch, ["--world", str(tmp_path / "missing.yaml")], [])
    assert code == 1
    assert "WORLD LOAD FAILED" in capsys.readouterr().out
