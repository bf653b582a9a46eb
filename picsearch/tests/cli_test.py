"""
Tests for the command line
"""

import sys
from os.path import abspath, dirname

sys.path.append(dirname(dirname(dirname(abspath(__file__)))))

from picsearch.cli import main
from picsearch.inputfile import read_input

def test_generate_then_run(tmp_path, capsys):
    inp = tmp_path / "input.txt"
    out = tmp_path / "output.txt"
    assert main(['generate', str(inp), '--pictures', '3', '--picture-size', '20',
                 '--objects', '4', '--object-size', '3', '--threshold', '0.01', '--seed', '2']) == 0
    si = read_input(inp)
    assert len(si.pictures) == 3
    assert len(si.objects) == 4
    assert si.threshold == 0.01

    assert main(['run', '--input', str(inp), '--output', str(out), '--workers', '2']) == 0
    lines = out.read_text().splitlines()
    assert len(lines) == 3
    # every picture has all four objects planted
    assert all("found Objects:" in line for line in lines)
    assert "Time taken:" in capsys.readouterr().out

def test_bad_config(tmp_path, capsys):
    path = tmp_path / "config.yml"
    path.write_text("workers: -3\n")
    assert main(['run', '--config', str(path)]) == 2
    assert "configuration error" in capsys.readouterr().err
