"""Tests for the command line front end."""

import json

import pytest

from cli import main


def run(capsys, *argv):
    assert main(list(argv)) == 0
    return json.loads(capsys.readouterr().out)


class TestCommandLine:

    def test_status_of_fresh_region(self, capsys) -> None:
        status = run(capsys, "--status")
        assert status["blocks"] == [{"id": None, "start": 0, "size": 1024, "status": "free"}]

    def test_commands_apply_in_order(self, capsys) -> None:
        status = run(
            capsys,
            "--allocate", "300", "--algorithm", "first-fit",
            "--allocate", "1000",
            "--deallocate", "1",
        )
        assert status["blocks"] == [
            {"id": 2, "start": 0, "size": 1000, "status": "allocated"},
            {"id": None, "start": 1000, "size": 24, "status": "free"},
        ]
        assert status["processQueue"] == []

    def test_leading_algorithm_sets_default(self, capsys) -> None:
        status = run(
            capsys,
            "--total", "600",
            "--allocate", "100",
            "--allocate", "50",
            "--deallocate", "1",
            "--algorithm", "worst-fit",
            "--allocate", "20",
        )
        # worst fit skips the 100KB hole at 0 for the 450KB tail
        assert status["blocks"][2] == {"id": 3, "start": 150, "size": 20, "status": "allocated"}

    def test_fixed_partitioning_queue(self, capsys) -> None:
        status = run(capsys, "--allocate", "300", "--algorithm", "fixed-partitioning")
        assert status["processQueue"] == [{"id": 1, "size": 300}]

    def test_simulate(self, capsys) -> None:
        status = run(capsys, "--simulate", "25", "--seed", "5")
        assert sum(b["size"] for b in status["blocks"]) == 1024

    def test_non_positive_size_rejected(self, capsys) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["--allocate", "0"])
        assert excinfo.value.code == 2
