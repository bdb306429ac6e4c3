from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from bondgen.cli.__main__ import EXIT_FATAL, EXIT_GENERATION_FAILURE, EXIT_SUCCESS
from bondgen.cli.__main__ import main as cli_main

"""Exit code contract: 0 success, 1 fatal (config / input / output), 2 generation failure."""


def test_exit_code_values():
    assert (EXIT_SUCCESS, EXIT_FATAL, EXIT_GENERATION_FAILURE) == (0, 1, 2)


def test_exit_code_fatal_startup(temp_workdir: Path, capsys):
    # config/generate.yml 無し → exit 1
    assert cli_main([]) == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_invalid_config(write_config: Path, capsys):
    write_config.write_text(write_config.read_text(encoding="utf-8") + "database: x\n", encoding="utf-8")
    assert cli_main([]) == 1


def test_exit_code_success(write_config, job_inputs, capsys):
    assert cli_main([]) == 0


def test_exit_code_generation_failure(write_config, job_inputs, capsys):
    (job_inputs / "cusip_schedule.xlsx").write_bytes(b"\x00\x01")
    assert cli_main([]) == 2


def test_exit_code_unexpected_error(write_config, job_inputs, capsys):
    # 想定外の例外も INTERNAL_ERROR として 2 で終わる
    with patch("bondgen.services.orchestrator.assemble_archive", side_effect=RuntimeError("boom")):
        code = cli_main([])
    assert code == 2
    assert "ERROR generation failed: INTERNAL_ERROR" in capsys.readouterr().out
