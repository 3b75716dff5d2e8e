"""Integration tests for CLI functionality."""

import json
import os
import subprocess
import sys


def _run(*args, stdin=None, timeout=30):
    return subprocess.run(
        [sys.executable, "-m", "symcalc_pkg.cli", *args],
        input=stdin,
        capture_output=True,
        text=True,
        encoding="utf-8",
        timeout=timeout,
        env={**os.environ, "PYTHONIOENCODING": "utf-8"},
    )


def test_cli_version():
    """Test --version flag."""
    result = _run("--version")
    assert result.returncode == 0
    assert result.stdout.strip() != ""


def test_cli_health_check():
    """Test --health-check command."""
    result = _run("--health-check", timeout=60)
    assert result.returncode in [0, 1]
    assert "health check" in result.stdout.lower()
    assert "Results:" in result.stdout


def test_cli_eval_human():
    """Test CLI evaluation with human output."""
    result = _run("--eval", "2x + 3x")
    assert result.returncode == 0
    assert result.stdout.strip() == "5x"


def test_cli_eval_json():
    """Test CLI evaluation with JSON output."""
    result = _run("--eval", "solve(2x+3=7)", "--format", "json")
    assert result.returncode == 0
    data = json.loads(result.stdout.strip())
    assert data == {"ok": True, "output": "x = 2", "route": "solve"}


def test_cli_eval_error_exit_code():
    """An input that sets the error flag exits with status 1."""
    result = _run("-e", "2 $ 3")
    assert result.returncode == 1
    assert result.stdout.strip() == "Error: Unknown character: $"


def test_cli_eval_json_error():
    """Errors in JSON mode carry the error code."""
    result = _run("-e", "", "--format", "json")
    assert result.returncode == 1
    data = json.loads(result.stdout.strip())
    assert data["ok"] is False
    assert data["error_code"] == "EMPTY_INPUT"


def test_cli_precision_override():
    """Test -p/--precision."""
    result = _run("-p", "6", "-e", "solve(x^2-2=0)")
    assert result.returncode == 0
    assert result.stdout.strip() == "x₁ = 1.41421, x₂ = -1.41421"


def test_cli_verify():
    """Test --verify cross-checks derivatives."""
    result = _run("--verify", "-e", "d/dx(x^3)")
    assert result.returncode == 0
    assert "3x^2" in result.stdout
    assert "[verified with SymPy]" in result.stdout


def test_cli_repl_session():
    """Definitions persist across REPL lines."""
    session = "let f(x) = x^2+1\nf(3)\nhelp\nclear\nf(3)\nquit\n"
    result = _run(stdin=session)
    assert result.returncode == 0
    lines = result.stdout
    assert "Stored function: f(x)" in lines
    assert "10" in lines
    assert "Cleared stored definitions." in lines
    assert "Unknown variable or function" in lines
    assert "Goodbye." in lines


def test_cli_repl_eof():
    """End of input leaves the REPL cleanly."""
    result = _run(stdin="1+1\n")
    assert result.returncode == 0
    assert "2" in result.stdout
    assert "Goodbye." in result.stdout
