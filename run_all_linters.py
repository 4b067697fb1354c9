#!/usr/bin/env python3
"""Run every formatter check, linter and the test suite in one go.

Steps, in order:
1. Black format check
2. isort import order check
3. Ruff static checks
4. Pylint static analysis
5. pytest

All output is collected and summarized at the end.
"""

from pathlib import Path
import subprocess
import sys

PACKAGES = ["app", "core", "infrastructure", "main.py"]

COMMANDS = [
    (["python", "-m", "black", ".", "--check"], "Black format check"),
    (["python", "-m", "isort", ".", "--check-only"], "isort import check"),
    (["python", "-m", "ruff", "check", "."], "Ruff"),
    (["python", "-m", "pylint", *PACKAGES], "Pylint"),
    (["python", "-m", "pytest", "-q"], "pytest"),
]


def run_command(cmd: list[str], description: str) -> tuple[bool, str]:
    """Run `cmd` from the repository root; return (success, combined output)."""
    print(f"\n{'='*60}")
    print(f"Running: {description}")
    print(f"Command: {' '.join(cmd)}")
    print("=" * 60)

    try:
        result = subprocess.run(
            cmd, capture_output=True, text=True, check=False, cwd=Path(__file__).parent
        )
    except OSError as e:
        print(f"FAILED to start: {e}")
        return False, str(e)

    success = result.returncode == 0
    output = result.stdout + result.stderr
    print("OK" if success else "FAILED")
    print(output if output.strip() else "(no output)")
    return success, output


def main() -> int:
    results = [(description, *run_command(cmd, description)) for cmd, description in COMMANDS]

    print(f"\n{'='*60}")
    print("Summary")
    print("=" * 60)
    for description, success, _ in results:
        print(f"{description}: {'passed' if success else 'FAILED'}")

    failed = [(d, out) for d, ok, out in results if not ok]
    for description, output in failed:
        if output.strip():
            print(f"\n--- {description} ---")
            print(output)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
