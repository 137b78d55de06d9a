"""Nox sessions orchestrating logmask unit suites."""

from __future__ import annotations

from pathlib import Path

import nox


PYTHON_VERSIONS = ["3.11", "3.12"]
PROJECT_ROOT = Path(__file__).parent

nox.options.sessions = ["tests_unit"]


def _install_test_requirements(session: nox.Session) -> None:
    """Install the package and core testing toolchain inside the session environment."""

    session.install("-e", ".[test]")


@nox.session(python=PYTHON_VERSIONS, reuse_venv=True)
def tests_unit(session: nox.Session) -> None:
    """Execute the unit suites under coverage."""

    _install_test_requirements(session)

    targets = session.posargs or ["tests/unit"]

    session.log("Running unit suites: %s", " ".join(targets))
    session.run("coverage", "run", "--source", "logmask", "-m", "pytest", *targets)
    session.run("coverage", "report", "-m")
