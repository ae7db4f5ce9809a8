"""
Console script entry point configuration.

The package declares a ``propsloader`` console script pointing at
``propsloader_cli.cli:main``.
"""

import sys
from pathlib import Path

from typer.testing import CliRunner

if sys.version_info >= (3, 11):
    import tomllib as tomli
else:
    import tomli


def test_console_script_entry_point_exists():
    pyproject_path = Path(__file__).parent.parent / "pyproject.toml"

    with open(pyproject_path, "rb") as f:
        config = tomli.load(f)

    assert "project" in config, "pyproject.toml missing [project] section"
    assert "scripts" in config["project"], "pyproject.toml missing [project.scripts] section"

    scripts = config["project"]["scripts"]
    assert scripts.get("propsloader") == "propsloader_cli.cli:main"


def test_entry_point_function_is_callable():
    from propsloader_cli.cli import main

    assert callable(main), "Entry point function 'main' is not callable"


def test_version_option():
    from propsloader_cli.cli import __version__, app

    result = CliRunner().invoke(app, ["--version"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == f"propsloader {__version__}"
