"""Top-level package for Exam Atlas.

Provides subpackages:
- exam_atlas.staging – bulk question/mark-scheme pairing and the staging grid
- exam_atlas.storage – key-value store and the question/resource libraries
- exam_atlas.services – Gemini classification and marking adapters
- exam_atlas.practice – past-paper and topic practice sessions
- exam_atlas.studio – instructor workflows tying the above together
"""

def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        try:
            content = pyproject.read_text()
            for line in content.splitlines():
                if line.strip().startswith("version"):
                    # Parse: version = "0.3.0"
                    return line.split("=")[1].strip().strip('"').strip("'")
        except OSError:
            pass

    try:
        from importlib.metadata import version as pkg_version
        return pkg_version("exam-atlas")
    except Exception:
        return "0.0.0"

__version__ = _get_version()
__all__: list[str] = ["__version__"]
