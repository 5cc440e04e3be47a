"""bluefin-releases: Flatpak, Homebrew and Bluefin OS metadata with source repository changelogs."""


def _get_version() -> str:
    """Installed distribution version, else the version in a source checkout's pyproject.toml."""
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("bluefin-releases")
    except PackageNotFoundError:
        pass

    from pathlib import Path

    import tomllib

    pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
    try:
        with open(pyproject_path, "rb") as f:
            return tomllib.load(f).get("project", {}).get("version", "unknown")
    except (OSError, tomllib.TOMLDecodeError):
        return "unknown"


__version__ = _get_version()
