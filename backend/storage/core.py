"""Storage initialization and path helpers."""

from pathlib import Path

_data_dir: Path | None = None


def init_storage(data_dir: Path) -> None:
    global _data_dir
    from . import characters as _char_mod

    _data_dir = data_dir
    _data_dir.mkdir(parents=True, exist_ok=True)
    characters_dir().mkdir(exist_ok=True)
    _char_mod._locks.clear()


def data_dir() -> Path:
    assert _data_dir is not None, "Call init_storage() before using storage"
    return _data_dir


def characters_dir() -> Path:
    return data_dir() / "characters"
