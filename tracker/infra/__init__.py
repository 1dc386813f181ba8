# tracker/infra/__init__.py
"""
Инфраструктурный слой: работа с файлами в DATA_DIR.
"""

from tracker.infra.files import (
    ensure_file,
    read_json,
    replace_file,
    write_json,
)

__all__ = [
    "ensure_file",
    "read_json",
    "replace_file",
    "write_json",
]
