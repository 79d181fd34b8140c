"""Shared utilities for localflag."""

import contextlib
import os
from pathlib import Path


def atomic_write_text(filepath: Path, text: str, encoding: str = "utf-8") -> None:
    """Write text to a file atomically to prevent corruption on crash.

    Newlines are written exactly as they appear in *text* (no translation),
    so ``\\r\\n`` files stay ``\\r\\n``.
    """
    tmp_path = filepath.with_suffix(filepath.suffix + ".tmp")
    try:
        tmp_path.write_text(text, encoding=encoding, newline="")
        os.replace(tmp_path, filepath)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp_path.unlink()
        raise


def read_text_exact(filepath: Path, encoding: str = "utf-8") -> str:
    """Read *filepath* without newline translation."""
    with open(filepath, encoding=encoding, newline="") as f:
        return f.read()
