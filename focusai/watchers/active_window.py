"""Foreground window lookup (Windows only; other platforms report nothing)."""

import sys
from typing import Any, TypedDict, cast

import psutil

if sys.platform == "win32":
    import pywintypes  # pyright: ignore[reportMissingImports]
    import win32gui  # pyright: ignore[reportMissingImports]
    import win32process  # pyright: ignore[reportMissingImports]
else:  # pragma: no cover
    pywintypes = cast("Any", None)
    win32gui = cast("Any", None)
    win32process = cast("Any", None)


class WindowInfo(TypedDict):
    app: str | None
    title: str | None


def get_active_window() -> WindowInfo:
    """Return the foreground process name and window title."""
    if sys.platform != "win32":
        return {"app": None, "title": None}

    hwnd = win32gui.GetForegroundWindow()
    if not hwnd:
        return {"app": None, "title": None}

    try:
        title = win32gui.GetWindowText(hwnd)
        _, pid = win32process.GetWindowThreadProcessId(hwnd)
    except pywintypes.error:
        return {"app": None, "title": None}

    try:
        process_name = psutil.Process(pid).name()
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        # タイトルだけでも判定には使える
        return {"app": None, "title": title}
    return {"app": process_name, "title": title}
