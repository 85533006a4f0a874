"""How long the user has been away from keyboard and mouse."""

import sys

if sys.platform == "win32":
    from ctypes import Structure, byref, sizeof, windll, wintypes

    class _LastInputInfo(Structure):
        _fields_ = (("cbSize", wintypes.UINT), ("dwTime", wintypes.DWORD))


def get_idle_ms() -> int:
    """Milliseconds since the last input event; always 0 off Windows."""
    if sys.platform != "win32":
        return 0

    info = _LastInputInfo()
    info.cbSize = sizeof(_LastInputInfo)
    try:
        if not windll.user32.GetLastInputInfo(byref(info)):
            return 0
    except OSError:
        return 0
    # GetTickCount は約49日で一周する
    elapsed = (int(windll.kernel32.GetTickCount()) - int(info.dwTime)) & 0xFFFFFFFF
    return elapsed


def is_idle(threshold_ms: int) -> bool:
    """True once input has been idle for at least ``threshold_ms``."""
    return get_idle_ms() >= threshold_ms
