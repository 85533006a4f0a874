"""Persistent device identifier."""

import json
import uuid
from pathlib import Path

from focusai.logger import logger
from focusai.model.models import DeviceIdentity

DEVICE_KEY = "focusai_device"


class DeviceIdentityStore:
    """Creates the device id once and returns the persisted value afterwards.

    The id lives under :data:`DEVICE_KEY` in a small JSON state file; other
    keys in that file are preserved. When the file cannot be read or
    written the id is kept for the current process only.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._cached: DeviceIdentity | None = None

    def _read_state(self) -> dict[str, object]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            state = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring corrupt state file %s", self.path)
            return {}
        return state if isinstance(state, dict) else {}

    def _load(self) -> DeviceIdentity | None:
        value = self._read_state().get(DEVICE_KEY)
        if not isinstance(value, str):
            return None
        try:
            return DeviceIdentity(id=uuid.UUID(value))
        except ValueError:
            logger.warning("Ignoring malformed device id %r", value)
            return None

    def _save(self, identity: DeviceIdentity) -> None:
        state = self._read_state()
        state[DEVICE_KEY] = str(identity.id)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(state, indent=2), encoding="utf-8")

    def get_or_create_device_id(self) -> DeviceIdentity:
        """Return the persisted device id, creating it on first use."""
        if self._cached is not None:
            return self._cached

        try:
            identity = self._load()
            if identity is None:
                identity = DeviceIdentity(id=uuid.uuid4())
                self._save(identity)
                logger.info("Created device id %s", identity.id)
        except OSError as e:
            # 永続化できない場合はこのプロセス限りのIDで続行
            identity = DeviceIdentity(id=uuid.uuid4())
            logger.warning("Device id not persisted (%s); using %s", e, identity.id)

        self._cached = identity
        return identity
