"""Durable storage of the session token, the only client state that survives a restart."""

import json
import os

from shared.helper.HelperConfig import HelperConfig

TOKEN_KEY = "token"


class TokenStore:
    """Keeps the token under a single well-known key in a small JSON file."""

    def __init__(self, helper_config: HelperConfig, path: str | None = None) -> None:
        self.logging = helper_config.get_logger()
        self._path = path or helper_config.get_path_val("SESSION_TOKEN_FILE", os.path.join("data", "session.json"))

    def load(self) -> str | None:
        """
        Returns the persisted token, or None if none is stored or the file is unreadable.
        """
        if not os.path.exists(self._path):
            return None
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self.logging.warning("Could not read session file %s: %s. Ignoring it.", self._path, e)
            return None
        token = data.get(TOKEN_KEY) if isinstance(data, dict) else None
        return token or None

    def save(self, token: str) -> None:
        directory = os.path.dirname(self._path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)
        with open(self._path, "w", encoding="utf-8") as f:
            json.dump({TOKEN_KEY: token}, f)

    def clear(self) -> None:
        if os.path.exists(self._path):
            os.remove(self._path)
