from __future__ import annotations

import os
from typing import Any, Dict, Optional

from kivy.logger import Logger
from kivy.storage.jsonstore import JsonStore

_AUTH_KEY = "auth"


def _store_path() -> str:
    """
    Return a writable path for persistent storage.

    - Running app: use App.user_data_dir
    - Headless/dev: store alongside this module
    """
    from kivy.app import App

    app = App.get_running_app()
    if app and getattr(app, "user_data_dir", None):
        return os.path.join(app.user_data_dir, "publisher_session.json")
    return os.path.join(os.path.dirname(__file__), "publisher_session.json")


class SessionManager:
    """
    The single owner of the signed-in session.

    login() sets it, logout() clears it, hydrate() is called once on app start.
    The token is persisted only when the user asked to be remembered.
    """

    def __init__(self, store: Optional[JsonStore] = None) -> None:
        self._store = store
        self.token: str = ""
        self.user: Dict[str, Any] = {}
        self.remember = False

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def _get_store(self) -> JsonStore:
        if self._store is None:
            path = _store_path()
            os.makedirs(os.path.dirname(path), exist_ok=True)
            self._store = JsonStore(path)
        return self._store

    def hydrate(self) -> bool:
        """Load a remembered session. Returns True when a token was restored."""
        try:
            store = self._get_store()
            if not store.exists(_AUTH_KEY):
                return False
            data = store.get(_AUTH_KEY) or {}
        except (OSError, ValueError):
            # Unreadable store: start signed out.
            Logger.warning("SessionManager: session store unreadable, ignoring")
            return False

        if not data.get("remember_me"):
            return False
        self.remember = True
        self.token = str(data.get("token") or "")
        self.user = dict(data.get("user") or {})
        return bool(self.token)

    def login(self, *, token: str, user: Optional[Dict[str, Any]] = None, remember: bool = False) -> None:
        self.token = token or ""
        self.user = dict(user or {})
        self.remember = bool(remember)
        self._persist()

    def set_user(self, user: Optional[Dict[str, Any]]) -> None:
        self.user = dict(user or {})
        self._persist()

    def logout(self) -> None:
        self.token = ""
        self.user = {}
        self.remember = False
        try:
            store = self._get_store()
            if store.exists(_AUTH_KEY):
                store.delete(_AUTH_KEY)
        except OSError:
            Logger.warning("SessionManager: failed to clear session store")

    def _persist(self) -> None:
        try:
            store = self._get_store()
            if self.remember and self.token:
                store.put(_AUTH_KEY, token=self.token, user=self.user, remember_me=True)
            elif store.exists(_AUTH_KEY):
                # Opted out: never leave a token on disk.
                store.delete(_AUTH_KEY)
        except OSError:
            # Persistence failures should not block login.
            Logger.warning("SessionManager: failed to persist session")
