"""Session key namespace.

Maps opaque session identifiers onto fully-qualified backend keys and back.

Classes
-------
- KeyNamespace  — prefix-based key derivation and its inverse
"""
from __future__ import annotations

DEFAULT_KEY_PREFIX: str = "/sessions/"


class KeyNamespace:
    """Derive backend keys by prefixing session identifiers.

    No escaping or normalisation is applied: callers must not use session
    identifiers containing the backend's path separator.

    Parameters
    ----------
    prefix:
        Root directory under which every session lives.  Must end in
        ``"/"`` so that session keys are children of it.  Defaults to
        ``"/sessions/"``.
    """

    def __init__(self, prefix: str = DEFAULT_KEY_PREFIX) -> None:
        if not isinstance(prefix, str) or not prefix:
            raise ValueError("Key prefix must be a non-empty string.")
        if not prefix.endswith("/"):
            raise ValueError(f"Key prefix {prefix!r} must end with '/'.")
        self._prefix = prefix

    @property
    def prefix(self) -> str:
        return self._prefix

    def key_for(self, session_id: str) -> str:
        """Return the backend key for ``session_id``."""
        return f"{self._prefix}{session_id}"

    def owns(self, key: str) -> bool:
        """Return True if ``key`` lies under this namespace's prefix."""
        return self._strip(key) is not None

    def session_id_for(self, key: str) -> str:
        """Return the session identifier encoded in ``key``.

        Keys reported by a hierarchical backend are absolute (``/a/b``)
        even when the prefix was configured without a leading slash, so
        both spellings are accepted.

        Raises
        ------
        ValueError
            If ``key`` is not under the prefix.
        """
        session_id = self._strip(key)
        if session_id is None:
            raise ValueError(f"Key {key!r} is outside namespace {self._prefix!r}.")
        return session_id

    def _strip(self, key: str) -> str | None:
        if key.startswith(self._prefix):
            return key[len(self._prefix):]
        bare_prefix = self._prefix.lstrip("/")
        bare_key = key.lstrip("/")
        if bare_prefix and bare_key.startswith(bare_prefix):
            return bare_key[len(bare_prefix):]
        return None

    def __repr__(self) -> str:
        return f"KeyNamespace(prefix={self._prefix!r})"
