"""Session record serialization.

Records are arbitrary mappings of JSON-compatible values.  They are turned
into text before being handed to a backend and parsed back after every read.
The format is chosen once per serializer; JSON is the default, YAML is
available for deployments that prefer human-editable values.

Classes
-------
- RecordSerializer  — serialize/deserialize session records to JSON or YAML
"""
from __future__ import annotations

import json
from typing import Any, Literal

import yaml

from etcd_session_store.errors import CorruptRecordError, ValidationError

SerializationFormat = Literal["json", "yaml"]

_SUPPORTED_FORMATS: frozenset[str] = frozenset({"json", "yaml"})


class RecordSerializer:
    """Serialize and deserialize session records.

    JSON output is deterministic: keys are sorted, separators are compact
    and non-finite floats are rejected.

    Parameters
    ----------
    format:
        Either ``"json"`` (default) or ``"yaml"``.
    """

    def __init__(self, format: SerializationFormat = "json") -> None:
        if format not in _SUPPORTED_FORMATS:
            supported = ", ".join(sorted(_SUPPORTED_FORMATS))
            raise ValueError(
                f"Unsupported serialization format {format!r}. "
                f"Supported formats: {supported}"
            )
        self.format: SerializationFormat = format

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def dumps(self, record: dict[str, Any]) -> str:
        """Serialise ``record`` to a string.

        Parameters
        ----------
        record:
            The session record to serialise.

        Returns
        -------
        str
            Text form of the record.

        Raises
        ------
        ValidationError
            If ``record`` is not a mapping, has a non-string key at any
            depth, or holds values the format cannot represent.
        """
        if not isinstance(record, dict):
            raise ValidationError(
                f"Session record must be a mapping, got {type(record).__name__}."
            )
        bad_key = _find_non_string_key(record)
        if bad_key is not None:
            raise ValidationError(
                f"Session record keys must be strings, got {bad_key!r}."
            )
        try:
            if self.format == "yaml":
                return yaml.safe_dump(
                    record, default_flow_style=False, allow_unicode=True, sort_keys=True
                )
            return json.dumps(
                record, sort_keys=True, separators=(",", ":"), allow_nan=False
            )
        except (TypeError, ValueError, yaml.YAMLError) as exc:
            raise ValidationError(f"Session record is not serializable: {exc}") from exc

    def loads(self, raw: str) -> dict[str, Any]:
        """Deserialize a record from ``raw``.

        Raises
        ------
        CorruptRecordError
            If ``raw`` does not parse, or parses to something other than a
            mapping.
        """
        if not isinstance(raw, str):
            raise CorruptRecordError(f"expected text, got {type(raw).__name__}")
        try:
            if self.format == "yaml":
                data = yaml.safe_load(raw)
            else:
                data = json.loads(raw)
        except (ValueError, yaml.YAMLError) as exc:
            raise CorruptRecordError(f"invalid {self.format}: {exc}") from exc

        if not isinstance(data, dict):
            raise CorruptRecordError(
                f"expected a mapping, got {type(data).__name__}"
            )
        return data

    def __repr__(self) -> str:
        return f"RecordSerializer(format={self.format!r})"


def _find_non_string_key(value: Any) -> Any:
    """Return the first non-string mapping key nested in ``value``, else None."""
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                return key
            found = _find_non_string_key(item)
            if found is not None:
                return found
    elif isinstance(value, (list, tuple)):
        for item in value:
            found = _find_non_string_key(item)
            if found is not None:
                return found
    return None
