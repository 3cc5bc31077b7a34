from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping


_ALLOWED_STRUCTURE: Dict[str, Any] = {
    "backup_root": None,
    "make": {
        "executable": None,
        "timeout_s": None,
        "targets": {
            "clean",
            "config",
            "data_transfer",
            "recipe",
            "watch",
            "index_start",
            "index_stop",
            "backup_dir",
            "backup",
        },
    },
    "index_store": {
        "container",
        "url",
        "index",
        "status_timeout_s",
        "stop_for_backup",
    },
    "archives": {
        "pattern",
        "sidecar_suffix",
        "keep_last",
    },
    "stats": {
        "log_pattern",
        "min_digits",
        "completion_marker",
        "end_marker",
        "query_doc_count",
    },
    "notify": {
        "webhook_url",
        "timeout_s",
    },
    "working_dir": None,
    "version": None,
}


@dataclass(slots=True)
class SettingsValidator:
    schema: Mapping[str, Any]

    def unknown_keys(self, payload: Mapping[str, Any]) -> Iterable[str]:
        return sorted(self._iter_unknown(payload, self.schema, path=""))

    def _iter_unknown(self, payload: Mapping[str, Any], schema: Mapping[str, Any], *, path: str) -> Iterable[str]:
        for key, value in payload.items():
            if key not in schema:
                yield f"{path}{key}"
                continue
            rule = schema[key]
            if rule is None:
                continue
            if rule == "*":
                continue
            if isinstance(rule, set):
                if not isinstance(value, Mapping):
                    continue
                for sub in value.keys():
                    if sub not in rule:
                        yield f"{path}{key}.{sub}"
                continue
            if isinstance(rule, Mapping) and isinstance(value, Mapping):
                next_path = f"{path}{key}."
                yield from self._iter_unknown(value, rule, path=next_path)


SETTINGS_VALIDATOR = SettingsValidator(_ALLOWED_STRUCTURE)

__all__ = ["SETTINGS_VALIDATOR", "SettingsValidator"]
