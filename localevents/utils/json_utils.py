"""JSON helpers for the settings file and request logging."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, TypeVar, cast

from yarl import URL

from localevents.config import JsonType


_JSON_T = TypeVar("_JSON_T", bound=Mapping[Any, Any])
_UNKNOWN = object()


# Types stored as {"__type": name, "data": ...}, with the callable restoring them
SERIALIZE_ENV: dict[str, Callable[[Any], object]] = {
    "URL": URL,
}


def json_minify(data: JsonType | list[JsonType]) -> str:
    """Compact JSON string, for logging request payloads on a single line."""
    return json.dumps(data, separators=(",", ":"))


def _serialize(obj: Any) -> JsonType:
    if isinstance(obj, URL):
        return {"__type": "URL", "data": str(obj)}
    raise TypeError(f"{type(obj).__name__} isn't JSON serializable")


def _deserialize(obj: JsonType) -> Any:
    if "__type" not in obj:
        return obj
    restore = SERIALIZE_ENV.get(obj["__type"])
    if restore is None:
        # written by a newer version, the default value takes its place
        return _UNKNOWN
    return restore(obj["data"])


def _compatible(value: Any, template_value: Any) -> bool:
    if type(value) is type(template_value):
        return True
    # a hand-edited file can hold "51" where "51.0" is expected
    return (
        isinstance(template_value, float)
        and isinstance(value, int)
        and not isinstance(value, bool)
    )


def merge_json(obj: JsonType, template: Mapping[Any, Any]) -> None:
    """
    Bring a loaded settings object in line with its template, in place.

    Unknown keys are dropped, values of the wrong type are replaced by the template's,
    ints are widened where a float is expected, and missing keys are filled in.
    """
    for key, value in list(obj.items()):
        if key not in template:
            del obj[key]
        elif not _compatible(value, template[key]):
            obj[key] = template[key]
        elif isinstance(template[key], float):
            obj[key] = float(value)
    for key, value in template.items():
        obj.setdefault(key, value)


def json_load(path: Path, defaults: _JSON_T, *, merge: bool = True) -> _JSON_T:
    """
    Load a JSON file, falling back to the defaults when it doesn't exist.

    Args:
        path: Path to JSON file
        defaults: Values used when the file doesn't exist, and the merge template
        merge: If True, repair the loaded data against the defaults
    """
    if not path.exists():
        return cast(_JSON_T, dict(defaults))
    with open(path, encoding="utf8") as file:
        loaded: JsonType = json.load(file, object_hook=_deserialize)
    loaded = {key: value for key, value in loaded.items() if value is not _UNKNOWN}
    if merge:
        merge_json(loaded, defaults)
    return cast(_JSON_T, loaded)


def json_save(path: Path, contents: Mapping[Any, Any], *, sort: bool = False) -> None:
    with open(path, "w", encoding="utf8") as file:
        json.dump(contents, file, default=_serialize, sort_keys=sort, indent=4)
