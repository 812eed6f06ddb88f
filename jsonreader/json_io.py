import json
import logging
from pathlib import Path
from typing import Any, Union

_log = logging.getLogger(__name__)

INDENT = 4
COMPACT_SEPARATORS = (",", ":")


def dumps_json(data: Any, indent: bool = True) -> str:
    """
    Encode an already JSON-able Python object as text.
    Compact output has no whitespace at all.
    """
    if indent:
        return json.dumps(data, indent=INDENT, ensure_ascii=False)
    return json.dumps(data, separators=COMPACT_SEPARATORS, ensure_ascii=False)


def save_json(path: Union[str, Path], data: Any, indent: bool = True) -> None:
    """
    Save any serializable Python object as JSON.
    The text is encoded before the file is opened, so a payload that cannot
    be encoded leaves an existing file as it was.
    """
    text = dumps_json(data, indent)

    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    _log.debug(f"Wrote {len(text)} characters to {path}")


def load_json(path: Union[str, Path]) -> Any:
    """
    Load JSON file into a Python object.
    """
    with open(path, "r", encoding="utf-8") as file:
        return json.load(file)
