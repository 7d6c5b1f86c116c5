"""Decoding of fetched file content and encoding of content to write."""

import json
import logging
from typing import Any, Callable, Iterable, Optional, Union

import yaml
from pydantic_core import to_jsonable_python

from .errors import MalformedContent

logger = logging.getLogger(__name__)


PARSERS = {
    ".json": json.loads,
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
}


def _parser_for(name: str) -> Optional[Callable[[str], Any]]:
    lowered = name.lower()
    for ext, parser in PARSERS.items():
        if lowered.endswith(ext):
            return parser
    return None


def _parse_structured(name: str, text: str, parser: Callable[[str], Any]) -> Any:
    """Parse text and check the result serializes the way snapshots do.

    Raises:
        MalformedContent: If parsing fails for any reason (including
            nesting too deep to parse) or yields a value the snapshot
            payload cannot carry, such as YAML binary data that is not UTF-8
    """
    try:
        value = parser(text)
        json.dumps(to_jsonable_python(value))
    except Exception as e:
        raise MalformedContent(name, f"{type(e).__name__}: {e}") from e
    return value


def is_structured(name: str, structured_extensions: Iterable[str]) -> bool:
    """Check whether a file name signals a structured format."""
    lowered = name.lower()
    return any(lowered.endswith(ext.lower()) for ext in structured_extensions)


def decode_content(name: str, raw: Union[bytes, str], structured_extensions: Iterable[str]) -> Any:
    """Decode raw file content into text or a parsed structured value.

    Structured parse failures degrade to the raw text; they never escape.
    Extensions listed as structured but without a parser stay text.

    Args:
        name: File name (extension selects the parser)
        raw: Bytes or text returned by the remote store
        structured_extensions: Extensions that should be parsed

    Returns:
        Parsed value for structured files, otherwise the decoded text
    """
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    parser = _parser_for(name)
    if parser is None or not is_structured(name, structured_extensions):
        return text
    try:
        return _parse_structured(name, text, parser)
    except MalformedContent as e:
        logger.debug("Keeping raw text: %s", e)
        return text


def encode_content(value: Any) -> bytes:
    """Encode content for writing to the remote store.

    Text and bytes pass through; any other JSON value (a client sending a
    parsed structured document back) is written as indented JSON text.
    """
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    return (json.dumps(value, indent=2, ensure_ascii=False) + "\n").encode("utf-8")
