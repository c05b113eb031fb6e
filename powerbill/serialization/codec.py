"""
Document Codec

Converts AppData to and from the JSON document used both for routine
persistence and for user backups.

Document shape:

    {
      "version": 1,
      "profiles": [
        {"id", "name", "type": "home" | "apartment",
         "items": [
           {"id", "ukscNumber", "label",
            "tenant": {"name", "address", "phone"},
            "lastBill"?: {"amount", "units", "date", "dueDate",
                          "status": "Paid" | "Unpaid", "fetchedAt"?}}
         ]}
      ],
      "apiKey": "..."
    }

Decoding ignores unknown top-level fields (including "version") and
defaults a missing "apiKey" to the empty string. A missing or non-list
"profiles" field is a DecodeError, as is any nested shape the models
reject.
"""

import json
from typing import Any, Union

from pydantic import ValidationError

from powerbill.models.meter import AppData


DOCUMENT_VERSION = 1


class DecodeError(Exception):
    """The document is not valid JSON or does not describe AppData."""
    pass


def encode(data: AppData) -> dict[str, Any]:
    """Convert AppData to a JSON-compatible document."""
    body = data.model_dump(mode="json", by_alias=True, exclude_none=True)
    return {"version": DOCUMENT_VERSION, **body}


def decode(document: Any) -> AppData:
    """
    Rebuild AppData from a parsed document.

    Raises:
        DecodeError: If the document is not an object with a "profiles" list,
                     or any nested record is malformed
    """
    if not isinstance(document, dict):
        raise DecodeError(
            f"Document must be a JSON object, got {type(document).__name__}"
        )
    if "profiles" not in document:
        raise DecodeError("Document has no 'profiles' field")
    if not isinstance(document["profiles"], list):
        raise DecodeError("'profiles' must be a list")

    try:
        return AppData.model_validate(document)
    except ValidationError as e:
        raise DecodeError(f"Invalid document: {e.error_count()} problems: {e}") from e


def dumps(data: AppData) -> bytes:
    """Encode AppData as UTF-8 JSON bytes."""
    return json.dumps(encode(data), ensure_ascii=False, indent=2).encode("utf-8")


def loads(raw: Union[bytes, str]) -> AppData:
    """
    Parse JSON bytes (or text) and decode them.

    Raises:
        DecodeError: On invalid UTF-8, invalid JSON, or an invalid document
    """
    try:
        text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw
        document = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(f"Not a JSON document: {e}") from e
    return decode(document)
