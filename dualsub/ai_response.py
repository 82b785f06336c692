"""Parses JSON responses from a generative transcription/translation service into raw segment records."""

import json
import logging
import os
import re
from typing import Any, Dict, List

from .exceptions import TranscriptionError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*\n(.*?)\n?```$", re.DOTALL)

REQUIRED_KEYS = ("index", "startTime", "endTime", "originalText", "translatedText")

def parse_ai_response(text: str) -> List[Dict[str, Any]]:
    """
    Extracts the list of raw segment records from a service response.

    The response is expected to be a JSON array of objects with
    ``index``, ``startTime``, ``endTime``, ``originalText`` and
    ``translatedText``. An object wrapping the array under ``subtitles`` or
    ``segments`` is also accepted, as is a Markdown code fence around it.

    Args:
        text: The raw response body.

    Returns:
        The raw records, unvalidated beyond their shape; timestamps are
        checked later by ``timeline.ingest``.

    Raises:
        TranscriptionError: If the response is empty or not a JSON list of objects.
    """
    if text is None or not text.strip():
        raise TranscriptionError("Processing failed: no speech was detected or identified in the audio.")

    body = text.strip()
    fenced = _FENCE_RE.match(body)
    if fenced:
        body = fenced.group(1).strip()

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        logger.error(f"Response is not valid JSON: {e}")
        raise TranscriptionError(f"Response is not valid JSON: {e}") from e

    if isinstance(data, dict):
        for key in ("subtitles", "segments"):
            if isinstance(data.get(key), list):
                data = data[key]
                break
    if not isinstance(data, list):
        raise TranscriptionError(f"Expected a JSON array of segments, got {type(data).__name__}.")

    records = []
    for position, item in enumerate(data, start=1):
        if not isinstance(item, dict):
            raise TranscriptionError(f"Segment {position} is not a JSON object: {item!r}")
        missing = [key for key in REQUIRED_KEYS if key not in item]
        if missing:
            logger.warning(f"Segment {position} is missing {', '.join(missing)}")
        records.append(item)

    logger.info(f"Parsed {len(records)} segments from service response.")
    return records

def load_ai_response(path: str) -> List[Dict[str, Any]]:
    """
    Reads a saved service response from disk.

    Raises:
        FileNotFoundError: If the file does not exist.
        TranscriptionError: If it cannot be read or parsed.
    """
    logger.info(f"Loading segments from: {path}")
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Segments file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            content = f.read()
    except (IOError, UnicodeDecodeError) as e:
        logger.error(f"Error reading segments file {path}: {e}", exc_info=True)
        raise TranscriptionError(f"Could not read segments file {path}: {e}") from e
    return parse_ai_response(content)
