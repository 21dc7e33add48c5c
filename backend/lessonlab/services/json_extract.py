"""Pull a JSON object out of free-form model output."""

import json
from typing import TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from lessonlab.errors import ContentParseError

ModelT = TypeVar("ModelT", bound=BaseModel)


def _balanced_object_end(text: str, start: int) -> int | None:
    """
    Index just past the '}' closing the object opened at text[start].

    Braces inside JSON strings (including escaped quotes) are ignored.
    Returns None if the object never closes.
    """
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index + 1
    return None


def extract_json_object(text: str | None) -> dict:
    """
    Return the first balanced {...} substring that decodes to a JSON object.

    Surrounding prose and markdown code fences are ignored. A candidate that
    never closes, or balances but fails to decode, is skipped and the scan
    resumes at the next '{'.

    Raises:
        ContentParseError: no decodable object in the text.
    """
    if not text:
        raise ContentParseError("Empty model response")

    position = text.find("{")
    while position != -1:
        end = _balanced_object_end(text, position)
        if end is not None:
            try:
                value = json.loads(text[position:end])
            except json.JSONDecodeError:
                value = None
            if isinstance(value, dict):
                return value
        position = text.find("{", position + 1)

    raise ContentParseError("No JSON object found in model response")


def parse_model(text: str | None, model: type[ModelT]) -> ModelT:
    """Extract the first JSON object and validate it against `model`."""
    payload = extract_json_object(text)
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        problems = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        raise ContentParseError(
            f"Model response does not match {model.__name__}", problems=problems
        ) from e
