"""Parsing of multipart profile forms.

Mobile clients send profile updates as multipart with scalar fields as
strings and lists/objects as JSON strings. Only keys present in the form
end up in the parsed dict so services can tell "absent" from "cleared".
"""

import json
from datetime import date

from starlette.datastructures import FormData, UploadFile

from brandcollab.errors import BadRequestError


def parse_json(value: str, field: str):
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        raise BadRequestError(f"{field} must be valid JSON")


def parse_int_list(value: str, field: str) -> list[int]:
    """Accepts a JSON array or a comma separated list."""
    value = value.strip()
    if not value:
        return []
    items = parse_json(value, field) if value.startswith("[") else value.split(",")
    try:
        return [int(i) for i in items]
    except (TypeError, ValueError):
        raise BadRequestError(f"{field} must be a list of integers")


def parse_form(
    form: FormData,
    text_fields: tuple[str, ...] = (),
    int_fields: tuple[str, ...] = (),
    int_list_fields: tuple[str, ...] = (),
    json_fields: tuple[str, ...] = (),
    date_fields: tuple[str, ...] = (),
    bool_fields: tuple[str, ...] = (),
) -> dict:
    """Convert the known keys of a form to typed values.

    Raises:
        BadRequestError: A value cannot be converted
    """
    data = {}
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            continue
        if key in text_fields:
            data[key] = value
        elif key in int_fields:
            if value.strip() == "":
                data[key] = None
                continue
            try:
                data[key] = int(value)
            except ValueError:
                raise BadRequestError(f"{key} must be an integer")
        elif key in int_list_fields:
            data[key] = parse_int_list(value, key)
        elif key in json_fields:
            data[key] = parse_json(value, key) if value.strip() else None
        elif key in date_fields:
            try:
                data[key] = date.fromisoformat(value) if value.strip() else None
            except ValueError:
                raise BadRequestError(f"{key} must be a date (YYYY-MM-DD)")
        elif key in bool_fields:
            data[key] = value.strip().lower() in ("1", "true", "yes", "on")
    return data


def form_files(form: FormData, fields: tuple[str, ...]) -> dict[str, UploadFile | None]:
    files = {}
    for field in fields:
        value = form.get(field)
        files[field] = value if isinstance(value, UploadFile) and value.filename else None
    return files
