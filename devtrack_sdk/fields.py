"""
Sparse fieldset helpers.

TeamCity and YouTrack both accept a ``fields=`` query parameter restricting
the returned JSON. The value is derived from the response model so that the
request asks for exactly what the model decodes.
"""

import re
import typing
from typing import Iterable, List, Type

from pydantic import BaseModel

_ESCAPE_MARKERS = re.compile(r"^r#|_$")


def normalize_field_names(fields: Iterable[str]) -> str:
    """
    Join raw field names with commas, dropping keyword-escape markers.

    ``["id", "r#type", "webUrl"]`` becomes ``"id,type,webUrl"``; a trailing
    underscore (``type_``) is dropped the same way.
    """
    return ",".join(_ESCAPE_MARKERS.sub("", name) for name in fields)


def _nested_model(annotation: object):
    """Return the pydantic model wrapped by Optional/List/Union, if any."""
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return annotation
    for arg in typing.get_args(annotation):
        model = _nested_model(arg)
        if model is not None:
            return model
    return None


def fields_query(model: Type[BaseModel]) -> str:
    """
    Build the ``fields=`` value for a pydantic model.

    Wire names (aliases) are used; sub-models are expanded recursively as
    ``name(sub,fields)``. A field can pin its nested list explicitly with
    ``Field(json_schema_extra={"fields": "id,name"})``.
    """
    parts: List[str] = []
    for name, info in model.model_fields.items():
        wire_name = normalize_field_names([info.alias or name])
        extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}

        if "fields" in extra:
            parts.append(f"{wire_name}({extra['fields']})")
            continue

        nested = _nested_model(info.annotation)
        if nested is not None:
            parts.append(f"{wire_name}({fields_query(nested)})")
        else:
            parts.append(wire_name)

    return ",".join(parts)
