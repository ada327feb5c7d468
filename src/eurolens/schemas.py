"""Shared pydantic base for JSON payloads exchanged with the web client."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire.

    Accepts either spelling on input so stored guest documents and request
    bodies validate the same way.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
