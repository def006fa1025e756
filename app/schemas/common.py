"""Shared schema base: snake_case attributes, camelCase on the wire."""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """Base model for request and response bodies."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
