"""
Shared pydantic base for every request/response schema.
Fields are snake_case in Python and camelCase on the wire; requests accept both.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )
