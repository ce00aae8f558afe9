"""
Shared pydantic base for API request/response models.
The frontend speaks camelCase; Python attributes stay snake_case.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model: camelCase aliases, populated by either name, readable from ORM objects."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_json(self) -> dict:
        """JSON-ready dict keyed by camelCase aliases."""
        return self.model_dump(mode="json", by_alias=True)
