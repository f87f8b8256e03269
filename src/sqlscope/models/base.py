"""Shared pydantic base for API-facing models."""

from pydantic import BaseModel, ConfigDict


def to_camel(string: str) -> str:
    """Convert snake_case to camelCase.

    Examples:
        >>> to_camel("is_valid")
        'isValid'
        >>> to_camel("formatted_sql")
        'formattedSql'
    """
    components = string.split("_")
    return components[0] + "".join(x.title() for x in components[1:])


class CamelModel(BaseModel):
    """Model serialized with camelCase keys, populated by either name."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
