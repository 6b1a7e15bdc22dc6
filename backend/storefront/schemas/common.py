from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Request bodies are camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


def success_response(data: Any = None, message: Optional[str] = None) -> dict:
    """Standard success envelope"""
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body
