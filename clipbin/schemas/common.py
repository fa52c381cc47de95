from datetime import datetime
from typing import Annotated, Generic, Optional, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from clipbin.core.timezone_utils import from_db_time

T = TypeVar("T")

# Columns hold naive UTC; responses always carry the offset.
UtcDateTime = Annotated[
    datetime,
    AfterValidator(from_db_time),
    PlainSerializer(lambda dt: dt.isoformat(), return_type=str, when_used="json"),
]


class CamelModel(BaseModel):
    # JSON uses camelCase; snake_case is still accepted on input
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ApiResponse(BaseModel, Generic[T]):
    """Standard envelope: ``{status, data?, message}``."""

    status: str = "success"
    data: Optional[T] = None
    message: str


def success(data, message: str) -> dict:
    return {"status": "success", "data": data, "message": message}
