"""
Shared schema building blocks.

All API payloads use camelCase keys. Request bodies also accept the
snake_case field names.
"""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from bus_booking.app.core.time_utils import as_utc


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Datetimes read back from SQLite are naive; responses always carry UTC
UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]


class PageMeta(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "PageMeta":
        return cls(total=total, page=page, limit=limit, total_pages=(total + limit - 1) // limit if limit else 0)


class CountResponse(CamelModel):
    count: int


class RevokedCountResponse(CamelModel):
    revoked_count: int


class ModifiedCountResponse(CamelModel):
    modified_count: int
