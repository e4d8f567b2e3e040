from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator
from typing import List, Union
from datetime import datetime

from app.core.exceptions import DecodeError

ZERO_TIME = "0001-01-01T00:00:00Z"

# RFC 3339 date-time with an explicit offset, up to nanosecond fractions
RFC3339_PATTERN = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{1,9})?(Z|[+-]\d{2}:\d{2})$"


class Owner(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="Id", min_length=1)


class House(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field("", alias="Id")
    address: str = Field("", alias="Address")
    owner_id: str = Field("", alias="OwnerId")
    # kept as text, e.g. "3000"; no arithmetic is done on it
    price: str = Field("", alias="Price")
    # stored and returned as sent, nanosecond digits included
    timestamp: str = Field(ZERO_TIME, alias="Timestamp", pattern=RFC3339_PATTERN)

    @field_validator("timestamp", mode="before")
    @classmethod
    def null_is_zero_time(cls, value):
        if value is None:
            return ZERO_TIME
        return value

    @field_validator("timestamp")
    @classmethod
    def check_calendar(cls, value: str) -> str:
        try:
            datetime.strptime(value[:19], "%Y-%m-%dT%H:%M:%S")
        except ValueError as e:
            raise ValueError(f"Timestamp {value!r} is not a valid date-time: {e}")
        if value[-1] != "Z":
            hours, minutes = int(value[-5:-3]), int(value[-2:])
            if hours > 23 or minutes > 59:
                raise ValueError(f"Timestamp {value!r} has an out of range offset")
        return value


class InvokeRequest(BaseModel):
    function: str
    args: List[str] = []


class InvokeResponse(BaseModel):
    status: int
    message: str = ""
    payload: str = ""


class TransferRequest(BaseModel):
    new_owner_id: str


_owners_adapter = TypeAdapter(List[Owner])
_houses_adapter = TypeAdapter(List[House])
_string_adapter = TypeAdapter(str)


def _decode(parse, raw: Union[str, bytes]):
    try:
        return parse(raw)
    except ValidationError as e:
        raise DecodeError(str(e)) from e


def decode_owner(raw: Union[str, bytes]) -> Owner:
    return _decode(Owner.model_validate_json, raw)


def decode_house(raw: Union[str, bytes]) -> House:
    return _decode(House.model_validate_json, raw)


def decode_string(raw: Union[str, bytes]) -> str:
    """A JSON string argument such as ``"Alice"`` (quotes included)."""
    return _decode(_string_adapter.validate_json, raw)


def encode_entity(entity: BaseModel) -> bytes:
    return entity.model_dump_json(by_alias=True).encode("utf-8")


def encode_owners(owners: List[Owner]) -> bytes:
    return _owners_adapter.dump_json(owners, by_alias=True)


def encode_houses(houses: List[House]) -> bytes:
    return _houses_adapter.dump_json(houses, by_alias=True)
