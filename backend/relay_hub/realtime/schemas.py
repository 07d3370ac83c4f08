"""
Inbound event payloads.

Wire names are camelCase (senderId, receiverId, ...). Content fields are
opaque: they are validated for presence only and relayed unchanged.
"""
from typing import Annotated, Any, Optional, Type, TypeVar

from pydantic import AfterValidator, BaseModel, Field, ValidationError
from pydantic.alias_generators import to_camel

from relay_hub.core.logging import relay_logger as logger

EventT = TypeVar("EventT", bound="InboundEvent")


def _require_value(value: Any) -> Any:
    if value is None:
        raise ValueError("field is required")
    return value


# Present and not null; the value itself is opaque
RequiredValue = Annotated[Any, AfterValidator(_require_value)]


class InboundEvent(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class RegisterEvent(InboundEvent):
    user_id: str = Field(min_length=1)


class TypingEvent(InboundEvent):
    sender_id: str = Field(min_length=1)
    receiver_id: str = Field(min_length=1)


class SendMessageEvent(InboundEvent):
    sender_id: str = Field(min_length=1)
    receiver_id: str = Field(min_length=1)
    content: RequiredValue
    message_id: Optional[Any] = None
    created_at: Optional[Any] = None


class SendMediaEvent(InboundEvent):
    sender_id: str = Field(min_length=1)
    receiver_id: str = Field(min_length=1)
    media_type: str = Field(min_length=1)
    data: Optional[Any] = None
    filename: Optional[Any] = None
    message_id: Optional[Any] = None
    created_at: Optional[Any] = None


class WebRTCOfferEvent(InboundEvent):
    receiver_id: str = Field(min_length=1)
    sender_id: str = Field(min_length=1)
    offer: RequiredValue


class WebRTCAnswerEvent(InboundEvent):
    sender_socket_id: str = Field(min_length=1)
    answer: RequiredValue


class WebRTCIceEvent(InboundEvent):
    target_socket_id: str = Field(min_length=1)
    candidate: RequiredValue


def parse_event(model: Type[EventT], data: Any) -> Optional[EventT]:
    """
    Validate a raw inbound payload.
    Returns None for anything malformed; the caller drops the event.
    """
    if not isinstance(data, dict):
        logger.debug(f"Dropped {model.__name__}: payload is not an object")
        return None
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.debug(
            f"Dropped {model.__name__}: invalid payload",
            fields=[".".join(str(p) for p in err["loc"]) for err in e.errors()],
        )
        return None
