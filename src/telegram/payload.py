"""Webhook payload schema for Bot API updates.

A message carries at most one content variant. ``TelegramMessage.content()``
resolves it in a fixed priority order:
photo > video > voice > sticker > document > venue > location > contact.

Example update::

    {
      "update_id": 174114370,
      "message": {
        "message_id": 41,
        "from": {"id": 3527065, "first_name": "Nic", "last_name": "Pottier",
                 "username": "nicpottier"},
        "chat": {"id": 3527065, "type": "private"},
        "date": 1454119029,
        "text": "Hello World"
      }
    }
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# 9999-12-31T23:59:59Z
MAX_UNIX_SECONDS = 253_402_300_799


class TelegramFile(BaseModel):
    file_id: str = Field(min_length=1)
    file_size: int = 0


class TelegramLocation(BaseModel):
    latitude: float
    longitude: float


class TelegramSticker(BaseModel):
    # Older Bot API versions call this "thumb"
    thumb: TelegramFile | None = Field(
        default=None, validation_alias=AliasChoices("thumb", "thumbnail"),
    )


class TelegramVenue(BaseModel):
    location: TelegramLocation | None = None
    title: str = ""
    address: str = ""


class TelegramContact(BaseModel):
    phone_number: str = ""
    first_name: str = ""
    last_name: str = ""


class TelegramUser(BaseModel):
    id: int = 0
    first_name: str = ""
    last_name: str = ""
    username: str = ""


class TelegramMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message_id: int = 0
    sender: TelegramUser = Field(default_factory=TelegramUser, alias="from")
    # unix seconds; bounded to what datetime can represent
    date: int = Field(default=0, ge=0, le=MAX_UNIX_SECONDS)
    text: str = ""
    caption: str = ""
    photo: list[TelegramFile] = Field(default_factory=list)
    video: TelegramFile | None = None
    voice: TelegramFile | None = None
    sticker: TelegramSticker | None = None
    document: TelegramFile | None = None
    venue: TelegramVenue | None = None
    location: TelegramLocation | None = None
    contact: TelegramContact | None = None

    def content(self) -> Content | None:
        if self.photo:
            return PhotoContent(sizes=tuple(self.photo))
        if self.video is not None:
            return FileContent(kind="video", file=self.video)
        if self.voice is not None:
            return FileContent(kind="voice", file=self.voice)
        if self.sticker is not None:
            return StickerContent(thumb=self.sticker.thumb)
        if self.document is not None:
            return FileContent(kind="document", file=self.document)
        if self.venue is not None:
            return VenueContent(
                title=self.venue.title,
                address=self.venue.address,
                location=self.venue.location or self.location,
            )
        if self.location is not None:
            return LocationContent(location=self.location)
        if self.contact is not None:
            return ContactContent(contact=self.contact)
        return None


class TelegramEnvelope(BaseModel):
    update_id: int = Field(gt=0)
    message: TelegramMessage | None = None

    def has_message(self) -> bool:
        return self.message is not None and self.message.message_id != 0


# --- Content variants ---


@dataclass(frozen=True)
class PhotoContent:
    sizes: tuple[TelegramFile, ...]


@dataclass(frozen=True)
class FileContent:
    kind: Literal["video", "voice", "document"]
    file: TelegramFile


@dataclass(frozen=True)
class StickerContent:
    thumb: TelegramFile | None


@dataclass(frozen=True)
class VenueContent:
    title: str
    address: str
    location: TelegramLocation | None


@dataclass(frozen=True)
class LocationContent:
    location: TelegramLocation


@dataclass(frozen=True)
class ContactContent:
    contact: TelegramContact


Content = (
    PhotoContent
    | FileContent
    | StickerContent
    | VenueContent
    | LocationContent
    | ContactContent
)
