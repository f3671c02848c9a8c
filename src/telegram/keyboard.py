"""Reply keyboard markup built from quick replies."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

from pydantic import BaseModel, ConfigDict, TypeAdapter


class KeyboardButton(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    text: str


class ReplyKeyboardMarkup(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    resize_keyboard: bool = True
    one_time_keyboard: bool = True
    keyboard: list[list[KeyboardButton]]


class ReplyKeyboardRemove(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    remove_keyboard: Literal[True] = True


KeyboardMarkup = ReplyKeyboardMarkup | ReplyKeyboardRemove

_markup_adapter: TypeAdapter[KeyboardMarkup] = TypeAdapter(KeyboardMarkup)

REMOVE_KEYBOARD = ReplyKeyboardRemove()


def build_keyboard(options: Sequence[str]) -> KeyboardMarkup:
    """One row with a key per option, or a remove directive when there are none."""
    if not options:
        return REMOVE_KEYBOARD
    row = [KeyboardButton(text=option) for option in options]
    return ReplyKeyboardMarkup(keyboard=[row])


def encode_keyboard(markup: KeyboardMarkup) -> str:
    return markup.model_dump_json()


def parse_keyboard(raw: str) -> KeyboardMarkup:
    return _markup_adapter.validate_json(raw)
