"""Pydantic models for the parts of a Telegram update the bot reads."""

from __future__ import annotations

from pydantic import BaseModel, Field

from psychodiag.models.state import UserInfo


class User(BaseModel):
    id: int
    is_bot: bool = False
    first_name: str
    last_name: str | None = None
    username: str | None = None

    def snapshot(self) -> UserInfo:
        info: UserInfo = {"id": self.id, "first_name": self.first_name, "is_bot": self.is_bot}
        if self.last_name:
            info["last_name"] = self.last_name
        if self.username:
            info["username"] = self.username
        return info


class Chat(BaseModel):
    id: int


class Message(BaseModel):
    message_id: int
    chat: Chat
    from_: User | None = Field(default=None, alias="from")
    text: str | None = None


class CallbackQuery(BaseModel):
    id: str
    from_: User = Field(alias="from")
    message: Message | None = None
    data: str | None = None


class Update(BaseModel):
    update_id: int
    message: Message | None = None
    callback_query: CallbackQuery | None = None

    @property
    def sender(self) -> User | None:
        if self.callback_query is not None:
            return self.callback_query.from_
        if self.message is not None:
            return self.message.from_
        return None
