"""Shared schema types: plain acknowledgements."""

from pydantic import BaseModel


class MessageResponse(BaseModel):
    message: str
