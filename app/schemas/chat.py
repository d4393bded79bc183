"""Schemas for the chat endpoint."""

from typing import Any

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Request body for POST /api/chat."""

    # Left untyped: a non-list gets the greeting and an entry without content gets a retry prompt
    messages: Any = Field(None, description="Conversation so far ({role, content} dicts); the last entry is the new user message.")


class ChatResponse(BaseModel):
    """Response for POST /api/chat. Authorization fields appear only after a purchase approval was requested."""

    message: str = Field(..., description="Assistant reply.")
    authorizationStatus: str | None = Field(None, description="requested | pending | approved | denied")
    authorizationMessage: str | None = Field(None, description="Binding message or denial reason.")
    error: str | None = Field(None, description="Set when the request could not be completed.")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "message": "Your order for 2 banana has been placed.",
                    "authorizationStatus": "approved",
                    "authorizationMessage": "Do you want to buy 2 banana",
                }
            ]
        }
    }
