from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional

# Identifiers end up inside thread keys, so "_" is not allowed
IDENTIFIER_PATTERN = r"^[A-Za-z0-9-]+$"

class Participant(BaseModel):
    """Whoever is acting: an authenticated user or an anonymous session."""

    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = Field(None, min_length=1, max_length=64, pattern=IDENTIFIER_PATTERN)
    anonymous_id: Optional[str] = Field(None, min_length=8, max_length=64, pattern=IDENTIFIER_PATTERN)

    @model_validator(mode="after")
    def check_exactly_one(self) -> "Participant":
        if (self.user_id is None) == (self.anonymous_id is None):
            raise ValueError("Exactly one of user_id or anonymous_id must be set")
        return self

    @classmethod
    def user(cls, user_id: str) -> "Participant":
        return cls(user_id=user_id)

    @classmethod
    def anonymous(cls, anonymous_id: str) -> "Participant":
        return cls(anonymous_id=anonymous_id)

    @property
    def is_anonymous(self) -> bool:
        return self.anonymous_id is not None

    @property
    def identifier(self) -> str:
        return self.anonymous_id if self.is_anonymous else self.user_id

    def __str__(self) -> str:
        kind = "anon" if self.is_anonymous else "user"
        return f"{kind}:{self.identifier}"
