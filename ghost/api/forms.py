"""
Request forms.

Validated with pydantic; the first validation issue is reported back to
the user as "field: message".
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Mapping, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    StringConstraints,
    ValidationError,
    field_validator,
)

from ghost.core.errors import ValidationFailed

M = TypeVar("M", bound=BaseModel)

Trimmed = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class CreateTeamForm(BaseModel):
    name: str = Field(min_length=1)


class IntentForm(BaseModel):
    intent: Literal["addTeammate", "cast"]


class AddTeammateForm(BaseModel):
    username: Annotated[str, StringConstraints(strip_whitespace=True, to_lower=True, min_length=1)]


class CastForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    
    cast_content: Trimmed = Field(alias="castContent")
    channel_id: str | None = Field(default=None, alias="channelId")
    embed1: HttpUrl | None = None
    embed2: HttpUrl | None = None
    author_id: Trimmed = Field(alias="authorId")
    
    @field_validator("channel_id", "embed1", "embed2", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        return None if value == "" else value
    
    @property
    def embeds(self) -> list[str]:
        return [str(e) for e in (self.embed1, self.embed2) if e is not None]


class ConnectParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    
    signer_uuid: str = Field(min_length=1, alias="signerUuid")
    fid: str = Field(min_length=1)


def format_validation_error(error: ValidationError) -> str:
    """Only the first issue, as "path: message"."""
    issues = error.errors()
    if not issues:
        return ""
    issue = issues[0]
    path = ".".join(str(part) for part in issue["loc"])
    return f"{path}: {issue['msg']}"


def parse_form(model: type[M], data: Mapping[str, Any]) -> M:
    try:
        return model.model_validate(dict(data))
    except ValidationError as e:
        raise ValidationFailed(format_validation_error(e)) from e
