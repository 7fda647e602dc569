"""
Social cards - Data Models

Pydantic models for the remote metadata each card is drawn from and for the
per-request freshness decision. All models frozen (immutable).
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CardData(BaseModel):
    """Remote metadata snapshot shared by every card kind."""
    model_config = ConfigDict(frozen=True)

    updated_at: datetime = Field(..., description="Last remote update of the subject")

    @field_validator("updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # S3 LastModified is always aware, naive remote timestamps are UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class RepoAvatar(BaseModel):
    model_config = ConfigDict(frozen=True)

    repo_name: str
    avatar_url: str


class LanguageShare(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    size: int = Field(..., ge=0, description="Bytes of code (or repo size) attributed to the language")


class InsightCardData(CardData):
    page_name: str
    repos: List[RepoAvatar] = Field(default_factory=list)
    contributors: List[str] = Field(default_factory=list, description="Contributor logins")


class UserCardData(CardData):
    login: str
    name: str
    avatar_url: str
    bio: Optional[str] = None
    followers: int = 0
    public_repos: int = 0
    repos: List[RepoAvatar] = Field(default_factory=list)
    langs: List[LanguageShare] = Field(default_factory=list)

    @property
    def lang_total(self) -> int:
        return sum(lang.size for lang in self.langs)


class HighlightCardData(CardData):
    login: str
    title: str
    body: str
    reactions: int = 0
    avatar_url: str
    repo: RepoAvatar
    langs: List[LanguageShare] = Field(default_factory=list)
    url: str

    @property
    def lang_total(self) -> int:
        return sum(lang.size for lang in self.langs)


class RequiresUpdateMeta(BaseModel):
    """Freshness decision for one stored card. Recomputed per request."""
    model_config = ConfigDict(frozen=True)

    file_url: str
    has_file: bool
    needs_update: bool = True
    last_modified: Optional[datetime] = None


class CardBuffers(BaseModel):
    model_config = ConfigDict(frozen=True)

    png: bytes
    svg: str
