from pydantic import BaseModel, ConfigDict, Field, field_validator


def _not_blank(value: str | None) -> str | None:
    if value is not None and not value.strip():
        raise ValueError("must not be blank")
    return value


# --- News ---

class ArticleCreate(BaseModel):
    title: str = Field(max_length=300)
    content: str
    thumbnail: str = Field(max_length=500)
    category: str = Field(max_length=100)

    @field_validator("title", "content", "thumbnail", "category")
    @classmethod
    def reject_blank(cls, value):
        return _not_blank(value)


class ArticleUpdate(BaseModel):
    """Fields an author may change. Anything else in the body is rejected."""

    title: str | None = Field(None, max_length=300)
    content: str | None = None
    thumbnail: str | None = Field(None, max_length=500)
    category: str | None = Field(None, max_length=100)

    model_config = ConfigDict(extra="forbid")

    @field_validator("title", "content", "thumbnail", "category")
    @classmethod
    def reject_blank(cls, value):
        return _not_blank(value)


# --- Comment ---

class CommentCreate(BaseModel):
    content: str
    reply_to: int | None = Field(None, alias="replyTo")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("content")
    @classmethod
    def reject_blank(cls, value):
        return _not_blank(value)


class CommentUpdate(BaseModel):
    content: str

    model_config = ConfigDict(extra="forbid")

    @field_validator("content")
    @classmethod
    def reject_blank(cls, value):
        return _not_blank(value)


# --- User ---

class UserUpdate(BaseModel):
    username: str | None = Field(None, max_length=100)
    email: str | None = Field(None, max_length=255)
    avatar: str | None = Field(None, max_length=500)

    model_config = ConfigDict(extra="forbid")

    @field_validator("username", "email")
    @classmethod
    def reject_blank(cls, value):
        return _not_blank(value)


# --- Pagination ---

class PaginatedResponse(BaseModel):
    items: list
    total: int
    page: int
    page_size: int
    pages: int
