"""
Typed inputs for every GraphQL operation that takes arguments.

Update models are patches: a field the client did not send is absent from
``model_fields_set`` and means "leave unchanged", while an explicit null
on a nullable field means "clear it".  Explicit null on a non-nullable
field is rejected.
"""
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from knowledge_base.auth.claims import Role


class InputModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class PatchModel(InputModel):
    # Fields that may be omitted but never set to null.
    non_nullable: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def _reject_null_for_required_columns(self):
        for field in self.non_nullable & self.model_fields_set:
            if getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self

    def changes(self) -> dict:
        """Return only the fields the client sent."""
        return self.model_dump(exclude_unset=True)


# --- Auth / User ---

class RegisterInput(InputModel):
    email: EmailStr = Field(max_length=255)
    username: str = Field(min_length=3, max_length=100, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str = Field(min_length=6)
    name: str | None = Field(None, max_length=150)


class LoginInput(InputModel):
    email: str = Field(max_length=255)
    password: str


class UpdateUserInput(PatchModel):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"email", "username", "role"})

    email: EmailStr | None = Field(None, max_length=255)
    username: str | None = Field(None, min_length=3, max_length=100, pattern=r"^[A-Za-z0-9_.-]+$")
    name: str | None = Field(None, max_length=150)
    role: Role | None = None


# --- Article ---

class ArticleListArgs(InputModel):
    limit: int = Field(10, ge=1, le=100)
    offset: int = Field(0, ge=0)
    is_published: bool | None = None


class CreateArticleInput(InputModel):
    title: str = Field(min_length=1, max_length=300)
    content: str = Field(min_length=1)
    excerpt: str | None = Field(None, max_length=500)
    category_id: int | None = None
    tag_ids: list[int] | None = None


class UpdateArticleInput(PatchModel):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"title", "content", "tag_ids"})

    title: str | None = Field(None, min_length=1, max_length=300)
    content: str | None = Field(None, min_length=1)
    excerpt: str | None = Field(None, max_length=500)
    category_id: int | None = None
    tag_ids: list[int] | None = None


# --- Category ---

class CreateCategoryInput(InputModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None


class UpdateCategoryInput(PatchModel):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"name"})

    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None


# --- Tag ---

class CreateTagInput(InputModel):
    name: str = Field(min_length=1, max_length=50)


class UpdateTagInput(InputModel):
    name: str = Field(min_length=1, max_length=50)


# --- Comment ---

class CreateCommentInput(InputModel):
    content: str = Field(min_length=1)
    article_id: int
