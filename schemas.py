"""
Database Schemas for the Bloglist API

Stored documents live in MongoDB collections named after the lowercase,
pluralized class name. The *In/*Out models are the request and response
shapes of the HTTP API; none of the response models carries a password hash.
"""
from typing import Any, Dict, List, Mapping, Optional

from bson import ObjectId
from pydantic import BaseModel, Field


class User(BaseModel):
    """
    Collection: "users"

    Stored alongside a "blogs" array of ObjectIds of the user's posts.
    """
    username: str = Field(..., min_length=3, description="Unique login handle")
    name: Optional[str] = Field(None, description="Display name")
    password_hash: str = Field(..., description="bcrypt password hash")


class Blog(BaseModel):
    """
    Collection: "blogs"

    Stored alongside a "user" ObjectId referencing the owner, if any.
    """
    title: str
    author: Optional[str] = None
    url: str
    likes: int = Field(0, ge=0)


# -------------------------------------------------------------------
# Requests
# -------------------------------------------------------------------
class BlogCreate(BaseModel):
    # title/url presence is checked by the handler so the error message is ours
    title: Optional[str] = None
    author: Optional[str] = None
    url: Optional[str] = None
    likes: Optional[int] = Field(None, ge=0)


class BlogUpdate(BaseModel):
    title: Optional[str] = None
    author: Optional[str] = None
    url: Optional[str] = None
    likes: Optional[int] = Field(None, ge=0)


class UserCreate(BaseModel):
    username: Optional[str] = None
    name: Optional[str] = None
    password: Optional[str] = None


class LoginIn(BaseModel):
    # missing credentials are a 401, not a validation error
    username: Optional[str] = None
    password: Optional[str] = None


# -------------------------------------------------------------------
# Responses
# -------------------------------------------------------------------
class UserRef(BaseModel):
    id: str
    username: str
    name: Optional[str] = None


class BlogRef(BaseModel):
    id: str
    title: str
    author: Optional[str] = None
    url: str
    likes: int = 0


class BlogOut(BlogRef):
    user: Optional[UserRef] = None


class UserOut(BaseModel):
    id: str
    username: str
    name: Optional[str] = None
    blogs: List[BlogRef] = []


class TokenOut(BaseModel):
    token: str
    username: str
    name: Optional[str] = None


# -------------------------------------------------------------------
# Document -> response conversion
# -------------------------------------------------------------------
def user_ref(doc: Mapping[str, Any]) -> UserRef:
    return UserRef(id=str(doc["_id"]), username=doc["username"], name=doc.get("name"))


def blog_ref(doc: Mapping[str, Any]) -> BlogRef:
    return BlogRef(
        id=str(doc["_id"]),
        title=doc["title"],
        author=doc.get("author"),
        url=doc["url"],
        likes=doc.get("likes", 0),
    )


def blog_out(doc: Mapping[str, Any], users_by_id: Dict[ObjectId, Mapping[str, Any]]) -> BlogOut:
    owner = users_by_id.get(doc.get("user"))
    return BlogOut(
        **blog_ref(doc).model_dump(),
        user=user_ref(owner) if owner else None,
    )


def user_out(doc: Mapping[str, Any], blogs_by_id: Dict[ObjectId, Mapping[str, Any]]) -> UserOut:
    blogs = [blog_ref(blogs_by_id[b]) for b in doc.get("blogs", []) if b in blogs_by_id]
    return UserOut(
        id=str(doc["_id"]),
        username=doc["username"],
        name=doc.get("name"),
        blogs=blogs,
    )
