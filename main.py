import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Iterable, List

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

import config
from database import BLOGS, USERS, close_db, get_db
from errors import (
    BlogApiError,
    MalformedIdError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from observability import configure_logging, get_logger
from schemas import (
    Blog,
    BlogCreate,
    BlogOut,
    BlogUpdate,
    LoginIn,
    TokenOut,
    User,
    UserCreate,
    UserOut,
    blog_out,
    user_out,
)
from security import (
    check_password,
    get_current_user,
    hash_password,
    issue_token,
    verify_password,
)

logger = get_logger(__name__)

MIN_USERNAME_LENGTH = 3
DUPLICATE_USERNAME = "User validation failed: username: expected `username` to be unique"


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(config.LOG_LEVEL)
    logger.info("Bloglist API started", env=config.APP_ENV)
    yield
    close_db()
    logger.info("Bloglist API shutting down")


app = FastAPI(title="Bloglist API", version="1.0.0", lifespan=lifespan)


# -------------------------------------------------------------------
# Middleware
# -------------------------------------------------------------------
class RequestLogMiddleware(BaseHTTPMiddleware):
    """One structured log line per request."""

    def __init__(self, app):
        super().__init__(app)
        self._log = get_logger("access")

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self._log.exception(
                "request_error",
                http_method=request.method,
                path=request.url.path,
                duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
            )
            raise
        user = getattr(request.state, "user", None)
        self._log.info(
            "request",
            http_method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
            username=user.get("username") if user else None,
        )
        return response


app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------------------------------------------------------------------
# Error handlers
# -------------------------------------------------------------------
def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(BlogApiError)
async def api_error_handler(request: Request, exc: BlogApiError):
    logger.warning(exc.message, path=request.url.path, status_code=exc.http_status)
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


@app.exception_handler(InvalidId)
async def invalid_id_handler(request: Request, exc: InvalidId):
    err = MalformedIdError()
    logger.warning(err.message, path=request.url.path, detail=str(exc))
    return JSONResponse(status_code=err.http_status, content=err.to_response())


@app.exception_handler(DuplicateKeyError)
async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
    logger.warning("duplicate key", path=request.url.path, detail=str(exc))
    return error_response(status.HTTP_400_BAD_REQUEST, DUPLICATE_USERNAME)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    logger.warning("request validation failed", path=request.url.path, errors=str(errors))
    first = errors[0] if errors else {"loc": (), "msg": "invalid request"}
    if first.get("type") == "json_invalid":
        return error_response(status.HTTP_400_BAD_REQUEST, "malformatted JSON")
    # loc may hold list indexes or byte offsets; only field names are reported
    field = ".".join(loc for loc in first["loc"] if isinstance(loc, str) and loc != "body")
    message = f"{field}: {first['msg']}" if field else first["msg"]
    return error_response(status.HTTP_400_BAD_REQUEST, message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return error_response(exc.status_code, "unknown endpoint")
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def generic_error_handler(request: Request, exc: Exception):
    logger.error("unhandled exception", path=request.url.path, exc_info=exc)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal server error")


# -------------------------------------------------------------------
# Population helpers
# -------------------------------------------------------------------
def owners_by_id(db: Database, blogs: Iterable[Dict[str, Any]]) -> Dict[ObjectId, Dict[str, Any]]:
    ids = list({b["user"] for b in blogs if b.get("user")})
    if not ids:
        return {}
    return {u["_id"]: u for u in db[USERS].find({"_id": {"$in": ids}})}


def blogs_by_id(db: Database, users: Iterable[Dict[str, Any]]) -> Dict[ObjectId, Dict[str, Any]]:
    ids = list({b for u in users for b in u.get("blogs", [])})
    if not ids:
        return {}
    return {b["_id"]: b for b in db[BLOGS].find({"_id": {"$in": ids}})}


# -------------------------------------------------------------------
# Blogs
# -------------------------------------------------------------------
@app.get("/api/blogs", response_model=List[BlogOut])
def list_blogs(db: Database = Depends(get_db)):
    blogs = list(db[BLOGS].find({}))
    owners = owners_by_id(db, blogs)
    return [blog_out(b, owners) for b in blogs]


@app.get("/api/blogs/{blog_id}", response_model=BlogOut)
def get_blog(blog_id: str, db: Database = Depends(get_db)):
    blog = db[BLOGS].find_one({"_id": ObjectId(blog_id)})
    if not blog:
        raise NotFoundError("blog")
    return blog_out(blog, owners_by_id(db, [blog]))


@app.post("/api/blogs", response_model=BlogOut, status_code=status.HTTP_201_CREATED)
def create_blog(
    data: BlogCreate,
    user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    if not data.title:
        raise ValidationError("title is required")
    if not data.url:
        raise ValidationError("url is required")

    doc = Blog(
        title=data.title,
        author=data.author,
        url=data.url,
        likes=data.likes or 0,
    ).model_dump()
    doc["user"] = user["_id"]
    doc["_id"] = db[BLOGS].insert_one(doc).inserted_id
    db[USERS].update_one({"_id": user["_id"]}, {"$push": {"blogs": doc["_id"]}})

    logger.info("blog created", blog_id=str(doc["_id"]), username=user["username"])
    return blog_out(doc, {user["_id"]: user})


@app.put("/api/blogs/{blog_id}", response_model=BlogOut)
def update_blog(blog_id: str, data: BlogUpdate, db: Database = Depends(get_db)):
    oid = ObjectId(blog_id)
    fields = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    for required in ("title", "url"):
        if required in fields and not fields[required]:
            raise ValidationError(f"{required} is required")
    if fields:
        blog = db[BLOGS].find_one_and_update(
            {"_id": oid}, {"$set": fields}, return_document=ReturnDocument.AFTER,
        )
    else:
        blog = db[BLOGS].find_one({"_id": oid})
    if not blog:
        raise NotFoundError("blog")
    return blog_out(blog, owners_by_id(db, [blog]))


@app.delete("/api/blogs/{blog_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_blog(
    blog_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    oid = ObjectId(blog_id)
    blog = db[BLOGS].find_one({"_id": oid})
    if not blog:
        logger.info("delete of unknown blog ignored", blog_id=blog_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    if blog.get("user") != user["_id"]:
        raise UnauthorizedError("only the creator can delete a blog")

    db[BLOGS].delete_one({"_id": oid})
    db[USERS].update_one({"_id": user["_id"]}, {"$pull": {"blogs": oid}})
    logger.info("blog deleted", blog_id=blog_id, username=user["username"])
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -------------------------------------------------------------------
# Users
# -------------------------------------------------------------------
@app.get("/api/users", response_model=List[UserOut])
def list_users(db: Database = Depends(get_db)):
    users = list(db[USERS].find({}))
    blogs = blogs_by_id(db, users)
    return [user_out(u, blogs) for u in users]


@app.post("/api/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(data: UserCreate, db: Database = Depends(get_db)):
    check_password(data.password)
    if not data.username:
        raise ValidationError("username is required")
    if len(data.username) < MIN_USERNAME_LENGTH:
        raise ValidationError(
            f"username must be at least {MIN_USERNAME_LENGTH} characters long"
        )
    if db[USERS].find_one({"username": data.username}):
        raise ValidationError(DUPLICATE_USERNAME)

    doc = User(
        username=data.username,
        name=data.name,
        password_hash=hash_password(data.password),
    ).model_dump()
    doc["blogs"] = []
    doc["_id"] = db[USERS].insert_one(doc).inserted_id

    logger.info("user created", username=data.username)
    return user_out(doc, {})


# -------------------------------------------------------------------
# Login / logout
# -------------------------------------------------------------------
@app.post("/api/login", response_model=TokenOut)
def login(data: LoginIn, db: Database = Depends(get_db)):
    user = db[USERS].find_one({"username": data.username}) if data.username else None
    password_ok = (
        user is not None
        and data.password is not None
        and verify_password(data.password, user["password_hash"])
    )
    if not password_ok:
        raise UnauthorizedError("invalid username or password")

    token = issue_token(user["_id"], user["username"])
    logger.info("user logged in", username=user["username"])
    return TokenOut(token=token, username=user["username"], name=user.get("name"))


@app.post("/api/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(user: Dict[str, Any] = Depends(get_current_user)):
    # tokens are stateless; the client drops its copy
    logger.info("user logged out", username=user["username"])
    return Response(status_code=status.HTTP_204_NO_CONTENT)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
