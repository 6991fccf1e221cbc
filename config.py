import os
from typing import List

from dotenv import load_dotenv

load_dotenv()

# -------------------------------------------------------------------
# Runtime
# -------------------------------------------------------------------
APP_ENV = os.getenv("APP_ENV", "development")
PORT = int(os.getenv("PORT", "3003"))
CORS_ORIGINS: List[str] = [
    o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# -------------------------------------------------------------------
# Database
# -------------------------------------------------------------------
MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
TEST_MONGODB_URI = os.getenv("TEST_MONGODB_URI")
DATABASE_NAME = os.getenv("DATABASE_NAME", "bloglist")

# -------------------------------------------------------------------
# Auth
# -------------------------------------------------------------------
SECRET = os.getenv("SECRET", "bloglist-dev-secret")
JWT_ALGORITHM = "HS256"
JWT_EXPIRE_MIN = int(os.getenv("JWT_EXPIRE_MIN", "60"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))


def mongodb_uri() -> str:
    if APP_ENV == "test" and TEST_MONGODB_URI:
        return TEST_MONGODB_URI
    return MONGODB_URI
