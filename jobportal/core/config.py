import os
from decimal import Decimal

# ✅ Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./jobportal.db")
RUN_MIGRATIONS = os.getenv("RUN_MIGRATIONS", "0") == "1"

# ✅ Security
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

# ✅ Settlement
# Share of the final (discounted) amount credited to the coupon creator.
# A plan may override it with its own commission_rate.
COMMISSION_RATE = Decimal(os.getenv("COMMISSION_RATE", "0.10"))
CURRENCY = os.getenv("CURRENCY", "INR")

# ✅ Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "1") == "1"

# ✅ CORS
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]

# ✅ Rate limits (requests per window, per client IP)
LOGIN_RATE_LIMIT = int(os.getenv("LOGIN_RATE_LIMIT", "10"))
COUPON_VALIDATE_RATE_LIMIT = int(os.getenv("COUPON_VALIDATE_RATE_LIMIT", "30"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
