import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# ✅ Import All API Routes
from jobportal.api.routes import (
    admin_commissions,
    admin_coupons,
    admin_payments,
    admin_users,
    auth,
    coupons,
    employee,
    employer,
    me,
    payments,
    plans,
    system,
)

# ✅ Core
from jobportal.core import config
from jobportal.core.exceptions import register_exception_handlers
from jobportal.core.logging_config import setup_logging

setup_logging(log_level=config.LOG_LEVEL, log_dir=config.LOG_DIR, log_to_file=config.LOG_TO_FILE)
logger = logging.getLogger(__name__)


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

app = FastAPI(title="Job Portal API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)

register_exception_handlers(app)


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

app.include_router(auth.router)
app.include_router(plans.router)
app.include_router(payments.router)
app.include_router(coupons.router)
app.include_router(me.router)
app.include_router(employee.router)
app.include_router(employer.router)
app.include_router(admin_coupons.router)
app.include_router(admin_commissions.router)
app.include_router(admin_users.router)
app.include_router(admin_payments.router)
app.include_router(system.router)


@app.on_event("startup")
def apply_migrations():
    if config.RUN_MIGRATIONS:
        from jobportal.db.migrate import run_migrations
        run_migrations()


# ============================================
# ✅ HEALTH CHECK ROOT ENDPOINT
# ============================================

@app.get("/")
def root():
    return {"status": "Job Portal API running"}
