import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from lunch_admin.config.database import engine, Base
from lunch_admin.config.backends import uses_firebase
from lunch_admin.config.settings import settings
from lunch_admin.features.auth.router import router as auth_router
from lunch_admin.features.users.router import router as users_router
from lunch_admin.features.approvals.router import router as approvals_router
from lunch_admin.features.audit.router import router as audit_router
from lunch_admin.models import account, document  # noqa: F401  registers the tables
from lunch_admin.utils.callable import (
    CallableError,
    callable_error_handler,
    unhandled_error_handler,
    validation_error_handler,
)

logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

# Create Database Tables
if not uses_firebase():
    Base.metadata.create_all(bind=engine)

app = FastAPI(title=settings.PROJECT_NAME, root_path=settings.ROOT_PATH or "")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(CallableError, callable_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(approvals_router)
app.include_router(audit_router)

@app.get("/")
def read_root():
    return {"message": "Lunch Manager admin functions are running", "backend": settings.BACKEND}

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="127.0.0.1", port=8010, reload=True)
