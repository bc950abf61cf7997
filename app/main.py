from fastapi import FastAPI
from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware

from app.api import auth, expenses
from app.core.config import CORS_ORIGINS, LOG_FILE, LOG_LEVEL
from app.core.errors import register_exception_handlers
from app.core.logging_config import setup_logging
from app.database import create_db_and_tables

setup_logging(LOG_LEVEL, LOG_FILE)

@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    yield

app = FastAPI(title="Expense Tracker API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth.router)
app.include_router(expenses.router)

@app.get("/")
def root():
    return {"message": "Expense tracker server"}
