from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import SQLModel
import models  # Ensure every table is known by SQLModel for table creation
from db.session import get_engine
from contextlib import asynccontextmanager
from api.admin_employee_request_routes import router as admin_employee_request_router
from api.admin_time_clock_routes import router as admin_time_clock_router
from api.admin_team_routes import router as admin_team_router
from api.user_employee_request_routes import router as user_employee_request_router
from core.config import DEV_DOMAIN, LOG_LEVEL, PRODUCTION_DOMAIN
import logging

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

# This file is the control center of the whole application

# Construct the list of allowed origins, always including both dev and production
allowed_origins_list = [
    DEV_DOMAIN,
    PRODUCTION_DOMAIN,
    "http://localhost:3000",  # Additional fallback for React dev
    "http://127.0.0.1:5173",  # Additional fallback for Vite dev
]

# Remove any None values and duplicates
allowed_origins_list = list(set([origin for origin in allowed_origins_list if origin]))

logger.info(f"🌐 CORS: Allowing origins: {allowed_origins_list}")

# When We Start, Create the DB Tables if they don't exist
@asynccontextmanager
async def lifespan(app: FastAPI):

    SQLModel.metadata.create_all(get_engine())

    # (would do shutdown cleanup here if needed)
    yield


# Starts Fast API Up; Init
app = FastAPI(lifespan=lifespan)

# Allow requests from your React dev server & production
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins_list, # Use the constructed list
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(admin_employee_request_router, prefix="/admin/employee-requests", tags=["Admin", "Employee Requests"])
app.include_router(admin_time_clock_router, prefix="/admin/time-clock", tags=["Admin", "Time Clock"])
app.include_router(admin_team_router, prefix="/admin/team", tags=["Admin", "Team"])
app.include_router(user_employee_request_router, prefix="/employee-requests", tags=["Employee Requests"])
