from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

import models  # noqa: F401  註冊所有 table 到 Base.metadata
from database import Base, SessionLocal, engine, settings
from api import election, proposals, voters
from core.election_manager import ElectionManager

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: 建立資料庫表，並確保這個服務主持的那一場選舉存在
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        election_obj = ElectionManager.get_or_create_election(db, settings.controller_id)
        app.state.election_id = election_obj.id
    finally:
        db.close()
    logger.info(f"Serving election {app.state.election_id}")
    yield


app = FastAPI(
    title="Election API",
    description="Single-election governance workflow: whitelist, proposals, one vote per voter, tally",
    version="1.0.0",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure this properly in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(election.router)
app.include_router(voters.router)
app.include_router(proposals.router)


@app.get("/")
def root():
    return {"message": "Election API", "status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
