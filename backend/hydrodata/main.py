from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from hydrodata import config
from hydrodata.api.ingest import router as ingest_router
from hydrodata.api.interpolate import router as interpolate_router
from hydrodata.api.regions import router as regions_router
from hydrodata.api.uploads import router as uploads_router
from hydrodata.logging_config import setup_logging

setup_logging(config.LOG_LEVEL, config.LOG_FILE or None)

app = FastAPI(title="Groundwater Dataset Service")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(uploads_router)
app.include_router(ingest_router)
app.include_router(interpolate_router)
app.include_router(regions_router)

@app.get("/")
def root():
    return {"status": "ok", "service": "groundwater-dataset-service"}
