from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from readiness import __version__, config
from readiness.api.assessment import router as assessment_router

load_dotenv()

app = FastAPI(title="Revenue Readiness Diagnostic API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(assessment_router)
