from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.routes.transcripts import router as transcripts_router

app = FastAPI(
    title="Transcript Merge API",
    description="Timestamp correction and overlap-aware merging of chunked transcripts",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:8501",
    ],
    allow_origin_regex=r"http://localhost:\d+",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(transcripts_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}
