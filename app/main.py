from fastapi import FastAPI

from app.api import insights

app = FastAPI(title="Bloat Insights", version="0.1.0")

app.include_router(insights.router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
