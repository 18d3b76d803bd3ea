from fastapi import FastAPI
import uvicorn

from email_ics.api.ics import router as ics_router
from email_ics.logging import configure_logging

configure_logging()

app = FastAPI()
app.include_router(ics_router)


@app.get("/ping")
async def ping():
    return {"message": "pong"}


if __name__ == "__main__":
    uvicorn.run("email_ics.main:app", host="0.0.0.0", port=8000, reload=True)
