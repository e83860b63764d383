"""Run the server: python -m mathgpt"""
import uvicorn

from mathgpt.config import settings

if __name__ == "__main__":
    uvicorn.run("mathgpt.server:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
