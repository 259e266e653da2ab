import logging

from intervention_app.core.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

from intervention_app.api import create_app

app = create_app()

if __name__ == "__main__":
    print("Intervention service starting. API available at http://localhost:8000")
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, log_level="info")
