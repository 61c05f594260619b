import uvicorn

from core import config

if __name__ == "__main__":
    config.configure_logging()
    uvicorn.run(
        "web.api:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.RELOAD,
        log_level=config.LOG_LEVEL.lower(),
    )
