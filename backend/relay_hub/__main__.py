import uvicorn

from relay_hub.core.config import settings


def main():
    uvicorn.run(
        "relay_hub.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
