import uvicorn

from flightrelay.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "flightrelay.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.logging.LEVEL.lower()
    )


if __name__ == "__main__":
    main()
