import uvicorn

from cattery.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "cattery.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.API_RELOAD,
        log_config=None,  # cattery.core.logging configures logging
    )


if __name__ == "__main__":
    main()
