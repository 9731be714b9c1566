from fastapi import FastAPI

from .config import configure_logging, get_settings
from .routes import router


def create_app() -> FastAPI:
    configure_logging(get_settings().log_level)
    app = FastAPI(title="Whistlebox")
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
