"""Cross-origin access for the blog frontend."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Admin tooling posts rebuild and sync requests with the key header
ALLOWED_METHODS = ["GET", "POST", "OPTIONS"]
ALLOWED_HEADERS = ["Content-Type", "X-API-Key", "X-Request-ID"]


def configure_cors(app: FastAPI, allowed_origins: list[str], max_age: int = 600) -> None:
    """Let the configured frontend origins call the API from the browser.

    No cookies are involved (the admin key travels in a header), so
    credentials stay disabled.

    Args:
        app: FastAPI application instance.
        allowed_origins: Origins of the blog frontend and admin UI.
        max_age: Seconds browsers may cache a preflight response.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=False,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
        expose_headers=["X-Request-ID"],
        max_age=max_age,
    )
