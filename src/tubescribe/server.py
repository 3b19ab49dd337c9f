"""HTTP API for the transcription pipeline."""

import os
from dataclasses import replace
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from tubescribe import __version__
from tubescribe.shared import (
    tprint as print,
    TranscribeConfig, TranscriptionError,
    DurationLimitError, InvalidRequestError,
)
from tubescribe.pipeline import transcribe_url

DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://localhost:4173"


class TranscribeOptions(BaseModel):
    """Per-request options, named as the frontend sends them."""

    language: Optional[str] = None
    auto_language_detection: bool = Field(True, alias="autoLanguageDetection")

    model_config = {"populate_by_name": True}


class TranscribeRequest(BaseModel):
    url: Optional[str] = None
    options: Optional[TranscribeOptions] = None


class TranscribeResponse(BaseModel):
    transcript: str
    language: str
    duration: int
    source: str


def _cors_origins() -> list[str]:
    raw = os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
    return [o.strip() for o in raw.split(",") if o.strip()]


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def config_for_request(base: TranscribeConfig,
                       options: Optional[TranscribeOptions]) -> TranscribeConfig:
    """Copy the server's base configuration with the request's language options."""
    options = options or TranscribeOptions()
    return replace(
        base,
        language=options.language,
        auto_language_detection=options.auto_language_detection,
        caption_language=options.language or base.caption_language,
    )


def create_app(base_config: Optional[TranscribeConfig] = None) -> FastAPI:
    base_config = base_config or TranscribeConfig()

    app = FastAPI(title="Tubescribe API", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_methods=["GET", "POST"],
        allow_credentials=True,
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        """Answer malformed bodies in the same {"error"} shape as other failures."""
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors())
        return _error(400, f"Invalid request: {problems}")

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.post("/api/transcribe", response_model=TranscribeResponse)
    def transcribe(request: Optional[TranscribeRequest] = None):
        """Transcribe one URL; errors come back as {"error": message}."""
        try:
            if request is None or not request.url:
                raise InvalidRequestError("Missing url")
            config = config_for_request(base_config, request.options)
            outcome = transcribe_url(config, request.url)
        except (InvalidRequestError, DurationLimitError) as e:
            return _error(400, str(e))
        except (TranscriptionError, ValueError) as e:
            print(f"Error transcribing {request.url}: {e}")
            return _error(500, str(e))
        except Exception as e:
            print(f"Unexpected error transcribing {request.url}: {e!r}")
            return _error(500, str(e) or "Internal server error")
        return outcome.to_dict()

    return app


app = create_app()


def main():
    import uvicorn
    port = int(os.getenv("PORT", "8080"))
    print(f"Tubescribe API listening on :{port}")
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
