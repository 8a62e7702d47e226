"""HTTP service exposing diary generation.

Usage::

    uvicorn memory_box.api.app:app

or ``memory-box serve``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from memory_box.config import load_config
from memory_box.errors import InvalidPhotoError
from memory_box.generation import DiaryGenerator, check_photo_type
from memory_box.llm.litellm import LiteLLMVisionClient

logger = logging.getLogger(__name__)

GeneratorFactory = Callable[[], DiaryGenerator]

_FALLBACK_ERROR = "Unexpected error while generating diary entry."


def default_generator_factory() -> DiaryGenerator:
    """Build a generator from the current environment.

    Called per request so key, base URL and model changes apply without a
    restart.  Raises ``MissingApiKeyError`` when no key is configured.
    """
    cfg = load_config()
    client = LiteLLMVisionClient(
        api_key=cfg.require_api_key(),
        base_url=cfg.openai_base_url,
        model=cfg.openai_model_id,
    )
    return DiaryGenerator(client, prompt_path=cfg.prompt_path or None)


def _form_text(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def create_app(
    generator_factory: GeneratorFactory = default_generator_factory,
) -> FastAPI:
    app = FastAPI(title="Memory Box API")

    @app.get("/")
    def health() -> dict:
        return {"status": "ok"}

    @app.post("/api/generate")
    async def generate(request: Request) -> JSONResponse:
        try:
            form = await request.form()
            photo = form.get("photo")
            if not isinstance(photo, UploadFile):
                raise InvalidPhotoError()
            media_type = check_photo_type(photo.content_type)

            data = await photo.read()
            generator = generator_factory()
            result = await generator.generate(
                data,
                media_type,
                nickname=_form_text(form.get("childNickname")),
                age=_form_text(form.get("childAge")),
                keywords=_form_text(form.get("recentKeywords")),
            )
            return JSONResponse(status_code=200, content=result.to_json_dict())

        except InvalidPhotoError as e:
            logger.info("Rejected upload: %s", e.message)
            return JSONResponse(status_code=400, content={"error": e.message})

        except Exception as e:
            logger.error("Failed to produce diary entry", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"error": str(e) or _FALLBACK_ERROR},
            )

    return app


app = create_app()
