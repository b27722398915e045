"""Inbound HTTP API: one method-dispatched query endpoint."""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse

from livepush.coordinator import QueryService, ResponseStatus
from livepush.exceptions import InvalidQueryError

logger = logging.getLogger(__name__)


def create_app(service: QueryService) -> FastAPI:
    """Build the FastAPI app serving *service*.

    GET /api?method=<method>&comp=<compId>&class=<className>&club=<club>&last_hash=<hash>
    """
    app = FastAPI(title="livepush")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api")
    async def api(
        method: str | None = None,
        comp: str | None = None,
        class_name: str | None = Query(default=None, alias="class"),
        club: str | None = None,
        last_hash: str | None = None,
    ) -> JSONResponse:
        if not method:
            raise HTTPException(status_code=400, detail="Missing 'method' parameter")

        logger.info("API request: method=%s, comp=%s, class=%s", method, comp, class_name)
        params = {"comp": comp, "class": class_name, "club": club}
        try:
            response = await service.handle(method, params, last_hash)
        except InvalidQueryError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        status_code = 502 if response.status is ResponseStatus.ERROR else 200
        return JSONResponse(response.to_dict(), status_code=status_code)

    return app
