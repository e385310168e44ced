"""
HTTP endpoint for the Import Coordinator.

    POST /bulk-import-products
    Authorization: Bearer <session token>
    {"row": {...}}

Caller errors come back as 4xx {"error": ...}; per-row outcomes (imported,
skipped, error) are all 200 with a `status` field.

Run with:
    sneakin-api
    uvicorn sneakin.importer.api:app
"""

import os
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from sneakin import __version__
from sneakin.importer.coordinator import ImportCoordinator, build_coordinator
from sneakin.importer.errors import BadRequest, ImportRejected, Unauthorized
from sneakin.importer.models import ImportRow
from sneakin.utils.logging import get_logger

logger = get_logger('sneakin.api')

IMPORT_PATH = '/bulk-import-products'

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'authorization, x-client-info, apikey, content-type',
}


def add_cors(app: FastAPI, origins=None):
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )


def json_response(body: dict, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=body, status_code=status_code, headers=CORS_HEADERS)


def bearer_token(authorization: Optional[str]) -> str:
    """Strip the Bearer prefix from an Authorization header."""
    if not authorization:
        raise Unauthorized()
    return authorization.replace('Bearer ', '', 1).strip()


def create_app(coordinator: Optional[ImportCoordinator] = None) -> FastAPI:
    """
    Build the endpoint app.

    Without a coordinator one is wired from the environment on the first
    request, so importing this module never needs Supabase credentials.
    """
    app = FastAPI(title="Sneakin Bulk Import API", version=__version__)
    add_cors(app)
    app.state.coordinator = coordinator

    def get_coordinator() -> ImportCoordinator:
        if app.state.coordinator is None:
            app.state.coordinator = build_coordinator()
        return app.state.coordinator

    @app.options(IMPORT_PATH)
    async def preflight():
        return PlainTextResponse('ok', headers=CORS_HEADERS)

    @app.api_route(IMPORT_PATH, methods=['GET', 'HEAD', 'PUT', 'PATCH', 'DELETE', 'TRACE'])
    async def method_not_allowed():
        return json_response({'error': 'Method not allowed'}, status_code=405)

    @app.post(IMPORT_PATH)
    async def bulk_import_product(request: Request):
        try:
            logger.info("Request received")
            token = bearer_token(request.headers.get('Authorization'))

            coordinator = get_coordinator()
            user_id = await coordinator.authorize(token)

            try:
                body = await request.json()
            except ValueError as e:
                raise BadRequest("Invalid JSON body") from e

            payload = body.get('row') if isinstance(body, dict) else None
            row = ImportRow.from_payload(payload)

            result = await coordinator.import_validated(row, user_id)
            return json_response(result.to_dict())

        except ImportRejected as e:
            logger.warning("Request rejected", extra={'data': {'status': e.status_code, 'error': e.message}})
            return json_response({'error': e.message}, status_code=e.status_code)
        except Exception as e:
            logger.error("Unhandled exception", extra={'data': {'message': str(e)}}, exc_info=True)
            return json_response({'error': str(e)}, status_code=500)

    return app


app = create_app()


def serve():
    """Console entry point: run the endpoint under uvicorn."""
    uvicorn.run(
        'sneakin.importer.api:app',
        host=os.getenv('HOST', '0.0.0.0'),
        port=int(os.getenv('PORT', '8000')),
    )


if __name__ == '__main__':
    serve()
