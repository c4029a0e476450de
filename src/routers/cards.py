import logging

from fastapi import APIRouter, Depends, Header, Request, Response

from src.models.dc_models import (
    CardsResponseModel,
    EnergyResponseModel,
    ErrorModel,
    LevelUpResponseModel,
    ProgressResponseModel,
)
from src.security.request_guard import RequestGuard
from src.services.progress_service import ProgressService

DEMO_USER = "demo-user"

CORS_HEADERS = {
    "Access-Control-Allow-Credentials": "true",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,DELETE,PATCH,POST,PUT",
    "Access-Control-Allow-Headers": (
        "X-CSRF-Token, X-Requested-With, Accept, Accept-Version, Content-Length, "
        "Content-MD5, Content-Type, Date, X-Api-Version, x-user-id"
    ),
}

ERROR_RESPONSES = {
    400: {"model": ErrorModel},
    404: {"model": ErrorModel},
    405: {"model": ErrorModel},
    429: {"model": ErrorModel},
    500: {"model": ErrorModel},
}

card_router = APIRouter()


def get_username(x_user_id: str | None = Header(default=None)) -> str:
    """Storage key of the caller; demo deployments fall back to a shared demo user"""
    return x_user_id or DEMO_USER


def get_request_guard(request: Request) -> RequestGuard:
    return request.app.state.request_guard


def get_progress_service(request: Request) -> ProgressService:
    return request.app.state.progress_service


class ProgressAPI:
    @staticmethod
    @card_router.post(
        "/progress", response_model=ProgressResponseModel, responses=ERROR_RESPONSES
    )
    async def progress(
        request: Request,
        username: str = Depends(get_username),
        guard: RequestGuard = Depends(get_request_guard),
        service: ProgressService = Depends(get_progress_service),
    ) -> ProgressResponseModel:
        payload = await guard.guard(request, request.app.state.settings.progress_security)
        response = await service.progress(username, payload.card_id)
        logging.debug(f"progress response: {response}")
        return response

    @staticmethod
    @card_router.post(
        "/batch-progress", response_model=ProgressResponseModel, responses=ERROR_RESPONSES
    )
    async def batch_progress(
        request: Request,
        username: str = Depends(get_username),
        guard: RequestGuard = Depends(get_request_guard),
        service: ProgressService = Depends(get_progress_service),
    ) -> ProgressResponseModel:
        payload = await guard.guard(
            request, request.app.state.settings.batch_security, batch=True
        )
        response = await service.batch_progress(username, payload.card_id, payload.clicks)
        logging.debug(f"batch-progress response: {response}")
        return response


class LevelUpAPI:
    @staticmethod
    @card_router.post(
        "/level-up", response_model=LevelUpResponseModel, responses=ERROR_RESPONSES
    )
    async def level_up(
        request: Request,
        username: str = Depends(get_username),
        guard: RequestGuard = Depends(get_request_guard),
        service: ProgressService = Depends(get_progress_service),
    ) -> LevelUpResponseModel:
        payload = await guard.guard(request, request.app.state.settings.level_up_security)
        return await service.level_up(username, payload.card_id)


class EnergyAPI:
    @staticmethod
    @card_router.get(
        "/energy", response_model=EnergyResponseModel, responses=ERROR_RESPONSES
    )
    async def energy(
        username: str = Depends(get_username),
        service: ProgressService = Depends(get_progress_service),
    ) -> EnergyResponseModel:
        return await service.energy(username)


class CardsAPI:
    @staticmethod
    @card_router.get(
        "/cards", response_model=CardsResponseModel, responses=ERROR_RESPONSES
    )
    async def cards(
        username: str = Depends(get_username),
        service: ProgressService = Depends(get_progress_service),
    ) -> CardsResponseModel:
        return await service.list_cards(username)


async def preflight() -> Response:
    """Answer OPTIONS without an Origin header too (CORSMiddleware only handles real preflights)"""
    return Response(status_code=200, headers=CORS_HEADERS)


for path in ("/progress", "/batch-progress", "/level-up", "/energy", "/cards"):
    card_router.add_api_route(path, preflight, methods=["OPTIONS"], include_in_schema=False)
