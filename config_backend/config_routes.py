"""
GET /api/config and GET /api/config/{key}. Token is checked before any upstream call.
"""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from config_backend.auth import RequireUser
from config_backend.errors import UpstreamError
from config_backend.proxy import ConfigProxy
from config_backend.schemas import ConfigEntryResponse, ConfigResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/config")


def get_proxy(request: Request) -> ConfigProxy:
    return request.app.state.proxy


@router.get("", response_model=ConfigResponse)
async def get_all_config(
    proxy: Annotated[ConfigProxy, Depends(get_proxy)],
    claims: dict = RequireUser,
):
    """Promo banner text/colour and the new-checkout flag."""
    try:
        config = await proxy.get_all_config()
    except UpstreamError as e:
        logger.error("Error loading settings: %s", e.describe())
        raise UpstreamError("Failed to load configuration", details=e.describe()) from e
    return ConfigResponse(config=config)


@router.get("/{key:path}", response_model=ConfigEntryResponse)
async def get_config_by_key(
    key: str,
    proxy: Annotated[ConfigProxy, Depends(get_proxy)],
    claims: dict = RequireUser,
):
    """
    Any key, verbatim (value + last modified). No allow-list: every authenticated user
    can read every key in the store.
    """
    try:
        entry = await proxy.get_config_by_key(key)
    except UpstreamError as e:
        logger.error("Error loading setting %r: %s", key, e.describe())
        raise UpstreamError("Failed to load configuration setting", details=e.describe()) from e
    return ConfigEntryResponse(key=entry.key, value=entry.value, lastModified=entry.last_modified)
