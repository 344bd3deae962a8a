from fastapi import Request

from .config import Settings
from .media import PlaceholderMedia, SupabaseMedia
from .store.base import Store


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_media(request: Request) -> SupabaseMedia | PlaceholderMedia:
    return request.app.state.media


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
