import httpx

from filesdk.clients.authorization import AuthorizationClient
from filesdk.repositories.base import FileRepository
from filesdk.settings import Settings


def get_http_client(settings: Settings) -> httpx.Client:
    return httpx.Client(timeout=settings.http_timeout)


def get_file_repository(settings: Settings, http: httpx.Client | None = None) -> FileRepository:
    from filesdk.repositories.http import HTTPFileRepository

    return HTTPFileRepository(settings.api_base_url, http or get_http_client(settings))


def get_authorization_client(settings: Settings, http: httpx.Client | None = None) -> AuthorizationClient:
    return AuthorizationClient(settings.api_base_url, http or get_http_client(settings))
