"""Request dependencies backed by the handles created at startup"""
from typing import Optional
from fastapi import Depends, Header, Request

from sheetchat.services.ai_service import AIService
from sheetchat.services.google_sheets_service import GoogleSheetsService
from sheetchat.services.identity import Identity, IdentityResolver


def get_sheets_service(request: Request) -> GoogleSheetsService:
    return request.app.state.sheets_service


def get_ai_service(request: Request) -> AIService:
    return request.app.state.ai_service


def get_identity_resolver(request: Request) -> IdentityResolver:
    return request.app.state.identity_resolver


def get_identity(
    authorization: Optional[str] = Header(None),
    x_google_access_token: Optional[str] = Header(None),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> Identity:
    """Resolve the caller from the Authorization and X-Google-Access-Token headers"""
    return resolver.resolve(authorization, x_google_access_token)
