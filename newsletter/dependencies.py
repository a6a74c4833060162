"""Dependencies exposing the collaborators built in the application lifespan."""

from fastapi import Request

from newsletter.email_client import EmailClient
from newsletter.rendering import TemplateRenderer


def get_email_client(request: Request) -> EmailClient:
    return request.app.state.email_client


def get_renderer(request: Request) -> TemplateRenderer:
    return request.app.state.renderer
