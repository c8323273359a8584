# contact_api/dependencies.py
from fastapi import Request

from contact_api.core.mailer import MailDispatcher
from contact_api.core.settings import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_dispatcher(request: Request) -> MailDispatcher:
    return request.app.state.dispatcher
