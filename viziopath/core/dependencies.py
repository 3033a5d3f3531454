from fastapi import Depends, Request

from .container import ApplicationContainer


def get_container(request: Request) -> ApplicationContainer:
    container = getattr(request.app.state, "container", None)
    if not container:
        raise RuntimeError("Application container not initialised.")
    return container


def get_settings(container: ApplicationContainer = Depends(get_container)):
    return container.settings


def get_account_service(container: ApplicationContainer = Depends(get_container)):
    return container.account_service


def get_profile_service(container: ApplicationContainer = Depends(get_container)):
    return container.profile_service


def get_storage_service(container: ApplicationContainer = Depends(get_container)):
    return container.storage_service
