"""
API dependency helpers.

Routes reach the repositories through the services container stored on
``app.state`` by the application lifespan.
"""
from fastapi import Depends
from starlette.requests import Request

from minitracker.bootstrap import TrackerServices
from minitracker.db.repositories import Repositories


def get_services(request: Request) -> TrackerServices:
    return request.app.state.services


def get_repositories(services: TrackerServices = Depends(get_services)) -> Repositories:
    return services.repositories
