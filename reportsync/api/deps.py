# reportsync/api/deps.py
from fastapi import Request


def get_report_repository(request: Request):
    """
    FastAPI dependency returning the repository opened by the app lifespan
    """
    return request.app.state.reports


def get_category_directory(request: Request):
    return request.app.state.categories


def get_validation_service(request: Request):
    return request.app.state.validation
