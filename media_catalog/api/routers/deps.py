from fastapi import Request


def get_store(request: Request):
    return request.app.state.store


def get_registry(request: Request):
    return request.app.state.registry


def get_orchestrator(request: Request):
    return request.app.state.orchestrator
