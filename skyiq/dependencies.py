from fastapi import Request, WebSocket


def get_dispatcher(request: Request):
    return request.app.state.dispatcher


def get_broadcaster(request: Request):
    return request.app.state.broadcaster


def get_ws_broadcaster(websocket: WebSocket):
    return websocket.app.state.broadcaster
