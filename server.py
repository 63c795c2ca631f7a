import asyncio
import logging
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field
import socketio

from go_board import Coord, label_to_coord
from go_errors import (CorruptRecordError, GameExistsError, GameNotFoundError, GoError,
                       InvalidBoardSizeError, MoveError, NoHistoryError, StorageError)
from go_game import GameSession
from game_store import GameStore
from replay import Replayer
from settings import Settings

logger = logging.getLogger(__name__)

settings = Settings.from_env()
store = GameStore(settings.save_path)

# FastAPI and Socket.IO setup
app = FastAPI(title="Go board engine")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
sio = socketio.AsyncServer(
    cors_allowed_origins='*' if '*' in settings.cors_origins else settings.cors_origins,
    async_mode='asgi')
socket_app = socketio.ASGIApp(sio, app)

# One session and one replayer per connected client
games: Dict[str, Dict] = {}


class SaveRequest(BaseModel):
    """A serialized session plus the name to save it under."""
    model_config = ConfigDict(extra='allow')

    name: str = Field(..., min_length=1)


class RenameRequest(BaseModel):
    oldName: str = Field(..., min_length=1)
    newName: str = Field(..., min_length=1)


def _http_error(error: GoError) -> HTTPException:
    if isinstance(error, GameNotFoundError):
        status = 404
    elif isinstance(error, GameExistsError):
        status = 409
    else:
        status = 400
    return HTTPException(status_code=status, detail=error.to_dict())


@app.get("/", response_class=PlainTextResponse)
async def read_index():
    return "Go backend running"


@app.post("/save")
async def save_game(request: SaveRequest):
    record = request.model_dump(exclude={'name'})
    try:
        session = GameSession.from_dict(record)
        store.save(request.name, session)
    except (CorruptRecordError, StorageError) as e:
        logger.warning("Rejected save of %r: %s", request.name, e)
        raise _http_error(e)
    return {"message": "Game saved successfully"}


@app.get("/list")
async def list_games():
    return store.list_games()


@app.get("/load/{name}")
async def load_game(name: str):
    try:
        session = store.load(name)
    except (CorruptRecordError, StorageError) as e:
        logger.warning("Failed to load %r: %s", name, e)
        raise _http_error(e)
    return dict(session.to_dict(), name=name)


@app.delete("/delete/{name}")
async def delete_game(name: str):
    try:
        store.delete(name)
    except StorageError as e:
        raise _http_error(e)
    return {"message": "Game deleted successfully"}


@app.put("/rename")
async def rename_game(request: RenameRequest):
    try:
        store.rename(request.oldName, request.newName)
    except StorageError as e:
        raise _http_error(e)
    return {"message": "Game renamed successfully"}


def _parse_coord(data, size: int) -> Coord:
    """Accept ``{'row': r, 'col': c}`` or ``{'coord': 'D4'}``."""
    if not isinstance(data, dict):
        raise ValueError("Move must be an object")
    if 'coord' in data:
        return label_to_coord(data['coord'], size)
    row, col = data.get('row'), data.get('col')
    for value in (row, col):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("row and col must be integers")
    return row, col


async def _emit_state(sid: str, session: GameSession):
    await sio.emit('gameState', session.get_state(), room=sid)


async def _emit_error(sid: str, error: GoError):
    await sio.emit('error', error.to_dict(), room=sid)


async def _get_game(sid: str) -> Optional[Dict]:
    game_data = games.get(sid)
    if game_data is None:
        await sio.emit('error', {'code': 'NO_GAME', 'message': 'No game found', 'context': {}},
                       room=sid)
    return game_data


async def _reject_during_replay(sid: str, game_data: Dict) -> bool:
    if game_data['replayer'].is_active:
        await sio.emit('error', {'code': 'REPLAY_ACTIVE',
                                 'message': 'Stop the replay before changing the game',
                                 'context': {}}, room=sid)
        return True
    return False


@sio.event
async def connect(sid, environ):
    logger.info("New client connected: %s", sid)


@sio.event
async def disconnect(sid):
    logger.info("Client disconnected: %s", sid)
    game_data = games.pop(sid, None)
    if game_data is not None:
        game_data['replayer'].stop()


@sio.event
async def newGame(sid, board_size=None):
    size = board_size if board_size is not None else settings.board_size
    try:
        session = GameSession(size)
    except InvalidBoardSizeError as e:
        await _emit_error(sid, e)
        return
    previous = games.get(sid)
    if previous is not None:
        previous['replayer'].stop()
    games[sid] = {'session': session, 'replayer': Replayer()}
    await _emit_state(sid, session)


@sio.event
async def makeMove(sid, data):
    game_data = await _get_game(sid)
    if game_data is None or await _reject_during_replay(sid, game_data):
        return
    session = game_data['session']
    try:
        coord = _parse_coord(data, session.size)
        captured = session.play(coord)
    except ValueError as e:
        await sio.emit('invalidMove', {'code': 'BAD_REQUEST', 'message': str(e),
                                       'context': {'data': data}}, room=sid)
        return
    except MoveError as e:
        logger.debug("Rejected move from %s: %s", sid, e)
        await sio.emit('invalidMove', e.to_dict(), room=sid)
        return
    if captured:
        logger.debug("Client %s captured %d stones", sid, captured)
    await _emit_state(sid, session)


@sio.event
async def pass_move(sid):
    game_data = await _get_game(sid)
    if game_data is None or await _reject_during_replay(sid, game_data):
        return
    session = game_data['session']
    try:
        session.pass_turn()
    except MoveError as e:
        await sio.emit('invalidMove', e.to_dict(), room=sid)
        return
    await _emit_state(sid, session)


@sio.event
async def undo(sid):
    game_data = await _get_game(sid)
    if game_data is None or await _reject_during_replay(sid, game_data):
        return
    session = game_data['session']
    try:
        session.undo()
    except NoHistoryError as e:
        await _emit_error(sid, e)
        return
    await _emit_state(sid, session)


@sio.event
async def saveGame(sid, name):
    game_data = await _get_game(sid)
    if game_data is None:
        return
    try:
        store.save(name, game_data['session'])
    except StorageError as e:
        await _emit_error(sid, e)
        return
    await sio.emit('gameSaved', {'name': name}, room=sid)


@sio.event
async def loadGame(sid, name):
    try:
        session = store.load(name)
    except (CorruptRecordError, StorageError) as e:
        logger.warning("Client %s failed to load %r: %s", sid, name, e)
        await _emit_error(sid, e)
        return
    previous = games.get(sid)
    if previous is not None:
        previous['replayer'].stop()
    games[sid] = {'session': session, 'replayer': Replayer()}
    await _emit_state(sid, session)


@sio.event
async def listGames(sid):
    await sio.emit('gameList', store.list_games(), room=sid)


@sio.event
async def startReplay(sid, data=None):
    game_data = await _get_game(sid)
    if game_data is None:
        return
    session = game_data['session']
    if data is not None and not isinstance(data, dict):
        await sio.emit('error', {'code': 'BAD_REQUEST', 'message': 'Replay options must be an object',
                                 'context': {'data': data}}, room=sid)
        return
    interval_ms = (data or {}).get('intervalMs') or settings.replay_interval_ms
    if isinstance(interval_ms, bool) or not isinstance(interval_ms, int) or interval_ms <= 0:
        await sio.emit('error', {'code': 'BAD_REQUEST', 'message': 'intervalMs must be a positive integer',
                                 'context': {'intervalMs': interval_ms}}, room=sid)
        return

    def on_step(handle):
        asyncio.ensure_future(sio.emit('replayBoard', handle.to_dict(), room=sid))

    def on_finish(handle):
        asyncio.ensure_future(sio.emit('replayState', handle.to_dict(), room=sid))

    handle = game_data['replayer'].start(
        list(session.move_list), interval_ms, size=session.size,
        on_step=on_step, on_finish=on_finish, loop=asyncio.get_running_loop())
    await sio.emit('replayState', handle.to_dict(), room=sid)


async def _control_replay(sid: str, action: str):
    game_data = await _get_game(sid)
    if game_data is None:
        return
    handle = game_data['replayer'].handle
    if handle is None:
        await sio.emit('error', {'code': 'NO_REPLAY', 'message': 'No replay running',
                                 'context': {}}, room=sid)
        return
    getattr(handle, action)()
    await sio.emit('replayState', handle.to_dict(), room=sid)


@sio.event
async def pauseReplay(sid):
    await _control_replay(sid, 'pause')


@sio.event
async def resumeReplay(sid):
    await _control_replay(sid, 'resume')


@sio.event
async def stopReplay(sid):
    await _control_replay(sid, 'stop')


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("Serving on %s:%d, saves in %s", settings.host, settings.port, settings.save_path)
    uvicorn.run(socket_app, host=settings.host, port=settings.port)
