import asyncio
import logging
import uuid
from typing import List, Optional

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlmodel import Field, Session, SQLModel
from starlette.concurrency import run_in_threadpool

from ..core.auth_provider import LocalAuthProvider
from ..core.realtime import category_hub
from ..database import get_session
from ..dependencies import get_auth_provider, get_current_user
from ..models.user import User
from ..services import categories as category_service
from ..services.categories import CategoryRead, SubcategoryRead

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/categories",
    tags=["categories"],
)


class CategoryCreate(SQLModel):
    name: str = Field(min_length=1, max_length=50)
    icon: str = Field(default=category_service.DEFAULT_ICON, min_length=1, max_length=50)
    color: str = Field(default=category_service.DEFAULT_COLOR, min_length=1, max_length=20)


class SubcategoryCreate(SQLModel):
    name: str = Field(min_length=1, max_length=50)


class BudgetIn(SQLModel):
    budget: Optional[float] = Field(default=None, ge=0)


class StyleIn(SQLModel):
    icon: str = Field(min_length=1, max_length=50)
    color: str = Field(min_length=1, max_length=20)


def _not_found():
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Categoría no encontrada o no pertenece al usuario",
    )


@router.get("", response_model=List[CategoryRead])
def list_categories(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return category_service.list_categories(session, current_user.id)


@router.post(
    "",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
)
def add_category(
    payload: CategoryCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return category_service.add_category(
        session, current_user.id, payload.name.strip(), payload.icon, payload.color
    )


@router.get("/{category_id}", response_model=CategoryRead)
def get_category(
    category_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    category = category_service.get_category(session, current_user.id, category_id)
    if category is None:
        _not_found()
    return category


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_category(
    category_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if not category_service.delete_category(session, current_user.id, category_id):
        _not_found()
    return None


@router.post(
    "/{category_id}/subcategories",
    response_model=SubcategoryRead,
    status_code=status.HTTP_201_CREATED,
)
def add_subcategory(
    category_id: uuid.UUID,
    payload: SubcategoryCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    sub = category_service.add_subcategory(session, current_user.id, category_id, payload.name.strip())
    if sub is None:
        _not_found()
    return SubcategoryRead(id=sub.id, name=sub.name)


@router.delete(
    "/{category_id}/subcategories/{subcategory_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_subcategory(
    category_id: uuid.UUID,
    subcategory_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if not category_service.delete_subcategory(session, current_user.id, category_id, subcategory_id):
        _not_found()
    return None


@router.put("/{category_id}/budget", response_model=CategoryRead)
def update_budget(
    category_id: uuid.UUID,
    payload: BudgetIn,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    category = category_service.update_budget(session, current_user.id, category_id, payload.budget)
    if category is None:
        _not_found()
    return category


@router.put("/{category_id}/style", response_model=CategoryRead)
def update_style(
    category_id: uuid.UUID,
    payload: StyleIn,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    category = category_service.update_style(session, current_user.id, category_id, payload.icon, payload.color)
    if category is None:
        _not_found()
    return category


def _registered_user(session: Session, provider: LocalAuthProvider, token: str) -> Optional[uuid.UUID]:
    try:
        principal = provider.get_session(session, token)
        if principal is None or session.get(User, principal.account_id) is None:
            return None
        return principal.account_id
    finally:
        session.close()


def _snapshot(session: Session, user_id: uuid.UUID) -> list:
    try:
        return [c.model_dump(mode="json") for c in category_service.list_categories(session, user_id)]
    finally:
        # release the connection between pushes
        session.close()


@router.websocket("/ws")
async def categories_feed(
    websocket: WebSocket,
    token: str = Query(...),
    session: Session = Depends(get_session),
    provider: LocalAuthProvider = Depends(get_auth_provider),
):
    """
    Full category list on connect and again after every change to the
    caller's categories or subcategories. Client messages are ignored.
    """
    # database work stays off the event loop
    user_id = await run_in_threadpool(_registered_user, session, provider, token)
    if user_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    changes = category_hub.subscribe(user_id)
    receive = asyncio.ensure_future(websocket.receive_text())
    change = asyncio.ensure_future(changes.get())
    try:
        await websocket.send_json(await run_in_threadpool(_snapshot, session, user_id))
        while True:
            done, _ = await asyncio.wait({receive, change}, return_when=asyncio.FIRST_COMPLETED)
            if receive in done:
                # raises WebSocketDisconnect once the client is gone
                receive.result()
                receive = asyncio.ensure_future(websocket.receive_text())
            if change in done:
                change = asyncio.ensure_future(changes.get())
                await websocket.send_json(await run_in_threadpool(_snapshot, session, user_id))
    except WebSocketDisconnect:
        logger.info("Category feed closed by client for user %s", user_id)
    finally:
        receive.cancel()
        change.cancel()
        category_hub.unsubscribe(user_id, changes)
