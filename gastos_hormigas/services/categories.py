"""
Category data access: default seeding, reads and owner-scoped mutations.

Every mutation commits, reads back its result and then notifies the realtime
hub so open category feeds refetch.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlmodel import Session, SQLModel, select

from ..core.realtime import category_hub
from ..models.category import Category, Subcategory

logger = logging.getLogger(__name__)

DEFAULT_ICON = "Tag"
DEFAULT_COLOR = "#607D8B"

DEFAULT_CATEGORIES = [
    {
        "name": "Alimentación",
        "icon": "ShoppingCart",
        "color": "#FF6B6B",
        "subcategories": ["Supermercado", "Restaurantes", "Cafetería", "Comida rápida"],
    },
    {
        "name": "Transporte",
        "icon": "Car",
        "color": "#4ECDC4",
        "subcategories": ["Combustible", "Transporte público", "Taxi", "Mantenimiento"],
    },
    {
        "name": "Vivienda",
        "icon": "Home",
        "color": "#45B7D1",
        "subcategories": ["Alquiler", "Gasto Fijo", "Reparaciones", "Muebles"],
    },
    {
        "name": "Servicios",
        "icon": "Zap",
        "color": "#F7B731",
        "subcategories": ["Electricidad", "Agua", "Internet", "Teléfono", "Gasto Fijo"],
    },
    {
        "name": "Salud",
        "icon": "Heart",
        "color": "#EE5A6F",
        "subcategories": ["Médico", "Farmacia", "Seguro médico"],
    },
    {
        "name": "Entretenimiento",
        "icon": "Film",
        "color": "#A55EEA",
        "subcategories": ["Cine", "Suscripciones", "Salidas", "Viajes"],
    },
    {
        "name": "Educación",
        "icon": "BookOpen",
        "color": "#26DE81",
        "subcategories": ["Cursos", "Libros", "Material escolar"],
    },
    {
        "name": "Ropa",
        "icon": "Shirt",
        "color": "#FD9644",
        "subcategories": ["Ropa", "Calzado", "Accesorios"],
    },
    {
        "name": "Otros",
        "icon": DEFAULT_ICON,
        "color": DEFAULT_COLOR,
        "subcategories": ["Varios", "Regalos", "Mascotas"],
    },
]


class SubcategoryRead(SQLModel):
    id: uuid.UUID
    name: str


class CategoryRead(SQLModel):
    id: uuid.UUID
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None
    is_default: bool
    budget: Optional[float] = None
    subcategories: List[SubcategoryRead] = []


def has_categories(session: Session, user_id: uuid.UUID) -> bool:
    return session.exec(select(Category.id).where(Category.user_id == user_id).limit(1)).first() is not None


def initialize_default_categories(session: Session, user_id: uuid.UUID) -> bool:
    """Seed the default template if the user owns no category. Returns True if seeded."""
    if has_categories(session, user_id):
        logger.info("User %s already has categories; skipping seeding", user_id)
        return False

    now = datetime.now(timezone.utc)
    seeded = []
    for template in DEFAULT_CATEGORIES:
        category = Category(
            user_id=user_id,
            name=template["name"],
            icon=template["icon"],
            color=template["color"],
            is_default=True,
            created_at=now,
            updated_at=now,
        )
        session.add(category)
        seeded.append((category, template["subcategories"]))
    session.flush()

    for category, names in seeded:
        for position, name in enumerate(names):
            session.add(Subcategory(category_id=category.id, name=name, position=position, created_at=now))
    session.flush()
    logger.info("Seeded %d default categories for user %s", len(DEFAULT_CATEGORIES), user_id)
    return True


def subcategories_by_category(session: Session, category_ids: List[uuid.UUID]) -> Dict[uuid.UUID, List[Subcategory]]:
    grouped: Dict[uuid.UUID, List[Subcategory]] = {cid: [] for cid in category_ids}
    if not category_ids:
        return grouped
    rows = session.exec(
        select(Subcategory)
        .where(Subcategory.category_id.in_(category_ids))
        .order_by(Subcategory.position, Subcategory.created_at)
    ).all()
    for sub in rows:
        grouped[sub.category_id].append(sub)
    return grouped


def _to_read(category: Category, subcategories: List[Subcategory]) -> CategoryRead:
    return CategoryRead(
        id=category.id,
        name=category.name,
        icon=category.icon,
        color=category.color,
        is_default=category.is_default,
        budget=category.budget,
        subcategories=[SubcategoryRead(id=s.id, name=s.name) for s in subcategories],
    )


def list_categories(session: Session, user_id: uuid.UUID) -> List[CategoryRead]:
    categories = session.exec(
        select(Category).where(Category.user_id == user_id).order_by(Category.name)
    ).all()
    grouped = subcategories_by_category(session, [c.id for c in categories])
    return [_to_read(c, grouped[c.id]) for c in categories]


def get_owned_category(session: Session, user_id: uuid.UUID, category_id: uuid.UUID) -> Optional[Category]:
    category = session.get(Category, category_id)
    if category is None or category.user_id != user_id:
        return None
    return category


def get_category(session: Session, user_id: uuid.UUID, category_id: uuid.UUID) -> Optional[CategoryRead]:
    category = get_owned_category(session, user_id, category_id)
    if category is None:
        return None
    grouped = subcategories_by_category(session, [category.id])
    return _to_read(category, grouped[category.id])


def _notify(user_id: uuid.UUID, table: str, result=None):
    category_hub.notify(user_id, table)
    return result


def add_category(
    session: Session,
    user_id: uuid.UUID,
    name: str,
    icon: str = DEFAULT_ICON,
    color: str = DEFAULT_COLOR,
) -> CategoryRead:
    now = datetime.now(timezone.utc)
    category = Category(
        user_id=user_id,
        name=name,
        icon=icon,
        color=color,
        is_default=False,
        created_at=now,
        updated_at=now,
    )
    session.add(category)
    session.commit()
    session.refresh(category)
    return _notify(user_id, "categories", _to_read(category, []))


def delete_category(session: Session, user_id: uuid.UUID, category_id: uuid.UUID) -> bool:
    category = get_owned_category(session, user_id, category_id)
    if category is None:
        return False
    session.delete(category)
    session.commit()
    return _notify(user_id, "categories", True)


def add_subcategory(session: Session, user_id: uuid.UUID, category_id: uuid.UUID, name: str) -> Optional[Subcategory]:
    if get_owned_category(session, user_id, category_id) is None:
        return None
    last = session.exec(
        select(func.max(Subcategory.position)).where(Subcategory.category_id == category_id)
    ).one()
    sub = Subcategory(category_id=category_id, name=name, position=0 if last is None else last + 1)
    session.add(sub)
    session.commit()
    session.refresh(sub)
    return _notify(user_id, "subcategories", sub)


def delete_subcategory(
    session: Session,
    user_id: uuid.UUID,
    category_id: uuid.UUID,
    subcategory_id: uuid.UUID,
) -> bool:
    if get_owned_category(session, user_id, category_id) is None:
        return False
    sub = session.get(Subcategory, subcategory_id)
    if sub is None or sub.category_id != category_id:
        return False
    session.delete(sub)
    session.commit()
    return _notify(user_id, "subcategories", True)


def update_budget(
    session: Session,
    user_id: uuid.UUID,
    category_id: uuid.UUID,
    budget: Optional[float],
) -> Optional[CategoryRead]:
    category = get_owned_category(session, user_id, category_id)
    if category is None:
        return None
    category.budget = budget
    category.updated_at = datetime.now(timezone.utc)
    session.add(category)
    session.commit()
    return _notify(user_id, "categories", get_category(session, user_id, category_id))


def update_style(
    session: Session,
    user_id: uuid.UUID,
    category_id: uuid.UUID,
    icon: str,
    color: str,
) -> Optional[CategoryRead]:
    category = get_owned_category(session, user_id, category_id)
    if category is None:
        return None
    category.icon = icon
    category.color = color
    category.updated_at = datetime.now(timezone.utc)
    session.add(category)
    session.commit()
    return _notify(user_id, "categories", get_category(session, user_id, category_id))
