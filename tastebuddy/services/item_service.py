"""Item service: lookups, upserts and reference resolution."""

import logging
from collections.abc import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tastebuddy.exceptions import NotFoundError, PersistenceError, ValidationError
from tastebuddy.models.item import Item
from tastebuddy.schemas.item import ItemInput

logger = logging.getLogger(__name__)


class ItemService:
    """Service for item-related operations."""

    def __init__(self, db: Session):
        self.db = db

    def list_items(self) -> list[Item]:
        """Get all items, oldest first."""
        try:
            return self.db.query(Item).order_by(Item.id).all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not load items: {e}") from e

    def get_item(self, item_id: int) -> Item:
        """Get a single item by id."""
        try:
            item = self.db.query(Item).filter(Item.id == item_id).first()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not load item {item_id}: {e}") from e
        if not item:
            raise NotFoundError(f"Item {item_id} not found")
        return item

    def get_items_by_ids(self, item_ids: Iterable[int]) -> dict[int, Item]:
        """Load items for a set of ids, keyed by id. Unknown ids are absent."""
        ids = set(item_ids)
        if not ids:
            return {}
        try:
            items = self.db.query(Item).filter(Item.id.in_(ids)).all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not load items: {e}") from e
        return {item.id: item for item in items}

    def resolve_reference(self, item_data: ItemInput) -> int:
        """Return the id of the stored item an embedded item stands for.

        An existing id is reused as is. Otherwise the oldest item with exactly
        the same name is reused, and only if there is none a new item is
        created. Does not commit; new items are flushed so later lookups in
        the same session see them.
        """
        name = (item_data.name or "").strip()
        if not name:
            raise ValidationError("Item name is required")

        if item_data.id is not None:
            existing = self.db.query(Item).filter(Item.id == item_data.id).first()
            if existing:
                return existing.id
            logger.warning(f"Item {item_data.id} does not exist, resolving '{name}' by name")

        by_name = self.db.query(Item).filter(Item.name == item_data.name).order_by(Item.id).first()
        if by_name:
            return by_name.id

        item = Item(name=item_data.name, type=item_data.type, img_url=item_data.img_url)
        self.db.add(item)
        self.db.flush()
        logger.info(f"Created item {item.id} for '{item.name}'")
        return item.id

    def save_items(self, items: list[ItemInput]) -> list[Item]:
        """Insert new items and update existing ones in place."""
        saved = []
        try:
            for item_data in items:
                if not (item_data.name or "").strip():
                    raise ValidationError("Item name is required")

                item = None
                if item_data.id is not None:
                    item = self.db.query(Item).filter(Item.id == item_data.id).first()
                    if not item:
                        raise NotFoundError(f"Item {item_data.id} not found")
                    item.name = item_data.name
                    item.type = item_data.type
                    item.img_url = item_data.img_url
                else:
                    item = Item(name=item_data.name, type=item_data.type, img_url=item_data.img_url)
                    self.db.add(item)
                saved.append(item)

            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not save items: {e}") from e
        except (ValidationError, NotFoundError):
            self.db.rollback()
            raise

        for item in saved:
            self.db.refresh(item)
        return saved
