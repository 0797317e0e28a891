import logging
from typing import List

from .. import database, repository
from ..errors import InvalidOperationError, NotFoundError
from ..models.draft import Manager, ManagerUpdate
from .draft_service import run_write

logger = logging.getLogger(__name__)


async def list_managers() -> List[Manager]:
    db = await database.get_db_connection()
    try:
        return await repository.list_managers(db)
    finally:
        await db.close()


async def _load_manager(db, manager_id: str) -> Manager:
    manager = await repository.get_manager(db, manager_id)
    if manager is None:
        raise NotFoundError(f"Manager {manager_id} not found")
    return manager


async def get_manager(manager_id: str) -> Manager:
    db = await database.get_db_connection()
    try:
        return await _load_manager(db, manager_id)
    finally:
        await db.close()


async def create_manager(manager: Manager) -> Manager:
    async def operation(db):
        return await repository.insert_manager(db, manager)

    created = await run_write(operation)
    logger.info("Created manager %s (%s)", created.id, created.name)
    return created


async def update_manager(manager_id: str, changes: ManagerUpdate) -> Manager:
    # Drafts only reference the id, so renaming never touches them
    async def operation(db):
        manager = await _load_manager(db, manager_id)
        updated = manager.model_copy(update=changes.model_dump(exclude_unset=True, exclude_none=True))
        return await repository.update_manager(db, updated)

    return await run_write(operation)


async def delete_manager(manager_id: str) -> bool:
    async def operation(db):
        await _load_manager(db, manager_id)
        for draft in await repository.list_drafts(db):
            if manager_id in draft.referenced_managers():
                raise InvalidOperationError(f"Manager {manager_id} is part of draft {draft.id}")
        return await repository.delete_manager(db, manager_id)

    deleted = await run_write(operation)
    logger.info("Deleted manager %s", manager_id)
    return deleted
