"""
Taskly storage: шлюз хранилища, схемы строк и демо-данные
"""

from taskly.storage.gateway import (
    PersistenceError, PersistenceGateway, InMemoryGateway, JsonFileGateway
)
from taskly.storage.schemas import build_state, validate_row
from taskly.storage.demo import DEMO_USER_ID, load_demo_state

__all__ = [
    'PersistenceError', 'PersistenceGateway', 'InMemoryGateway', 'JsonFileGateway',
    'build_state', 'validate_row', 'DEMO_USER_ID', 'load_demo_state',
]
