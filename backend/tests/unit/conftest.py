from pathlib import Path

import pytest

from backend.src.services.config import AppConfig
from backend.src.services.database import DatabaseService
from backend.src.services.note_search import NoteSearchService
from backend.src.services.note_store import NoteStore
from backend.src.services.users import UserService


@pytest.fixture()
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(database_path=tmp_path / "notes.db")


@pytest.fixture()
def db_service(app_config: AppConfig) -> DatabaseService:
    service = DatabaseService(app_config.database_path)
    service.initialize()
    return service


@pytest.fixture()
def users(db_service: DatabaseService) -> UserService:
    return UserService(db_service)


@pytest.fixture()
def notes(db_service: DatabaseService) -> NoteStore:
    return NoteStore(db_service)


@pytest.fixture()
def search_service(db_service: DatabaseService, app_config: AppConfig) -> NoteSearchService:
    return NoteSearchService(config=app_config)
