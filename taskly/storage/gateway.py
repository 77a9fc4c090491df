#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Taskly v1.0 - Persistence Gateway
Асинхронный CRUD-интерфейс хранилища и две реализации

InMemoryGateway - таблицы в памяти (демо и тесты).
JsonFileGateway - те же таблицы в одном JSON-файле с атомарной записью
через временный файл и резервной копией перед первой перезаписью.
"""

import asyncio
import copy
import gzip
import json
import logging
import shutil
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as RowValidationError

from taskly.core.events import EntityType, OperationType, StoreOperation
from taskly.storage.schemas import validate_row

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class PersistenceError(Exception):
    """Любая ошибка хранилища"""
    pass

# ===== INTERFACE =====

class PersistenceGateway(ABC):
    """Абстрактный CRUD-интерфейс хранилища"""

    @abstractmethod
    async def list(self, entity: EntityType, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Строки пользователя (каталог badges возвращается целиком)"""
        pass

    @abstractmethod
    async def insert(self, entity: EntityType, row: Dict[str, Any]) -> Dict[str, Any]:
        """Вставить строку; id назначается, если его нет"""
        pass

    @abstractmethod
    async def update(self, entity: EntityType, key: Any, patch: Dict[str, Any],
                     user_id: Optional[str] = None) -> Dict[str, Any]:
        """Обновить строку по ключу; с user_id - только строку этого пользователя"""
        pass

    @abstractmethod
    async def delete(self, entity: EntityType, key: Any, user_id: Optional[str] = None) -> bool:
        pass

    @abstractmethod
    async def delete_where(self, entity: EntityType, **match: Any) -> int:
        pass

    async def apply(self, operation: StoreOperation) -> Any:
        """Выполнить операцию, подготовленную мутатором"""
        if operation.action == OperationType.INSERT:
            return await self.insert(operation.entity, operation.data)
        if operation.action == OperationType.UPDATE:
            return await self.update(operation.entity, operation.key, operation.data, operation.user_id)
        if operation.action == OperationType.DELETE:
            return await self.delete(operation.entity, operation.key, operation.user_id)
        if operation.action == OperationType.DELETE_WHERE:
            match = dict(operation.data)
            if operation.user_id is not None:
                match.setdefault('user_id', operation.user_id)
            return await self.delete_where(operation.entity, **match)
        raise PersistenceError(f"Unsupported operation: {operation.action}")

    async def close(self) -> None:
        pass

# ===== IN-MEMORY =====

class InMemoryGateway(PersistenceGateway):
    """Хранилище в памяти процесса"""

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self._tables: Dict[str, List[Dict[str, Any]]] = {e.value: [] for e in EntityType}
        if tables:
            for name, rows in tables.items():
                self._tables[name] = [dict(r) for r in rows]

    def _rows(self, entity: EntityType) -> List[Dict[str, Any]]:
        return self._tables.setdefault(entity.value, [])

    def _validate(self, entity: EntityType, row: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return validate_row(entity, row)
        except RowValidationError as e:
            raise PersistenceError(f"Invalid {entity.value} row: {e}") from e

    def _find(self, entity: EntityType, key: Any, user_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        # id задач и привычек уникальны только в пределах пользователя
        key_field = entity.key_field
        scoped = user_id is not None and entity != EntityType.BADGES
        return next((r for r in self._rows(entity)
                     if r.get(key_field) == key and (not scoped or r.get('user_id') == user_id)), None)

    async def _commit(self) -> None:
        """Точка сохранения для наследников"""
        pass

    async def _commit_or_rollback(self, before: Dict[str, List[Dict[str, Any]]]) -> None:
        # Таблицы в памяти не расходятся с сохраненными данными
        try:
            await self._commit()
        except PersistenceError:
            self._tables = before
            raise

    async def list(self, entity: EntityType, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        rows = self._rows(entity)
        if entity != EntityType.BADGES and user_id is not None:
            rows = [r for r in rows if r.get('user_id') == user_id]
        return [dict(r) for r in rows]

    async def insert(self, entity: EntityType, row: Dict[str, Any]) -> Dict[str, Any]:
        row = dict(row)
        rows = self._rows(entity)
        before = self.snapshot()

        if entity.key_field == 'id' and row.get('id') is None:
            row['id'] = max((r.get('id') or 0 for r in rows), default=0) + 1

        row = self._validate(entity, row)
        key = row.get(entity.key_field)
        if key is not None and self._find(entity, key, row.get('user_id')) is not None:
            raise PersistenceError(f"Duplicate {entity.value} key: {key}")

        rows.append(row)
        await self._commit_or_rollback(before)
        logger.debug(f"➕ {entity.value} #{key}")
        return dict(row)

    async def update(self, entity: EntityType, key: Any, patch: Dict[str, Any],
                     user_id: Optional[str] = None) -> Dict[str, Any]:
        existing = self._find(entity, key, user_id)
        if existing is None:
            raise PersistenceError(f"{entity.value} row {key} not found")

        merged = self._validate(entity, {**existing, **patch})
        before = self.snapshot()
        existing.clear()
        existing.update(merged)
        await self._commit_or_rollback(before)
        return dict(existing)

    async def delete(self, entity: EntityType, key: Any, user_id: Optional[str] = None) -> bool:
        existing = self._find(entity, key, user_id)
        if existing is None:
            return False
        before = self.snapshot()
        self._rows(entity).remove(existing)
        await self._commit_or_rollback(before)
        return True

    async def delete_where(self, entity: EntityType, **match: Any) -> int:
        rows = self._rows(entity)
        keep = [r for r in rows if any(r.get(k) != v for k, v in match.items())]
        removed = len(rows) - len(keep)
        if removed:
            before = self.snapshot()
            self._tables[entity.value] = keep
            await self._commit_or_rollback(before)
        return removed

    def snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        return copy.deepcopy(self._tables)

# ===== BACKUPS =====

class BackupManager:
    """Менеджер резервных копий"""

    def __init__(self, backup_dir: Path, max_backups: int = 10):
        self.backup_dir = backup_dir
        self.max_backups = max_backups

    def create_backup(self, source_file: Path, compressed: bool = True) -> Optional[Path]:
        """Создать резервную копию"""
        if not source_file.exists():
            logger.warning(f"⚠️ Нет файла {source_file} для резервной копии")
            return None

        self.backup_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S_%f')
        backup_path = self.backup_dir / f"backup_{timestamp}.json"

        if compressed:
            backup_path = backup_path.with_name(backup_path.name + ".gz")
            with open(source_file, 'rb') as f_in:
                with gzip.open(backup_path, 'wb') as f_out:
                    shutil.copyfileobj(f_in, f_out)
        else:
            shutil.copy2(source_file, backup_path)

        logger.info(f"💾 Резервная копия: {backup_path}")
        self._cleanup_old_backups()
        return backup_path

    def restore_backup(self, backup_path: Path, target_file: Path) -> None:
        if backup_path.name.endswith('.gz'):
            with gzip.open(backup_path, 'rb') as f_in:
                with open(target_file, 'wb') as f_out:
                    shutil.copyfileobj(f_in, f_out)
        else:
            shutil.copy2(backup_path, target_file)
        logger.info(f"♻️ Восстановлено из {backup_path}")

    def list_backups(self) -> List[Path]:
        """Резервные копии, новые первыми"""
        if not self.backup_dir.exists():
            return []
        return sorted(self.backup_dir.glob("backup_*.json*"), key=lambda p: p.name, reverse=True)

    def _cleanup_old_backups(self) -> None:
        for backup in self.list_backups()[self.max_backups:]:
            backup.unlink()
            logger.debug(f"🗑 Удалена старая копия: {backup}")

# ===== JSON FILE =====

class JsonFileGateway(InMemoryGateway):
    """Таблицы в одном JSON-документе"""

    FORMAT_VERSION = "1.0"

    def __init__(self, data_file: Path, backup_dir: Optional[Path] = None, max_backups: int = 10):
        super().__init__()
        self.data_file = Path(data_file)
        self.backup_manager = BackupManager(Path(backup_dir or self.data_file.parent / "backups"),
                                            max_backups)
        self._save_lock = asyncio.Lock()
        self._backed_up = False
        self._load_sync()

    def _load_sync(self) -> None:
        if not self.data_file.exists():
            logger.info(f"📂 Файл {self.data_file} не найден, начинаем с пустого хранилища")
            return

        try:
            with open(self.data_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"❌ Файл данных поврежден: {e}")
            self._recover_from_backup()
            return
        except OSError as e:
            raise PersistenceError(f"Failed to read {self.data_file}: {e}") from e

        for name, rows in data.get('tables', {}).items():
            self._tables[name] = rows
        logger.info(f"📂 Загружено таблиц: {len(data.get('tables', {}))} из {self.data_file}")

    def _recover_from_backup(self) -> None:
        for backup in self.backup_manager.list_backups():
            try:
                self.backup_manager.restore_backup(backup, self.data_file)
                with open(self.data_file, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"⚠️ Копия {backup.name} не подошла: {e}")
                continue
            for name, rows in data.get('tables', {}).items():
                self._tables[name] = rows
            return

        logger.warning("⚠️ Восстановить данные не удалось, начинаем с пустого хранилища")

    def _save_sync(self, data: Dict[str, Any]) -> None:
        """Атомарное сохранение через временный файл"""
        self.data_file.parent.mkdir(parents=True, exist_ok=True)

        if not self._backed_up and self.data_file.exists():
            self.backup_manager.create_backup(self.data_file)
            self._backed_up = True

        temp_file = self.data_file.with_suffix('.tmp')
        try:
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            temp_file.replace(self.data_file)
        except OSError:
            if temp_file.exists():
                temp_file.unlink()
            raise

    async def _commit(self) -> None:
        data = {
            'version': self.FORMAT_VERSION,
            'saved_at': datetime.now().isoformat(),
            'tables': self.snapshot(),
        }
        async with self._save_lock:
            try:
                await asyncio.get_running_loop().run_in_executor(None, self._save_sync, data)
            except OSError as e:
                logger.error(f"❌ Ошибка сохранения {self.data_file}: {e}")
                raise PersistenceError(f"Failed to save {self.data_file}: {e}") from e

__all__ = [
    'PersistenceError', 'PersistenceGateway', 'InMemoryGateway', 'BackupManager', 'JsonFileGateway',
]
