# services/store.py

import asyncio
import json
import logging
import os
import threading
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

from core.models import generate_id

logger = logging.getLogger(__name__)

class StoreError(Exception):
    """Ошибка хранилища документов"""
    pass

class DocumentStore:
    """
    Хранилище документов по коллекциям

    Возможности:
    - Чтение и запись документов по id, запросы по полям
    - Транзакции read-modify-write по ключу (например, отправитель + цель)
    - Сохранение на диск в JSON с атомарной заменой файла
    """

    def __init__(self, data_file: Optional[Path] = None):
        self.data_file = Path(data_file) if data_file else None
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.lock = threading.RLock()
        self._key_locks: Dict[Hashable, Tuple[asyncio.Lock, int]] = {}
        self.total_operations = 0

        if self.data_file:
            self._load()

    # ===== ФАЙЛ =====

    def _load(self):
        if not self.data_file.exists():
            logger.info("📂 Файл данных не найден, начинаем с пустой базы")
            return

        try:
            with open(self.data_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Не удалось прочитать {self.data_file}: {e}") from e

        if not isinstance(data, dict):
            raise StoreError(f"Неверный формат файла данных {self.data_file}")

        self.collections = data
        logger.info(f"✅ Загружено коллекций: {len(self.collections)}")

    def _save(self):
        if not self.data_file:
            return

        self.data_file.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = self.data_file.with_suffix('.tmp')
        try:
            with open(tmp_file, 'w', encoding='utf-8') as f:
                json.dump(self.collections, f, ensure_ascii=False, indent=2)
            os.replace(tmp_file, self.data_file)
        except OSError as e:
            logger.error(f"❌ Ошибка сохранения данных: {e}")
            raise StoreError(f"Не удалось сохранить {self.data_file}: {e}") from e

    # ===== CRUD =====

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self.lock:
            document = self.collections.get(collection, {}).get(doc_id)
            return dict(document) if document is not None else None

    def put(self, collection: str, doc_id: str, document: Dict[str, Any]) -> str:
        with self.lock:
            self.collections.setdefault(collection, {})[doc_id] = dict(document)
            self.total_operations += 1
            self._save()
        return doc_id

    def add(self, collection: str, document: Dict[str, Any], doc_id: Optional[str] = None) -> str:
        return self.put(collection, doc_id or generate_id(), document)

    def delete(self, collection: str, doc_id: str) -> bool:
        with self.lock:
            removed = self.collections.get(collection, {}).pop(doc_id, None)
            if removed is not None:
                self.total_operations += 1
                self._save()
            return removed is not None

    def query(self, collection: str, where: Optional[Callable[[Dict[str, Any]], bool]] = None,
              **equals) -> List[Dict[str, Any]]:
        """Документы коллекции, у которых поля равны equals и where() истинно"""
        with self.lock:
            documents = list(self.collections.get(collection, {}).values())

        result = []
        for document in documents:
            if any(document.get(key) != value for key, value in equals.items()):
                continue
            if where is not None and not where(document):
                continue
            result.append(dict(document))
        return result

    def count(self, collection: str, **equals) -> int:
        return len(self.query(collection, **equals))

    # ===== ТРАНЗАКЦИИ =====

    @asynccontextmanager
    async def transaction(self, key: Hashable):
        """
        Последовательное выполнение блоков с одинаковым ключом.
        Проверка и запись внутри блока атомарны относительно других
        вызовов с тем же ключом. Блокировка ключа удаляется, когда
        ее больше никто не ждет.
        """
        with self.lock:
            key_lock, users = self._key_locks.get(key, (None, 0))
            if key_lock is None:
                key_lock = asyncio.Lock()
            self._key_locks[key] = (key_lock, users + 1)
        try:
            async with key_lock:
                yield self
        finally:
            with self.lock:
                _, users = self._key_locks[key]
                if users <= 1:
                    del self._key_locks[key]
                else:
                    self._key_locks[key] = (key_lock, users - 1)

    def get_stats(self) -> Dict[str, Any]:
        with self.lock:
            return {
                'collections': {name: len(docs) for name, docs in self.collections.items()},
                'total_operations': self.total_operations,
                'data_file': str(self.data_file) if self.data_file else None
            }
