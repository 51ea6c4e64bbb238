"""
Document storage service

Stores plain-text documents used as chat context.
"""
import time
from pathlib import Path
from typing import List, Optional

import aiofiles
import yaml

from ..config import settings
from ..models.document import DocItem, DocumentsConfig, DocUpsert


class DocumentService:
    """Document CRUD backed by a YAML file"""

    def __init__(self, documents_path: Optional[Path] = None):
        self.documents_path = Path(documents_path or settings.documents_path)
        self._ensure_file_exists()

    def _ensure_file_exists(self):
        if self.documents_path.exists():
            return
        self.documents_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.documents_path, "w", encoding="utf-8") as f:
            yaml.safe_dump({"documents": []}, f, allow_unicode=True, sort_keys=False)

    async def _load(self) -> DocumentsConfig:
        async with aiofiles.open(self.documents_path, "r", encoding="utf-8") as f:
            content = await f.read()
        data = yaml.safe_load(content) or {}
        return DocumentsConfig(**data)

    async def _save(self, config: DocumentsConfig):
        """Atomic write via temporary file + replace"""
        temp_path = self.documents_path.with_suffix(".yaml.tmp")
        async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
            await f.write(yaml.safe_dump(config.model_dump(mode="json"), allow_unicode=True, sort_keys=False))
        temp_path.replace(self.documents_path)

    async def list_documents(self) -> List[DocItem]:
        """All documents, most recently updated first"""
        config = await self._load()
        return sorted(config.documents, key=lambda doc: doc.updated_at, reverse=True)

    async def get_document(self, doc_id: str) -> Optional[DocItem]:
        config = await self._load()
        for doc in config.documents:
            if doc.id == doc_id:
                return doc
        return None

    async def upsert_document(self, payload: DocUpsert) -> DocItem:
        """Create a document, or replace title/content of an existing one"""
        config = await self._load()
        now = int(time.time() * 1000)
        for index, doc in enumerate(config.documents):
            if payload.id and doc.id == payload.id:
                updated = doc.model_copy(update={"title": payload.title, "content": payload.content, "updated_at": now})
                config.documents[index] = updated
                break
        else:
            fields = {"title": payload.title, "content": payload.content, "updated_at": now}
            if payload.id:
                fields["id"] = payload.id
            updated = DocItem(**fields)
            config.documents.append(updated)
        await self._save(config)
        return updated

    async def delete_document(self, doc_id: str) -> bool:
        config = await self._load()
        remaining = [doc for doc in config.documents if doc.id != doc_id]
        if len(remaining) == len(config.documents):
            return False
        config.documents = remaining
        await self._save(config)
        return True
