"""
Document API endpoints
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..models.document import DocItem, DocUpsert
from ..services.document_service import DocumentService

router = APIRouter(prefix="/api/documents", tags=["documents"])


def get_document_service() -> DocumentService:
    """Dependency injection: get document service instance"""
    return DocumentService()


@router.get("", response_model=List[DocItem])
async def list_documents(service: DocumentService = Depends(get_document_service)):
    """All documents, most recently updated first"""
    return await service.list_documents()


@router.get("/{doc_id}", response_model=DocItem)
async def get_document(doc_id: str, service: DocumentService = Depends(get_document_service)):
    doc = await service.get_document(doc_id)
    if not doc:
        raise HTTPException(status_code=404, detail=f"Document '{doc_id}' not found")
    return doc


@router.put("", response_model=DocItem)
async def upsert_document(payload: DocUpsert, service: DocumentService = Depends(get_document_service)):
    """Create a document, or update one when `id` is given"""
    try:
        return await service.upsert_document(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{doc_id}")
async def delete_document(doc_id: str, service: DocumentService = Depends(get_document_service)):
    if not await service.delete_document(doc_id):
        raise HTTPException(status_code=404, detail=f"Document '{doc_id}' not found")
    return {"message": "Document deleted successfully"}
