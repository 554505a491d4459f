"""API routes for document storage."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from vectordatastore.api.dependencies import DocumentStore, get_store
from vectordatastore.logging_config import get_logger
from vectordatastore.records.document import Document
from vectordatastore.store.models import FetchRequest

logger = get_logger(__name__)


# Create router
router = APIRouter(prefix="/api/v1", tags=["Documents"])

StoreDep = Annotated[DocumentStore, Depends(get_store)]


class SaveDocumentsRequest(BaseModel):
    """Request body for saving documents."""

    documents: list[Document] = Field(description="Documents to embed and store")


class SaveDocumentsResponse(BaseModel):
    """Response from saving documents."""

    saved: int = Field(description="Number of documents stored")


class SearchDocumentsResponse(BaseModel):
    """Response from a document search."""

    records: list[Document] = Field(description="Matching documents")
    count: int = Field(description="Number of matching documents")


class DeleteDocumentsRequest(BaseModel):
    """Request body for deleting documents."""

    ids: list[str] = Field(description="Ids of documents to delete")


class DeleteDocumentsResponse(BaseModel):
    """Response from deleting documents."""

    requested: int = Field(description="Number of ids submitted for deletion")


@router.post(
    "/documents",
    response_model=SaveDocumentsResponse,
    status_code=status.HTTP_201_CREATED,
)
async def save_documents(
    request: SaveDocumentsRequest,
    store: StoreDep,
) -> SaveDocumentsResponse:
    """Embed and store documents."""
    saved = await store.save(request.documents)
    return SaveDocumentsResponse(saved=saved)


@router.post("/documents/search", response_model=SearchDocumentsResponse)
async def search_documents(
    request: FetchRequest,
    store: StoreDep,
) -> SearchDocumentsResponse:
    """Semantic or metadata-only document search."""
    result = await store.fetch(request)
    logger.debug(
        "Search served",
        extra={"semantic": request.semantic_query is not None, "count": result.count},
    )
    return SearchDocumentsResponse(records=result.records, count=result.count)


@router.delete("/documents", response_model=DeleteDocumentsResponse)
async def delete_documents(
    request: DeleteDocumentsRequest,
    store: StoreDep,
) -> DeleteDocumentsResponse:
    """Delete documents by id. Unknown ids are ignored."""
    await store.delete(request.ids)
    return DeleteDocumentsResponse(requested=len(request.ids))
