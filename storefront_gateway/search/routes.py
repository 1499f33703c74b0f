import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from ..shared.errors import ConfigurationError, error_response
from .gateway import SearchGateway
from .schemas import SearchRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/search", tags=["search"])

QUERY_REQUIRED = "Query parameter is required and must be a non-empty string"


def get_search_gateway(request: Request) -> SearchGateway:
    gateway = getattr(request.app.state, "search", None)
    if gateway is None:
        raise ConfigurationError("PINECONE_API_KEY environment variable is required")
    return gateway


@router.post("")
def search_books(body: SearchRequest, gateway: SearchGateway = Depends(get_search_gateway)):
    """Book-shaped results for the search page."""
    query = body.cleaned_query()
    if query is None:
        return error_response(QUERY_REQUIRED, status.HTTP_400_BAD_REQUEST)

    try:
        books = gateway.books(query, body.limit)
    except Exception as e:
        logger.error(f"Search error: {e}")
        return error_response("Failed to search books", status.HTTP_500_INTERNAL_SERVER_ERROR, details=str(e))

    return {
        "success": True,
        "query": body.query,
        "results": books,
        "total": len(books),
        "namespace": gateway.namespace,
    }


@router.post("/text")
def search_text(body: SearchRequest, gateway: SearchGateway = Depends(get_search_gateway)):
    """Snippet-only results, without catalog data."""
    query = body.cleaned_query()
    if query is None:
        return error_response(QUERY_REQUIRED, status.HTTP_400_BAD_REQUEST)

    try:
        snippets = gateway.snippets(query, body.limit)
    except Exception as e:
        logger.error(f"Text search error: {e}")
        return error_response("Failed to search books", status.HTTP_500_INTERNAL_SERVER_ERROR, details=str(e))

    return {
        "success": True,
        "query": body.query,
        "results": snippets,
        "total": len(snippets),
        "searchType": "snippets-only",
        "namespace": gateway.namespace,
    }


@router.get("")
def search_books_get():
    return JSONResponse(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        content={"message": "Use POST method for search queries"},
    )


@router.get("/text")
def search_text_get():
    return JSONResponse(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        content={"message": "Use POST method for text search queries"},
    )


@router.get("/status")
def search_status(request: Request):
    """Index readiness probe. Always 200; failures are reported in the body."""
    try:
        gateway = get_search_gateway(request)
        return gateway.status()
    except ConfigurationError as e:
        return {"status": "error", "errorType": "configuration", "message": str(e)}
    except Exception as e:
        logger.error(f"Search status check error: {e}")
        return {"status": "error", "errorType": "service", "message": str(e)}
