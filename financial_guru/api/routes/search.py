"""/api/search - global search across transactions, accounts and merchants"""

from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from financial_guru.api.routes.schemas import SearchResponse, to_account_response, to_transaction_response
from financial_guru.infrastructure.database.session import get_db
from financial_guru.services.search import SearchService

router = APIRouter()


@router.get("/search", response_model=SearchResponse)
def search(q: Optional[str] = None, db: Session = Depends(get_db)):
    result = SearchService(db).search(q)
    return SearchResponse(
        query=result.query,
        transactions=[to_transaction_response(t) for t in result.transactions],
        accounts=[to_account_response(a) for a in result.accounts],
        merchants=result.merchants,
        total_results=result.total_results,
    )
