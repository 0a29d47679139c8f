from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import Identity, get_current_user
from app.database import get_db
from app.dependencies import PaginationParams
from app.schemas import ArticleCreate, ArticleUpdate, CommentCreate, PaginatedResponse
from app.services import article_service, comment_service

router = APIRouter(prefix="/news", tags=["news"])


def _page_envelope(message: str, result: PaginatedResponse) -> dict:
    return {
        "message": message,
        "currentPage": result.page,
        "totalPages": result.pages,
        "totalItems": result.total,
        "data": result.items,
    }


# Static paths are declared before "/{news_id}" so they are matched first.

@router.get("")
async def list_news(
    category: str | None = Query(None, description="Exact category to filter by."),
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    result = await article_service.list_articles(
        db, pagination.page, pagination.page_size, category
    )
    return _page_envelope("Get news by category successfully", result)

@router.get("/featured")
async def featured_news(db: AsyncSession = Depends(get_db)):
    data = await article_service.get_featured(db)
    return {"message": "Get featured news successfully", "data": data}

@router.get("/category")
async def list_categories(db: AsyncSession = Depends(get_db)):
    data = await article_service.get_categories(db)
    return {"message": "Get categories successfully", "data": data}

@router.get("/search")
async def search_news(
    keyword: str = Query("", description="Case-insensitive substring of the title."),
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    result = await article_service.search_articles(
        db, keyword, pagination.page, pagination.page_size
    )
    return _page_envelope("Search news successfully", result)

@router.get("/user/{user_id}")
async def news_of_user(
    user_id: int,
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    result = await article_service.list_user_articles(
        db, user_id, pagination.page, pagination.page_size
    )
    return _page_envelope("Get news by user successfully", result)

@router.get("/{news_id}")
async def get_news(news_id: int, db: AsyncSession = Depends(get_db)):
    data = await article_service.get_article(db, news_id)
    return {"message": "Get news successfully", "data": data}

@router.post("", status_code=201)
async def create_news(
    data: ArticleCreate,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    news = await article_service.create_article(db, identity, data)
    return {"message": "News created successfully.", "news": news}

@router.put("/{news_id}/view")
async def increase_view(news_id: int, db: AsyncSession = Depends(get_db)):
    views = await article_service.increase_view(db, news_id)
    return {"message": "View count increased", "views": views}

@router.put("/{news_id}")
async def update_news(
    news_id: int,
    data: ArticleUpdate,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    news = await article_service.update_article(db, identity, news_id, data)
    return {"message": "Updated news successfully", "data": news}

@router.delete("/{news_id}")
async def delete_news(
    news_id: int,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await article_service.delete_article(db, identity, news_id)
    return {"message": "News deleted successfully."}

@router.post("/{news_id}/comments", status_code=201)
async def create_comment(
    news_id: int,
    data: CommentCreate,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = await comment_service.create_comment(db, identity, news_id, data)
    return {"message": "Create comment successfully", "comment": comment}
