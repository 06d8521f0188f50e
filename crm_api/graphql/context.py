"""Per-request GraphQL context."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from strawberry.fastapi import BaseContext

from crm_api.database import get_db

DbSession = Annotated[AsyncSession, Depends(get_db)]


class GraphQLContext(BaseContext):
    """Carries the request's database session to resolvers."""

    def __init__(self, db: AsyncSession):
        super().__init__()
        self.db = db


async def get_context(db: DbSession) -> GraphQLContext:
    return GraphQLContext(db)
