"""
GraphQL schema.

Errors raised by resolvers are logged here: domain errors (CRMException)
at warning level with their code and trace id, anything else at error
level with the traceback. Outside debug mode unexpected error messages
are masked.
"""

import logging
from typing import List, Optional

import strawberry
from graphql import GraphQLError
from strawberry.extensions import MaskErrors
from strawberry.types import ExecutionContext

from crm_api.config import settings
from crm_api.exceptions import CRMException
from .brands import BrandQueries, BrandMutations
from .customers import CustomerQueries
from .tags import SegmentQueries, TagQueries

logger = logging.getLogger(__name__)


@strawberry.type
class Query(CustomerQueries, TagQueries, SegmentQueries, BrandQueries):
    pass


@strawberry.type
class Mutation(BrandMutations):
    pass


def should_mask_error(error: GraphQLError) -> bool:
    """Only unexpected server errors are masked; client and domain errors pass through."""
    original = error.original_error
    return original is not None and not isinstance(original, CRMException)


class CRMSchema(strawberry.Schema):

    def process_errors(
        self,
        errors: List[GraphQLError],
        execution_context: Optional[ExecutionContext] = None,
    ) -> None:
        for error in errors:
            original = error.original_error
            if isinstance(original, CRMException):
                logger.warning(
                    f"GraphQL CRMException: {original.code.value} - {original.detail}",
                    extra={"trace_id": original.trace_id, "path": error.path},
                )
            elif original is None:
                logger.warning(f"GraphQL request error: {error.message}")
            else:
                logger.error(
                    f"Unhandled GraphQL resolver error: {original}",
                    exc_info=original,
                    extra={"path": error.path},
                )


def build_schema() -> CRMSchema:
    extensions = []
    if not settings.DEBUG:
        extensions.append(MaskErrors(should_mask_error=should_mask_error))
    return CRMSchema(query=Query, mutation=Mutation, extensions=extensions)


schema = build_schema()
