"""bindQL query layer: builder cache, statement compiler and fluent builder."""
from bindql.query.builder import QueryBuilder
from bindql.query.cache import MergePolicy, QueryBuilderCache
from bindql.query.clauses import CompiledStatement, Condition
from bindql.query.statement import Query

__all__ = [
    "CompiledStatement",
    "Condition",
    "MergePolicy",
    "Query",
    "QueryBuilder",
    "QueryBuilderCache",
]
