"""Datastore collaborators used by the services."""

from dealrank.repositories.deal_store import DealQuery, DealStore, SQLAlchemyDealStore

__all__ = [
    "DealQuery",
    "DealStore",
    "SQLAlchemyDealStore",
]
