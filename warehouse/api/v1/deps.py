"""
Shared dependencies for API v1 routes.
"""
from fastapi import Request

from warehouse.services.alerts import AlertEvaluator
from warehouse.services.ledger import LedgerEngine
from warehouse.services.queries import InventoryQueries


def get_ledger(request: Request) -> LedgerEngine:
    return request.app.state.ledger


def get_queries(request: Request) -> InventoryQueries:
    return request.app.state.queries


def get_evaluator(request: Request) -> AlertEvaluator:
    return request.app.state.evaluator
