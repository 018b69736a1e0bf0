# catalog_mirror/deps.py
"""
FastAPI dependencies: pull the per-app handles off app.state.
"""
from __future__ import annotations
from fastapi import Request

from catalog_mirror.services.query import QueryEngine
from catalog_mirror.services.worker import SyncWorker
from catalog_mirror.settings import Settings
from catalog_mirror.store import CatalogStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> CatalogStore:
    return request.app.state.store


def get_query_engine(request: Request) -> QueryEngine:
    return request.app.state.query_engine


def get_worker(request: Request) -> SyncWorker:
    return request.app.state.worker
