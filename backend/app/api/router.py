"""Spectrum Sync API Router - aggregates the resource routes."""

from fastapi import APIRouter

from app.api import chats, events

# Main API router - all routes will be prefixed with /api
api_router = APIRouter(prefix="/api")

# Include routers
api_router.include_router(chats.router)
api_router.include_router(events.router)
