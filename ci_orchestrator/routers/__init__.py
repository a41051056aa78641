"""
File: __init__.py
Purpose: Package initializer for the routers module that exposes the FastAPI APIRouter instances.
When Used: Imported by the main FastAPI application during startup to register the API routes.
Why Created: Groups the router modules into a single package so the main app can include them via
    a clean import path.
"""
