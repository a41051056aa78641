"""
File: __init__.py
Purpose: Root package initializer for the services layer (service selector, pipeline runner, run
    progress store).
When Used: Imported transitively by the CLI and routers.
Why Created: Groups business logic apart from the HTTP routers and the external tool integrations.
"""
