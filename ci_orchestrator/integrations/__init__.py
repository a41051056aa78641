"""
File: __init__.py
Purpose: Package marker for the integrations layer: the async subprocess executor, the git diff
    provider and the Jenkins REST client.
When Used: Imported transitively whenever a service needs to talk to an external tool.
Why Created: Keeps tool clients decoupled from selection and runner logic so tests can swap them.
"""
