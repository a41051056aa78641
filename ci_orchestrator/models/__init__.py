"""
File: ci_orchestrator/models/__init__.py
Purpose: Package initializer for Pydantic request/response models.
When Used: Imported when any module references 'ci_orchestrator.models.schemas'.
Why Created: Separates the API/CLI data contracts from the selection and runner logic.
"""
# Models
