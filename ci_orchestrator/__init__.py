"""
CI orchestrator: change-driven service selection and per-service build/scan/push pipelines.
"""

__version__ = "1.0.0"
