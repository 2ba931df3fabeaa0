"""Order pipeline services (public exports)."""

from .client import OrdersApiClient
from .models import InputFile
from .orchestrator import OrderPipelineOrchestrator


__all__ = ["InputFile", "OrderPipelineOrchestrator", "OrdersApiClient"]
