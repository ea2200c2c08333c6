from .pipeline import BatchInputs, BatchResult, run_batch

__version__ = "0.1.0"

__all__ = ["BatchInputs", "BatchResult", "run_batch"]
