from . import batch_details, generate, run_log, settings

__all__ = [
	"generate",
	"run_log",
	"batch_details",
	"settings",
]
