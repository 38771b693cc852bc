# API routes
from barcodegen.api.routes import barcodes, health

__all__ = ["barcodes", "health"]
