# =======================================================================================
# gatepass/workers/__init__.py - Workers Package
# =======================================================================================
from .scanner_worker import ScannerWorker, start_scanner_worker

__all__ = ["ScannerWorker", "start_scanner_worker"]
