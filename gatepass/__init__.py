# =======================================================================================
# gatepass/__init__.py - Package Initialization
# =======================================================================================
"""
Gatepass - Checkpoint Access-Pass Verification

Decodes scanned access passes, verifies them against validity windows,
facility scoping and request approval, and keeps an append-only audit log
of every admit/deny decision taken at a checkpoint.
"""

__version__ = "1.0.0"
__author__ = "Gatepass Team"
