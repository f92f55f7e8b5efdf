from bridgewatch.bridge_lines import BridgeRecord, Category, classify
from bridgewatch.reconcile import Report, reconcile
from bridgewatch.store import BridgeStore

__all__ = ["BridgeRecord", "BridgeStore", "Category", "Report", "classify", "reconcile"]
__version__ = "0.1.0"
