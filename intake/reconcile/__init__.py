from intake.reconcile.ids import IdAllocator
from intake.reconcile.reconciler import Reconciler

__all__ = ["IdAllocator", "Reconciler"]
