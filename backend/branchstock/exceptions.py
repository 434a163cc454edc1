"""
Typed errors for the inventory engine and document processors.

Every error carries a machine-readable ``code`` and structured attributes so the
API layer can render it without parsing messages:

    BranchStockError
    +-- ValidationError            VALIDATION_ERROR
    +-- NotFoundError              NOT_FOUND
    +-- BranchAccessDenied         BRANCH_ACCESS_DENIED
    +-- InvalidStateTransition     INVALID_STATE_TRANSITION
    +-- StockError
        +-- InsufficientStockError     INSUFFICIENT_STOCK
        +-- NegativeStockError         NEGATIVE_STOCK
        +-- InsufficientLotQuantity    INSUFFICIENT_LOT_QUANTITY
        +-- InventoryInvariantError    INVENTORY_INVARIANT_VIOLATION

InsufficientStockError, NegativeStockError, InvalidStateTransition and
ValidationError are business-rule failures surfaced to the user.
InsufficientLotQuantity and InventoryInvariantError mean the FIFO engine or a
concurrent writer broke a stock invariant; they are internal faults, never
user errors.
"""
from typing import Any, Dict, Optional
from uuid import UUID


class BranchStockError(Exception):
    """Base class for all BranchStock errors."""

    code: str = "BRANCHSTOCK_ERROR"
    status_code: int = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Structured payload for API responses and logs."""
        return {"code": self.code, "detail": self.message}


class ValidationError(BranchStockError):
    """Bad input caught before any state mutation."""

    code = "VALIDATION_ERROR"
    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class NotFoundError(BranchStockError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class BranchAccessDenied(BranchStockError):
    code = "BRANCH_ACCESS_DENIED"
    status_code = 403

    def __init__(self, user_id: Optional[UUID], branch_id: UUID):
        self.user_id = user_id
        self.branch_id = branch_id
        super().__init__(f"User {user_id} has no role on branch {branch_id}")


class InvalidStateTransition(BranchStockError):
    """Operation attempted on a document in the wrong status."""

    code = "INVALID_STATE_TRANSITION"
    status_code = 409

    def __init__(self, document: str, document_id: Any, current_status: str, action: str):
        self.document = document
        self.document_id = document_id
        self.current_status = current_status
        self.action = action
        super().__init__(f"Cannot {action} {document} {document_id} in status {current_status}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "document": self.document,
            "document_id": str(self.document_id),
            "current_status": self.current_status,
            "action": self.action,
        })
        return data


class StockError(BranchStockError):
    """Base for quantity-related failures."""

    status_code = 409


class InsufficientStockError(StockError):
    """Requested withdrawal exceeds the available lot quantity."""

    code = "INSUFFICIENT_STOCK"

    def __init__(self, branch_id: UUID, product_id: UUID, requested: int, available: int):
        self.branch_id = branch_id
        self.product_id = product_id
        self.requested = requested
        self.available = available
        self.shortfall = requested - available
        super().__init__(
            f"Insufficient stock for product {product_id} at branch {branch_id}: "
            f"requested {requested}, available {available} (short {self.shortfall})"
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "branch_id": str(self.branch_id),
            "product_id": str(self.product_id),
            "requested": self.requested,
            "available": self.available,
            "shortfall": self.shortfall,
        })
        return data


class NegativeStockError(StockError):
    """A balance mutation would drive quantity below zero. Never clamped."""

    code = "NEGATIVE_STOCK"

    def __init__(self, branch_id: UUID, product_id: UUID, current: int, delta: int):
        self.branch_id = branch_id
        self.product_id = product_id
        self.current = current
        self.delta = delta
        super().__init__(
            f"Stock for product {product_id} at branch {branch_id} cannot go negative "
            f"(current {current}, change {delta})"
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "branch_id": str(self.branch_id),
            "product_id": str(self.product_id),
            "current": self.current,
            "delta": self.delta,
        })
        return data


class InsufficientLotQuantity(StockError):
    """Internal fault: a lot decrement asked for more than the lot holds."""

    code = "INSUFFICIENT_LOT_QUANTITY"
    status_code = 500

    def __init__(self, lot_id: UUID, remaining: int, requested: int):
        self.lot_id = lot_id
        self.remaining = remaining
        self.requested = requested
        super().__init__(
            f"Lot {lot_id} holds {remaining}, cannot decrement by {requested}"
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "lot_id": str(self.lot_id),
            "remaining": self.remaining,
            "requested": self.requested,
        })
        return data


class InventoryInvariantError(StockError):
    """Internal fault: a balance no longer equals the sum of its lots after a document effect."""

    code = "INVENTORY_INVARIANT_VIOLATION"
    status_code = 500

    def __init__(self, branch_id: UUID, product_id: UUID, balance: int, lot_total: int):
        self.branch_id = branch_id
        self.product_id = product_id
        self.balance = balance
        self.lot_total = lot_total
        super().__init__(
            f"Balance {balance} for product {product_id} at branch {branch_id} "
            f"does not match lot total {lot_total}"
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "branch_id": str(self.branch_id),
            "product_id": str(self.product_id),
            "balance": self.balance,
            "lot_total": self.lot_total,
        })
        return data
