"""
Document Numbering Service

Format: {PREFIX}-{BRANCH_CODE}-{YYYYMM}-{NNN}
Transfers use {FROM_CODE}-{TO_CODE} in place of the single branch code.
The running number restarts per prefix, branch and month.
"""
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from branchstock.exceptions import NotFoundError
from branchstock.models import Branch, Purchase, Quotation, Sale, Transfer


class DocumentService:
    """Generates human-facing document numbers."""

    @staticmethod
    def _branch_code(db: Session, branch_id: UUID) -> str:
        branch = db.query(Branch).filter(Branch.id == branch_id).first()
        if not branch:
            raise NotFoundError("Branch", branch_id)
        return branch.code

    @staticmethod
    def next_number(db: Session, model, prefix: str) -> str:
        """
        Scan existing doc_no values starting with prefix and return prefix + (highest suffix + 1).

        Args:
            model: mapped class with a doc_no column
            prefix: full prefix including the trailing dash, e.g. "PO-MAIN-202601-"
        """
        escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        rows = db.query(model.doc_no).filter(model.doc_no.like(f"{escaped}%", escape="\\")).all()
        highest = 0
        for (doc_no,) in rows:
            if not doc_no.startswith(prefix):
                continue
            suffix = doc_no[len(prefix):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return f"{prefix}{highest + 1:03d}"

    @staticmethod
    def _period(doc_date: Optional[date]) -> str:
        return (doc_date or date.today()).strftime("%Y%m")

    @staticmethod
    def get_purchase_number(db: Session, branch_id: UUID, doc_date: Optional[date] = None) -> str:
        code = DocumentService._branch_code(db, branch_id)
        prefix = f"PO-{code}-{DocumentService._period(doc_date)}-"
        return DocumentService.next_number(db, Purchase, prefix)

    @staticmethod
    def get_sale_number(db: Session, branch_id: UUID, doc_date: Optional[date] = None) -> str:
        code = DocumentService._branch_code(db, branch_id)
        prefix = f"INV-{code}-{DocumentService._period(doc_date)}-"
        return DocumentService.next_number(db, Sale, prefix)

    @staticmethod
    def get_quotation_number(db: Session, branch_id: UUID, doc_date: Optional[date] = None) -> str:
        code = DocumentService._branch_code(db, branch_id)
        prefix = f"QT-{code}-{DocumentService._period(doc_date)}-"
        return DocumentService.next_number(db, Quotation, prefix)

    @staticmethod
    def get_transfer_number(
        db: Session,
        from_branch_id: UUID,
        to_branch_id: UUID,
        doc_date: Optional[date] = None,
    ) -> str:
        from_code = DocumentService._branch_code(db, from_branch_id)
        to_code = DocumentService._branch_code(db, to_branch_id)
        prefix = f"TR-{from_code}-{to_code}-{DocumentService._period(doc_date)}-"
        return DocumentService.next_number(db, Transfer, prefix)
