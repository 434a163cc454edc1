from datetime import date
from decimal import Decimal

from branchstock.models import Branch, BranchType, Purchase, PurchaseStatus
from branchstock.services.document_service import DocumentService


def _stub_purchase(db, branch, doc_no):
    db.add(Purchase(
        doc_no=doc_no,
        branch_id=branch.id,
        purchase_date=date(2026, 1, 1),
        status=PurchaseStatus.PENDING.value,
        total_amount=Decimal("0"),
    ))
    db.flush()


def test_first_number_of_month(db, main_branch):
    assert DocumentService.get_purchase_number(db, main_branch.id, date(2026, 1, 9)) == "PO-MAIN-202601-001"
    assert DocumentService.get_sale_number(db, main_branch.id, date(2026, 1, 9)) == "INV-MAIN-202601-001"
    assert DocumentService.get_quotation_number(db, main_branch.id, date(2026, 1, 9)) == "QT-MAIN-202601-001"


def test_continues_after_highest(db, main_branch):
    _stub_purchase(db, main_branch, "PO-MAIN-202601-001")
    _stub_purchase(db, main_branch, "PO-MAIN-202601-007")
    assert DocumentService.get_purchase_number(db, main_branch.id, date(2026, 1, 20)) == "PO-MAIN-202601-008"


def test_counter_per_branch_and_month(db, main_branch, branch2):
    _stub_purchase(db, main_branch, "PO-MAIN-202601-004")
    assert DocumentService.get_purchase_number(db, main_branch.id, date(2026, 2, 1)) == "PO-MAIN-202602-001"
    assert DocumentService.get_purchase_number(db, branch2.id, date(2026, 1, 1)) == "PO-BR2-202601-001"


def test_transfer_number_names_both_branches(db, main_branch, branch2):
    assert DocumentService.get_transfer_number(db, main_branch.id, branch2.id, date(2026, 6, 30)) == "TR-MAIN-BR2-202606-001"
    assert DocumentService.get_transfer_number(db, branch2.id, main_branch.id, date(2026, 6, 30)) == "TR-BR2-MAIN-202606-001"


def test_ignores_non_numeric_suffix(db, main_branch):
    _stub_purchase(db, main_branch, "PO-MAIN-202601-00X")
    assert DocumentService.get_purchase_number(db, main_branch.id, date(2026, 1, 2)) == "PO-MAIN-202601-001"


def test_wildcard_characters_in_branch_code(db):
    underscored = Branch(code="A_B", name="Dock A/B", type=BranchType.BRANCH.value)
    lookalike = Branch(code="AXB", name="Annex B", type=BranchType.BRANCH.value)
    db.add_all([underscored, lookalike])
    db.flush()
    _stub_purchase(db, lookalike, "PO-AXB-202601-009")
    _stub_purchase(db, underscored, "PO-A_B-202601-002")

    assert DocumentService.get_purchase_number(db, underscored.id, date(2026, 1, 3)) == "PO-A_B-202601-003"
    assert DocumentService.get_purchase_number(db, lookalike.id, date(2026, 1, 3)) == "PO-AXB-202601-010"
