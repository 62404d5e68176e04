"""Tests for contract persistence with ordered scope and clause rows."""

import pytest

from contractai.domain.contracts.repository import ContractRepository
from contractai.models import Contract, ContractClause, ContractScopeItem


def save(db, agency, contract_id=None, scope=(), clauses=(), **fields):
    fields.setdefault("title", "Website Redesign")
    fields.setdefault("kind", "client")
    return ContractRepository.upsert_contract(
        db, agency.id, contract_id, scope=list(scope), clauses=list(clauses), **fields
    )


def test_insert_assigns_id_and_keeps_order(db_session, agency):
    contract = save(
        db_session,
        agency,
        scope=["Design", "Build", "Launch"],
        clauses=[
            {"title": "Payment", "description": "Net 30"},
            {"title": "Confidentiality", "description": "Both parties"},
        ],
    )

    assert contract.id.startswith("contract_")
    assert [row.item for row in contract.scope_items] == ["Design", "Build", "Launch"]
    assert [row.position for row in contract.scope_items] == [0, 1, 2]
    assert [row.title for row in contract.clauses] == ["Payment", "Confidentiality"]


def test_client_supplied_id_is_kept(db_session, agency):
    contract = save(db_session, agency, contract_id="contract_1700000000000")
    assert contract.id == "contract_1700000000000"


def test_update_replaces_children_by_position(db_session, agency):
    contract = save(db_session, agency, scope=["A", "B", "C"], clauses=[{"title": "T", "description": "D"}])

    updated = save(
        db_session,
        agency,
        contract_id=contract.id,
        title="Renamed",
        scope=["A2"],
        clauses=[
            {"title": "T2", "description": "D2"},
            {"title": "T3", "description": "D3"},
        ],
    )

    assert updated.id == contract.id
    assert updated.title == "Renamed"
    assert [row.item for row in updated.scope_items] == ["A2"]
    assert [(row.title, row.description) for row in updated.clauses] == [("T2", "D2"), ("T3", "D3")]
    # Surplus rows are deleted, not orphaned
    assert db_session.query(ContractScopeItem).count() == 1
    assert db_session.query(ContractClause).count() == 2


def test_failed_insert_leaves_nothing_behind(db_session, agency):
    with pytest.raises(KeyError):
        save(db_session, agency, scope=["Design"], clauses=[{"title": "No description"}])

    assert db_session.query(Contract).count() == 0
    assert db_session.query(ContractScopeItem).count() == 0


def test_failed_update_keeps_previous_version(db_session, agency):
    contract = save(db_session, agency, scope=["Design"], clauses=[{"title": "T", "description": "D"}])
    contract_id = contract.id

    with pytest.raises(KeyError):
        save(
            db_session,
            agency,
            contract_id=contract_id,
            title="Half written",
            scope=["X", "Y"],
            clauses=[{"title": "Broken"}],
        )

    stored = ContractRepository.get_public_contract(db_session, contract_id)
    assert stored.title == "Website Redesign"
    assert [row.item for row in stored.scope_items] == ["Design"]
    assert [row.title for row in stored.clauses] == ["T"]


def test_ownership_filter(db_session, agency, other_agency):
    contract = save(db_session, agency)

    assert ContractRepository.get_contract_by_id(db_session, contract.id, agency.id) is not None
    assert ContractRepository.get_contract_by_id(db_session, contract.id, other_agency.id) is None
    assert ContractRepository.get_contracts(db_session, other_agency.id) == []


def test_delete_cascades_to_children(db_session, agency):
    contract = save(db_session, agency, scope=["A"], clauses=[{"title": "T", "description": "D"}])

    ContractRepository.delete_contract(db_session, contract)

    assert db_session.query(Contract).count() == 0
    assert db_session.query(ContractScopeItem).count() == 0
    assert db_session.query(ContractClause).count() == 0


def test_client_signature_marks_contract_signed(db_session, agency):
    contract = save(db_session, agency)

    signed = ContractRepository.sign_as_client(db_session, contract, "data:image/png;base64,AAAA")

    assert signed.status == "signed"
    assert signed.client_signature == "data:image/png;base64,AAAA"
    assert signed.client_signed_at is not None
