"""Contract repository - Database operations for contracts"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...database import transaction
from ...models import Contract, ContractClause, ContractScopeItem


class ContractRepository:
    """Repository for contract database operations"""

    @staticmethod
    def get_contracts(db: Session, agency_id: str, kind: Optional[str] = None) -> list[Contract]:
        """Get all contracts for an agency (optionally one kind), newest first"""
        query = db.query(Contract).filter(Contract.agency_id == agency_id)
        if kind:
            query = query.filter(Contract.kind == kind)
        return query.order_by(Contract.created_at.desc(), Contract.id.desc()).all()

    @staticmethod
    def get_contract_by_id(db: Session, contract_id: str, agency_id: str) -> Optional[Contract]:
        """Get a specific contract owned by the agency"""
        return (
            db.query(Contract)
            .filter(Contract.id == contract_id, Contract.agency_id == agency_id)
            .first()
        )

    @staticmethod
    def get_public_contract(db: Session, contract_id: str) -> Optional[Contract]:
        """Get a contract by ID without an ownership check (shareable link access)"""
        return db.query(Contract).filter(Contract.id == contract_id).first()

    @staticmethod
    def upsert_contract(
        db: Session,
        agency_id: str,
        contract_id: Optional[str],
        scope: list[str],
        clauses: list[dict[str, str]],
        **fields,
    ) -> Contract:
        """
        Insert or update a contract and its ordered scope/clause rows.

        The parent row and both child collections are written in one transaction.
        Child rows are keyed by (contract_id, position): existing positions are
        updated in place, new ones inserted, surplus ones deleted.
        """
        with transaction(db):
            contract = None
            if contract_id:
                contract = db.query(Contract).filter(Contract.id == contract_id).first()
            if contract is None:
                contract = Contract(agency_id=agency_id)
                if contract_id:
                    contract.id = contract_id
                db.add(contract)

            for key, value in fields.items():
                setattr(contract, key, value)
            contract.updated_at = datetime.utcnow()

            _sync_scope(contract, scope)
            _sync_clauses(contract, clauses)

        db.refresh(contract)
        return contract

    @staticmethod
    def delete_contract(db: Session, contract: Contract) -> None:
        """Delete a contract (children cascade)"""
        with transaction(db):
            db.delete(contract)

    @staticmethod
    def sign_as_agency(db: Session, contract: Contract, signature: str) -> Contract:
        """Record the agency signature"""
        now = datetime.utcnow()
        with transaction(db):
            contract.agency_signature = signature
            contract.agency_signed_at = now
            contract.updated_at = now
        db.refresh(contract)
        return contract

    @staticmethod
    def sign_as_client(db: Session, contract: Contract, signature: str) -> Contract:
        """Record the counterparty signature; this is what makes a contract signed"""
        now = datetime.utcnow()
        with transaction(db):
            contract.client_signature = signature
            contract.client_signed_at = now
            contract.status = "signed"
            contract.updated_at = now
        db.refresh(contract)
        return contract

    @staticmethod
    def mark_completed(db: Session, contract: Contract) -> Contract:
        """Close out a signed contract"""
        with transaction(db):
            contract.status = "completed"
            contract.updated_at = datetime.utcnow()
        db.refresh(contract)
        return contract

    @staticmethod
    def set_shareable_link(db: Session, contract: Contract, link: str) -> Contract:
        """Store the derived shareable link"""
        with transaction(db):
            contract.shareable_link = link
            contract.updated_at = datetime.utcnow()
        db.refresh(contract)
        return contract


def _sync_scope(contract: Contract, scope: list[str]) -> None:
    existing = {row.position: row for row in contract.scope_items}
    for position, text in enumerate(scope):
        row = existing.pop(position, None)
        if row is None:
            contract.scope_items.append(ContractScopeItem(position=position, item=text))
        else:
            row.item = text
    for row in existing.values():
        contract.scope_items.remove(row)


def _sync_clauses(contract: Contract, clauses: list[dict[str, str]]) -> None:
    existing = {row.position: row for row in contract.clauses}
    for position, clause in enumerate(clauses):
        row = existing.pop(position, None)
        if row is None:
            contract.clauses.append(
                ContractClause(
                    position=position, title=clause["title"], description=clause["description"]
                )
            )
        else:
            row.title = clause["title"]
            row.description = clause["description"]
    for row in existing.values():
        contract.clauses.remove(row)
