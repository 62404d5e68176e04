"""Contract service - Business logic for contract operations"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import PUBLIC_APP_URL
from ...models import Agency, Contract
from ...utils.storage import logo_display_url
from .repository import ContractRepository
from .schemas import (
    ContractData,
    ContractResponse,
    ContractSummary,
    PublicAgency,
    PublicContractResponse,
    ShareLinkResponse,
)

logger = logging.getLogger(__name__)


def shareable_link_for(contract_id: str) -> str:
    """The URL a counterparty opens to review and sign"""
    return f"{PUBLIC_APP_URL.rstrip('/')}/client/contract/{contract_id}"


def to_summary(contract: Contract) -> ContractSummary:
    return ContractSummary(
        id=contract.id,
        type=contract.kind,
        clientName=contract.client_name,
        clientEmail=contract.client_email,
        projectTitle=contract.title,
        paymentAmount=contract.payment_amount,
        status=contract.status,
        shareableLink=contract.shareable_link,
        createdAt=contract.created_at,
        updatedAt=contract.updated_at,
    )


def _response_fields(contract: Contract) -> dict:
    return {
        "id": contract.id,
        "type": contract.kind,
        "clientName": contract.client_name,
        "clientEmail": contract.client_email,
        "agencyName": contract.agency_name,
        "agencyEmail": contract.agency_email,
        "projectTitle": contract.title,
        "projectDescription": contract.description,
        "scope": contract.scope_items,
        "paymentAmount": contract.payment_amount,
        "paymentTerms": contract.payment_terms,
        "startDate": contract.start_date,
        "endDate": contract.end_date,
        "clauses": contract.clauses,
        "status": contract.status,
        "agencySignature": contract.agency_signature,
        "agencySignedAt": contract.agency_signed_at,
        "clientSignature": contract.client_signature,
        "clientSignedAt": contract.client_signed_at,
        "shareableLink": contract.shareable_link,
        "createdAt": contract.created_at,
        "updatedAt": contract.updated_at,
    }


def to_response(contract: Contract) -> ContractResponse:
    return ContractResponse(**_response_fields(contract))


def to_public_response(contract: Contract) -> PublicContractResponse:
    agency = contract.agency
    public_agency = None
    if agency is not None:
        public_agency = PublicAgency(
            name=agency.name, email=agency.email, logoUrl=logo_display_url(agency.logo_url)
        )
    return PublicContractResponse(**_response_fields(contract), agency=public_agency)


class ContractService:
    """Contract operations on behalf of one signed-in agency"""

    def __init__(self, db: Session, agency: Agency):
        self.db = db
        self.agency = agency
        self.repo = ContractRepository()

    def get_contracts(self, kind: Optional[str] = None) -> list[Contract]:
        return self.repo.get_contracts(self.db, self.agency.id, kind)

    def get_contract(self, contract_id: str) -> Contract:
        contract = self.repo.get_contract_by_id(self.db, contract_id, self.agency.id)
        if not contract:
            raise HTTPException(status_code=404, detail="Contract not found")
        return contract

    def save_contract(self, data: ContractData) -> Contract:
        """
        Create or update a contract (upsert by id).

        Drafts and contracts in review can be edited; once signed the terms are
        fixed and a new version has to be made with duplicate.
        """
        if data.id:
            existing = self.repo.get_public_contract(self.db, data.id)
            if existing is not None:
                if existing.agency_id != self.agency.id:
                    # Do not reveal that the id exists
                    raise HTTPException(status_code=404, detail="Contract not found")
                if existing.status in ("signed", "completed"):
                    raise HTTPException(
                        status_code=409,
                        detail=f"Contract is {existing.status} and can no longer be edited",
                    )

        logger.info(f"📝 Saving contract {data.id or '(new)'} for agency {self.agency.id}")
        contract = self.repo.upsert_contract(
            self.db,
            self.agency.id,
            data.id,
            scope=data.scope,
            clauses=[clause.model_dump() for clause in data.clauses],
            kind=data.type,
            client_name=data.clientName,
            client_email=data.clientEmail,
            agency_name=data.agencyName or self.agency.name,
            agency_email=data.agencyEmail or self.agency.email,
            title=data.projectTitle,
            description=data.projectDescription,
            payment_amount=data.paymentAmount,
            payment_terms=data.paymentTerms,
            start_date=data.startDate,
            end_date=data.endDate,
            status=data.status,
        )
        logger.info(
            f"✅ Saved contract {contract.id}: {len(contract.scope_items)} scope item(s), "
            f"{len(contract.clauses)} clause(s)"
        )
        return contract

    def delete_contract(self, contract_id: str) -> dict:
        contract = self.get_contract(contract_id)
        self.repo.delete_contract(self.db, contract)
        logger.info(f"🗑️ Deleted contract {contract_id}")
        return {"message": "Contract deleted successfully"}

    def duplicate_contract(self, contract_id: str) -> Contract:
        """Copy a contract into a fresh draft with no signatures or share link"""
        source = self.get_contract(contract_id)
        data = ContractData(
            type=source.kind,
            clientName=source.client_name,
            clientEmail=source.client_email,
            agencyName=source.agency_name,
            agencyEmail=source.agency_email,
            projectTitle=source.title,
            projectDescription=source.description,
            scope=source.scope_items,
            paymentAmount=source.payment_amount,
            paymentTerms=source.payment_terms,
            startDate=source.start_date,
            endDate=source.end_date,
            clauses=source.clauses,
            status="draft",
        )
        copy = self.save_contract(data)
        logger.info(f"📋 Duplicated contract {contract_id} as {copy.id}")
        return copy

    def sign_as_agency(self, contract_id: str, signature: str) -> Contract:
        contract = self.get_contract(contract_id)
        if contract.status in ("signed", "completed"):
            raise HTTPException(status_code=409, detail="Contract has already been signed")
        contract = self.repo.sign_as_agency(self.db, contract, signature)
        logger.info(f"✍️ Agency signed contract {contract.id}")
        return contract

    def complete_contract(self, contract_id: str) -> Contract:
        """signed -> completed; the only transition out of signed"""
        contract = self.get_contract(contract_id)
        if contract.status != "signed":
            raise HTTPException(
                status_code=409,
                detail=f"Only signed contracts can be completed (contract is {contract.status})",
            )
        contract = self.repo.mark_completed(self.db, contract)
        logger.info(f"🏁 Completed contract {contract.id}")
        return contract

    def share_contract(self, contract_id: str) -> ShareLinkResponse:
        contract = self.get_contract(contract_id)
        link = shareable_link_for(contract.id)
        if contract.shareable_link != link:
            contract = self.repo.set_shareable_link(self.db, contract, link)
        return ShareLinkResponse(contractId=contract.id, shareableLink=link)


class PublicContractService:
    """Counterparty access by contract id (the shareable link)"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ContractRepository()

    def get_contract(self, contract_id: str) -> Contract:
        contract = self.repo.get_public_contract(self.db, contract_id)
        if not contract:
            raise HTTPException(status_code=404, detail="Contract not found")
        return contract

    def sign_as_client(self, contract_id: str, signature: str) -> Contract:
        contract = self.get_contract(contract_id)
        if contract.client_signature:
            raise HTTPException(status_code=409, detail="Contract has already been signed")
        contract = self.repo.sign_as_client(self.db, contract, signature)
        logger.info(f"✍️ Client signed contract {contract.id}")
        return contract
