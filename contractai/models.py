import uuid

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


def generate_contract_id():
    """Generate the opaque identifier a contract receives on first save"""
    return f"contract_{uuid.uuid4().hex}"


class Agency(Base):
    __tablename__ = "agencies"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    auth_uid = Column(String(255), unique=True, index=True, nullable=False)  # Auth provider "sub"
    name = Column(String(255), nullable=False, default="")
    email = Column(String(255), nullable=False, default="")
    logo_url = Column(String(500), nullable=True)  # http(s) URL, data URL or R2 key
    phone = Column(String(50), nullable=True)
    address = Column(String(500), nullable=True)
    website = Column(String(255), nullable=True)
    description = Column(String(2000), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    contracts = relationship("Contract", back_populates="agency")


class Contract(Base):
    __tablename__ = "contracts"

    id = Column(String(64), primary_key=True, default=generate_contract_id)
    agency_id = Column(String(36), ForeignKey("agencies.id"), nullable=False, index=True)
    kind = Column(String(20), nullable=False, default="")  # client, hiring
    client_name = Column(String(255), nullable=False, default="")
    client_email = Column(String(255), nullable=False, default="")
    # Copies of the agency contact taken when the contract was written
    agency_name = Column(String(255), nullable=False, default="")
    agency_email = Column(String(255), nullable=False, default="")
    title = Column(String(255), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    payment_amount = Column(Float, nullable=False, default=0.0)
    payment_terms = Column(String(255), nullable=False, default="")
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    # Status workflow: draft → review → signed → completed
    status = Column(String(20), nullable=False, default="draft")
    # Signatures are stored as data:image/...;base64 URLs
    agency_signature = Column(Text, nullable=True)
    agency_signed_at = Column(DateTime, nullable=True)
    client_signature = Column(Text, nullable=True)
    client_signed_at = Column(DateTime, nullable=True)
    shareable_link = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    agency = relationship("Agency", back_populates="contracts")
    scope_items = relationship(
        "ContractScopeItem",
        back_populates="contract",
        order_by="ContractScopeItem.position",
        cascade="all, delete-orphan",
    )
    clauses = relationship(
        "ContractClause",
        back_populates="contract",
        order_by="ContractClause.position",
        cascade="all, delete-orphan",
    )


class ContractScopeItem(Base):
    __tablename__ = "contract_scope_items"
    __table_args__ = (UniqueConstraint("contract_id", "position", name="uq_scope_position"),)

    id = Column(Integer, primary_key=True, index=True)
    contract_id = Column(
        String(64), ForeignKey("contracts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False)
    item = Column(Text, nullable=False)

    contract = relationship("Contract", back_populates="scope_items")


class ContractClause(Base):
    __tablename__ = "contract_clauses"
    __table_args__ = (UniqueConstraint("contract_id", "position", name="uq_clause_position"),)

    id = Column(Integer, primary_key=True, index=True)
    contract_id = Column(
        String(64), ForeignKey("contracts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=False)

    contract = relationship("Contract", back_populates="clauses")
