"""
SQLAlchemy table definitions for the entity store.

Same layout on SQLite and PostgreSQL. Timestamps are Unix seconds.
Reports reference their target by natural key (tax id / E.164 number) so a
report can exist for a phone number that has no phone_numbers row yet.
"""

from __future__ import annotations

from sqlalchemy import JSON, Column, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

from backend_trustcheck.database.models import TARGET_VALUE_MAX_LENGTH

Base = declarative_base()


class OrganizationRow(Base):
    __tablename__ = "organizations"

    tax_id = Column(String(10), primary_key=True)
    name = Column(String(512), nullable=False)
    vat_status = Column(String(64), nullable=False)
    trust_score = Column(Integer, nullable=False, default=50)
    risk_level = Column(String(64), nullable=False, default="Unknown")
    raw_data = Column(JSON, nullable=True)
    created_at = Column(Integer, nullable=False, index=True)
    updated_at = Column(Integer, nullable=False)


class PhoneNumberRow(Base):
    __tablename__ = "phone_numbers"

    number = Column(String(TARGET_VALUE_MAX_LENGTH), primary_key=True)
    country_code = Column(String(8), nullable=False, default="PL")
    trust_score = Column(Integer, nullable=False, default=50)
    risk_level = Column(String(64), nullable=False, default="Unknown")
    organization_tax_id = Column(String(10), nullable=True, index=True)
    created_at = Column(Integer, nullable=False)
    updated_at = Column(Integer, nullable=False)


class PersonRow(Base):
    __tablename__ = "persons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(256), nullable=False, index=True)
    email = Column(String(256), nullable=True)
    phone = Column(String(TARGET_VALUE_MAX_LENGTH), nullable=True)
    bank_account = Column(String(64), nullable=True)
    trust_score = Column(Integer, nullable=False, default=50)
    risk_level = Column(String(64), nullable=False, default="Unknown")
    created_at = Column(Integer, nullable=False)
    updated_at = Column(Integer, nullable=False)


class ReportRow(Base):
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    rating = Column(Integer, nullable=False)
    reason = Column(String(128), nullable=False)
    comment = Column(Text, nullable=False, default="")
    ip_address = Column(String(64), nullable=True)
    organization_tax_id = Column(String(10), nullable=True, index=True)
    phone_number = Column(String(TARGET_VALUE_MAX_LENGTH), nullable=True, index=True)
    person_id = Column(Integer, nullable=True, index=True)
    reported_email = Column(String(256), nullable=True)
    social_link = Column(String(512), nullable=True)
    bank_account = Column(String(64), nullable=True)
    screenshot_url = Column(String(1024), nullable=True)
    screenshot_path = Column(String(1024), nullable=True)
    created_at = Column(Integer, nullable=False)


Index("ix_reports_created_at", ReportRow.created_at)
