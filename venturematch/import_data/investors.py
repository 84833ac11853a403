"""
Bulk investor import engines.

- FounderInvestorImporter: founder's fundraising investors / cap-table rows
- FounderContactImporter: founder's relationship contacts (+ derived investor records)
- InvestorContactUploader: admin upload of firm contacts
- InvestorFileImporter: admin spreadsheet of investors (account + profile + firm + contact)

None of these wrap their writes in one transaction: every row (or chunk)
is committed on its own and earlier rows stay committed when a later one fails.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from venturematch.core.database import LIKE_ESCAPE, contains_pattern
from venturematch.core.errors import is_unique_violation
from venturematch.core.models import (
    Company, FundraisingInvestor, FounderContact, IntroducedInvestor,
    InvestorContact, InvestorSource,
)
from venturematch.import_data.parser import (
    ChunkResult, ParseResult, filter_required, normalize_header,
    parse_file, process_in_chunks, validate_file, file_extension,
)
from venturematch.investors.directory import InvestorDirectory

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAX_REPORTED_ERRORS = 5
INVESTMENT_TYPES = {"equity", "debt"}
TRUTHY = {"true", "yes", "1"}


def is_valid_email(value: Optional[str]) -> bool:
    return bool(value) and bool(EMAIL_PATTERN.match(value.strip()))


def parse_number(value: Any) -> Optional[float]:
    """'$1,250,000' -> 1250000.0; blanks and garbage -> None."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = re.sub(r"[^0-9.\-]+", "", str(value))
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def parse_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in TRUTHY


def split_full_name(full_name: str) -> Tuple[str, str]:
    """First word is the first name; the rest (or the first name again) the last."""
    parts = full_name.split()
    first = parts[0] if parts else ""
    last = " ".join(parts[1:]) or first
    return first, last


def summarize_errors(messages: List[str]) -> Optional[str]:
    if not messages:
        return None
    summary = "\n".join(messages[:MAX_REPORTED_ERRORS])
    if len(messages) > MAX_REPORTED_ERRORS:
        summary += f"\n...and {len(messages) - MAX_REPORTED_ERRORS} more errors"
    return summary


class FounderInvestorImporter:
    """Import a founder's investor list into fundraising_investors."""

    def __init__(self, db: Session):
        self.db = db

    def _resolve_company(self, company_name: str, user_id: int) -> int:
        """Exact name, then case-insensitive substring, else create."""
        name = company_name.strip()
        owned = self.db.query(Company.id).filter(Company.owner_id == user_id)

        exact = owned.filter(Company.company_name == name).first()
        if exact:
            return exact.id

        fuzzy = owned.filter(Company.company_name.ilike(contains_pattern(name), escape=LIKE_ESCAPE)).first()
        if fuzzy:
            return fuzzy.id

        company = Company(
            company_name=name,
            owner_id=user_id,
            short_description=f"Company profile for {name}",
        )
        self.db.add(company)
        self.db.commit()
        logger.info(f"Created company {name} (id={company.id}) during investor import")
        return company.id

    def bulk_import(self, investors: List[Dict[str, Any]], user_id: int) -> Dict[str, Any]:
        if not investors:
            return {
                "success": False,
                "error": "No investors to import",
                "imported": 0,
                "skipped": 0,
                "failed": 0,
                "message": "No investors to import",
            }

        imported = skipped = failed = 0
        messages: List[str] = []

        for row in investors:
            first_name = (row.get("first_name") or "").strip()
            last_name = (row.get("last_name") or "").strip()
            full_name = (row.get("full_name") or "").strip()

            if not first_name and not last_name and full_name:
                first_name, last_name = split_full_name(full_name)

            if not first_name or not last_name:
                failed += 1
                messages.append(
                    f"Missing name for investor: {full_name or row.get('email') or 'Unknown'}"
                )
                continue

            company_name = (row.get("company_name") or "").strip()
            if not company_name:
                failed += 1
                messages.append(f"Missing company for: {first_name} {last_name}")
                continue

            try:
                company_id = self._resolve_company(company_name, user_id)
            except SQLAlchemyError as e:
                self.db.rollback()
                failed += 1
                messages.append(f"Failed to create company for {first_name} {last_name}: {e}")
                continue

            amount = parse_number(row.get("amount"))
            num_shares = parse_number(row.get("num_shares"))
            investment_type = (row.get("investment_type") or "equity").strip().lower()
            if investment_type not in INVESTMENT_TYPES:
                investment_type = "equity"

            share_price = None
            if amount and num_shares and num_shares > 0:
                share_price = amount / num_shares

            record = FundraisingInvestor(
                user_id=user_id,
                company_id=company_id,
                first_name=first_name,
                last_name=last_name,
                company=company_name,
                email=(row.get("email") or "").strip() or None,
                type=row.get("investor_type") or None,
                stage=row.get("stage") or "interested",
                country=row.get("country") or None,
                city=row.get("city") or None,
                amount=amount,
                is_investment=parse_flag(row.get("is_investment")),
                investment_type=investment_type,
                interest_rate=parse_number(row.get("interest_rate")),
                valuation=parse_number(row.get("valuation")),
                num_shares=int(num_shares) if num_shares is not None else None,
                share_price=share_price,
            )

            try:
                self.db.add(record)
                self.db.commit()
                imported += 1
            except IntegrityError as e:
                self.db.rollback()
                if is_unique_violation(e):
                    logger.info(f"Skipping duplicate email {record.email} for {first_name} {last_name}")
                    skipped += 1
                else:
                    failed += 1
                    messages.append(f"Failed to insert {first_name} {last_name}: {e.orig}")
            except SQLAlchemyError as e:
                self.db.rollback()
                failed += 1
                messages.append(f"Failed to insert {first_name} {last_name}: {e}")

        message = f"Successfully imported {imported} investors."
        if skipped:
            message += f" Skipped {skipped} duplicate records."
        if failed:
            message += f" Failed to import {failed} investors."

        logger.info(f"Investor import for user {user_id}: {imported} imported, {skipped} skipped, {failed} failed")

        return {
            "success": imported > 0,
            "imported": imported,
            "skipped": skipped,
            "failed": failed,
            "message": message,
            "error": summarize_errors(messages),
        }


class FounderContactImporter:
    """
    Import a founder's relationship contacts.

    Each chunk inserts contacts first, then the derived investors_data
    records. A failure in the derived insert is logged and the contacts
    stay committed. A failure in the contact insert aborts the rest of
    the import.
    """

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def map_row(row: Dict[str, str], founder_id: int) -> Dict[str, Any]:
        first = row.get("primary_contact_first_name") or ""
        last = row.get("primary_contact_last_name") or ""
        hq_city = row.get("hq_city") or None
        hq_country = row.get("hq_country") or None
        geography = row.get("hq_geography") or (
            f"{hq_city}, {hq_country}" if hq_city and hq_country else None
        )
        return {
            "founder_id": founder_id,
            "company_name": row.get("company_name") or row.get("investor_firm") or None,
            "full_name": row.get("full_name") or f"{first} {last}".strip(),
            "email": row.get("email") or row.get("primary_contact_email") or row.get("general_email") or None,
            "investor_type": row.get("investor_type") or None,
            "stage": row.get("stage") or row.get("funding_stage") or "Discovery",
            "phone": row.get("phone") or row.get("primary_contact_mobile") or None,
            "linkedin_url": row.get("linkedin_url") or row.get("primary_contact_linkedin") or None,
            "notes": row.get("notes") or None,
            "hq_country": hq_country,
            "hq_city": hq_city,
            "hq_geography": geography,
        }

    def import_contacts(
        self,
        rows: List[Dict[str, str]],
        founder_id: int,
        introducer_name: Optional[str],
        introducer_email: str,
    ) -> Dict[str, Any]:
        contacts = filter_required(self.map_row(r, founder_id) for r in rows)
        if not contacts:
            raise ValueError("No valid contacts found in CSV")

        def insert_chunk(chunk: List[Dict[str, Any]]) -> ChunkResult:
            try:
                self.db.add_all([FounderContact(**c) for c in chunk])
                self.db.commit()
            except SQLAlchemyError:
                self.db.rollback()
                raise

            derived = []
            for c in chunk:
                first, _, rest = (c["full_name"] or "").partition(" ")
                derived.append(IntroducedInvestor(
                    investor_firm=c["company_name"],
                    primary_contact_first_name=first or None,
                    primary_contact_last_name=rest or None,
                    primary_contact_email=c["email"],
                    primary_contact_mobile=c["phone"],
                    primary_contact_linkedin=c["linkedin_url"],
                    investor_type=c["investor_type"],
                    introducer=introducer_name or introducer_email,
                    introducer_email=introducer_email,
                    relationship_status="unverified",
                    notes=c["notes"],
                ))
            try:
                self.db.add_all(derived)
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Error inserting investors data: {e}")

            return ChunkResult(processed=len(chunk))

        summary = process_in_chunks(contacts, insert_chunk, stop_on_error=True)

        return {
            "success": summary.errors == 0,
            "imported": summary.processed,
            "errors": summary.errors,
            "errorMessages": summary.error_messages,
            "message": f"Successfully imported {summary.processed} contacts",
        }


class InvestorContactUploader:
    """Admin upload of investor firm contacts."""

    REQUIRED_FIELDS = [
        ("full_name", "Full name is required"),
        ("email", "Email is required"),
        ("role_type", "Role type is required"),
    ]
    VERIFIED_VALUES = {"true", "false", "1", "0", "yes", "no"}

    def __init__(self, db: Session):
        self.db = db
        self.directory = InvestorDirectory(db)

    def validate_contact(self, contact: Dict[str, str], row: int) -> List[Dict[str, Any]]:
        errors = []

        def err(field: str, message: str):
            errors.append({"row": row, "field": field, "message": message, "value": contact.get(field)})

        for field, message in self.REQUIRED_FIELDS:
            if not (contact.get(field) or "").strip():
                err(field, message)

        email = (contact.get("email") or "").strip()
        if email and not is_valid_email(email):
            err("email", "Invalid email format")

        linkedin = (contact.get("linkedin_url") or "").strip()
        if linkedin:
            parsed = urlparse(linkedin)
            if not parsed.scheme or not parsed.netloc:
                err("linkedin_url", "Invalid LinkedIn URL format")

        score = (contact.get("activity_score") or "").strip()
        if score:
            value = parse_number(score) if re.fullmatch(r"-?\d+(\.\d+)?", score) else None
            if value is None or value < 0 or value > 100:
                err("activity_score", "Activity score must be a number between 0 and 100")

        verified = (contact.get("email_verified") or "").strip().lower()
        if verified and verified not in self.VERIFIED_VALUES:
            err("email_verified", "Email verified must be true/false, yes/no, or 1/0")

        return errors

    def validate(self, parsed: ParseResult) -> Dict[str, Any]:
        """Split parsed rows into valid contacts, validation errors and in-file duplicates."""
        contacts, errors, duplicates = [], [], []
        seen = set()

        for row_number, row in enumerate(parsed.rows, start=2):
            row_errors = self.validate_contact(row, row_number)
            errors.extend(row_errors)

            email = (row.get("email") or "").strip().lower()
            if email and email in seen:
                duplicates.append({**row, "row": row_number, "source": "admin", "isDuplicate": True})
                continue
            if email:
                seen.add(email)

            if not row_errors:
                score = (row.get("activity_score") or "").strip()
                contacts.append({
                    "full_name": row["full_name"].strip(),
                    "email": email,
                    "role_type": row["role_type"].strip(),
                    "company_name": (row.get("company_name") or row.get("firm_name") or "").strip() or None,
                    "title": row.get("title") or None,
                    "email_verified": parse_flag(row.get("email_verified")),
                    "mobile_phone": row.get("mobile_phone") or row.get("phone") or None,
                    "linkedin_url": row.get("linkedin_url") or None,
                    "activity_score": int(float(score)) if score else None,
                    "source": InvestorSource.ADMIN.value,
                })

        return {"contacts": contacts, "errors": errors, "duplicates": duplicates}

    def _save_chunk(self, chunk: List[Dict[str, Any]]) -> ChunkResult:
        result = ChunkResult()
        for c in chunk:
            try:
                firm_id = None
                if c.get("company_name"):
                    firm, _ = self.directory.find_or_create_firm(c["company_name"])
                    firm_id = firm.id
                first, last = split_full_name(c["full_name"])
                self.db.add(InvestorContact(
                    firm_id=firm_id,
                    first_name=first,
                    last_name=last if last != first else None,
                    full_name=c["full_name"],
                    email=c["email"],
                    title=c.get("title"),
                    role_type=c["role_type"],
                    linkedin_url=c.get("linkedin_url"),
                    phone=c.get("mobile_phone"),
                    activity_score=c.get("activity_score"),
                    verified=bool(c.get("email_verified")),
                    source=InvestorSource.ADMIN.value,
                ))
                self.db.commit()
                result.processed += 1
            except SQLAlchemyError as e:
                self.db.rollback()
                result.errors += 1
                result.error_messages.append(f"{c['email']}: {e}")
        return result

    def save(self, contacts: List[Dict[str, Any]]) -> Dict[str, Any]:
        summary = process_in_chunks(contacts, self._save_chunk)
        logger.info(f"Saved {summary.processed} investor contacts ({summary.errors} errors)")
        return {"success": summary.errors == 0, **summary.to_dict()}


# Header aliases for the admin investor spreadsheet
COLUMN_MAPPINGS: Dict[str, List[str]] = {
    # Required fields
    "first_name": ["first_name", "first name", "firstname", "fname", "given_name", "forename"],
    "last_name": ["last_name", "last name", "lastname", "lname", "surname", "family_name"],
    "email": ["email", "email_address", "email address", "e-mail", "e_mail", "contact_email"],
    "country": ["country", "location_country", "hq_country", "base_country"],
    "city": ["city", "location_city", "hq_city", "base_city"],
    "invests_via_company": [
        "invests_via_company", "invests via company", "company_investor",
        "company investor", "investment_type", "investor_category",
    ],
    # Optional fields
    "company_name": ["company_name", "company name", "firm_name", "firm name", "company", "firm", "organization"],
    "investor_type": ["investor_type", "investor type", "type", "firm_type", "category"],
    "title": ["title", "job_title", "job title", "position", "role", "designation"],
}
REQUIRED_COLUMNS = ["first_name", "last_name", "email", "country", "city", "invests_via_company"]
REQUIRED_ROW_FIELDS = [
    ("first_name", "First Name"),
    ("last_name", "Last Name"),
    ("email", "Email"),
    ("country", "Country"),
    ("city", "City"),
]
COMPANY_TRUTHY = {"true", "yes", "1", "company", "via company", "firm"}
INVESTOR_FILE_EXTENSIONS = {"csv", "xls", "xlsx"}


def find_column(headers: List[str], field_name: str) -> Optional[str]:
    """Exact alias match first, then partial match in either direction."""
    aliases = [normalize_header(a) for a in COLUMN_MAPPINGS.get(field_name, [field_name])]
    for alias in aliases:
        if alias in headers:
            return alias
    for alias in aliases:
        for header in headers:
            if header and (alias in header or header in alias):
                return header
    return None


class InvestorFileImporter:
    """Admin spreadsheet import: one account/profile/firm/contact per row."""

    def __init__(self, db: Session, max_size_mb: int = 10):
        self.db = db
        self.max_size_mb = max_size_mb
        self.directory = InvestorDirectory(db)

    def parse(self, filename: str, content: bytes) -> Dict[str, Any]:
        """Parse and validate the file. Returns {success, data, errors, warnings}."""
        size_errors = [e for e in validate_file(filename, len(content), self.max_size_mb) if "size" in e]
        if size_errors:
            return {"success": False, "data": [], "errors": size_errors, "warnings": []}
        if file_extension(filename) not in INVESTOR_FILE_EXTENSIONS:
            return {
                "success": False,
                "data": [],
                "errors": ["Invalid file type. Please upload an Excel (.xlsx, .xls) or CSV file."],
                "warnings": [],
            }

        parsed = parse_file(filename, content)
        if not parsed.rows:
            return {
                "success": False,
                "data": [],
                "errors": parsed.errors or ["File must contain at least a header row and one data row"],
                "warnings": [],
            }

        columns = {field: find_column(parsed.columns, field) for field in COLUMN_MAPPINGS}
        missing = [f for f in REQUIRED_COLUMNS if columns[f] is None]
        if missing:
            return {
                "success": False,
                "data": [],
                "errors": [
                    f"Missing required columns: {', '.join(missing)}",
                    f"Available columns: {', '.join(parsed.columns)}",
                    "Please ensure your file contains all required columns.",
                ],
                "warnings": [],
            }

        records, errors, warnings = [], list(parsed.errors), []
        seen = set()

        for row_number, row in enumerate(parsed.rows, start=2):
            record: Dict[str, Any] = {}
            for field, column in columns.items():
                value = (row.get(column) or "").strip() if column else ""
                if value:
                    record[field] = value
            record["invests_via_company"] = (
                str(record.get("invests_via_company", "")).lower() in COMPANY_TRUTHY
            )

            row_errors = self._validate_record(record, row_number)
            if row_errors:
                errors.extend(row_errors)
                continue

            email = record["email"].lower()
            if email in seen:
                errors.append(f"Row {row_number}: Duplicate email found earlier in the file: {email}")
                continue
            seen.add(email)

            record["row"] = row_number
            records.append(record)

        if not records and not errors:
            errors.append("No valid data rows found in file")

        return {"success": bool(records), "data": records, "errors": errors, "warnings": warnings}

    @staticmethod
    def _validate_record(record: Dict[str, Any], row: int) -> List[str]:
        errors = []
        for field, label in REQUIRED_ROW_FIELDS:
            if not record.get(field):
                errors.append(f"Row {row}: Missing required field '{label}'")

        if record.get("invests_via_company"):
            if not record.get("company_name"):
                errors.append(f"Row {row}: Company Name is required when 'Invests via Company' is true")
            if not record.get("investor_type"):
                errors.append(f"Row {row}: Investor Type is required when 'Invests via Company' is true")

        if record.get("email") and not is_valid_email(record["email"]):
            errors.append(f"Row {row}: Invalid email format: {record['email']}")

        return errors

    def import_rows(self, records: List[Dict[str, Any]]) -> Dict[str, Any]:
        results = []
        for index, record in enumerate(records):
            row_number = record.get("row", index + 2)
            result = {"success": False, "rowIndex": row_number, "email": record.get("email"), "warnings": []}

            if self.directory.existing_email(record["email"]):
                result["error"] = f"Email {record['email']} already exists in the system"
                results.append(result)
                continue

            try:
                created = self.directory.create_investor(record)
            except SQLAlchemyError as e:
                logger.error(f"Row {row_number} import failed: {e}")
                result["error"] = f"Processing failed: {e}"
                results.append(result)
                continue

            if created["hasCompany"] and not created["newFirm"]:
                result["warnings"].append("Firm already exists, creating new contact for existing firm")
            if not created["hasCompany"]:
                result["warnings"].append("Individual investor with no company - no contact record created")

            result.update({
                "success": True,
                "userId": created["userId"],
                "profileId": created["profileId"],
                "firmId": created["firmId"],
                "contactId": created["contactId"],
            })
            results.append(result)

        successful = sum(1 for r in results if r["success"])
        total = len(results)
        summary = {
            "total": total,
            "successful": successful,
            "failed": total - successful,
            "successRate": round(successful / total * 100) if total else 0,
        }
        logger.info(f"Bulk investor import completed: {successful}/{total} successful")
        return {"success": True, "summary": summary, "results": results}
