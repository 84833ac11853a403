"""
SQLAlchemy models for the matchmaking platform.

Tables:
- users, user_roles: accounts and role tags
- profiles, companies, company_industries: founder side
- investor_profiles (+ locations, stages, industries, metrics, preferences)
- investor_firms, investor_contacts: admin-curated investor directory
- contacts, investors_data: founder relationship lists and the investors they introduce
- founder_contacts: directory firms an admin sent to a founder
- fundraising_current, fundraising_past, fundraising_investors: rounds and cap table
- investor_portfolio: companies an investor has backed
- investor_match_history, investor_saved_matches, investor_pipeline: deal flow
"""
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, DateTime, Text, JSON, Enum, Boolean, Float,
    ForeignKey, UniqueConstraint, Index
)
from sqlalchemy.ext.declarative import declarative_base
import enum

Base = declarative_base()


class UserRoleType(str, enum.Enum):
    """Account roles - ONLY these values allowed."""
    FOUNDER = "founder"
    INVESTOR = "investor"
    ADMIN = "admin"


class InvestorSource(str, enum.Enum):
    """Provenance of an investor firm or contact."""
    ADMIN = "admin"
    INVESTOR = "investor"
    FOUNDER = "founder"
    AI = "ai"


class User(Base):
    """Authenticated account. Every founder/investor/admin has one."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    role = Column(
        Enum(UserRoleType, native_enum=False, length=20),
        nullable=False,
        default=UserRoleType.FOUNDER,
    )
    account_status = Column(String(50), nullable=False, default="pending_verification")
    created_by_admin = Column(Boolean, nullable=False, default=False)
    email_confirmed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    last_login_at = Column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"


class UserRole(Base):
    """Role tag rows written at signup."""
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(20), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "role", name="uq_user_role"),
    )


# =============================================================================
# Founder side
# =============================================================================


class FounderProfile(Base):
    """Founder profile. Primary key is the user id."""
    __tablename__ = "profiles"

    id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    first_name = Column(String(255))
    last_name = Column(String(255))
    email = Column(String(255), index=True)
    company_function = Column(String(255))
    active_company_id = Column(Integer, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class Company(Base):
    """A founder's company."""
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    company_name = Column(String(500), nullable=False, index=True)
    short_description = Column(Text)
    full_description = Column(Text)
    logo_url = Column(Text)
    cover_image_url = Column(Text)
    website = Column(String(500))
    country = Column(String(100))
    city = Column(String(100))

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<Company(id={self.id}, name={self.company_name})>"


class CompanyIndustry(Base):
    """Company x category x optional subcategory. Replaced wholesale on save."""
    __tablename__ = "company_industries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(String(100), nullable=False)
    subcategory_id = Column(String(100), nullable=True)


# =============================================================================
# Investor side
# =============================================================================


class InvestorProfile(Base):
    """
    Investor profile. Primary key is the user id.

    Holds personal, business and mandate fields in one row; list-valued
    mandate data lives in the locations/stages/industries child tables.
    """
    __tablename__ = "investor_profiles"

    id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)

    # Personal
    first_name = Column(String(255))
    last_name = Column(String(255))
    email = Column(String(255), index=True)
    about = Column(Text)
    profile_image_url = Column(Text)
    country = Column(String(100))
    city = Column(String(100))
    location = Column(String(255))

    # Business
    company_name = Column(String(500))
    company_url = Column(String(500))
    company_logo_url = Column(Text)
    investor_category = Column(String(100))
    investment_preference = Column(String(100))

    # Mandate
    deal_frequency = Column(String(100))
    funded_amount = Column(String(100))
    investment_range = Column(String(100))
    investment_sweet_spot = Column(String(100))
    investment_speed = Column(String(100))
    anonymity_preference = Column(String(100))
    dealflow_frequency = Column(String(100))
    invest_in_spvs = Column(Boolean)
    invest_in_pre_ipos = Column(Boolean)

    # Bookkeeping
    source = Column(String(20), default=InvestorSource.INVESTOR.value)
    created_by_admin = Column(Boolean, nullable=False, default=False)
    activity_score = Column(Integer)
    last_verified_at = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<InvestorProfile(id={self.id}, email={self.email})>"


class InvestorLocation(Base):
    __tablename__ = "investor_locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    investor_id = Column(Integer, ForeignKey("investor_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    location = Column(String(255), nullable=False)


class InvestorStage(Base):
    __tablename__ = "investor_stages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    investor_id = Column(Integer, ForeignKey("investor_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    stage = Column(String(100), nullable=False)


class InvestorIndustry(Base):
    __tablename__ = "investor_industries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    investor_id = Column(Integer, ForeignKey("investor_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    industry = Column(String(255), nullable=False)


class InvestorMetrics(Base):
    """Financial thresholds an investor screens on. One row per investor."""
    __tablename__ = "investor_metrics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    investor_id = Column(
        Integer, ForeignKey("investor_profiles.id", ondelete="CASCADE"),
        nullable=False, unique=True
    )
    min_gross_margin = Column(Float, default=0)
    max_gross_margin = Column(Float, default=100)
    min_ebitda_margin = Column(Float, default=0)
    max_ebitda_margin = Column(Float, default=100)
    min_cac_ltv_ratio = Column(Float, default=1)
    max_cac_ltv_ratio = Column(Float, default=20)
    requires_recurring_revenue = Column(Boolean, default=False)
    revenue_growth_preference = Column(String(20))
    preferred_business_types = Column(JSON)
    preferred_business_models = Column(JSON)

    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class InvestorPreference(Base):
    """Array-valued preferences the admin table filters on."""
    __tablename__ = "investor_preferences"

    id = Column(Integer, primary_key=True, autoincrement=True)
    investor_profile_id = Column(
        Integer, ForeignKey("investor_profiles.id", ondelete="CASCADE"),
        nullable=False, unique=True
    )
    sectors = Column(JSON)
    regions = Column(JSON)
    business_type = Column(JSON)
    stage = Column(JSON)
    model = Column(JSON)
    sales_type = Column(JSON)
    range = Column(String(100))

    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class InvestorFirm(Base):
    """Investment organization in the admin-curated directory."""
    __tablename__ = "investor_firms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    firm_name = Column(String(500), nullable=False, index=True)
    website_url = Column(String(500))
    linkedin_url = Column(String(500))
    investor_type = Column(String(100))
    hq_location = Column(String(255))
    other_locations = Column(JSON)
    fund_size = Column(String(100))
    stage_focus = Column(JSON)
    check_size_range = Column(String(100))
    geographies_invested = Column(JSON)
    industries_invested = Column(JSON)
    sub_industries_invested = Column(JSON)
    portfolio_companies = Column(JSON)
    investment_thesis_summary = Column(Text)
    fund_vintage_year = Column(Integer)
    recent_exits = Column(JSON)
    activity_score = Column(Integer)
    source = Column(String(20), default=InvestorSource.ADMIN.value, index=True)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    last_updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<InvestorFirm(id={self.id}, name={self.firm_name}, source={self.source})>"


class InvestorContact(Base):
    """A person at a firm, optionally linked to an investor profile."""
    __tablename__ = "investor_contacts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    firm_id = Column(Integer, ForeignKey("investor_firms.id", ondelete="SET NULL"), nullable=True, index=True)
    investor_profile_id = Column(
        Integer, ForeignKey("investor_profiles.id", ondelete="CASCADE"),
        nullable=True, index=True
    )
    first_name = Column(String(255))
    last_name = Column(String(255))
    full_name = Column(String(500))
    email = Column(String(255), index=True)
    title = Column(String(255))
    role_type = Column(String(100))
    linkedin_url = Column(String(500))
    phone = Column(String(50))
    activity_score = Column(Integer)
    verified = Column(Boolean, nullable=False, default=False)
    source = Column(String(20), default=InvestorSource.ADMIN.value)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class FounderContact(Base):
    """An investor in a founder's relationship list (CSV-importable)."""
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    founder_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    company_name = Column(String(500))
    full_name = Column(String(500))
    email = Column(String(255))
    investor_type = Column(String(100))
    stage = Column(String(50), default="Discovery")
    phone = Column(String(50))
    linkedin_url = Column(String(500))
    notes = Column(Text)
    hq_country = Column(String(100))
    hq_city = Column(String(100))
    hq_geography = Column(String(255))

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    last_modified = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class IntroducedInvestor(Base):
    """Investor record derived from a founder's contact import, pending verification."""
    __tablename__ = "investors_data"

    id = Column(Integer, primary_key=True, autoincrement=True)
    investor_firm = Column(String(500))
    primary_contact_first_name = Column(String(255))
    primary_contact_last_name = Column(String(255))
    primary_contact_email = Column(String(255))
    primary_contact_mobile = Column(String(50))
    primary_contact_linkedin = Column(String(500))
    investor_type = Column(String(100))
    introducer = Column(String(255))
    introducer_email = Column(String(255))
    relationship_status = Column(String(50), default="unverified")
    notes = Column(Text)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class FounderFirmContact(Base):
    """A directory firm sent to a founder by an admin."""
    __tablename__ = "founder_contacts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    founder_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    investor_firm_id = Column(
        Integer, ForeignKey("investor_firms.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    added_by_platform = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("founder_id", "investor_firm_id", name="uq_founder_firm_contact"),
    )


class InvestorPortfolioCompany(Base):
    """A company in an investor's portfolio."""
    __tablename__ = "investor_portfolio"

    id = Column(Integer, primary_key=True, autoincrement=True)
    investor_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    company_name = Column(String(500), nullable=False)
    company_website = Column(String(500))
    company_logo_url = Column(String(1000))
    investment_date = Column(String(50))
    investment_amount = Column(Float)
    investment_stage = Column(String(100))
    ownership_percentage = Column(Float)
    company_industry = Column(String(255))
    company_location = Column(String(255))
    notes = Column(Text)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


# =============================================================================
# Fundraising
# =============================================================================


class FundraisingCurrent(Base):
    """The open round for a company. One row per company."""
    __tablename__ = "fundraising_current"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(
        Integer, ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False, unique=True
    )
    capital_reason = Column(Text)
    raising_amount = Column(Float)
    latest_valuation = Column(Float)
    current_valuation = Column(Float)
    funding_type = Column(String(20))
    equity_percentage = Column(Float)
    interest_rate = Column(Float)
    equity_amount = Column(Float)
    debt_amount = Column(Float)
    min_investment = Column(Float)
    max_investment = Column(Float)
    closing_time = Column(String(100))

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class FundraisingPast(Base):
    """Summary of previously raised capital. One row per company."""
    __tablename__ = "fundraising_past"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(
        Integer, ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False, unique=True
    )
    previous_raised = Column(Float)
    paid_percentage = Column(Float)
    investor_types = Column(JSON)

    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class FundraisingInvestor(Base):
    """
    A founder-tracked investor. Rows flagged is_investment are cap-table entries.
    """
    __tablename__ = "fundraising_investors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    first_name = Column(String(255))
    last_name = Column(String(255))
    company = Column(String(500))
    email = Column(String(255))
    type = Column(String(50))
    stage = Column(String(50))
    country = Column(String(100))
    city = Column(String(100))
    amount = Column(Float)
    valuation = Column(Float)
    share_price = Column(Float)
    num_shares = Column(Integer)
    investment_type = Column(String(20))
    interest_rate = Column(Float)
    is_investment = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "email", name="uq_fundraising_investor_email"),
        Index("idx_fundraising_investors_company_inv", "company_id", "is_investment"),
    )


# =============================================================================
# Matching & pipeline
# =============================================================================


class InvestorMatchHistory(Base):
    """One row per company search an investor runs."""
    __tablename__ = "investor_match_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    investor_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    search_query = Column(Text)
    search_criteria = Column(JSON)
    results_count = Column(Integer, nullable=False, default=0)
    saved_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class InvestorSavedMatch(Base):
    __tablename__ = "investor_saved_matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    investor_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("investor_id", "company_id", name="uq_saved_match"),
    )


class PipelineEntry(Base):
    """An investor's position with a founder in the deal pipeline."""
    __tablename__ = "investor_pipeline"

    id = Column(Integer, primary_key=True, autoincrement=True)
    investor_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    founder_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    stage = Column(String(50), nullable=False, default="interested")
    status = Column(String(20), nullable=False, default="active")
    notes = Column(Text)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    last_activity = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("investor_id", "founder_id", name="uq_pipeline_pair"),
    )
