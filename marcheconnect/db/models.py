"""
SQLAlchemy ORM models for database tables.

Three tables: market editions (price configurations), vendor applications,
and the details form attached to an application once accepted.
"""
from sqlalchemy import Column, String, Text, DateTime, Index, ForeignKey, Boolean, Integer
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class MarketConfiguration(Base):
    """
    One row per market edition (year) with its price list.

    The current_market flag marks the edition shown by default in the admin
    dashboard. Saving a configuration through the API clears the flag on the
    other rows, but readers must tolerate zero or several flagged rows.
    """
    __tablename__ = "market_configurations"

    id = Column(String(50), primary_key=True)  # Format: "config-2026"
    market_year = Column(Integer, unique=True, nullable=False)
    edition_number = Column(String(50), nullable=False, default="")  # e.g. "6ème"
    price_table1 = Column(Integer, nullable=False, default=40)  # Whole euros
    price_table2 = Column(Integer, nullable=False, default=60)
    price_meal = Column(Integer, nullable=False, default=8)
    price_electricity = Column(Integer, nullable=False, default=1)
    current_market = Column(Boolean, nullable=False, default=False)
    notification_email = Column(String(255), nullable=True)  # Organizer inbox for this edition
    poster_image_url = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=func.now())

    applications = relationship("ApplicationModel", back_populates="market_configuration")


class ApplicationModel(Base):
    """
    Vendor applications (pre-registrations).

    status holds one of: pending, accepted_form1, rejected, submitted_form2, validated.
    """
    __tablename__ = "applications"

    id = Column(String(50), primary_key=True)  # Format: "app_89baed550ed9"
    market_configuration_id = Column(
        String(50),
        ForeignKey('market_configurations.id'),
        nullable=True
    )

    # Contact
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)

    # Booth
    company_name = Column(String(200), nullable=False)
    product_description = Column(Text, nullable=False)
    requested_tables = Column(String(1), nullable=False)  # '1' or '2'
    website_url = Column(String(500), nullable=True)
    is_registered = Column(Boolean, nullable=False, default=False)

    # Address
    address = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)

    # Lifecycle
    status = Column(String(20), nullable=False, default='pending', server_default='pending')
    rejection_justification = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=func.now())

    __table_args__ = (
        Index('idx_applications_config_status', 'market_configuration_id', 'status'),
        Index('idx_applications_status', 'status'),
    )

    # Relationships
    market_configuration = relationship("MarketConfiguration", back_populates="applications")
    detailed_info = relationship(
        "ApplicationDetails",
        back_populates="application",
        uselist=False,
        cascade="all, delete-orphan",
    )


class ApplicationDetails(Base):
    """
    Details form (logistics and payment) - one row per application.

    Separate table instead of a JSON column: the billing fields
    (sunday_lunch_count, needs_electricity) stay queryable.
    A re-submission replaces the row.
    """
    __tablename__ = "application_details"

    application_id = Column(
        String(50),
        ForeignKey('applications.id', ondelete='CASCADE'),
        primary_key=True
    )
    siret = Column(String(20), nullable=True)
    id_document_url = Column(Text, nullable=False)
    needs_electricity = Column(Boolean, nullable=False, default=False)
    needs_grid = Column(Boolean, nullable=False, default=False)
    sunday_lunch_count = Column(Integer, nullable=False, default=0)
    tombola_lot = Column(Boolean, nullable=False, default=False)
    tombola_lot_description = Column(Text, nullable=True)
    insurance_company = Column(String(200), nullable=False)
    insurance_policy_number = Column(String(100), nullable=False)
    agreed_to_image_rights = Column(Boolean, nullable=False)
    agreed_to_terms = Column(Boolean, nullable=False)
    additional_comments = Column(Text, nullable=True)
    submitted_at = Column(DateTime, nullable=False, default=func.now())

    application = relationship("ApplicationModel", back_populates="detailed_info")
