"""
Application Repository implementation using SQLAlchemy.

Handles conversion between:
- Domain entities (Application, DetailedInfo) → ORM models (ApplicationModel, ApplicationDetails)
- ORM models → Domain entities
"""

from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
import logging

from marcheconnect.core.interfaces import ApplicationFilter, IApplicationRepository
from marcheconnect.domain.entities import Application, ApplicationNotFoundError, DetailedInfo
from marcheconnect.domain.value_objects import ApplicationId, ApplicationStatus, TableTier
from marcheconnect.db.models import ApplicationDetails, ApplicationModel

logger = logging.getLogger(__name__)


DETAIL_FIELDS = (
    "siret",
    "id_document_url",
    "needs_electricity",
    "needs_grid",
    "sunday_lunch_count",
    "tombola_lot",
    "tombola_lot_description",
    "insurance_company",
    "insurance_policy_number",
    "agreed_to_image_rights",
    "agreed_to_terms",
    "additional_comments",
    "submitted_at",
)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo; every timestamp we write is UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ApplicationRepository(IApplicationRepository):
    """SQLAlchemy implementation of IApplicationRepository."""

    def __init__(self, db_session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            db_session: SQLAlchemy async session
        """
        self._db = db_session

    async def add(self, application: Application) -> Application:
        """
        Save a new application (and its details form, if any).

        Raises:
            ValueError: If the application ID already exists
        """
        try:
            self._db.add(self._to_orm(application))
            await self._db.flush()

            logger.info(
                f"💾 Saved application {application.id} "
                f"({application.company_name}, status={application.status.value})"
            )
            return application

        except IntegrityError as e:
            logger.error(f"Application {application.id} already exists")
            raise ValueError(f"Application {application.id} already exists") from e

    async def get_by_id(self, application_id: ApplicationId) -> Optional[Application]:
        """
        Retrieve application by ID with its details form.

        Returns:
            Application if found, None otherwise
        """
        db_application = await self._get_orm(application_id)
        if db_application is None:
            return None
        return self._from_orm(db_application)

    async def update(self, application: Application) -> Application:
        """
        Persist status, rejection justification and details form.

        Contact and booth fields are owned by the submission and not touched.
        A details form already stored is overwritten field by field.

        Raises:
            ApplicationNotFoundError: If the application doesn't exist
        """
        db_application = await self._get_orm(application.id)
        if db_application is None:
            raise ApplicationNotFoundError(application.id)

        previous_status = db_application.status
        db_application.status = application.status.value
        db_application.rejection_justification = application.rejection_justification

        if application.detailed_info is None:
            db_application.detailed_info = None
        elif db_application.detailed_info is None:
            db_application.detailed_info = self._details_to_orm(application)
        else:
            for name in DETAIL_FIELDS:
                setattr(db_application.detailed_info, name, getattr(application.detailed_info, name))

        await self._db.flush()

        logger.info(
            f"💾 Updated application {application.id}: "
            f"{previous_status} → {application.status.value}"
        )
        return application

    async def list(self, criteria: Optional[ApplicationFilter] = None) -> List[Application]:
        """List applications matching the criteria, newest first"""
        criteria = criteria or ApplicationFilter()

        stmt = (
            select(ApplicationModel)
            .options(selectinload(ApplicationModel.detailed_info))
            .order_by(ApplicationModel.created_at.desc())
        )

        if criteria.market_configuration_id is not None:
            stmt = stmt.where(
                ApplicationModel.market_configuration_id == criteria.market_configuration_id
            )
        if criteria.status is not None:
            stmt = stmt.where(ApplicationModel.status == ApplicationStatus(criteria.status).value)
        if criteria.search:
            pattern = f"%{criteria.search.strip()}%"
            full_name = ApplicationModel.first_name + " " + ApplicationModel.last_name
            stmt = stmt.where(
                or_(
                    ApplicationModel.company_name.ilike(pattern),
                    full_name.ilike(pattern),
                )
            )

        result = await self._db.execute(stmt)
        applications = [self._from_orm(row) for row in result.scalars().all()]

        logger.debug(f"📖 Listed {len(applications)} application(s)")
        return applications

    async def _get_orm(self, application_id: ApplicationId) -> Optional[ApplicationModel]:
        stmt = (
            select(ApplicationModel)
            .where(ApplicationModel.id == application_id.value)
            .options(selectinload(ApplicationModel.detailed_info))
        )
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()

    def _to_orm(self, application: Application) -> ApplicationModel:
        """Convert domain Application → ORM ApplicationModel"""
        db_application = ApplicationModel(
            id=application.id.value,
            market_configuration_id=application.market_configuration_id,
            first_name=application.first_name,
            last_name=application.last_name,
            email=application.email,
            phone=application.phone,
            company_name=application.company_name,
            product_description=application.product_description,
            requested_tables=application.requested_tables.value,
            website_url=application.website_url,
            is_registered=application.is_registered,
            address=application.address,
            city=application.city,
            postal_code=application.postal_code,
            status=application.status.value,
            rejection_justification=application.rejection_justification,
            created_at=application.created_at,
        )
        if application.detailed_info is not None:
            db_application.detailed_info = self._details_to_orm(application)
        return db_application

    def _details_to_orm(self, application: Application) -> ApplicationDetails:
        details = application.detailed_info
        return ApplicationDetails(
            application_id=application.id.value,
            **{name: getattr(details, name) for name in DETAIL_FIELDS}
        )

    def _from_orm(self, db_application: ApplicationModel) -> Application:
        """Convert ORM ApplicationModel → domain Application"""
        detailed_info = None
        if db_application.detailed_info is not None:
            db_details = db_application.detailed_info
            values = {name: getattr(db_details, name) for name in DETAIL_FIELDS}
            values["submitted_at"] = _as_utc(values["submitted_at"])
            detailed_info = DetailedInfo(**values)

        return Application(
            id=ApplicationId(db_application.id),
            first_name=db_application.first_name,
            last_name=db_application.last_name,
            email=db_application.email,
            phone=db_application.phone,
            company_name=db_application.company_name,
            product_description=db_application.product_description,
            requested_tables=TableTier(db_application.requested_tables),
            address=db_application.address,
            city=db_application.city,
            postal_code=db_application.postal_code,
            website_url=db_application.website_url,
            is_registered=db_application.is_registered,
            status=ApplicationStatus(db_application.status),
            rejection_justification=db_application.rejection_justification,
            detailed_info=detailed_info,
            market_configuration_id=db_application.market_configuration_id,
            created_at=_as_utc(db_application.created_at),
        )
