"""
Services package - infrastructure-facing collaborators.
"""
from marcheconnect.services.email_notifier import SmtpNotifier
from marcheconnect.services.geocoding_service import GeocodingBatchProcessor
from marcheconnect.services.justification_generator import TemplateJustificationGenerator

__all__ = ['SmtpNotifier', 'GeocodingBatchProcessor', 'TemplateJustificationGenerator']
